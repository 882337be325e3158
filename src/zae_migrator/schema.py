"""DynamoDB schema definitions and key builders."""

from typing import Any

# Table names
DEFAULT_SOURCE_TABLE_NAME = "registration-recovery-passwords"
DEFAULT_DESTINATION_TABLE_NAME = "registration-recovery-passwords-v2"

# Partition key prefixes
LEGACY_PREFIX = "E164#"  # Old representation, keyed by phone number
MIGRATED_PREFIX = "RRP#"  # New representation

# Sort keys
SK_PASSWORD = "#PASSWORD"

# Attribute names
ATTR_PK = "PK"
ATTR_SK = "SK"
ATTR_HASH = "hash"
ATTR_SALT = "salt"
ATTR_EXPIRES_AT = "expires_at"
ATTR_MIGRATED_AT = "migrated_at"


def pk_legacy(key: str) -> str:
    """Build source-table partition key for a legacy record."""
    return f"{LEGACY_PREFIX}{key}"


def pk_migrated(key: str) -> str:
    """Build destination-table partition key for a migrated record."""
    return f"{MIGRATED_PREFIX}{key}"


def sk_password() -> str:
    """Build destination-table sort key for the password item."""
    return SK_PASSWORD


def parse_legacy_key(pk: str) -> str | None:
    """Extract the record key from a legacy partition key (None if not legacy)."""
    if not pk.startswith(LEGACY_PREFIX):
        return None
    return pk[len(LEGACY_PREFIX) :]


def get_source_table_definition(table_name: str) -> dict[str, Any]:
    """Get the source table definition for CreateTable."""
    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": [
            {"AttributeName": ATTR_PK, "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": ATTR_PK, "KeyType": "HASH"},
        ],
    }


def get_destination_table_definition(table_name: str) -> dict[str, Any]:
    """Get the destination table definition for CreateTable."""
    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": [
            {"AttributeName": ATTR_PK, "AttributeType": "S"},
            {"AttributeName": ATTR_SK, "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": ATTR_PK, "KeyType": "HASH"},
            {"AttributeName": ATTR_SK, "KeyType": "RANGE"},
        ],
    }
