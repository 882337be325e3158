"""Table naming utilities.

Table names follow DynamoDB rules:
- Alphanumeric characters, underscores, hyphens and periods only
- Between 3 and 255 characters
"""

import os
import re

from .exceptions import ValidationError
from .schema import DEFAULT_DESTINATION_TABLE_NAME, DEFAULT_SOURCE_TABLE_NAME

SOURCE_TABLE_ENV_VAR = "ZAEM_SOURCE_TABLE"
"""Environment variable for overriding the source table name."""

DESTINATION_TABLE_ENV_VAR = "ZAEM_DESTINATION_TABLE"
"""Environment variable for overriding the destination table name."""

TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def validate_table_name(name: str) -> None:
    """
    Validate a DynamoDB table name.

    Args:
        name: The user-provided table name

    Raises:
        ValidationError: If the name is empty, too short/long, or has invalid characters
    """
    if not name:
        raise ValidationError("table_name", name, "Name cannot be empty")

    if " " in name:
        raise ValidationError(
            "table_name",
            name,
            "Contains spaces. Use hyphens instead (e.g., 'my-table' not 'my table')",
        )

    if not TABLE_NAME_PATTERN.match(name):
        raise ValidationError(
            "table_name",
            name,
            "Only alphanumeric characters, underscores, hyphens and periods are allowed.",
        )

    if not 3 <= len(name) <= 255:
        raise ValidationError("table_name", name, "Must be between 3 and 255 characters.")


def resolve_source_table(name: str | None) -> str:
    """Resolve source table name from explicit arg, env var, or default.

    Resolution order: ``name`` arg → ``ZAEM_SOURCE_TABLE`` env var → default.
    """
    resolved = name or os.environ.get(SOURCE_TABLE_ENV_VAR) or DEFAULT_SOURCE_TABLE_NAME
    validate_table_name(resolved)
    return resolved


def resolve_destination_table(name: str | None) -> str:
    """Resolve destination table name from explicit arg, env var, or default.

    Resolution order: ``name`` arg → ``ZAEM_DESTINATION_TABLE`` env var → default.
    """
    resolved = name or os.environ.get(DESTINATION_TABLE_ENV_VAR) or DEFAULT_DESTINATION_TABLE_NAME
    validate_table_name(resolved)
    return resolved
