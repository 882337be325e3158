"""DynamoDB repository for registration recovery password migration."""

import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import aioboto3  # type: ignore[import-untyped]
from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from . import schema
from .exceptions import TransientStoreError
from .models import SaltedTokenHash, SourceRecord
from .naming import resolve_destination_table, resolve_source_table

logger = logging.getLogger(__name__)

# ClientError codes worth retrying
TRANSIENT_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
        "InternalServerError",
        "ServiceUnavailable",
        "TransactionConflictException",
    }
)

_CONNECTION_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)


def is_transient_client_error(error: ClientError) -> bool:
    """Whether a ClientError is a throttle or server-side failure."""
    return error.response.get("Error", {}).get("Code") in TRANSIENT_ERROR_CODES


class Repository:
    """
    Async DynamoDB repository for registration recovery passwords.

    Reads legacy records (``PK = E164#<key>``) from the source table and
    writes them in the new representation (``PK = RRP#<key>``,
    ``SK = #PASSWORD``) to the destination table. Implements
    ``MigrationStoreProtocol``.

    Table names are resolved from explicit arguments, then the
    ``ZAEM_SOURCE_TABLE``/``ZAEM_DESTINATION_TABLE`` environment variables,
    then defaults.
    """

    def __init__(
        self,
        source_table: str | None = None,
        destination_table: str | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.source_table = resolve_source_table(source_table)
        self.destination_table = resolve_destination_table(destination_table)
        self.region = region
        self.endpoint_url = endpoint_url
        self._session: aioboto3.Session | None = None
        self._client: Any = None

    async def _get_client(self) -> Any:
        """Get or create the DynamoDB client."""
        if self._client is None:
            self._session = aioboto3.Session()
            self._client = await self._session.client(
                "dynamodb",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
            ).__aenter__()
        return self._client

    async def close(self) -> None:
        """Close the DynamoDB client."""
        if self._client is not None:
            await self._client.__aexit__(None, None, None)
            self._client = None
            self._session = None

    async def __aenter__(self) -> "Repository":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _now_seconds(self) -> int:
        """Current time in epoch seconds."""
        return int(time.time())

    # -------------------------------------------------------------------------
    # Table operations
    # -------------------------------------------------------------------------

    async def create_tables(self) -> None:
        """Create the source and destination tables if they don't exist."""
        client = await self._get_client()
        for definition in (
            schema.get_source_table_definition(self.source_table),
            schema.get_destination_table_definition(self.destination_table),
        ):
            try:
                await client.create_table(**definition)
                # Wait for table to be active
                waiter = client.get_waiter("table_exists")
                await waiter.wait(TableName=definition["TableName"])
            except ClientError as e:
                if e.response["Error"]["Code"] != "ResourceInUseException":
                    raise

    async def delete_tables(self) -> None:
        """Delete the source and destination tables."""
        client = await self._get_client()
        for table_name in (self.source_table, self.destination_table):
            try:
                await client.delete_table(TableName=table_name)
            except ClientError as e:
                if e.response["Error"]["Code"] != "ResourceNotFoundException":
                    raise

    # -------------------------------------------------------------------------
    # Source records
    # -------------------------------------------------------------------------

    async def put_source_record(self, record: SourceRecord) -> None:
        """Write a record in the legacy representation to the source table."""
        client = await self._get_client()
        await client.put_item(
            TableName=self.source_table,
            Item={
                schema.ATTR_PK: {"S": schema.pk_legacy(record.key)},
                schema.ATTR_HASH: {"S": record.secret.hash},
                schema.ATTR_SALT: {"S": record.secret.salt},
                schema.ATTR_EXPIRES_AT: {"N": str(record.expires_at)},
            },
        )

    async def scan_segment(self, segment: int, total_segments: int) -> AsyncIterator[SourceRecord]:
        """
        Scan one segment of the source table for legacy records.

        Pages are fetched lazily with ``ExclusiveStartKey``; only one page
        is held in memory at a time.

        Args:
            segment: 0-based segment index
            total_segments: Total number of segments

        Yields:
            Legacy records of this segment
        """
        client = await self._get_client()
        scan_params: dict[str, Any] = {
            "TableName": self.source_table,
            "FilterExpression": "begins_with(#pk, :legacy)",
            "ExpressionAttributeNames": {"#pk": schema.ATTR_PK},
            "ExpressionAttributeValues": {":legacy": {"S": schema.LEGACY_PREFIX}},
        }
        if total_segments > 1:
            scan_params["Segment"] = segment
            scan_params["TotalSegments"] = total_segments

        exclusive_start_key: dict[str, Any] | None = None
        while True:
            if exclusive_start_key:
                scan_params["ExclusiveStartKey"] = exclusive_start_key

            response = await client.scan(**scan_params)

            for item in response.get("Items", []):
                record = self._deserialize_source_record(item)
                if record is not None:
                    yield record

            exclusive_start_key = response.get("LastEvaluatedKey")
            if not exclusive_start_key:
                break

    def _deserialize_source_record(self, item: dict[str, Any]) -> SourceRecord | None:
        pk = item.get(schema.ATTR_PK, {}).get("S", "")
        key = schema.parse_legacy_key(pk)
        if key is None:
            return None
        try:
            return SourceRecord(
                key=key,
                secret=SaltedTokenHash(
                    hash=item[schema.ATTR_HASH]["S"],
                    salt=item[schema.ATTR_SALT]["S"],
                ),
                expires_at=int(item[schema.ATTR_EXPIRES_AT]["N"]),
            )
        except (KeyError, ValueError):
            logger.warning("Skipping malformed legacy record %s", pk, exc_info=True)
            return None

    # -------------------------------------------------------------------------
    # Migrated records
    # -------------------------------------------------------------------------

    async def migrate_record(self, key: str, secret: SaltedTokenHash, expires_at: int) -> bool:
        """
        Write a legacy record in the new representation.

        The write is conditional on the destination item not existing, so
        re-running a migration never overwrites. Records that have already
        expired are not written.

        Args:
            key: Legacy record key
            secret: Salted password hash
            expires_at: Expiration as epoch seconds

        Returns:
            True if the record was written, False if it already existed or expired

        Raises:
            TransientStoreError: On throttling, server errors, or dropped connections
        """
        if expires_at <= self._now_seconds():
            return False

        client = await self._get_client()
        try:
            await client.put_item(
                TableName=self.destination_table,
                Item={
                    schema.ATTR_PK: {"S": schema.pk_migrated(key)},
                    schema.ATTR_SK: {"S": schema.sk_password()},
                    schema.ATTR_HASH: {"S": secret.hash},
                    schema.ATTR_SALT: {"S": secret.salt},
                    schema.ATTR_EXPIRES_AT: {"N": str(expires_at)},
                    schema.ATTR_MIGRATED_AT: {"N": str(self._now_seconds())},
                },
                ConditionExpression="attribute_not_exists(#pk)",
                ExpressionAttributeNames={"#pk": schema.ATTR_PK},
            )
        except ClientError as e:
            code = e.response["Error"]["Code"]
            if code == "ConditionalCheckFailedException":
                return False
            if is_transient_client_error(e):
                raise TransientStoreError(f"Write for {key} failed: {code}", code=code) from e
            raise
        except _CONNECTION_ERRORS as e:
            raise TransientStoreError(f"Write for {key} failed: {e}") from e
        return True

    async def get_migrated_record(self, key: str) -> SourceRecord | None:
        """Read a migrated record back from the destination table."""
        client = await self._get_client()
        response = await client.get_item(
            TableName=self.destination_table,
            Key={
                schema.ATTR_PK: {"S": schema.pk_migrated(key)},
                schema.ATTR_SK: {"S": schema.sk_password()},
            },
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        return SourceRecord(
            key=key,
            secret=SaltedTokenHash(
                hash=item[schema.ATTR_HASH]["S"],
                salt=item[schema.ATTR_SALT]["S"],
            ),
            expires_at=int(item[schema.ATTR_EXPIRES_AT]["N"]),
        )
