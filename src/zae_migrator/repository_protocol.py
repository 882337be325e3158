"""Store protocol for migration backends.

This module defines the MigrationStoreProtocol that the pipeline consumes.
The protocol uses Python's typing.Protocol with @runtime_checkable decorator,
enabling duck typing and isinstance() checks at runtime.
"""

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import SaltedTokenHash, SourceRecord


@runtime_checkable
class MigrationStoreProtocol(Protocol):
    """
    Protocol for the store a migration run reads from and writes to.

    The DynamoDB ``Repository`` implements it; tests substitute in-memory
    fakes. The protocol has two halves:

    - **Scan**: one independent scan per segment of the source keyspace
    - **Migrate**: idempotent per-record rewrite into the new representation

    Example:
        class MyStore:
            async def scan_segment(self, segment, total_segments):
                for record in self._records[segment::total_segments]:
                    yield record

            async def migrate_record(self, key, secret, expires_at):
                return self._write_if_absent(key, secret, expires_at)

        assert isinstance(MyStore(), MigrationStoreProtocol)  # True at runtime
    """

    def scan_segment(self, segment: int, total_segments: int) -> AsyncIterator["SourceRecord"]:
        """
        Scan one segment of the source keyspace.

        Segments ``0..total_segments-1`` together cover every source record
        exactly once.

        Args:
            segment: 0-based segment index
            total_segments: Total number of segments

        Yields:
            Source records in the legacy representation
        """
        ...

    async def migrate_record(
        self,
        key: str,
        secret: "SaltedTokenHash",
        expires_at: int,
    ) -> bool:
        """
        Write a record in the new representation.

        Must be idempotent: calling it for a key that was already migrated
        performs no write and returns False.

        Args:
            key: Legacy record key
            secret: Salted password hash
            expires_at: Expiration as epoch seconds

        Returns:
            True if a write occurred, False if there was nothing to do

        Raises:
            TransientStoreError: If the write may succeed on retry
        """
        ...
