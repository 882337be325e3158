"""Bounded-concurrency per-record migration with retry and error isolation."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterable, Awaitable, Callable
from typing import TYPE_CHECKING

from ..exceptions import TransientStoreError, ValidationError
from .retry import RetryPolicy, call_with_retry

if TYPE_CHECKING:
    from ..metrics import MigrationMetrics
    from ..models import SourceRecord
    from ..repository_protocol import MigrationStoreProtocol
    from .dispatcher import DispatchedRecord

logger = logging.getLogger(__name__)


class BoundedMigrator:
    """
    Applies ``migrate_record`` to each dispatched record.

    At most ``max_concurrency`` store operations are outstanding at any
    time; a slot is held for the whole life of a record's migration,
    including backoff between retries. A record that still fails after the
    retry policy is exhausted, or fails with a non-transient error, is
    logged and counted as abandoned. It never stops the run.

    In dry-run mode the store is never called and every outcome is False.

    Args:
        store: Store exposing ``migrate_record``
        metrics: Run counters
        dry_run: Suppress all writes
        max_concurrency: Max outstanding store operations (>= 1)
        retry_policy: Backoff for transient failures
        sleep: Awaitable sleep used for backoff
        rng: Random source for backoff jitter
    """

    def __init__(
        self,
        store: MigrationStoreProtocol,
        metrics: MigrationMetrics,
        *,
        dry_run: bool,
        max_concurrency: int,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValidationError("max_concurrency", max_concurrency, "must be >= 1")
        self._store = store
        self._metrics = metrics
        self._dry_run = dry_run
        self._max_concurrency = max_concurrency
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng

    async def migrate(self, record: SourceRecord) -> bool:
        """
        Migrate a single record, isolating failures.

        Returns:
            True if a write occurred; False if the record was already
            migrated, skipped by a dry run, or abandoned
        """
        if self._dry_run:
            return False

        try:
            migrated = await call_with_retry(
                lambda: self._store.migrate_record(record.key, record.secret, record.expires_at),
                self._retry_policy,
                retry_on=(TransientStoreError,),
                sleep=self._sleep,
                rng=self._rng,
                description=f"migration of {record.key}",
            )
        except Exception as e:
            logger.warning("Failed to migrate record for %s: %s", record.key, e, exc_info=True)
            self._metrics.abandoned.increment()
            return False

        if migrated:
            self._metrics.migrated.increment()
        return migrated

    async def _migrate_dispatched(
        self, dispatched: DispatchedRecord, slots: asyncio.Semaphore
    ) -> None:
        try:
            await self.migrate(dispatched.record)
        finally:
            slots.release()
            dispatched.done()

    async def run(self, records: AsyncIterable[DispatchedRecord]) -> None:
        """
        Consume ``records`` until exhausted and wait for every migration.

        Errors raised while pulling from ``records`` (scan failures)
        propagate after outstanding migrations are cancelled.
        """
        slots = asyncio.Semaphore(self._max_concurrency)
        pending: set[asyncio.Task[None]] = set()
        try:
            async for dispatched in records:
                self._metrics.inspected.increment()
                await slots.acquire()
                task = asyncio.create_task(self._migrate_dispatched(dispatched, slots))
                pending.add(task)
                task.add_done_callback(pending.discard)
            if pending:
                await asyncio.gather(*pending)
        finally:
            outstanding = list(pending)
            for task in outstanding:
                task.cancel()
            if outstanding:
                await asyncio.gather(*outstanding, return_exceptions=True)
