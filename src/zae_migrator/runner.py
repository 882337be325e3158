"""Run controller: wires the pipeline stages and drives them to completion."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from contextlib import aclosing
from typing import TYPE_CHECKING

from .metrics import MigrationMetrics
from .pipeline.batching import shuffled_windows
from .pipeline.dispatcher import FlowControlledDispatcher
from .pipeline.migrator import BoundedMigrator
from .pipeline.scanner import SegmentedScanner

if TYPE_CHECKING:
    from .models import RunConfig, RunSummary
    from .repository_protocol import MigrationStoreProtocol

logger = logging.getLogger(__name__)

# Records buffered between segment scans and the batching stage
_SCAN_QUEUE_SIZE = 1024


class MigrationRunner:
    """
    Runs one migration pass over the source store.

    Stages are wired in order::

        SegmentedScanner -> shuffled_windows -> FlowControlledDispatcher -> BoundedMigrator

    The run ends when the scan is exhausted and every dispatched migration
    has resolved. A scan failure is fatal and propagates out of ``run()``;
    record-level failures are contained in the migrator.

    Args:
        store: Source/destination store
        config: Run configuration
        metrics: Counters to update (created from ``config.dry_run`` if omitted)
        rng: Random source for window shuffling and backoff jitter
        sleep: Awaitable sleep used for retry backoff
    """

    def __init__(
        self,
        store: MigrationStoreProtocol,
        config: RunConfig,
        metrics: MigrationMetrics | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.config = config
        self.metrics = metrics or MigrationMetrics.create(config.dry_run)
        self._rng = rng
        self._sleep = sleep

    async def run(self) -> RunSummary:
        """Drive the pipeline to exhaustion and return the final counters."""
        config = self.config
        logger.info(
            "Starting migration (dry_run=%s, segments=%d, buffer=%d, max_concurrency=%d)",
            config.dry_run,
            config.segments,
            config.buffer_size,
            config.max_concurrency,
        )
        started = time.monotonic()

        scanner = SegmentedScanner(
            self.store,
            config.segments,
            queue_size=min(config.buffer_size, _SCAN_QUEUE_SIZE),
        )
        dispatcher = FlowControlledDispatcher(config.max_windows_in_flight)
        migrator = BoundedMigrator(
            self.store,
            self.metrics,
            dry_run=config.dry_run,
            max_concurrency=config.max_concurrency,
            retry_policy=config.retry,
            sleep=self._sleep,
            rng=self._rng,
        )

        async with aclosing(scanner.records()) as records:
            async with aclosing(
                shuffled_windows(records, config.buffer_size, self._rng)
            ) as windows:
                async with aclosing(dispatcher.records(windows)) as dispatched:
                    await migrator.run(dispatched)

        summary = self.metrics.summary(elapsed_seconds=time.monotonic() - started)
        logger.info(
            "Migration complete (dry_run=%s): inspected %d, migrated %d, abandoned %d in %.1fs",
            summary.dry_run,
            summary.inspected,
            summary.migrated,
            summary.abandoned,
            summary.elapsed_seconds,
        )
        return summary


def run_migration(
    store: MigrationStoreProtocol,
    config: RunConfig,
    metrics: MigrationMetrics | None = None,
) -> RunSummary:
    """Run a migration pass, blocking the calling thread until it completes."""
    return asyncio.run(MigrationRunner(store, config, metrics).run())
