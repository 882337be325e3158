"""
zae-migrator: Segmented, bounded-concurrency record migration for DynamoDB.

Migrates registration recovery passwords from their legacy, phone-number
keyed representation to a new table with:
- Parallel segmented scans of the source table
- Per-window shuffling to spread writes across destination partitions
- Backpressure between the scan and the writers
- Bounded write concurrency with retry/backoff and per-record isolation
- Dry-run mode that reads and counts but never writes

Example:
    from zae_migrator import MigrationRunner, Repository, RunConfig

    async with Repository(region="us-east-1") as repo:
        summary = await MigrationRunner(
            repo,
            RunConfig(dry_run=False, segments=8, max_concurrency=32),
        ).run()
        print(summary.inspected, summary.migrated)
"""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    ScanError,
    StoreError,
    TransientStoreError,
    ValidationError,
    ZAEMigratorError,
)
from .metrics import CounterRegistry, InMemoryCounter, MigrationMetrics
from .models import RunConfig, RunSummary, SaltedTokenHash, SourceRecord
from .pipeline.retry import RetryPolicy, call_with_retry
from .repository import Repository
from .repository_protocol import MigrationStoreProtocol
from .runner import MigrationRunner, run_migration

try:
    __version__ = version("zae-migrator")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Main classes
    "MigrationRunner",
    "run_migration",
    "Repository",
    "MigrationStoreProtocol",
    # Models
    "RunConfig",
    "RunSummary",
    "SaltedTokenHash",
    "SourceRecord",
    "RetryPolicy",
    "call_with_retry",
    # Metrics
    "CounterRegistry",
    "InMemoryCounter",
    "MigrationMetrics",
    # Exceptions
    "ZAEMigratorError",
    "ValidationError",
    "StoreError",
    "TransientStoreError",
    "ScanError",
]
