"""Run counters for the migration pipeline.

Counters are created through an injected ``CounterRegistry`` rather than a
process-global one, so tests can inspect them directly. Each counter is
tagged with the run's ``dry_run`` flag to keep dry-run and live statistics
apart.
"""

import threading
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .models import RunSummary

RECORDS_INSPECTED_COUNTER_NAME = "records_inspected"
RECORDS_MIGRATED_COUNTER_NAME = "records_migrated"
RECORDS_ABANDONED_COUNTER_NAME = "records_abandoned"

DRY_RUN_TAG = "dry_run"


@runtime_checkable
class Counter(Protocol):
    """Increment-only counter, safe to share between concurrent tasks."""

    @property
    def value(self) -> int:
        """Current count."""
        ...

    def increment(self, amount: int = 1) -> None:
        """Add ``amount`` (>= 0) to the counter."""
        ...


@dataclass
class InMemoryCounter:
    """Thread-safe in-process counter."""

    name: str
    tags: dict[str, str] = field(default_factory=dict)
    _value: int = field(init=False, default=0)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock, repr=False)

    @property
    def value(self) -> int:
        return self._value

    def increment(self, amount: int = 1) -> None:
        if amount < 0:
            raise ValueError("counters can only be incremented")
        with self._lock:
            self._value += amount


class CounterRegistry:
    """
    Creates and tracks counters by name and tags.

    Asking twice for the same name and tags returns the same counter.
    """

    def __init__(self) -> None:
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], InMemoryCounter] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, **tags: str) -> InMemoryCounter:
        """Get or create the counter identified by ``name`` and ``tags``."""
        key = (name, tuple(sorted(tags.items())))
        with self._lock:
            counter = self._counters.get(key)
            if counter is None:
                counter = InMemoryCounter(name=name, tags=dict(tags))
                self._counters[key] = counter
            return counter

    def snapshot(self) -> list[dict[str, object]]:
        """Return all counters as dictionaries (name, tags, value)."""
        with self._lock:
            counters = list(self._counters.values())
        return [{"name": c.name, "tags": dict(c.tags), "value": c.value} for c in counters]


@dataclass
class MigrationMetrics:
    """
    The counters of one migration run.

    Attributes:
        dry_run: Tag value applied to every counter
        inspected: Records dispatched for migration
        migrated: Records for which a write occurred
        abandoned: Records that failed on every attempt
    """

    dry_run: bool
    inspected: Counter
    migrated: Counter
    abandoned: Counter

    @classmethod
    def create(cls, dry_run: bool, registry: CounterRegistry | None = None) -> "MigrationMetrics":
        """Create the run's counters in ``registry`` (a fresh one by default)."""
        registry = registry or CounterRegistry()
        tag = str(dry_run).lower()
        return cls(
            dry_run=dry_run,
            inspected=registry.counter(RECORDS_INSPECTED_COUNTER_NAME, **{DRY_RUN_TAG: tag}),
            migrated=registry.counter(RECORDS_MIGRATED_COUNTER_NAME, **{DRY_RUN_TAG: tag}),
            abandoned=registry.counter(RECORDS_ABANDONED_COUNTER_NAME, **{DRY_RUN_TAG: tag}),
        )

    def summary(self, elapsed_seconds: float = 0.0) -> RunSummary:
        """Snapshot the counters into a ``RunSummary``."""
        return RunSummary(
            dry_run=self.dry_run,
            inspected=self.inspected.value,
            migrated=self.migrated.value,
            abandoned=self.abandoned.value,
            elapsed_seconds=elapsed_seconds,
        )
