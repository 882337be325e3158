"""Core models for zae-migrator."""

from dataclasses import dataclass, field
from typing import Any

from .exceptions import ValidationError
from .pipeline.retry import RetryPolicy

DEFAULT_MAX_CONCURRENCY = 16
DEFAULT_SEGMENTS = 1
DEFAULT_BUFFER_SIZE = 16_384
DEFAULT_MAX_WINDOWS_IN_FLIGHT = 2


@dataclass(frozen=True)
class SaltedTokenHash:
    """
    Hashed registration recovery password.

    Attributes:
        hash: Hex-encoded hash of the password
        salt: Hex-encoded salt used to produce ``hash``
    """

    hash: str
    salt: str

    def __repr__(self) -> str:
        # Keep secrets out of log lines and tracebacks
        return "SaltedTokenHash(hash=***, salt=***)"


@dataclass(frozen=True)
class SourceRecord:
    """
    A record in the legacy representation, as produced by a segment scan.

    Attributes:
        key: Legacy record key (without the table prefix)
        secret: Salted password hash carried over to the new record
        expires_at: Expiration as epoch seconds
    """

    key: str
    secret: SaltedTokenHash
    expires_at: int


@dataclass(frozen=True)
class RunConfig:
    """
    Configuration for a single migration run.

    Immutable for the lifetime of the run.

    Attributes:
        dry_run: Inspect and count records without writing anything
        max_concurrency: Max migration operations outstanding at once
        segments: Number of parallel scan segments
        buffer_size: Records per shuffle window
        max_windows_in_flight: Max windows outstanding downstream of the dispatcher
        retry: Backoff policy for transient migration failures
    """

    dry_run: bool = True
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    segments: int = DEFAULT_SEGMENTS
    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_windows_in_flight: int = DEFAULT_MAX_WINDOWS_IN_FLIGHT
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        for name in ("max_concurrency", "segments", "buffer_size", "max_windows_in_flight"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValidationError(name, value, "must be an integer >= 1")


@dataclass(frozen=True)
class RunSummary:
    """
    Final counters of a migration run.

    Attributes:
        dry_run: Whether the run suppressed writes
        inspected: Records pulled from the scan and dispatched
        migrated: Records for which a write occurred
        abandoned: Records that failed on every attempt
        elapsed_seconds: Wall-clock duration of the run
    """

    dry_run: bool
    inspected: int
    migrated: int
    abandoned: int = 0
    elapsed_seconds: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        """Serialize for structured log output."""
        return {
            "dry_run": self.dry_run,
            "inspected": self.inspected,
            "migrated": self.migrated,
            "abandoned": self.abandoned,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
