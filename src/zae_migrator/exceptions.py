"""Exceptions for zae-migrator."""

from typing import Any

# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class ZAEMigratorError(Exception):
    """
    Base exception for all zae-migrator errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Configuration Exceptions
# ---------------------------------------------------------------------------


class ValidationError(ZAEMigratorError):
    """
    Raised when a configuration value or identifier is invalid.

    Attributes:
        field: Name of the offending field
        value: The rejected value
        reason: Human-readable explanation
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# ---------------------------------------------------------------------------
# Store Exceptions
# ---------------------------------------------------------------------------


class StoreError(ZAEMigratorError):
    """
    Base exception for source/destination store errors.

    This includes errors raised by DynamoDB scans and writes.
    """

    pass


class TransientStoreError(StoreError):
    """
    Raised when a store operation failed in a way that may succeed on retry.

    Throttling, server-side 5xx errors and dropped connections fall in this
    category. The migrator retries these with backoff.

    Attributes:
        code: The underlying error code (e.g. ProvisionedThroughputExceededException)
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)


# ---------------------------------------------------------------------------
# Pipeline Exceptions
# ---------------------------------------------------------------------------


class ScanError(ZAEMigratorError):
    """
    Raised when a segment scan fails.

    Scan failures are fatal for the run: they are not retried and they
    stop the pipeline.

    Attributes:
        segment: Index of the failed segment
        total_segments: Total number of segments in the scan
    """

    def __init__(self, segment: int, total_segments: int, cause: BaseException) -> None:
        self.segment = segment
        self.total_segments = total_segments
        super().__init__(f"Scan of segment {segment}/{total_segments} failed: {cause}")
