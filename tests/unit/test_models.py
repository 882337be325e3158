"""Tests for models and naming."""

import pytest

from zae_migrator.exceptions import ScanError, ValidationError, ZAEMigratorError
from zae_migrator.models import RunConfig, SaltedTokenHash, SourceRecord
from zae_migrator.naming import (
    DESTINATION_TABLE_ENV_VAR,
    SOURCE_TABLE_ENV_VAR,
    resolve_destination_table,
    resolve_source_table,
    validate_table_name,
)
from zae_migrator.pipeline.retry import RetryPolicy
from zae_migrator.schema import DEFAULT_DESTINATION_TABLE_NAME, DEFAULT_SOURCE_TABLE_NAME


class TestRunConfig:
    """Tests for RunConfig."""

    def test_defaults(self):
        """Test defaults match the CLI defaults."""
        config = RunConfig()
        assert config.dry_run is True
        assert config.max_concurrency == 16
        assert config.segments == 1
        assert config.buffer_size == 16_384
        assert config.max_windows_in_flight == 2
        assert config.retry == RetryPolicy()

    @pytest.mark.parametrize(
        "field", ["max_concurrency", "segments", "buffer_size", "max_windows_in_flight"]
    )
    @pytest.mark.parametrize("value", [0, -1, True])
    def test_rejects_invalid_values(self, field, value):
        """Test non-positive or non-integer sizes are rejected."""
        with pytest.raises(ValidationError, match=field):
            RunConfig(**{field: value})

    def test_immutable(self):
        """Test RunConfig cannot be changed after creation."""
        config = RunConfig()
        with pytest.raises(AttributeError):
            config.dry_run = False  # type: ignore[misc]


class TestSourceRecord:
    """Tests for SourceRecord and SaltedTokenHash."""

    def test_secret_not_in_repr(self):
        """Test password hashes do not leak into reprs."""
        record = SourceRecord("+15550000001", SaltedTokenHash("deadbeef", "cafe"), 1)
        assert "deadbeef" not in repr(record)
        assert "cafe" not in repr(record)

    def test_equality(self):
        """Test records compare by value."""
        a = SourceRecord("k", SaltedTokenHash("h", "s"), 1)
        b = SourceRecord("k", SaltedTokenHash("h", "s"), 1)
        assert a == b


class TestNaming:
    """Tests for table name validation and resolution."""

    @pytest.mark.parametrize("name", ["abc", "rrp_v2", "my-table.prod", "A" * 255])
    def test_valid_names(self, name):
        """Test names DynamoDB accepts pass validation."""
        validate_table_name(name)

    @pytest.mark.parametrize("name", ["", "ab", "my table", "bad/name", "A" * 256])
    def test_invalid_names(self, name):
        """Test names DynamoDB rejects raise ValidationError."""
        with pytest.raises(ValidationError):
            validate_table_name(name)

    def test_resolve_defaults(self, monkeypatch):
        """Test defaults apply when neither arg nor env var is set."""
        monkeypatch.delenv(SOURCE_TABLE_ENV_VAR, raising=False)
        monkeypatch.delenv(DESTINATION_TABLE_ENV_VAR, raising=False)
        assert resolve_source_table(None) == DEFAULT_SOURCE_TABLE_NAME
        assert resolve_destination_table(None) == DEFAULT_DESTINATION_TABLE_NAME

    def test_resolve_env_var(self, monkeypatch):
        """Test env vars override defaults."""
        monkeypatch.setenv(SOURCE_TABLE_ENV_VAR, "env-source")
        monkeypatch.setenv(DESTINATION_TABLE_ENV_VAR, "env-destination")
        assert resolve_source_table(None) == "env-source"
        assert resolve_destination_table(None) == "env-destination"

    def test_resolve_explicit_wins(self, monkeypatch):
        """Test an explicit name overrides the env var."""
        monkeypatch.setenv(SOURCE_TABLE_ENV_VAR, "env-source")
        assert resolve_source_table("explicit") == "explicit"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_all_derive_from_base(self):
        """Test library errors share ZAEMigratorError."""
        assert issubclass(ValidationError, ZAEMigratorError)
        assert issubclass(ScanError, ZAEMigratorError)

    def test_scan_error_message(self):
        """Test ScanError names the failed segment and cause."""
        error = ScanError(3, 8, RuntimeError("timeout"))
        assert str(error) == "Scan of segment 3/8 failed: timeout"
        assert error.segment == 3
        assert error.total_segments == 8
