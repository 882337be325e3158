"""Unit test fixtures."""

import random

import pytest

from tests.fixtures.stores import InMemoryStore, RecordingSleep, make_records
from zae_migrator.metrics import MigrationMetrics


@pytest.fixture
def records():
    """100 key-adjacent source records."""
    return make_records(100)


@pytest.fixture
def store(records):
    """In-memory store holding ``records``."""
    return InMemoryStore(records)


@pytest.fixture
def fake_sleep():
    """Sleep that returns immediately and records delays."""
    return RecordingSleep()


@pytest.fixture
def rng():
    """Seeded random source for reproducible shuffles."""
    return random.Random(1234)


@pytest.fixture
def live_metrics():
    """Counters for a live (non dry-run) run."""
    return MigrationMetrics.create(dry_run=False)
