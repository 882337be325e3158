"""Integration test fixtures for LocalStack."""

import time
import uuid

import pytest

from zae_migrator.repository import Repository


@pytest.fixture
def unique_name():
    """Generate unique table name prefix for test isolation."""
    timestamp = int(time.time())
    unique_id = uuid.uuid4().hex[:8]
    return f"integration-test-{timestamp}-{unique_id}"


@pytest.fixture
async def localstack_repository(localstack_endpoint, unique_name):
    """Repository with fresh source and destination tables in LocalStack."""
    repo = Repository(
        source_table=f"{unique_name}-source",
        destination_table=f"{unique_name}-destination",
        region="us-east-1",
        endpoint_url=localstack_endpoint,
    )
    await repo.create_tables()
    yield repo
    await repo.delete_tables()
    await repo.close()
