"""Tests for the segmented scanner."""

import asyncio
from contextlib import aclosing

import pytest

from tests.fixtures.stores import InMemoryStore, make_records
from zae_migrator.exceptions import ScanError, ValidationError
from zae_migrator.pipeline.scanner import SegmentedScanner


async def _collect(scanner):
    return [record async for record in scanner.records()]


class TestSegmentedScanner:
    """Tests for SegmentedScanner."""

    @pytest.mark.parametrize("segments", [1, 2, 3, 4, 7, 150])
    async def test_yields_every_record_once(self, records, segments):
        """Test every record comes out exactly once for any segment count."""
        scanner = SegmentedScanner(InMemoryStore(records), segments, queue_size=8)
        result = await _collect(scanner)
        assert sorted(r.key for r in result) == sorted(r.key for r in records)
        assert len(result) == len(records)

    async def test_empty_store(self):
        """Test an empty store yields nothing and terminates."""
        assert await _collect(SegmentedScanner(InMemoryStore([]), 4)) == []

    async def test_all_segments_start_before_first_record(self):
        """Test every segment scan is running before the consumer gets a record."""
        records = make_records(40)
        store = InMemoryStore(records)
        scanner = SegmentedScanner(store, 4, queue_size=1)
        async with aclosing(scanner.records()) as stream:
            first = await anext(stream)
            assert {int(key[-7:]) % 4 for key in store.scanned} == {0, 1, 2, 3}
            rest = [record async for record in stream]
        keys = [first.key] + [r.key for r in rest]
        assert sorted(keys) == [r.key for r in records]

    async def test_lazy_consumption(self):
        """Test the scan does not run ahead of a slow consumer."""
        store = InMemoryStore(make_records(500))
        scanner = SegmentedScanner(store, 1, queue_size=4)
        async with aclosing(scanner.records()) as records:
            await anext(records)
            await asyncio.sleep(0.01)
            assert len(store.scanned) < 20

    async def test_early_close_cancels_segments(self):
        """Test closing the generator stops all segment tasks."""
        store = InMemoryStore(make_records(500))
        scanner = SegmentedScanner(store, 3, queue_size=2)
        async with aclosing(scanner.records()) as records:
            await anext(records)
        scanned = len(store.scanned)
        await asyncio.sleep(0.01)
        assert len(store.scanned) == scanned
        assert not [t for t in asyncio.all_tasks() if t.get_name().startswith("scan-segment-")]

    async def test_segment_failure_is_fatal(self, records):
        """Test a failed segment raises ScanError naming the segment."""
        store = InMemoryStore(records, failing_segment=2)
        scanner = SegmentedScanner(store, 4, queue_size=8)
        with pytest.raises(ScanError, match="segment 2/4") as exc_info:
            await _collect(scanner)
        assert exc_info.value.segment == 2
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.parametrize("kwargs", [{"segments": 0}, {"segments": 1, "queue_size": 0}])
    def test_invalid_arguments(self, store, kwargs):
        """Test invalid segments/queue_size raise ValidationError."""
        with pytest.raises(ValidationError):
            SegmentedScanner(store, **kwargs)
