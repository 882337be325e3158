"""Segmented parallel scan of the source store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import ScanError, ValidationError

if TYPE_CHECKING:
    from ..models import SourceRecord
    from ..repository_protocol import MigrationStoreProtocol

logger = logging.getLogger(__name__)

# Sentinel pushed by a segment task when its scan is exhausted
_SEGMENT_DONE: object = object()


@dataclass
class _SegmentFailed:
    segment: int
    error: BaseException


class SegmentedScanner:
    """
    Scans ``segments`` disjoint ranges of the source keyspace concurrently.

    Each segment runs in its own task and pushes records into a shared
    bounded queue, so the merged sequence is lazy: a slow consumer stalls
    the segment scans instead of growing memory. Records come out in
    arbitrary order.

    The sequence is finite and not restartable. A failed segment raises
    ``ScanError`` from ``records()`` and cancels the other segments.

    Args:
        store: Store exposing ``scan_segment``
        segments: Number of parallel segments (>= 1)
        queue_size: Capacity of the queue between segment tasks and the consumer
    """

    def __init__(
        self,
        store: MigrationStoreProtocol,
        segments: int,
        queue_size: int = 1024,
    ) -> None:
        if segments < 1:
            raise ValidationError("segments", segments, "must be >= 1")
        if queue_size < 1:
            raise ValidationError("queue_size", queue_size, "must be >= 1")
        self._store = store
        self._segments = segments
        self._queue_size = queue_size

    async def _scan_segment(self, segment: int, queue: asyncio.Queue[object]) -> None:
        count = 0
        try:
            async for record in self._store.scan_segment(segment, self._segments):
                await queue.put(record)
                count += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await queue.put(_SegmentFailed(segment, e))
            return
        logger.debug("Segment %d/%d exhausted after %d records", segment, self._segments, count)
        await queue.put(_SEGMENT_DONE)

    async def records(self) -> AsyncIterator[SourceRecord]:
        """Yield every source record exactly once, in arbitrary order."""
        queue: asyncio.Queue[object] = asyncio.Queue(maxsize=self._queue_size)
        tasks = [
            asyncio.create_task(
                self._scan_segment(segment, queue),
                name=f"scan-segment-{segment}",
            )
            for segment in range(self._segments)
        ]
        remaining = self._segments
        try:
            while remaining:
                item = await queue.get()
                if item is _SEGMENT_DONE:
                    remaining -= 1
                elif isinstance(item, _SegmentFailed):
                    logger.error(
                        "Scan of segment %d/%d failed",
                        item.segment,
                        self._segments,
                        exc_info=item.error,
                    )
                    raise ScanError(item.segment, self._segments, item.error) from item.error
                else:
                    yield item  # type: ignore[misc]
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
