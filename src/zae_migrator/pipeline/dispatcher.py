"""Flow control between the batching stage and the migrator."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import ValidationError

if TYPE_CHECKING:
    from ..models import SourceRecord

logger = logging.getLogger(__name__)

# Pushed by the window puller once upstream is exhausted
_NO_MORE_WINDOWS: object = object()


class WindowSlot:
    """Tracks the unresolved records of one in-flight window."""

    def __init__(self, size: int, release: Callable[[], None]) -> None:
        self._pending = size
        self._release: Callable[[], None] | None = release
        if size == 0:
            self._finish()

    @property
    def pending(self) -> int:
        return self._pending

    def record_done(self) -> None:
        if self._pending <= 0:
            raise RuntimeError("record_done() called more times than the window has records")
        self._pending -= 1
        if self._pending == 0:
            self._finish()

    def _finish(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


@dataclass
class DispatchedRecord:
    """A record handed to the migrator, bound to the window it came from."""

    record: SourceRecord
    window: WindowSlot

    def done(self) -> None:
        """Mark this record as resolved downstream."""
        self.window.record_done()


class FlowControlledDispatcher:
    """
    Caps the number of windows in flight and flattens them into records.

    A window is in flight from the moment it is pulled from the batching
    stage until every one of its records has been marked ``done()`` by the
    migrator. Once ``max_windows_in_flight`` windows are outstanding, no
    further window is pulled, which stalls the batcher and, through the
    bounded scan queue, the segment scans.

    This cap is independent of the migrator's per-record concurrency limit.

    Args:
        max_windows_in_flight: Max windows outstanding downstream (>= 1)
    """

    def __init__(self, max_windows_in_flight: int = 2) -> None:
        if max_windows_in_flight < 1:
            raise ValidationError(
                "max_windows_in_flight", max_windows_in_flight, "must be >= 1"
            )
        self.max_windows_in_flight = max_windows_in_flight
        self._windows_in_flight = 0
        self._peak_windows_in_flight = 0

    @property
    def windows_in_flight(self) -> int:
        return self._windows_in_flight

    @property
    def peak_windows_in_flight(self) -> int:
        return self._peak_windows_in_flight

    async def _pull_windows(
        self,
        windows: AsyncIterable[list[SourceRecord]],
        slots: asyncio.Semaphore,
        queue: asyncio.Queue[object],
    ) -> None:
        iterator = aiter(windows)
        while True:
            await slots.acquire()
            try:
                window = await anext(iterator)
            except StopAsyncIteration:
                slots.release()
                break
            except BaseException:
                slots.release()
                raise
            self._windows_in_flight += 1
            self._peak_windows_in_flight = max(
                self._peak_windows_in_flight, self._windows_in_flight
            )
            await queue.put(window)
        await queue.put(_NO_MORE_WINDOWS)

    async def records(
        self, windows: AsyncIterable[list[SourceRecord]]
    ) -> AsyncIterator[DispatchedRecord]:
        """
        Flatten ``windows`` into dispatched records under the window cap.

        Errors raised upstream (for example a failed scan) propagate out of
        this generator.
        """
        slots = asyncio.Semaphore(self.max_windows_in_flight)
        queue: asyncio.Queue[object] = asyncio.Queue()

        def release() -> None:
            self._windows_in_flight -= 1
            slots.release()

        puller = asyncio.create_task(
            self._pull_windows(windows, slots, queue), name="dispatcher-window-puller"
        )
        try:
            while True:
                if puller.done():
                    # Re-raises upstream failures; on success the end marker is queued
                    puller.result()
                    item = await queue.get()
                else:
                    getter = asyncio.ensure_future(queue.get())
                    done, _ = await asyncio.wait(
                        {getter, puller}, return_when=asyncio.FIRST_COMPLETED
                    )
                    if getter not in done:
                        getter.cancel()
                        continue
                    item = getter.result()
                if item is _NO_MORE_WINDOWS:
                    break
                window: list[SourceRecord] = item  # type: ignore[assignment]
                slot = WindowSlot(len(window), release)
                for record in window:
                    yield DispatchedRecord(record, slot)
            await puller
        finally:
            if not puller.done():
                puller.cancel()
                await asyncio.gather(puller, return_exceptions=True)
