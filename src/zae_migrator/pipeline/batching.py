"""Fixed-size windowing with per-window shuffling.

Segment scans tend to emit key-adjacent records. Writing them in that order
sends bursts to the same destination partition, so each window is shuffled
before dispatch. Order is never changed across windows, which keeps memory
bounded to one window and every record within ``window_size - 1``
positions of where the scan emitted it.
"""

from __future__ import annotations

import random
from collections.abc import AsyncIterable, AsyncIterator
from typing import TypeVar

from ..exceptions import ValidationError

T = TypeVar("T")


async def windows(items: AsyncIterable[T], window_size: int) -> AsyncIterator[list[T]]:
    """
    Group ``items`` into consecutive lists of ``window_size``.

    The final window may be shorter. Empty windows are never yielded.
    """
    if window_size < 1:
        raise ValidationError("window_size", window_size, "must be >= 1")

    window: list[T] = []
    async for item in items:
        window.append(item)
        if len(window) == window_size:
            yield window
            window = []
    if window:
        yield window


async def shuffled_windows(
    items: AsyncIterable[T],
    window_size: int,
    rng: random.Random | None = None,
) -> AsyncIterator[list[T]]:
    """Like ``windows``, but each window is shuffled before it is yielded."""
    shuffle = (rng or random).shuffle
    async for window in windows(items, window_size):
        shuffle(window)
        yield window
