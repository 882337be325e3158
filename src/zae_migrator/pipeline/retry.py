"""Retry with exponential backoff for single-record store operations.

Kept separate from the concurrency limiter in the migrator so each can be
exercised on its own.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ..exceptions import TransientStoreError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff policy.

    The delay before retry ``n`` (0-based) is ``base_delay * multiplier**n``,
    capped at ``max_delay`` and then randomized by up to ``jitter`` of its
    value in either direction.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1)
        base_delay: Delay before the first retry, in seconds
        multiplier: Factor applied to the delay on each further retry
        max_delay: Upper bound for a single delay (None = unbounded)
        jitter: Fraction of the delay to randomize (0 = deterministic)
    """

    max_retries: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float | None = None
    jitter: float = 0.5

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValidationError("max_retries", self.max_retries, "must be >= 0")
        if self.base_delay < 0:
            raise ValidationError("base_delay", self.base_delay, "must be >= 0")
        if self.multiplier < 1:
            raise ValidationError("multiplier", self.multiplier, "must be >= 1")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValidationError("max_delay", self.max_delay, "must be >= 0")
        if not 0 <= self.jitter <= 1:
            raise ValidationError("jitter", self.jitter, "must be between 0 and 1")

    @property
    def max_attempts(self) -> int:
        """Total number of attempts, including the first one."""
        return self.max_retries + 1

    def delay_for(self, retry: int, rng: random.Random | None = None) -> float:
        """Delay in seconds before the given 0-based retry."""
        delay = self.base_delay * (self.multiplier**retry)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        if self.jitter and delay:
            spread = delay * self.jitter
            delay += (rng or random).uniform(-spread, spread)
        return max(delay, 0.0)


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    retry_on: tuple[type[BaseException], ...] = (TransientStoreError,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: random.Random | None = None,
    description: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds or the policy is exhausted.

    Only exceptions matching ``retry_on`` are retried; anything else
    propagates immediately. When all attempts fail, the last error is
    re-raised.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        policy: Backoff policy
        retry_on: Exception types considered transient
        sleep: Awaitable sleep used between attempts
        rng: Random source for jitter
        description: Label used in retry log lines

    Returns:
        The result of the first successful attempt
    """
    retry = 0
    while True:
        try:
            return await operation()
        except retry_on as e:
            if retry >= policy.max_retries:
                raise
            delay = policy.delay_for(retry, rng)
            retry += 1
            logger.info(
                "Retrying %s (attempt %d/%d) in %.2fs after: %s",
                description,
                retry + 1,
                policy.max_attempts,
                delay,
                e,
            )
            await sleep(delay)
