from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def linear_backoff(unit_seconds: float) -> Callable[[int], float]:
    """Delay of ``attempt * unit_seconds`` before retry number ``attempt``."""

    def delay(attempt: int) -> float:
        return attempt * unit_seconds

    return delay


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    delay: Callable[[int], float],
    should_retry: Callable[[Exception], bool],
    sleep: SleepFunc = asyncio.sleep,
    label: str = "request",
) -> T:
    """Run ``operation``, retrying up to ``max_retries`` times on retryable errors.

    The last exception is re-raised once retries are exhausted or when
    ``should_retry`` rejects it.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_retries or not should_retry(exc):
                raise
            attempt += 1
            wait = delay(attempt)
            logger.warning(
                "%s failed (%s), retry %d/%d in %.1fs", label, exc, attempt, max_retries, wait
            )
            await sleep(wait)
