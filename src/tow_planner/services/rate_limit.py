from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable

from tow_planner.services.retry import SleepFunc

logger = logging.getLogger(__name__)


class RateLimiter:
    """Enforces a minimum spacing between outbound calls to one provider.

    Each caller reserves the next free slot under a thread lock and then sleeps
    until that slot outside the lock, so concurrent coroutines (or threads)
    are serialized one interval apart.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval
        self.clock = clock
        self.sleep = sleep
        self.last_request_time: float | None = None
        self._lock = threading.Lock()

    async def wait(self) -> None:
        with self._lock:
            now = self.clock()
            if self.last_request_time is None:
                slot = now
            else:
                slot = max(now, self.last_request_time + self.min_interval)
            self.last_request_time = slot

        remaining = slot - now
        if remaining > 0:
            logger.debug("Rate limiting: sleeping for %.2fs", remaining)
            await self.sleep(remaining)

    def reset(self) -> None:
        with self._lock:
            self.last_request_time = None
