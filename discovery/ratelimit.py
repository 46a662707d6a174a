"""Minimum-interval gate shared by every call to one rate-limited provider."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class MinIntervalGate:
    """Enforce a minimum spacing between successive calls.

    The timestamp of the last admitted call is the only shared state and is
    guarded by an ``asyncio.Lock``, so overlapping discovery runs queue up
    behind each other instead of bursting. A caller cancelled while waiting
    leaves the timestamp untouched.
    """

    def __init__(
        self,
        min_interval_seconds: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: Optional[float] = None

    @property
    def last_call(self) -> Optional[float]:
        return self._last_call

    async def acquire(self) -> float:
        """Wait until a call is allowed. Returns the number of seconds waited."""
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                remaining = self.min_interval_seconds - (self._clock() - self._last_call)
                if remaining > 0:
                    logger.debug(f"[RateGate] Waiting {remaining:.3f}s before next call")
                    await self._sleep(remaining)
                    waited = remaining
            self._last_call = self._clock()
            return waited
