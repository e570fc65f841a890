"""
Clock abstraction for the retry wrapper.

The wrapper reads the current time (to interpret absolute retry hints) and
suspends between attempts only through a Clock, so tests can simulate
elapsed time instead of waiting on real delays.
"""

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Source of wall-clock time and of non-blocking sleep."""

    def time(self) -> float:
        """Current Unix time in seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the current task for `seconds` without blocking the loop."""
        ...


class SystemClock:
    """Clock backed by time.time() and asyncio.sleep()."""

    def time(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def __repr__(self) -> str:
        return "SystemClock()"


system_clock = SystemClock()
