"""Delays with jitter for pacing API calls."""

import asyncio
import random
from typing import Awaitable, Callable, Optional


SleepFunc = Callable[[float], Awaitable[None]]


class Pacer:
    """Waits a base delay plus a random jitter between calls."""

    def __init__(
        self,
        jitter: float = 0.2,
        sleep: Optional[SleepFunc] = None,
        rng: Optional[random.Random] = None
    ):
        self.jitter = jitter
        self.sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()

    def duration(self, seconds: float) -> float:
        """The delay actually waited for a base delay of `seconds`."""
        if self.jitter <= 0:
            return seconds
        return seconds + self._rng.uniform(0, self.jitter)

    async def wait(self, seconds: float) -> float:
        """Sleep for `seconds` plus jitter and return the time waited."""
        duration = self.duration(seconds)
        await self.sleep(duration)
        return duration
