from __future__ import annotations

import asyncio
import random
from typing import Protocol


class DelayStrategy(Protocol):
    async def pause(self, max_ms: int) -> float:
        """Sleep for up to ``max_ms`` milliseconds and return the seconds slept."""
        ...


class RandomDelay:
    """Uniform random latency from a single generator seeded once."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def next_ms(self, max_ms: int) -> int:
        if max_ms <= 0:
            return 0
        return self._rng.randrange(max_ms)

    async def pause(self, max_ms: int) -> float:
        seconds = self.next_ms(max_ms) / 1000.0
        if seconds:
            await asyncio.sleep(seconds)
        return seconds


class NoDelay:
    async def pause(self, max_ms: int) -> float:
        _ = max_ms
        return 0.0
