from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any


@dataclass
class RateLimitConfig:
    max_calls: int = 20
    window_seconds: float = 1.0
    min_interval: float = 0.0  # enforce spacing between calls

    @classmethod
    def from_env(cls, key: str) -> RateLimitConfig:
        """Read ``RATE_<KEY>_MAX`` / ``_WINDOW`` / ``_MIN_INTERVAL`` overrides."""
        prefix = f"RATE_{key.upper()}"
        return cls(
            max_calls=int(os.getenv(f"{prefix}_MAX", str(cls.max_calls))),
            window_seconds=float(os.getenv(f"{prefix}_WINDOW", str(cls.window_seconds))),
            min_interval=float(os.getenv(f"{prefix}_MIN_INTERVAL", str(cls.min_interval))),
        )


class AsyncRateLimiter:
    """Sliding-window rate limiter with min-interval spacing."""

    def __init__(self, cfg: RateLimitConfig) -> None:
        self.cfg = cfg
        self._lock = asyncio.Lock()
        self._calls: list[float] = []
        self._last_call: float = 0.0

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            sleep_needed = max(0.0, self.cfg.min_interval - (now - self._last_call))
            if sleep_needed > 0:
                await asyncio.sleep(sleep_needed)
                now = time.monotonic()
            cutoff = now - self.cfg.window_seconds
            self._calls = [t for t in self._calls if t >= cutoff]
            # At capacity: wait until the earliest call leaves the window
            if len(self._calls) >= self.cfg.max_calls:
                wait_for = self._calls[0] + self.cfg.window_seconds - now
                if wait_for > 0:
                    await asyncio.sleep(wait_for)
                    now = time.monotonic()
                    cutoff = now - self.cfg.window_seconds
                    self._calls = [t for t in self._calls if t >= cutoff]
            self._calls.append(time.monotonic())
            self._last_call = time.monotonic()


class RateLimiters:
    """Shared per-host limiters so every client talking to a host paces together."""

    def __init__(self) -> None:
        self._limiters: dict[str, AsyncRateLimiter] = {}

    def get(self, key: str, default: RateLimitConfig | None = None) -> AsyncRateLimiter:
        key = key.lower()
        if key not in self._limiters:
            self._limiters[key] = AsyncRateLimiter(default or RateLimitConfig.from_env(key))
        return self._limiters[key]


LIMITERS = RateLimiters()


class RequestThrottle:
    """Tracks in-flight request tasks and applies backpressure.

    When the number of unfinished tasks reaches ``max_pending`` the caller
    pauses for ``delay`` seconds and then waits for everything in flight to
    finish before issuing more.
    """

    def __init__(self, max_pending: int, delay: float = 0.08) -> None:
        self.max_pending = max_pending
        self.delay = delay
        self.waits = 0
        self.issued = 0
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.issued += 1
        return task

    async def wait_for_capacity(self) -> list[BaseException]:
        if len(self._tasks) >= self.max_pending:
            self.waits += 1
            await asyncio.sleep(self.delay)
            return await self.drain()
        return []

    async def drain(self) -> list[BaseException]:
        """Wait for every task in flight, including ones spawned while waiting.

        Returns the exceptions raised by tasks that failed.
        """
        errors: list[BaseException] = []
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            errors.extend(r for r in results if isinstance(r, BaseException))
        return errors
