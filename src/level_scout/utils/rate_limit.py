# ABOUTME: Per-dependency admission control with a fixed-window token reservoir
# ABOUTME: Bounds call rate, in-flight concurrency and optional spacing between calls

import asyncio
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from level_scout.config import Config
from level_scout.utils.logging import get_logger

logger = get_logger(__name__)

YOUTUBE = "youtube"
OPENAI = "openai"
GDBROWSER = "gdbrowser"


@dataclass(frozen=True)
class RateLimitSettings:
    """Limits for one external dependency.

    Attributes:
        requests_per_window: Reservoir capacity, refilled in full every window.
        max_concurrent: Calls allowed in flight at once.
        min_interval: Seconds required between successive admissions (0 disables).
        window_seconds: Length of the refill window.
    """

    requests_per_window: int
    max_concurrent: int
    min_interval: float = 0.0
    window_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.requests_per_window < 1:
            raise ValueError("requests_per_window must be at least 1")
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")


class RateLimiter:
    """Fixed-window reservoir limiter for one dependency.

    A caller is admitted once the reservoir holds a token, fewer than
    ``max_concurrent`` calls are in flight and ``min_interval`` has passed since
    the previous admission. There is no overflow rejection; callers wait.
    """

    def __init__(
        self,
        name: str,
        settings: RateLimitSettings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.settings = settings
        self._clock = clock
        self._condition = asyncio.Condition()
        self._tokens = settings.requests_per_window
        self._window_start = clock()
        self._in_flight = 0
        self._last_admitted: float | None = None

    def _refill(self, now: float) -> None:
        elapsed = now - self._window_start
        if elapsed >= self.settings.window_seconds:
            windows = int(elapsed // self.settings.window_seconds)
            self._window_start += windows * self.settings.window_seconds
            self._tokens = self.settings.requests_per_window

    def _admission_delay(self, now: float) -> float | None:
        """Seconds until a time-based condition clears, 0 if admissible now, None if blocked on a release."""
        if self._in_flight >= self.settings.max_concurrent:
            return None
        delay = 0.0
        if self._tokens <= 0:
            delay = self._window_start + self.settings.window_seconds - now
        if self.settings.min_interval > 0 and self._last_admitted is not None:
            delay = max(delay, self._last_admitted + self.settings.min_interval - now)
        return max(delay, 0.0)

    async def _acquire(self) -> None:
        async with self._condition:
            while True:
                now = self._clock()
                self._refill(now)
                delay = self._admission_delay(now)
                if delay == 0.0:
                    break
                if delay is None:
                    await self._condition.wait()
                    continue
                logger.debug("Rate limiting", limiter=self.name, sleep_time=round(delay, 3))
                try:
                    await asyncio.wait_for(self._condition.wait(), timeout=delay)
                except TimeoutError:
                    pass

            self._tokens -= 1
            self._in_flight += 1
            self._last_admitted = now

    async def _release(self) -> None:
        async with self._condition:
            self._in_flight -= 1
            self._condition.notify_all()

    @asynccontextmanager
    async def admit(self) -> AsyncIterator[None]:
        """Wait for admission and hold a permit for the duration of the block."""
        await self._acquire()
        try:
            yield
        finally:
            # Shielded so a cancelled caller still returns its permit
            await asyncio.shield(self._release())

    async def schedule(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run ``await func(*args, **kwargs)`` under a permit."""
        async with self.admit():
            return await func(*args, **kwargs)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def status(self) -> dict[str, Any]:
        """Current reservoir and concurrency state for diagnostics."""
        self._refill(self._clock())
        return {
            "name": self.name,
            "tokens": self._tokens,
            "capacity": self.settings.requests_per_window,
            "in_flight": self._in_flight,
            "max_concurrent": self.settings.max_concurrent,
            "min_interval": self.settings.min_interval,
            "window_seconds": self.settings.window_seconds,
        }


class RateLimiterRegistry:
    """One limiter per external dependency, created once and passed explicitly."""

    def __init__(self, limiters: dict[str, RateLimiter]):
        self._limiters = dict(limiters)

    @classmethod
    def from_config(cls, config: Config) -> "RateLimiterRegistry":
        window = config.rate_limit_window_seconds
        return cls(
            {
                YOUTUBE: RateLimiter(
                    YOUTUBE,
                    RateLimitSettings(
                        requests_per_window=config.youtube_rate_limit_per_minute,
                        max_concurrent=config.youtube_max_concurrent,
                        min_interval=config.youtube_min_interval,
                        window_seconds=window,
                    ),
                ),
                OPENAI: RateLimiter(
                    OPENAI,
                    RateLimitSettings(
                        requests_per_window=config.openai_rate_limit_per_minute,
                        max_concurrent=config.openai_max_concurrent,
                        min_interval=config.openai_min_interval,
                        window_seconds=window,
                    ),
                ),
                GDBROWSER: RateLimiter(
                    GDBROWSER,
                    RateLimitSettings(
                        requests_per_window=config.gdbrowser_rate_limit_per_minute,
                        max_concurrent=config.gdbrowser_max_concurrent,
                        min_interval=config.gdbrowser_min_interval,
                        window_seconds=window,
                    ),
                ),
            }
        )

    def get(self, dependency: str) -> RateLimiter:
        try:
            return self._limiters[dependency]
        except KeyError:
            raise KeyError(f"No rate limiter configured for {dependency!r}") from None

    def status(self) -> list[dict[str, Any]]:
        return [limiter.status() for limiter in self._limiters.values()]
