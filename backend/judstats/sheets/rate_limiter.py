"""Request pacing and exponential backoff for the Google Sheets API.

One RateLimiter belongs to one client instance. The sync orchestrator calls
``reset()`` at the start of every full run.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]


@dataclass
class RateLimiter:
    """Sliding-minute request counter plus a backoff delay.

    Every request waits ``backoff_delay`` before dispatch. Quota errors
    double the delay from ``base_delay`` per consecutive error, capped at
    ``max_delay``; a success halves it again (never below ``base_delay``).
    """

    max_requests_per_window: int = 50
    window_seconds: float = 60.0
    base_delay: float = 1.0
    max_delay: float = 60.0
    sleep: SleepFn = field(default=asyncio.sleep, repr=False)
    clock: ClockFn = field(default=time.monotonic, repr=False)

    requests_in_window: int = field(default=0, init=False)
    window_started_at: float | None = field(default=None, init=False)
    backoff_delay: float = field(init=False)
    consecutive_errors: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.backoff_delay = self.base_delay

    def reset(self) -> None:
        self.requests_in_window = 0
        self.window_started_at = None
        self.backoff_delay = self.base_delay
        self.consecutive_errors = 0

    async def before_request(self) -> None:
        """Wait as long as needed before the next request may go out."""
        now = self.clock()
        if self.window_started_at is None or now - self.window_started_at >= self.window_seconds:
            self.requests_in_window = 0
            self.window_started_at = now

        if self.requests_in_window >= self.max_requests_per_window:
            remaining = self.window_seconds - (now - self.window_started_at)
            if remaining > 0:
                logger.info(
                    "Request budget of %d/%.0fs spent, waiting %.1fs",
                    self.max_requests_per_window, self.window_seconds, remaining,
                )
                await self.sleep(remaining)
            self.requests_in_window = 0
            self.window_started_at = self.clock()

        if self.backoff_delay > 0:
            await self.sleep(self.backoff_delay)

        self.requests_in_window += 1

    def on_success(self) -> None:
        if self.consecutive_errors or self.backoff_delay > self.base_delay:
            self.backoff_delay = max(self.base_delay, self.backoff_delay / 2)
            logger.debug("Request succeeded, delay reduced to %.1fs", self.backoff_delay)
        self.consecutive_errors = 0

    def on_quota_error(self) -> float:
        """Record a quota error and return the new backoff delay."""
        self.consecutive_errors += 1
        self.backoff_delay = min(
            self.max_delay,
            self.base_delay * 2 ** self.consecutive_errors,
        )
        logger.warning(
            "Quota exceeded (%d consecutive), backing off %.1fs",
            self.consecutive_errors, self.backoff_delay,
        )
        return self.backoff_delay
