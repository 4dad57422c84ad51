"""
Rate Budget
===========

Sliding-window request and token budget for providers with strict
per-minute ceilings. Callers await ``admit`` before every network call; the
budget delays them until the request fits, it never rejects an admissible
request.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from ..utils.clock import Clock, get_default_clock
from ..utils.exceptions import SizingError
from ..utils.logging import get_logger_for_component


@dataclass(frozen=True)
class BudgetEntry:
    """An admitted request."""
    timestamp: float
    token_cost: int


class RateBudget:
    """Request-count and token-count budget over a trailing time window."""

    def __init__(self, requests_per_minute: int = 30, tokens_per_minute: int = 8000,
                 window_seconds: float = 60.0, safety_margin_seconds: float = 0.05,
                 clock: Optional[Clock] = None, name: str = "groq"):
        """Initialize rate budget.

        Args:
            requests_per_minute: Maximum admitted requests per window
            tokens_per_minute: Maximum admitted tokens per window
            window_seconds: Window length in seconds
            safety_margin_seconds: Extra wait after the oldest entry expires
            clock: Time source (default: real monotonic clock)
            name: Label used in log messages
        """
        if requests_per_minute < 1 or tokens_per_minute < 1:
            raise ValueError("Rate budget ceilings must be positive")

        self.requests_per_minute = requests_per_minute
        self.tokens_per_minute = tokens_per_minute
        self.window_seconds = window_seconds
        self.safety_margin_seconds = safety_margin_seconds
        self.clock = clock or get_default_clock()
        self.name = name

        self._entries: Deque[BudgetEntry] = deque()
        # Created on first admit so it belongs to the loop that uses it
        self._lock: Optional[asyncio.Lock] = None
        self.logger = get_logger_for_component("rate_budget", provider=name)

    @classmethod
    def from_settings(cls, rate_limits, clock: Optional[Clock] = None,
                      name: str = "groq") -> "RateBudget":
        """Build a budget from ``settings.rate_limits``."""
        return cls(
            requests_per_minute=rate_limits.requests_per_minute,
            tokens_per_minute=rate_limits.tokens_per_minute,
            window_seconds=rate_limits.window_seconds,
            safety_margin_seconds=rate_limits.safety_margin_seconds,
            clock=clock,
            name=name,
        )

    async def admit(self, estimated_input_tokens: int, expected_output_tokens: int) -> None:
        """Wait until a request of the given size fits in the budget, then record it.

        Args:
            estimated_input_tokens: Estimated prompt tokens
            expected_output_tokens: Expected completion tokens

        Raises:
            SizingError: If the request alone exceeds the token ceiling
        """
        cost = max(0, estimated_input_tokens) + max(0, expected_output_tokens)

        if cost > self.tokens_per_minute:
            raise SizingError(
                f"Request needs ~{cost} tokens but the {self.name} budget allows "
                f"{self.tokens_per_minute} per {self.window_seconds:g}s",
                requested_tokens=cost,
                token_ceiling=self.tokens_per_minute,
            )

        if self._lock is None:
            self._lock = asyncio.Lock()

        # Check-and-append is serialized; waiting callers queue on the lock
        async with self._lock:
            while True:
                now = self.clock.now()
                self._purge(now)

                used_tokens = self.tokens_in_window()
                if (len(self._entries) + 1 <= self.requests_per_minute
                        and used_tokens + cost <= self.tokens_per_minute):
                    self._entries.append(BudgetEntry(timestamp=now, token_cost=cost))
                    self.logger.debug(
                        f"Admitted request: {cost} tokens, "
                        f"window {len(self._entries)}/{self.requests_per_minute} requests, "
                        f"{used_tokens + cost}/{self.tokens_per_minute} tokens"
                    )
                    return

                oldest = self._entries[0]
                wait = oldest.timestamp + self.window_seconds - now + self.safety_margin_seconds
                wait = max(wait, self.safety_margin_seconds)

                self.logger.info(
                    f"Rate budget full ({len(self._entries)} requests, {used_tokens} tokens "
                    f"in window); waiting {wait:.2f}s before next {self.name} request"
                )
                await self.clock.sleep(wait)

    def _purge(self, now: float) -> None:
        """Drop entries that have left the window."""
        cutoff = now - self.window_seconds
        while self._entries and self._entries[0].timestamp <= cutoff:
            self._entries.popleft()

    @property
    def entry_count(self) -> int:
        """Entries currently held (including ones not yet purged)."""
        return len(self._entries)

    def requests_in_window(self) -> int:
        """Admitted requests still inside the window."""
        cutoff = self.clock.now() - self.window_seconds
        return sum(1 for entry in self._entries if entry.timestamp > cutoff)

    def tokens_in_window(self) -> int:
        """Admitted tokens still inside the window."""
        cutoff = self.clock.now() - self.window_seconds
        return sum(entry.token_cost for entry in self._entries if entry.timestamp > cutoff)

    def __repr__(self) -> str:
        return (
            f"RateBudget(name={self.name}, rpm={self.requests_per_minute}, "
            f"tpm={self.tokens_per_minute}, entries={len(self._entries)})"
        )
