"""
Clock abstraction used for rate budget waits and pipeline pacing.

Production code uses the monotonic system clock; tests substitute a
clock whose sleep advances virtual time without waiting.
"""

import asyncio
import time


class Clock:
    """Monotonic time source with an awaitable sleep."""

    def now(self) -> float:
        """Current time in seconds."""
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for ``seconds``."""
        if seconds > 0:
            await asyncio.sleep(seconds)
        else:
            # Still yield so waiting loops never starve the event loop
            await asyncio.sleep(0)


_default_clock = Clock()


def get_default_clock() -> Clock:
    """Process-wide real clock."""
    return _default_clock
