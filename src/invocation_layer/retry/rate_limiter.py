"""
Provider-wide call spacing.

One RateLimiter is shared by every attempt against the provider, whatever
the backend, because the limit applies to the provider as a whole.
"""

import asyncio
import time
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class RateLimiter:
    """
    Enforces a minimum spacing between granted calls.

    ``acquire()`` holds an asyncio.Lock across read-wait-write of the last
    call instant, so concurrent callers are granted one at a time and each
    is spaced from the previously granted call.
    """

    def __init__(self, min_spacing: float = 0.5):
        if min_spacing < 0:
            raise ValueError("min_spacing must be >= 0")
        self.min_spacing = min_spacing
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> Optional[float]:
        """time.monotonic() of the last granted call, None before the first."""
        return self._last_call

    async def acquire(self) -> float:
        """
        Wait until the spacing constraint allows another call.

        Returns:
            Seconds spent waiting (0.0 when no wait was needed)
        """
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                remaining = self._last_call + self.min_spacing - time.monotonic()
                if remaining > 0:
                    logger.debug("Rate limit wait", wait_seconds=round(remaining, 3))
                    await asyncio.sleep(remaining)
                    waited = remaining
            self._last_call = time.monotonic()
            return waited
