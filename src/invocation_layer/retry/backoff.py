"""
Exponential backoff with additive jitter.

delay(i) = clamped + uniform(0, jitter_ratio) * clamped,
where clamped = min(base * multiplier ** i, max_delay).

Jitter only ever widens the delay and is not re-clamped, so the result may
exceed max_delay by up to jitter_ratio.
"""

import random
from typing import Optional

from invocation_layer.config import Settings


class BackoffCalculator:
    """Computes retry delays (seconds) from a zero-based attempt index."""

    def __init__(
        self,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 30.0,
        jitter_ratio: float = 0.3,
        rng: Optional[random.Random] = None,
    ):
        if base_delay < 0 or max_delay < 0:
            raise ValueError("delays must be >= 0")
        if multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if jitter_ratio < 0:
            raise ValueError("jitter_ratio must be >= 0")

        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter_ratio = jitter_ratio
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: Settings, rng: Optional[random.Random] = None) -> "BackoffCalculator":
        return cls(
            base_delay=settings.RETRY_BASE_DELAY,
            multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
            max_delay=settings.RETRY_MAX_DELAY,
            jitter_ratio=settings.RETRY_JITTER_RATIO,
            rng=rng,
        )

    def clamped_delay(self, attempt_index: int) -> float:
        """Exponential delay before jitter, capped at max_delay."""
        if attempt_index < 0:
            raise ValueError("attempt_index must be >= 0")
        # Large exponents overflow float; the cap applies anyway
        try:
            raw = self.base_delay * (self.multiplier ** attempt_index)
        except OverflowError:
            return self.max_delay
        return min(raw, self.max_delay)

    def delay(self, attempt_index: int) -> float:
        """Delay in seconds before retry number ``attempt_index + 1``."""
        clamped = self.clamped_delay(attempt_index)
        jitter = self._rng.uniform(0, self.jitter_ratio) * clamped
        return clamped + jitter
