"""
Per-invocation retry bookkeeping.

A RetryContext is created at the start of one orchestrated call and
discarded at its end. It is never shared between calls.
"""

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class RetryContext:
    """
    Transient state of one execute() call.

    Attributes:
        operation_name: Human-readable operation name
        total_attempts: Provider calls made so far (across all backends)
        last_error: Most recent failure, if any
        models_tried: Backend identifiers used, in order
        started_at: time.monotonic() at creation
    """

    operation_name: str
    total_attempts: int = 0
    last_error: Optional[BaseException] = None
    models_tried: list[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    def record_model(self, identifier: str) -> None:
        if identifier not in self.models_tried:
            self.models_tried.append(identifier)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)
