"""
Invocation-level exceptions.

- ConfigurationError: the chain cannot be built (fatal, never retried)
- NotInitializedError: an operation was issued before a credential was set
- ExhaustedError: every backend spent its retry budget on retryable errors
- InvocationCancelled: a caller's cancel event fired at a suspension point
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from invocation_layer.retry.metadata import RetryContext


class ConfigurationError(Exception):
    """Raised when the model chain cannot be initialized (e.g. empty chain)."""
    pass


class NotInitializedError(ConfigurationError):
    """Raised when an operation runs before the session was initialized."""
    pass


class ExhaustedError(Exception):
    """
    Raised when all backends in the chain exhausted their retry budget.

    Distinct from fatal provider errors so that callers can offer a
    "try again later" action only when it can help.

    Attributes:
        operation_name: Human-readable operation name (e.g. "generateWithImage")
        total_attempts: Attempts made across the whole chain
        last_error: The last underlying (retryable) error
        context: Full RetryContext, when available
    """

    def __init__(
        self,
        operation_name: str,
        total_attempts: int,
        last_error: Optional[BaseException],
        context: Optional["RetryContext"] = None,
    ) -> None:
        self.operation_name = operation_name
        self.total_attempts = total_attempts
        self.last_error = last_error
        self.context = context

        models_tried = len(context.models_tried) if context else None
        across = f" across {models_tried} models" if models_tried else ""
        last_message = str(last_error) if last_error else "unknown"
        super().__init__(
            f"{operation_name} failed after {total_attempts} total attempts{across}. "
            f"Last error: {last_message}"
        )


class InvocationCancelled(Exception):
    """Raised when a cooperative cancel event is observed before a suspension point."""

    def __init__(self, operation_name: str, total_attempts: int) -> None:
        self.operation_name = operation_name
        self.total_attempts = total_attempts
        super().__init__(f"{operation_name} cancelled after {total_attempts} attempts")
