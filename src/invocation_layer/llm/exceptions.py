"""
Provider error taxonomy.

The provider adapter classifies every native failure (HTTP status, transport
error, error body text) into one of these types exactly once. The
orchestrator then only needs an isinstance check:
- RetryableProviderError: transient, retried with backoff then fallback
- FatalProviderError: propagated immediately, no retry, no fallback
"""

from typing import Any, Optional


class ProviderError(Exception):
    """
    Base exception for all upstream provider failures.

    Attributes:
        message: Human-readable error description
        details: Structured error data for logging
        status_code: HTTP status returned by the provider, if any
        model: Backend identifier the call was made against, if known
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        status_code: Optional[int] = None,
        model: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        self.model = model


class RetryableProviderError(ProviderError):
    """
    Transient failure worth retrying.

    Overload (503), rate limiting / quota (429), network errors and
    timeouts. Retried on the same backend with backoff; once the
    per-backend budget is spent the chain advances to the next backend.
    """
    pass


class FatalProviderError(ProviderError):
    """
    Non-transient failure.

    Malformed request, authentication/permission failures, unknown model.
    Assumed backend-independent, so it aborts the whole operation.
    """
    pass
