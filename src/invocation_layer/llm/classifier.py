"""
Failure classification for provider errors.

Structured signals (exception types, HTTP status codes, gRPC status names)
are checked first; the keyword table is the fallback for providers whose
failures arrive as unstructured text.
"""

import asyncio
from typing import Optional

import httpx

from invocation_layer.llm.exceptions import (
    FatalProviderError,
    ProviderError,
    RetryableProviderError,
)

RETRYABLE_KEYWORDS: tuple[str, ...] = (
    "503",
    "overloaded",
    "429",
    "rate limit",
    "quota",
    "resource exhausted",
    "temporarily unavailable",
    "network",
    "timeout",
)

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

RETRYABLE_STATUS_NAMES: frozenset[str] = frozenset(
    {"RESOURCE_EXHAUSTED", "UNAVAILABLE", "DEADLINE_EXCEEDED"}
)

_RETRYABLE_TYPES = (
    httpx.TimeoutException,
    httpx.NetworkError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
)


class ErrorClassifier:
    """Decides whether a failure is transient (retryable) or fatal."""

    def __init__(self, keywords: tuple[str, ...] = RETRYABLE_KEYWORDS):
        self.keywords = tuple(k.lower() for k in keywords)

    def is_retryable(self, error: BaseException) -> bool:
        """
        Return True if the error is worth retrying.

        Args:
            error: Any exception raised by an operation

        Returns:
            True for transient failures, False for fatal ones
        """
        if isinstance(error, RetryableProviderError):
            return True
        if isinstance(error, FatalProviderError):
            return False

        structured = self._structured_verdict(error)
        if structured is not None:
            return structured

        return self.matches_keywords(str(error))

    def matches_keywords(self, message: str) -> bool:
        """Case-insensitive substring match against the keyword table."""
        lowered = message.lower()
        return any(keyword in lowered for keyword in self.keywords)

    def classify(
        self,
        error: BaseException,
        model: Optional[str] = None,
    ) -> ProviderError:
        """
        Wrap a native error into the provider taxonomy.

        Taxonomy errors pass through untouched. The caller should raise the
        result ``from error`` to keep the original cause.
        """
        if isinstance(error, ProviderError):
            return error

        status_code = _status_code_of(error)
        details = {"error_type": type(error).__name__}
        if status_code is not None:
            details["status_code"] = status_code

        error_class = RetryableProviderError if self.is_retryable(error) else FatalProviderError
        return error_class(
            str(error) or type(error).__name__,
            details=details,
            status_code=status_code,
            model=model,
        )

    def _structured_verdict(self, error: BaseException) -> Optional[bool]:
        if isinstance(error, _RETRYABLE_TYPES):
            return True

        status_code = _status_code_of(error)
        if status_code is not None and status_code in RETRYABLE_STATUS_CODES:
            return True

        status_name = getattr(error, "status", None)
        if isinstance(status_name, str) and status_name.upper() in RETRYABLE_STATUS_NAMES:
            return True

        # A known status outside the retryable set is not decisive on its
        # own; messages like "400 ... quota" still fall through to keywords.
        return None


def _status_code_of(error: BaseException) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    code = getattr(error, "code", None)
    if isinstance(code, int):
        return code
    return None


default_classifier = ErrorClassifier()


def is_retryable(error: BaseException) -> bool:
    """Module-level shortcut using the default keyword table."""
    return default_classifier.is_retryable(error)
