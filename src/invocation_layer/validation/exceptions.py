"""
Extraction exceptions.

An ExtractionError means the provider call itself succeeded but no
structured payload could be located in its output. It is never retried by
the orchestrator and is distinct from provider errors.
"""

from typing import Any


class ExtractionError(Exception):
    """
    No parseable structured payload found in model output.

    Attributes:
        message: Human-readable error description
        raw_text: Complete raw model output, for diagnostics
        details: Structured error data for logging (snippet, parse error)
    """

    def __init__(
        self,
        message: str,
        raw_text: str | None = None,
        parse_error: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.raw_text = raw_text
        self.details: dict[str, Any] = {}
        if raw_text:
            # First 500 chars only, avoid excessive logging
            self.details["content_snippet"] = raw_text[:500]
        if parse_error:
            self.details["parse_error"] = parse_error

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message
