"""
Retry, rate limiting and model fallback.

Main Components:
    - InvocationOrchestrator: runs one operation against the model chain
    - ModelChain / BackendDescriptor: ordered backends with a cursor
    - RateLimiter: provider-wide minimum call spacing
    - BackoffCalculator: exponential backoff with jitter
    - RetryContext: per-call bookkeeping
    - ConfigurationError, ExhaustedError, InvocationCancelled

Usage:
    >>> from invocation_layer.retry import InvocationOrchestrator
    >>> orchestrator = InvocationOrchestrator(chain, rate_limiter, settings)
    >>> text = await orchestrator.execute(operation, "generateWithText")
"""

from invocation_layer.retry.backoff import BackoffCalculator
from invocation_layer.retry.engine import InvocationOrchestrator
from invocation_layer.retry.exceptions import (
    ConfigurationError,
    ExhaustedError,
    InvocationCancelled,
    NotInitializedError,
)
from invocation_layer.retry.metadata import RetryContext
from invocation_layer.retry.model_chain import BackendDescriptor, ModelChain
from invocation_layer.retry.rate_limiter import RateLimiter

__all__ = [
    "BackoffCalculator",
    "BackendDescriptor",
    "ConfigurationError",
    "ExhaustedError",
    "InvocationCancelled",
    "InvocationOrchestrator",
    "ModelChain",
    "NotInitializedError",
    "RateLimiter",
    "RetryContext",
]
