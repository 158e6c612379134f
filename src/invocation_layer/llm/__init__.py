"""
Provider client abstraction and implementations.

Components:
- BaseLLMClient / BackendHandle: adapter interface and per-model handle
- GeminiClient: Gemini generateContent REST adapter
- ErrorClassifier: retryable vs fatal classification
- exceptions: provider error taxonomy
"""

from invocation_layer.llm.base_client import BackendHandle, BaseLLMClient
from invocation_layer.llm.classifier import ErrorClassifier, is_retryable
from invocation_layer.llm.exceptions import (
    FatalProviderError,
    ProviderError,
    RetryableProviderError,
)
from invocation_layer.llm.gemini_client import GeminiClient

__all__ = [
    "BackendHandle",
    "BaseLLMClient",
    "GeminiClient",
    "ErrorClassifier",
    "is_retryable",
    "ProviderError",
    "RetryableProviderError",
    "FatalProviderError",
]
