"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

from typing import Callable

import pytest

from invocation_layer.config import Settings
from invocation_layer.llm.exceptions import FatalProviderError, RetryableProviderError


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with fast timings.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.MAX_RETRIES = 2
    """
    return Settings(
        # === Application ===
        APP_NAME="Invocation Layer (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Provider ===
        GEMINI_BASE_URL="https://gemini.test",
        GEMINI_API_KEY=None,
        PROVIDER_TIMEOUT=5,
        MODEL_CHAIN=["model-primary", "model-secondary", "model-tertiary"],

        # === Retry & Backoff ===
        MAX_RETRIES=3,
        RETRY_BASE_DELAY=1.0,
        RETRY_MAX_DELAY=30.0,
        RETRY_BACKOFF_MULTIPLIER=2.0,
        INTER_MODEL_COOLDOWN=2.0,
        CALL_TIMEOUT=None,

        # === Rate limiting ===
        MIN_CALL_SPACING=0.0,  # No real waiting unless a test opts in

        # === Validation ===
        VALIDATE_CHAIN_ON_INITIALIZE=False,
        PROBE_FAILURE_DELAY=0.0,

        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def retryable_error() -> Callable[[str], RetryableProviderError]:
    """Factory for transient provider errors (429/503 style)."""
    def _create(message: str = "[503 UNAVAILABLE] The model is overloaded") -> RetryableProviderError:
        return RetryableProviderError(message, status_code=503)

    return _create


@pytest.fixture
def fatal_error() -> Callable[[str], FatalProviderError]:
    """Factory for non-retryable provider errors."""
    def _create(message: str = "[400 INVALID_ARGUMENT] invalid argument") -> FatalProviderError:
        return FatalProviderError(message, status_code=400)

    return _create
