"""
FastAPI dependency injection for the invocation layer.

The provider client and the generation service are process-wide
singletons: the service owns the shared RateLimiter and ModelChain, which
must be the same instances for every concurrent request.
"""

from functools import lru_cache

from invocation_layer.config import Settings, settings
from invocation_layer.llm.base_client import BaseLLMClient
from invocation_layer.llm.gemini_client import GeminiClient
from invocation_layer.services.generation import GenerationService


@lru_cache()
def get_settings() -> Settings:
    """Get settings singleton."""
    return settings


@lru_cache()
def get_llm_client() -> BaseLLMClient:
    """
    Get singleton provider client with connection pooling.

    Returns:
        GeminiClient instance
    """
    current = get_settings()
    return GeminiClient(
        base_url=current.GEMINI_BASE_URL,
        timeout=current.PROVIDER_TIMEOUT,
    )


@lru_cache()
def get_generation_service() -> GenerationService:
    """
    Get singleton generation service.

    Holds the session-wide model chain and the provider-wide rate limiter.
    """
    return GenerationService(get_settings(), get_llm_client())
