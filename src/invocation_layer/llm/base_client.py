"""
Abstract base client for the upstream inference provider.

Defines the interface that provider adapters must implement and the
lightweight per-model handle the model chain hands to operations. Building
a handle is purely local wiring; network I/O happens only in generate().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence

import structlog

from invocation_layer.models.llm_models import ContentPart, GenerationResponse


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BackendHandle:
    """
    A model of the provider bound to one credential.

    Operations receive this (through a BackendDescriptor) and call
    ``generate`` on it; they never see the client or the credential.
    """

    model: str
    client: "BaseLLMClient" = field(repr=False)
    credential: str = field(repr=False)

    async def generate(self, parts: Sequence[ContentPart]) -> GenerationResponse:
        return await self.client.generate(self.model, parts, self.credential)

    async def generate_text(self, parts: Sequence[ContentPart]) -> str:
        response = await self.generate(parts)
        return response.text


class BaseLLMClient(ABC):
    """
    Abstract base class for provider adapters.

    Responsibilities:
    - Translate ContentPart lists to the provider's wire format
    - Send the request with a transport-level timeout
    - Classify every native failure into RetryableProviderError or
      FatalProviderError, once

    Does NOT handle retries, backoff, rate limiting or fallback; that is
    the InvocationOrchestrator's job.
    """

    def __init__(self, base_url: str, timeout: int = 60, **kwargs):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the provider API
            timeout: Request timeout in seconds
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized provider client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
        )

    def create_handle(self, model: str, credential: str) -> BackendHandle:
        """Bind a model identifier and credential into a handle. No I/O."""
        return BackendHandle(model=model, client=self, credential=credential)

    @abstractmethod
    async def generate(
        self,
        model: str,
        parts: Sequence[ContentPart],
        credential: str,
    ) -> GenerationResponse:
        """
        Generate content from one model.

        Args:
            model: Model identifier (e.g. "gemini-2.5-pro")
            parts: Prompt parts (text and/or inline data)
            credential: API key to authenticate with

        Returns:
            GenerationResponse with generated text and metadata

        Raises:
            RetryableProviderError: Transient failure (429, 503, network, timeout)
            FatalProviderError: Anything else (bad request, auth, unknown model)
        """
        pass

    @abstractmethod
    async def health_check(self, credential: str) -> bool:
        """
        Check that the provider is reachable with this credential.

        Returns:
            True if healthy, False otherwise. Must not raise.
        """
        pass

    async def close(self):
        """Release pooled connections. Default implementation does nothing."""
        logger.debug("Closing provider client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
