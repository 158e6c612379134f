"""
Generation operations over the invocation orchestrator.

One GenerationService holds the session-wide shared state for a credential:
the provider-wide RateLimiter, the ModelChain and its orchestrator. Callers
(API routes, background jobs) issue operations and consume either raw text
or the extracted JSON payload.
"""

import asyncio
import json
from typing import Any, Optional

import structlog

from invocation_layer.config import Settings
from invocation_layer.llm.base_client import BaseLLMClient
from invocation_layer.models.llm_models import ContentPart, ModelInfo
from invocation_layer.retry.backoff import BackoffCalculator
from invocation_layer.retry.engine import InvocationOrchestrator
from invocation_layer.retry.exceptions import NotInitializedError
from invocation_layer.retry.model_chain import BackendDescriptor, ModelChain
from invocation_layer.retry.rate_limiter import RateLimiter
from invocation_layer.validation.extractor import ResponseExtractor

logger = structlog.get_logger(__name__)


class GenerationService:
    """
    Session facade: credential, model chain and the generation operations.

    Usage:
        service = GenerationService(settings, GeminiClient(...))
        await service.initialize(api_key)
        identity = await service.analyze_identity(image_b64, "image/png", prompt)
    """

    def __init__(
        self,
        settings: Settings,
        client: BaseLLMClient,
        rate_limiter: Optional[RateLimiter] = None,
        backoff: Optional[BackoffCalculator] = None,
        extractor: Optional[ResponseExtractor] = None,
    ):
        self.settings = settings
        self.client = client
        self.rate_limiter = rate_limiter or RateLimiter(settings.MIN_CALL_SPACING)
        self.backoff = backoff
        self.extractor = extractor or ResponseExtractor()
        self._orchestrator: Optional[InvocationOrchestrator] = None

    # === Session ===

    async def initialize(self, api_key: str, validate: Optional[bool] = None) -> bool:
        """
        Build a fresh model chain for ``api_key``.

        The chain always starts at the primary backend. When validation is
        enabled, each backend is probed in order and the cursor parks on the
        first one that answers.

        Args:
            api_key: Provider credential
            validate: Override VALIDATE_CHAIN_ON_INITIALIZE

        Returns:
            True if a backend passed validation (or validation was skipped)

        Raises:
            ConfigurationError: Empty chain or missing credential
        """
        chain = ModelChain.initialize(self.settings.MODEL_CHAIN, api_key, self.client)
        self._orchestrator = InvocationOrchestrator(
            chain,
            self.rate_limiter,
            self.settings,
            backoff=self.backoff,
        )

        should_validate = (
            self.settings.VALIDATE_CHAIN_ON_INITIALIZE if validate is None else validate
        )
        if not should_validate:
            return True

        usable = await chain.validate(
            self._probe,
            self.rate_limiter,
            failure_delay=self.settings.PROBE_FAILURE_DELAY,
        )
        return usable is not None

    @staticmethod
    async def _probe(backend: BackendDescriptor, prompt: str) -> str:
        return await backend.handle.generate_text([ContentPart.from_text(prompt)])

    @property
    def is_initialized(self) -> bool:
        return self._orchestrator is not None

    @property
    def orchestrator(self) -> InvocationOrchestrator:
        if self._orchestrator is None:
            raise NotInitializedError("Provider not initialized. Please provide an API key first.")
        return self._orchestrator

    def current_model_info(self) -> ModelInfo:
        """Active backend, e.g. to show "fallback tier 2 of 4"."""
        return self.orchestrator.chain.model_info()

    def reset_chain(self) -> ModelInfo:
        """Explicitly return to the primary backend."""
        chain = self.orchestrator.chain
        chain.reset()
        return chain.model_info()

    # === Raw generation ===

    async def generate_with_image(
        self,
        system_prompt: str,
        image_base64: str,
        mime_type: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        parts = [
            ContentPart.from_text(system_prompt),
            ContentPart.from_image(image_base64, mime_type),
        ]

        async def operation(backend: BackendDescriptor) -> str:
            return await backend.handle.generate_text(parts)

        return await self.orchestrator.execute(operation, "generateWithImage", cancel_event)

    async def generate_with_text(
        self,
        system_prompt: str,
        user_input: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        parts = [
            ContentPart.from_text(system_prompt),
            ContentPart.from_text(user_input),
        ]

        async def operation(backend: BackendDescriptor) -> str:
            return await backend.handle.generate_text(parts)

        return await self.orchestrator.execute(operation, "generateWithText", cancel_event)

    # === Structured operations ===
    # Each accepts an optional cancel_event, forwarded to the orchestrator.

    async def analyze_identity(
        self,
        image_base64: str,
        mime_type: str,
        system_prompt: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, Any]:
        """Grid-to-JSON: character identity sheet from an image."""
        response = await self.generate_with_image(
            system_prompt, image_base64, mime_type, cancel_event
        )
        return self.extractor.extract(response)

    async def generate_panel_spec(
        self,
        identity: dict[str, Any],
        panel_number: int,
        system_prompt: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, Any]:
        """Grid-to-JSON: specification of one panel derived from an identity."""
        user_input = (
            f"Generate panel specification for Panel {panel_number}:\n"
            f"{json.dumps(identity, indent=2)}"
        )
        response = await self.generate_with_text(system_prompt, user_input, cancel_event)
        return self.extractor.extract(response)

    async def visual_sweep(
        self,
        image_base64: str,
        mime_type: str,
        system_prompt: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, Any]:
        """Vision-to-JSON: exhaustive visual description of an image."""
        response = await self.generate_with_image(
            system_prompt, image_base64, mime_type, cancel_event
        )
        return self.extractor.extract(response)

    async def generate_spec_from_text(
        self,
        text_input: str,
        system_prompt: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, Any]:
        """Realistic-to-JSON from a text description."""
        response = await self.generate_with_text(
            system_prompt, f"Transform into visual spec:\n{text_input}", cancel_event
        )
        return self.extractor.extract(response)

    async def generate_spec_from_image(
        self,
        image_base64: str,
        mime_type: str,
        system_prompt: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, Any]:
        """Realistic-to-JSON from a reference image."""
        response = await self.generate_with_image(
            system_prompt, image_base64, mime_type, cancel_event
        )
        return self.extractor.extract(response)

    async def close(self) -> None:
        await self.client.close()
