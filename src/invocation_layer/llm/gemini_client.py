"""
Gemini client implementation for content generation.

Communicates with the Gemini REST API using httpx AsyncClient. Supports:
- Multimodal prompts (text + inline base64 images)
- Connection pooling via a persistent client
- One-shot classification of provider failures into the error taxonomy

Retries are NOT performed here; the orchestrator owns the retry envelope.
"""

import time
from typing import Any, Dict, Optional, Sequence

import httpx
import structlog

from invocation_layer.llm.base_client import BaseLLMClient
from invocation_layer.llm.classifier import (
    RETRYABLE_STATUS_CODES,
    RETRYABLE_STATUS_NAMES,
    ErrorClassifier,
    default_classifier,
)
from invocation_layer.llm.exceptions import (
    FatalProviderError,
    ProviderError,
    RetryableProviderError,
)
from invocation_layer.models.llm_models import ContentPart, GenerationResponse
from invocation_layer.monitoring.metrics import provider_latency_seconds


logger = structlog.get_logger(__name__)


class GeminiClient(BaseLLMClient):
    """
    Gemini-specific client using httpx for async HTTP communication.

    API Endpoints:
    - POST /v1beta/models/{model}:generateContent: Generate content
    - GET /v1beta/models: List models (health check)
    """

    API_VERSION = "v1beta"

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout: int = 60,
        connection_limits: Optional[httpx.Limits] = None,
        classifier: Optional[ErrorClassifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Gemini client.

        Args:
            base_url: Gemini API base URL
            timeout: Request timeout in seconds
            connection_limits: httpx connection pool limits (default: 10 max connections)
            classifier: Error classifier (default keyword table)
            transport: Optional httpx transport (tests use httpx.MockTransport)
            **kwargs: Additional config
        """
        super().__init__(base_url, timeout, **kwargs)

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport
        self.classifier = classifier or default_classifier

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    @staticmethod
    def build_payload(parts: Sequence[ContentPart]) -> Dict[str, Any]:
        """
        Translate prompt parts into a generateContent request body.

        {
            "contents": [{
                "role": "user",
                "parts": [
                    {"text": "..."},
                    {"inline_data": {"mime_type": "image/png", "data": "<base64>"}}
                ]
            }]
        }
        """
        wire_parts: list[Dict[str, Any]] = []
        for part in parts:
            if part.text is not None:
                wire_parts.append({"text": part.text})
            else:
                wire_parts.append({
                    "inline_data": {
                        "mime_type": part.inline_data.mime_type,
                        "data": part.inline_data.data,
                    }
                })
        return {"contents": [{"role": "user", "parts": wire_parts}]}

    async def generate(
        self,
        model: str,
        parts: Sequence[ContentPart],
        credential: str,
    ) -> GenerationResponse:
        """
        Generate content using the Gemini API.

        Response:
        {
            "candidates": [{
                "content": {"parts": [{"text": "..."}], "role": "model"},
                "finishReason": "STOP"
            }],
            "usageMetadata": {"promptTokenCount": 50, "candidatesTokenCount": 150, "totalTokenCount": 200},
            "modelVersion": "gemini-2.5-pro"
        }
        """
        start_time = time.time()
        payload = self.build_payload(parts)

        logger.debug(
            "Sending generateContent request",
            model=model,
            parts_count=len(payload["contents"][0]["parts"]),
        )

        try:
            client = await self._get_client()
            response = await client.post(
                f"/{self.API_VERSION}/models/{model}:generateContent",
                json=payload,
                headers={"x-goog-api-key": credential},
            )
            if response.is_error:
                raise self._error_from_response(response, model)
            response_data = response.json()
            if not isinstance(response_data, dict):
                raise FatalProviderError(
                    f"Unexpected response body type: {type(response_data).__name__}",
                    details={"body_type": type(response_data).__name__},
                    model=model,
                )
        except ProviderError:
            self._observe(model, start_time, success=False)
            raise
        except ValueError as e:
            # Body was not JSON
            self._observe(model, start_time, success=False)
            raise FatalProviderError(
                f"Invalid JSON response from provider: {e}",
                details={"parse_error": str(e)},
                model=model,
            ) from e
        except httpx.HTTPError as e:
            self._observe(model, start_time, success=False)
            logger.warning(
                "Provider transport error",
                model=model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise self.classifier.classify(e, model=model) from e

        latency_ms = int((time.time() - start_time) * 1000)
        text, finish_reason = self._extract_text(response_data, model)
        usage = response_data.get("usageMetadata") or {}

        self._observe(model, start_time, success=True)
        logger.info(
            "Provider generation successful",
            model=model,
            latency_ms=latency_ms,
            finish_reason=finish_reason,
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
        )

        return GenerationResponse(
            text=text,
            model_version=response_data.get("modelVersion", model),
            finish_reason=finish_reason,
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
            usage_tokens=usage.get("totalTokenCount"),
            latency_ms=latency_ms,
            raw_metadata={"response_id": response_data.get("responseId")},
        )

    def _error_from_response(self, response: httpx.Response, model: str) -> ProviderError:
        """Classify an HTTP error response into the taxonomy."""
        status_code = response.status_code
        status_name = None
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None

        # Any field of the error envelope may be missing or null
        error_body = body.get("error") if isinstance(body, dict) else None
        if isinstance(error_body, dict):
            message = error_body.get("message") or message
            if isinstance(error_body.get("status"), str):
                status_name = error_body["status"]
        message = str(message)

        full_message = f"[{status_code}{' ' + status_name if status_name else ''}] {message}"
        details = {"status": status_code, "status_name": status_name, "error": message[:500]}

        # Structured signals first, then the keyword table on the body text
        retryable = (
            status_code in RETRYABLE_STATUS_CODES
            or (status_name or "").upper() in RETRYABLE_STATUS_NAMES
            or self.classifier.matches_keywords(message)
        )

        logger.warning(
            "Provider HTTP error",
            model=model,
            status_code=status_code,
            status_name=status_name,
            retryable=retryable,
        )

        error_class = RetryableProviderError if retryable else FatalProviderError
        return error_class(full_message, details=details, status_code=status_code, model=model)

    @staticmethod
    def _extract_text(response_data: Dict[str, Any], model: str) -> tuple[str, Optional[str]]:
        candidates = response_data.get("candidates") or []
        if not candidates:
            block_reason = (response_data.get("promptFeedback") or {}).get("blockReason")
            raise FatalProviderError(
                f"Provider returned no candidates (blockReason={block_reason})",
                details={"block_reason": block_reason},
                model=model,
            )

        candidate = candidates[0]
        content_parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in content_parts)
        finish_reason = candidate.get("finishReason")
        if not text:
            raise FatalProviderError(
                "Empty response from provider",
                details={"finish_reason": finish_reason},
                model=model,
            )
        return text, finish_reason

    @staticmethod
    def _observe(model: str, start_time: float, success: bool) -> None:
        provider_latency_seconds.labels(
            model=model, success=str(success).lower()
        ).observe(time.time() - start_time)

    async def health_check(self, credential: str) -> bool:
        """
        Check provider reachability via GET /v1beta/models.

        Returns True if the provider answers 200 for this credential.
        """
        try:
            client = await self._get_client()
            response = await client.get(
                f"/{self.API_VERSION}/models",
                headers={"x-goog-api-key": credential},
                timeout=5.0,
            )
            response.raise_for_status()
            logger.debug("Provider health check passed")
            return True
        except httpx.HTTPError as e:
            logger.warning("Provider health check failed", error=str(e))
            return False

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Gemini client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
