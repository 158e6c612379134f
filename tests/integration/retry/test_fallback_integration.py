"""
Integration tests for retry and fallback through the real Gemini adapter.

HTTP responses are scripted with httpx.MockTransport, so the whole path
(adapter error mapping -> classifier -> orchestrator -> chain) runs without
network access.

Run with: pytest tests/integration/retry/test_fallback_integration.py -v
"""

import pytest

from invocation_layer.llm.exceptions import FatalProviderError
from invocation_layer.retry.exceptions import ExhaustedError
from invocation_layer.services.generation import GenerationService


@pytest.fixture
def fast_settings(test_settings):
    return test_settings.model_copy(
        update={"RETRY_BASE_DELAY": 0.0, "INTER_MODEL_COOLDOWN": 0.0, "PROBE_FAILURE_DELAY": 0.0}
    )


@pytest.mark.asyncio
async def test_overloaded_primary_falls_back(fast_settings, gemini_transport, responses):
    overloaded = (503, responses.error(503, "UNAVAILABLE", "The model is overloaded."))
    client, handler = gemini_transport({
        "model-primary": [overloaded],
        "model-secondary": [(200, responses.text('```json\n{"scene": "forest"}\n```'))],
    })
    service = GenerationService(fast_settings, client)
    await service.initialize("key")

    spec = await service.generate_spec_from_text("a forest", "Realistic")

    assert spec == {"scene": "forest"}
    assert handler.requests == ["model-primary"] * 3 + ["model-secondary"]
    assert service.current_model_info().name == "model-secondary"
    await service.close()


@pytest.mark.asyncio
async def test_quota_everywhere_exhausts_and_resets(fast_settings, gemini_transport, responses):
    quota = (429, responses.error(429, "RESOURCE_EXHAUSTED", "Quota exceeded"))
    client, handler = gemini_transport({
        "model-primary": [quota],
        "model-secondary": [quota],
        "model-tertiary": [quota],
    })
    service = GenerationService(fast_settings, client)
    await service.initialize("key")

    with pytest.raises(ExhaustedError) as exc_info:
        await service.visual_sweep("aGk=", "image/png", "Sweep")

    assert exc_info.value.total_attempts == 9
    assert "[429 RESOURCE_EXHAUSTED] Quota exceeded" in str(exc_info.value)
    assert len(handler.requests) == 9
    assert service.current_model_info().index == 0
    await service.close()


@pytest.mark.asyncio
async def test_invalid_key_is_fatal_without_fallback(fast_settings, gemini_transport, responses):
    client, handler = gemini_transport({
        "model-primary": [(400, responses.error(400, "INVALID_ARGUMENT", "API key not valid."))],
    })
    service = GenerationService(fast_settings, client)
    await service.initialize("bad-key")

    with pytest.raises(FatalProviderError) as exc_info:
        await service.generate_with_text("system", "hi")

    assert exc_info.value.status_code == 400
    assert handler.requests == ["model-primary"]
    await service.close()


@pytest.mark.asyncio
async def test_validation_skips_unknown_model(fast_settings, gemini_transport, responses):
    # model-primary is not routed, so the handler answers 404
    client, handler = gemini_transport({
        "model-secondary": [(200, responses.text("OK"))],
    })
    service = GenerationService(fast_settings, client)

    assert await service.initialize("key", validate=True) is True

    assert handler.requests == ["model-primary", "model-secondary"]
    assert service.current_model_info().name == "model-secondary"
    await service.close()
