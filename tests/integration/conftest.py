"""Integration test fixtures (service checks and prerequisites).

Tests that talk to the real provider are skipped unless GEMINI_API_KEY is
set. Everything else runs the full stack against httpx.MockTransport.
"""

import os

import httpx
import pytest
import pytest_asyncio

from invocation_layer.llm.gemini_client import GeminiClient


@pytest.fixture(scope="session")
def gemini_api_key() -> str:
    """Real provider key from the environment.

    Skips tests if no key is configured.
    """
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        pytest.skip("GEMINI_API_KEY not set")
    return api_key


@pytest_asyncio.fixture
async def real_gemini_client(gemini_api_key):
    """Real GeminiClient instance for integration tests."""
    client = GeminiClient(timeout=60)
    yield client
    await client.close()


class ScriptedGeminiHandler:
    """httpx.MockTransport handler replaying per-model HTTP responses.

    ``routes`` maps a model id to a list of (status_code, json_body); the
    last entry repeats once a model's list runs out.
    """

    def __init__(self, routes: dict[str, list[tuple[int, dict]]]):
        self.routes = routes
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        model = request.url.path.rsplit("/", 1)[-1].split(":", 1)[0]
        self.requests.append(model)
        script = self.routes.get(model, [(404, gemini_error(404, "NOT_FOUND", f"models/{model} is not found"))])
        index = min(self.requests.count(model) - 1, len(script) - 1)
        status_code, body = script[index]
        return httpx.Response(status_code, json=body)


def gemini_text(text: str) -> dict:
    return {
        "candidates": [{"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}],
        "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 5, "totalTokenCount": 15},
    }


def gemini_error(code: int, status: str, message: str) -> dict:
    return {"error": {"code": code, "status": status, "message": message}}


@pytest.fixture
def gemini_transport():
    """Factory: build a GeminiClient over scripted HTTP responses.

    Usage:
        client, handler = gemini_transport({"model-primary": [(503, gemini_error(...))]})
    """
    def _create(routes):
        handler = ScriptedGeminiHandler(routes)
        client = GeminiClient(
            base_url="https://gemini.test",
            timeout=5,
            transport=httpx.MockTransport(handler),
        )
        return client, handler

    return _create


@pytest.fixture
def responses():
    """Body builders for scripted Gemini responses."""
    class Bodies:
        text = staticmethod(gemini_text)
        error = staticmethod(gemini_error)

    return Bodies
