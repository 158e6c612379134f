"""Unit test fixtures (mocks and stubs).

Provides fake provider clients and recorded sleeps for testing without
network access or real waiting.
"""

from typing import Sequence

import pytest

from invocation_layer.llm.base_client import BaseLLMClient
from invocation_layer.models.llm_models import ContentPart, GenerationResponse
from invocation_layer.retry.model_chain import ModelChain
from invocation_layer.retry.rate_limiter import RateLimiter


class ScriptedClient(BaseLLMClient):
    """Provider client that replays scripted outcomes per model.

    Each script entry is either a string (returned as generated text) or an
    exception instance (raised). When a model's script runs out, its last
    entry repeats.
    """

    def __init__(self, scripts: dict[str, list] | None = None):
        super().__init__("https://scripted.test", timeout=5)
        self.scripts = scripts or {}
        self.calls: list[tuple[str, list[ContentPart]]] = []

    async def generate(
        self,
        model: str,
        parts: Sequence[ContentPart],
        credential: str,
    ) -> GenerationResponse:
        self.calls.append((model, list(parts)))
        script = self.scripts.get(model, ["OK"])
        index = min(sum(1 for m, _ in self.calls if m == model) - 1, len(script) - 1)
        outcome = script[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return GenerationResponse(text=outcome, model_version=model, latency_ms=1)

    async def health_check(self, credential: str) -> bool:
        return True

    def calls_for(self, model: str) -> int:
        return sum(1 for m, _ in self.calls if m == model)


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture
def scripted_client() -> ScriptedClient:
    return ScriptedClient()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def rate_limiter() -> RateLimiter:
    """Rate limiter that never waits."""
    return RateLimiter(min_spacing=0.0)


@pytest.fixture
def make_chain(scripted_client):
    """Factory fixture building a ModelChain over the scripted client.

    Usage:
        def test_something(make_chain):
            chain = make_chain(["a", "b"])
    """
    def _create(identifiers: list[str], credential: str = "test-key") -> ModelChain:
        return ModelChain.initialize(identifiers, credential, scripted_client)

    return _create

