"""Generation operations built on the invocation orchestrator."""

from invocation_layer.services.generation import GenerationService

__all__ = ["GenerationService"]
