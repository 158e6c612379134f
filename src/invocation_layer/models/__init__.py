"""
Pydantic data models for the invocation layer.

Includes:
- ContentPart / InlineData: multimodal prompt parts
- GenerationResponse: raw text plus call metadata
- ModelInfo: active backend of the chain, for display
"""

from invocation_layer.models.llm_models import (
    ContentPart,
    GenerationResponse,
    InlineData,
    ModelInfo,
)

__all__ = [
    "ContentPart",
    "GenerationResponse",
    "InlineData",
    "ModelInfo",
]
