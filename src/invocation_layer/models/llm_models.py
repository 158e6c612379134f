"""
Provider-facing data models for the request/response cycle.

These models are internal to the LLM layer and describe the raw
communication with the inference provider. Callers build a list of
ContentPart values; adapters translate them to the provider's wire format.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class InlineData(BaseModel):
    """Base64-encoded binary input (e.g. an image) sent inline."""
    model_config = ConfigDict(frozen=True)

    mime_type: str = Field(..., min_length=1, description="MIME type, e.g. 'image/png'")
    data: str = Field(..., min_length=1, description="Base64 payload (no data: URL prefix)")


class ContentPart(BaseModel):
    """
    One part of a multimodal prompt.

    Exactly one of ``text`` or ``inline_data`` must be set.
    """
    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "ContentPart":
        if (self.text is None) == (self.inline_data is None):
            raise ValueError("ContentPart needs exactly one of 'text' or 'inline_data'")
        return self

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_image(cls, data: str, mime_type: str) -> "ContentPart":
        return cls(inline_data=InlineData(mime_type=mime_type, data=data))


class GenerationResponse(BaseModel):
    """
    Response from one provider call.

    Contains the raw generated text plus metadata for logging. Extraction of
    structured data happens in the validation layer.
    """
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Generated text (free-form, may embed JSON)")
    model_version: str = Field(..., description="Model version reported by the provider")
    finish_reason: Optional[str] = Field(default=None, description="STOP, MAX_TOKENS, SAFETY, ...")
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    usage_tokens: Optional[int] = Field(default=None, description="Total tokens")
    latency_ms: int = Field(..., ge=0, description="Call latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (for debugging)"
    )


class ModelInfo(BaseModel):
    """Which backend of the chain is currently active, for display."""

    name: str = Field(..., description="Backend identifier, e.g. 'gemini-2.5-flash'")
    index: int = Field(..., ge=0, description="Position in the chain (0 = primary)")
    total: int = Field(..., ge=1, description="Number of backends in the chain")

    @computed_field
    @property
    def degraded(self) -> bool:
        return self.index > 0
