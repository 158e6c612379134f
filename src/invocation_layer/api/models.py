"""
API-specific request and response models for FastAPI endpoints.

These wrap GenerationService inputs/outputs with API metadata. Images
arrive already base64-encoded; conversion is the caller's concern.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, SecretStr

from invocation_layer.models.llm_models import ModelInfo


class SessionRequest(BaseModel):
    """Initialize the provider session with a user-supplied key (BYOK)."""

    api_key: SecretStr = Field(description="Provider API key")
    validate_chain: Optional[bool] = Field(
        default=None,
        description="Probe each backend in order; defaults to VALIDATE_CHAIN_ON_INITIALIZE",
    )


class SessionResponse(BaseModel):
    """Outcome of session initialization."""

    validated: bool = Field(description="True if a backend answered the probe (or probing was skipped)")
    model: ModelInfo = Field(description="Backend the next operation will use")


class ImageOperationRequest(BaseModel):
    """Image-based operation (identity, vision sweep, realistic-from-image)."""

    system_prompt: str = Field(min_length=1)
    image_base64: str = Field(min_length=1, description="Base64 payload without data: URL prefix")
    mime_type: str = Field(default="image/png", examples=["image/png", "image/jpeg"])


class TextSpecRequest(BaseModel):
    """Realistic-to-JSON from a text description."""

    system_prompt: str = Field(min_length=1)
    text_input: str = Field(min_length=1)


class PanelSpecRequest(BaseModel):
    """Panel specification derived from a previously extracted identity."""

    system_prompt: str = Field(min_length=1)
    identity: dict[str, Any] = Field(description="Identity JSON returned by POST /identity")
    panel_number: int = Field(ge=1, description="1-based panel number")


class PayloadResponse(BaseModel):
    """Structured payload extracted from the model output."""

    operation: str = Field(examples=["analyzeIdentity", "visualSweep"])
    model: ModelInfo = Field(description="Backend active after the operation")
    payload: dict[str, Any]
    created_at: datetime = Field(default_factory=datetime.utcnow)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(examples=["healthy", "uninitialized"])
    version: str
    initialized: bool
    model: Optional[ModelInfo] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
