"""
Configuration settings for the invocation layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development. Durations are in seconds.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Invocation Layer"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Provider (Gemini generateContent REST API) ===
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    GEMINI_API_KEY: Optional[str] = None  # BYOK: usually supplied via POST /session
    PROVIDER_TIMEOUT: int = 60  # transport-level deadline per HTTP call

    # === Model chain (primary first) ===
    MODEL_CHAIN: list[str] = [
        "gemini-2.5-pro",        # Primary: best quality
        "gemini-2.5-flash",      # Fallback 1: fast but good
        "gemini-2.0-flash-exp",  # Fallback 2: experimental
        "gemini-1.5-pro",        # Fallback 3: stable
    ]

    # === Retry & Backoff ===
    MAX_RETRIES: int = 3  # attempts per backend before falling back
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 30.0
    RETRY_BACKOFF_MULTIPLIER: float = 2.0
    RETRY_JITTER_RATIO: float = 0.3
    INTER_MODEL_COOLDOWN: float = 2.0
    CALL_TIMEOUT: Optional[float] = None  # per-operation deadline, None disables

    # === Rate limiting ===
    MIN_CALL_SPACING: float = 0.5

    # === Chain validation (startup probe) ===
    VALIDATE_CHAIN_ON_INITIALIZE: bool = True
    PROBE_FAILURE_DELAY: float = 1.0

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
