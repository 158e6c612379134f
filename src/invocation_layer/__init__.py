"""
Resilient multi-model invocation layer.

Turns a single logical "generate content" request into a reliably
delivered result against a rate-limited, multi-tier inference provider:
- Ordered model chain with fallback to lower tiers
- Exponential backoff with jitter for transient failures
- Provider-wide call spacing (rate limiting)
- Typed failure classification (retryable vs fatal)
- Structured payload extraction from free-form model output

Architecture: FastAPI surface + Gemini REST adapter + invocation orchestrator
"""

__version__ = "0.1.0"
