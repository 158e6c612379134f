"""
Unit tests for the invocation layer.

Test individual components in isolation:
- Backoff calculator and rate limiter
- Model chain (advance/reset/validate)
- Invocation orchestrator (retry, fallback, exhaustion)
- Error classifier and Gemini adapter error mapping
- Response extractor
- Generation service and API dependencies
"""
