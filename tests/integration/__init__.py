"""
Integration tests for the invocation layer.

Exercise components together:
- Gemini adapter + orchestrator + chain over httpx.MockTransport
- API endpoints (FastAPI TestClient with dependency overrides)
- Live provider calls, only when GEMINI_API_KEY is set
"""
