"""
FastAPI API routes and endpoints.

- routes.py: session (POST /session), model info, generation operations
- dependencies.py: singleton provider client and generation service
- models.py: API-specific request/response models
- error_handlers.py: exception handlers for structured error responses
- middleware.py: request id tracing
"""

from invocation_layer.api import dependencies, error_handlers, models
from invocation_layer.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
