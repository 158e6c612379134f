"""
FastAPI application entry point for the invocation layer.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from invocation_layer.api.dependencies import get_generation_service
from invocation_layer.api.error_handlers import EXCEPTION_HANDLERS
from invocation_layer.api.middleware import RequestTracingMiddleware
from invocation_layer.api.routes import router
from invocation_layer.config import settings
from invocation_layer.logging_config import configure_logging

# Configure structured logging before anything else logs
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Invocation Layer",
    description="Resilient multi-model content generation with retry, rate limiting and fallback",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing middleware (must be first for request_id in all logs)
app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router)


@app.on_event("startup")
async def startup():
    """Initialize a session from GEMINI_API_KEY when one is configured."""
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        base_url=settings.GEMINI_BASE_URL,
        model_chain=settings.MODEL_CHAIN,
    )

    if settings.GEMINI_API_KEY:
        service = get_generation_service()
        validated = await service.initialize(settings.GEMINI_API_KEY)
        logger.info(
            "Session initialized from environment",
            validated=validated,
            model=service.current_model_info().name,
        )
    else:
        logger.info("No GEMINI_API_KEY configured, waiting for POST /session")

    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown():
    """Close pooled provider connections."""
    logger.info("Application shutdown")
    await get_generation_service().close()
    logger.info("Application shutdown complete")


if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "session": "/session",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "invocation_layer.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Only for development
    )
