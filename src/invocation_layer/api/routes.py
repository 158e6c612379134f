"""
API routes for session management and generation operations.

Every generation route runs through the shared GenerationService, so
concurrent requests share one rate limiter and one model chain.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable

import structlog
from fastapi import APIRouter, Depends, Request, status

from invocation_layer.api.dependencies import get_generation_service, get_settings
from invocation_layer.api.models import (
    HealthResponse,
    ImageOperationRequest,
    PanelSpecRequest,
    PayloadResponse,
    SessionRequest,
    SessionResponse,
    TextSpecRequest,
)
from invocation_layer.config import Settings
from invocation_layer.models.llm_models import ModelInfo
from invocation_layer.services.generation import GenerationService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(
    service: GenerationService = Depends(get_generation_service),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Report whether a session exists and which backend is active."""
    if not service.is_initialized:
        return HealthResponse(status="uninitialized", version=settings.APP_VERSION, initialized=False)

    model = service.current_model_info()
    return HealthResponse(
        status="degraded" if model.degraded else "healthy",
        version=settings.APP_VERSION,
        initialized=True,
        model=model,
    )


@router.post(
    "/session",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Initialize provider session (BYOK)",
    responses={400: {"description": "Empty model chain or missing key"}},
)
async def create_session(
    request: SessionRequest,
    service: GenerationService = Depends(get_generation_service),
) -> SessionResponse:
    """Build a fresh model chain for the supplied key, optionally probing it."""
    validated = await service.initialize(
        request.api_key.get_secret_value(), validate=request.validate_chain
    )
    model = service.current_model_info()
    logger.info("Session initialized", validated=validated, model=model.name, index=model.index)
    return SessionResponse(validated=validated, model=model)


@router.get("/model", response_model=ModelInfo, summary="Active backend")
async def current_model(service: GenerationService = Depends(get_generation_service)) -> ModelInfo:
    return service.current_model_info()


@router.post("/model/reset", response_model=ModelInfo, summary="Return to the primary backend")
async def reset_model(service: GenerationService = Depends(get_generation_service)) -> ModelInfo:
    return service.reset_chain()


DISCONNECT_POLL_INTERVAL = 0.5


async def watch_disconnect(
    request: Request,
    cancel_event: asyncio.Event,
    poll_interval: float = DISCONNECT_POLL_INTERVAL,
) -> None:
    """Set ``cancel_event`` once the client goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling operation")
            cancel_event.set()
            return
        await asyncio.sleep(poll_interval)


async def _payload_response(
    request: Request,
    service: GenerationService,
    operation: str,
    run: Callable[[asyncio.Event], Awaitable[dict[str, Any]]],
) -> PayloadResponse:
    start_time = time.perf_counter()
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        payload = await run(cancel_event)
    finally:
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)

    model = service.current_model_info()
    logger.info(
        "Operation completed",
        operation=operation,
        model=model.name,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        payload_keys=len(payload),
    )
    return PayloadResponse(operation=operation, model=model, payload=payload)


_OPERATION_RESPONSES = {
    409: {"description": "Session not initialized, or client went away"},
    422: {"description": "No JSON payload in model output"},
    502: {"description": "Fatal provider error (do not retry)"},
    503: {"description": "All backends exhausted (retry later)"},
}


@router.post(
    "/identity",
    response_model=PayloadResponse,
    summary="Grid-to-JSON: analyze identity from image",
    responses=_OPERATION_RESPONSES,
)
async def analyze_identity(
    body: ImageOperationRequest,
    request: Request,
    service: GenerationService = Depends(get_generation_service),
) -> PayloadResponse:
    return await _payload_response(
        request,
        service,
        "analyzeIdentity",
        lambda cancel: service.analyze_identity(
            body.image_base64, body.mime_type, body.system_prompt, cancel
        ),
    )


@router.post(
    "/panel-spec",
    response_model=PayloadResponse,
    summary="Grid-to-JSON: panel specification from identity",
    responses=_OPERATION_RESPONSES,
)
async def generate_panel_spec(
    body: PanelSpecRequest,
    request: Request,
    service: GenerationService = Depends(get_generation_service),
) -> PayloadResponse:
    return await _payload_response(
        request,
        service,
        "generatePanelSpec",
        lambda cancel: service.generate_panel_spec(
            body.identity, body.panel_number, body.system_prompt, cancel
        ),
    )


@router.post(
    "/vision",
    response_model=PayloadResponse,
    summary="Vision-to-JSON: visual sweep of an image",
    responses=_OPERATION_RESPONSES,
)
async def visual_sweep(
    body: ImageOperationRequest,
    request: Request,
    service: GenerationService = Depends(get_generation_service),
) -> PayloadResponse:
    return await _payload_response(
        request,
        service,
        "visualSweep",
        lambda cancel: service.visual_sweep(
            body.image_base64, body.mime_type, body.system_prompt, cancel
        ),
    )


@router.post(
    "/realistic/text",
    response_model=PayloadResponse,
    summary="Realistic-to-JSON from text",
    responses=_OPERATION_RESPONSES,
)
async def spec_from_text(
    body: TextSpecRequest,
    request: Request,
    service: GenerationService = Depends(get_generation_service),
) -> PayloadResponse:
    return await _payload_response(
        request,
        service,
        "generateSpecFromText",
        lambda cancel: service.generate_spec_from_text(body.text_input, body.system_prompt, cancel),
    )


@router.post(
    "/realistic/image",
    response_model=PayloadResponse,
    summary="Realistic-to-JSON from image",
    responses=_OPERATION_RESPONSES,
)
async def spec_from_image(
    body: ImageOperationRequest,
    request: Request,
    service: GenerationService = Depends(get_generation_service),
) -> PayloadResponse:
    return await _payload_response(
        request,
        service,
        "generateSpecFromImage",
        lambda cancel: service.generate_spec_from_image(
            body.image_base64, body.mime_type, body.system_prompt, cancel
        ),
    )
