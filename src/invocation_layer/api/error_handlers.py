"""
FastAPI exception handlers for structured error responses.

Every error body carries a ``retryable`` flag so a UI can offer a retry
action only when retrying can help (exhausted), not for fatal failures.
"""

from datetime import datetime

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from invocation_layer.llm.exceptions import FatalProviderError, RetryableProviderError
from invocation_layer.retry.exceptions import (
    ConfigurationError,
    ExhaustedError,
    InvocationCancelled,
    NotInitializedError,
)
from invocation_layer.validation.exceptions import ExtractionError

logger = structlog.get_logger(__name__)


def _error_body(error: str, message: str, retryable: bool, **extra) -> dict:
    return {
        "error": error,
        "message": message,
        "retryable": retryable,
        **extra,
        "timestamp": datetime.utcnow().isoformat(),
    }


async def exhausted_error_handler(request: Request, exc: ExhaustedError) -> JSONResponse:
    """
    Every backend spent its retry budget on transient failures.

    Maps to 503 Service Unavailable; retrying later may succeed.
    """
    logger.error(
        "Operation exhausted all backends",
        operation=exc.operation_name,
        total_attempts=exc.total_attempts,
        models_tried=exc.context.models_tried if exc.context else None,
        last_error=str(exc.last_error),
    )

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(
            "exhausted",
            str(exc),
            retryable=True,
            operation=exc.operation_name,
            attempts=exc.total_attempts,
        ),
    )


async def fatal_provider_error_handler(request: Request, exc: FatalProviderError) -> JSONResponse:
    """
    Non-retryable provider failure (bad request, auth, unknown model).

    Maps to 502 Bad Gateway.
    """
    logger.error(
        "Fatal provider error",
        error=exc.message,
        status_code=exc.status_code,
        model=exc.model,
    )

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body(
            "provider_error",
            exc.message,
            retryable=False,
            provider_status=exc.status_code,
            model=exc.model,
        ),
    )


async def retryable_provider_error_handler(
    request: Request, exc: RetryableProviderError
) -> JSONResponse:
    """A transient provider error escaped the orchestrator (e.g. a direct probe)."""
    logger.warning("Transient provider error", error=exc.message, model=exc.model)

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("provider_unavailable", exc.message, retryable=True, model=exc.model),
    )


async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    """
    Provider answered but no JSON payload could be extracted.

    Maps to 422 Unprocessable Entity.
    """
    logger.warning("Extraction failed", details=exc.details)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("extraction_failed", exc.message, retryable=False, details=exc.details),
    )


async def not_initialized_handler(request: Request, exc: NotInitializedError) -> JSONResponse:
    """Operation issued before POST /session. Maps to 409 Conflict."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body("not_initialized", str(exc), retryable=False),
    )


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Chain cannot be built (empty chain, missing key). Maps to 400 Bad Request."""
    logger.warning("Configuration error", error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("configuration_error", str(exc), retryable=False),
    )


async def cancelled_handler(request: Request, exc: InvocationCancelled) -> JSONResponse:
    """Client went away mid-operation. Maps to 409; the same request may be retried."""
    logger.info("Operation cancelled", operation=exc.operation_name, attempts=exc.total_attempts)

    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body("cancelled", str(exc), retryable=True, attempts=exc.total_attempts),
    )


async def pydantic_validation_error_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Invalid data built inside a handler. Maps to 400 Bad Request."""
    logger.warning("Invalid request data", errors=exc.errors())

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "invalid_request",
            "Request validation failed",
            retryable=False,
            details=exc.errors(include_url=False),
        ),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected errors. Maps to 500 Internal Server Error."""
    logger.exception("Unexpected error", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal_error", "An unexpected error occurred", retryable=False),
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    ExhaustedError: exhausted_error_handler,
    FatalProviderError: fatal_provider_error_handler,
    RetryableProviderError: retryable_provider_error_handler,
    ExtractionError: extraction_error_handler,
    NotInitializedError: not_initialized_handler,
    ConfigurationError: configuration_error_handler,
    InvocationCancelled: cancelled_handler,
    PydanticValidationError: pydantic_validation_error_handler,
    Exception: generic_error_handler,
}
