"""Request id propagation into structlog contextvars."""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Bind a request id to every log event emitted while serving a request.

    A caller-supplied X-Request-ID is reused so a UI can correlate its own
    "try again" clicks with the orchestrator's attempt logs; otherwise a
    UUID4 is generated. The id is echoed back in the response header.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", duration_ms=_elapsed_ms(started))
            raise
        finally:
            outcome_ms = _elapsed_ms(started)
            structlog.contextvars.unbind_contextvars("request_id", "method", "path")

        logger.info(
            "Request completed",
            request_id=request_id,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=outcome_ms,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
