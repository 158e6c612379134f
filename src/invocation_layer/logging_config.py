"""Structured logging setup (structlog over the stdlib root logger).

Development gets a coloured console renderer; production emits one JSON
object per line. Every event carries the app name, an ISO timestamp and
whatever the request middleware bound into contextvars (request_id, path).
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

APP_LABEL = "invocation-layer"

# Event keys whose values are masked before rendering
SENSITIVE_KEYS = frozenset({"api_key", "credential", "x-goog-api-key"})

# Third-party loggers that are chatty at INFO (httpx logs full request URLs)
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["app"] = APP_LABEL
    return event_dict


def drop_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask provider keys that were passed as event fields."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _renderer_for(environment: str) -> tuple[list[Processor], Processor]:
    if environment.lower() == "production":
        return [structlog.processors.format_exc_info], structlog.processors.JSONRenderer()
    return [], structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(log_level: str = "INFO", environment: str = "development") -> None:
    """Configure structlog and route stdlib logging through the same renderer.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        environment: "production" selects JSON output, anything else console
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    extra_processors, renderer = _renderer_for(environment)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        drop_credentials,
        *extra_processors,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer=type(renderer).__name__,
    )
