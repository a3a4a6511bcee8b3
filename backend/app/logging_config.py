"""structlog setup for the concierge API: JSON lines in production, console output under DEBUG."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from .settings import settings
from .utils import request_id_ctx

SERVICE_NAME = "grand-palace-concierge"
SERVICE_VERSION = "0.1.0"

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def add_request_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    if request_id := request_id_ctx.get(""):
        event_dict["request_id"] = request_id
    return event_dict


def add_service_fields(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.update(
        service=SERVICE_NAME,
        environment=settings.SENTRY_ENVIRONMENT,
        version=SERVICE_VERSION,
    )
    return event_dict


def configure_structlog(json_logs: bool = False) -> None:
    """
    Route structlog through stdlib logging on stdout.

    JSON rendering is used when `json_logs` is set or DEBUG is off; otherwise
    events go to structlog's console renderer with a short local timestamp.
    """
    if json_logs or not settings.DEBUG:
        stamper = structlog.processors.TimeStamper(fmt="iso")
        renderer: Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        stamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            add_service_fields,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            stamper,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger, e.g. `get_logger(__name__).info("guest_turn", session_id=...)`."""
    return structlog.get_logger(name)


__all__ = ["SERVICE_NAME", "SERVICE_VERSION", "configure_structlog", "get_logger"]
