"""structlog setup for the odiga API, services and CLI.

Events are JSON outside DEBUG. Korean text is written as-is. A search binds
its trace id for the duration of the request, and searches that had to fall
back to a wider location or to top-rated places are flagged ``degraded``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor

from .settings import settings
from .utils import request_id_ctx

SERVICE_NAME = "odiga"
SERVICE_VERSION = "0.1.0"

# levels 4 (location widened) and 5 (top rated) no longer answer the query as asked
DEGRADED_FALLBACK_LEVEL = 4

_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", SERVICE_VERSION)
    event_dict.setdefault("environment", settings.SENTRY_ENVIRONMENT)
    request_id = request_id_ctx.get("")
    if request_id:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def mark_degraded_search(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    level = event_dict.get("fallback_level")
    if isinstance(level, int) and level >= DEGRADED_FALLBACK_LEVEL:
        event_dict["degraded"] = True
    return event_dict


def _renderer(json_logs: bool) -> list[Processor]:
    if json_logs:
        return [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
        structlog.dev.ConsoleRenderer(),
    ]


def configure_structlog(
    json_logs: bool = False,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        json_logs: JSON output; DEBUG runs default to the console renderer.
        level: Root log level.
        stream: Where records go. The CLI passes stderr so stdout stays parseable.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_service_context,
            mark_degraded_search,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            *_renderer(json_logs or not settings.DEBUG),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=stream or sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def search_context(trace_id: str) -> Iterator[None]:
    """Bind ``trace_id`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(trace_id=trace_id):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["configure_structlog", "get_logger", "search_context", "mark_degraded_search"]
