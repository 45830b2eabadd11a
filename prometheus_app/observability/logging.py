from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor


_CONFIGURED = False


def service_fields(service: str, version: str) -> Processor:
    """Processor stamping every event with the service name and version.

    Request-scoped fields live in contextvars and are cleared per request;
    these are fixed for the life of the process.
    """

    def _add(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        _ = logger, method_name
        event_dict.setdefault("service", service)
        event_dict.setdefault("version", version)
        return event_dict

    return _add


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(level.upper())
    return number if isinstance(number, int) else logging.INFO


def configure_logging(
    level: int | str = logging.INFO,
    service: str = "prometheus-app",
    version: str = "",
) -> None:
    """Route structlog and stdlib records (uvicorn included) to one JSON stdout handler.

    Only the first call takes effect.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    level = _level_number(level)
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        service_fields(service, version),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # RequestContextMiddleware writes the access line, so uvicorn.access only reports problems.
    levels = {"uvicorn": level, "uvicorn.error": level, "uvicorn.access": logging.WARNING}
    for name, logger_level in levels.items():
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(logger_level)

    _CONFIGURED = True
