"""Structured logging for the search coordinator and its command-line client."""

from __future__ import annotations

import logging
from typing import Any

import structlog
from structlog.types import Processor

from mapsearch.config import SearchSettings

SERVICE_NAME = "mapsearch"


def _service_fields(environment: str | None) -> Processor:
    def processor(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        if environment is not None:
            event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def configure_logging(
    level: int = logging.INFO,
    *,
    json_output: bool = True,
    environment: str | None = None,
) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )
    renderer: Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _service_fields(environment),
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: SearchSettings) -> None:
    """Verbose console output in dev, JSON lines everywhere else."""

    dev = settings.environment == "dev"
    configure_logging(
        logging.DEBUG if dev else logging.INFO,
        json_output=not dev,
        environment=settings.environment,
    )


logger = structlog.get_logger(SERVICE_NAME)

__all__ = ["configure_from_settings", "configure_logging", "logger"]
