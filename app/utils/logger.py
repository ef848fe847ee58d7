"""
Structured logging for the Medical Analysis Assistant.

Every event carries the service name and version so that log lines from
the API, the model client and the PDF extractor can be told apart.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from app.config import Settings, settings

# Standard-library loggers that would otherwise log every model request
QUIET_LOGGERS = ("httpx", "httpcore", "pdfminer")


def _service_fields(app_settings: Settings) -> Processor:
    def add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", app_settings.app_name)
        event_dict.setdefault("version", app_settings.app_version)
        return event_dict
    return add_service


def configure_logging(
    app_settings: Settings,
    log_level: Optional[str] = None
) -> None:
    """
    Configure structlog for the service.

    Args:
        app_settings: Source of the service name, version and debug flag
        log_level: Override for app_settings.log_level
    """
    level = log_level or app_settings.log_level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _service_fields(app_settings),
    ]

    if app_settings.debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(component: str) -> structlog.BoundLogger:
    """Logger bound to one component of the service, e.g. "routes"."""
    return structlog.get_logger(component).bind(component=component)


configure_logging(settings)
