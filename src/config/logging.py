"""
Structured logging configuration using structlog.

Development gets colored console output, staging and production one JSON
object per line. Every event carries the service identity and how this
instance delivers notifications, so lines from the in-process dispatcher
and from cron-driven instances can be told apart.
"""

import logging
import sys
from datetime import datetime
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from src.config.settings import Settings, get_settings

# Libraries that log every request or statement at INFO
QUIET_LOGGERS = ("urllib3", "pywebpush", "aiosqlite", "uvicorn.access")


def dispatch_mode(settings: Settings) -> str:
    """Label for how due notifications get delivered by this instance."""
    return "local" if settings.scheduler.dispatcher_enabled else "cron"


def add_service_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp service name, version, environment and dispatch mode."""
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("environment", settings.environment)
    event_dict.setdefault("dispatch", dispatch_mode(settings))
    return event_dict


def render_instants(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Datetime values (fires_at, anchor_at, ...) become ISO-8601 strings."""
    for key, value in list(event_dict.items()):
        if isinstance(value, datetime):
            event_dict[key] = value.isoformat()
    return event_dict


def build_processors(settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_service_context,
        render_instants,
    ]

    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger."""
    settings = settings or get_settings()

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_log_context(**values: Any) -> Any:
    """
    Bind values to every log event emitted inside the returned context.

    Usage:
        with bind_log_context(channel="push", pass_id=pass_id):
            ...
    """
    return structlog.contextvars.bound_contextvars(**values)
