"""Structured logging configuration using structlog.

Provides JSON output for production (parseable by ELK, Loki, CloudWatch)
and pretty console output for development.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, WrappedLogger


APP_NAME = "reply-labeler"
PACKAGE_PREFIX = "reply_labeler."


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application context to all log events."""
    event_dict["app"] = APP_NAME
    return event_dict


def add_component(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Tag our own events with the pipeline component that emitted them.

    `reply_labeler.stream.consumer` -> "stream", `reply_labeler.pipeline` ->
    "pipeline". Third-party loggers are left untagged.
    """
    name = event_dict.get("logger") or ""
    if name.startswith(PACKAGE_PREFIX):
        event_dict.setdefault("component", name[len(PACKAGE_PREFIX):].split(".")[0])
    return event_dict


class ServiceContext:
    """Processor stamping the active profile (and dry-run mode) on every event."""

    def __init__(self, profile: Optional[str] = None, dry_run: bool = False):
        self.profile = profile
        self.dry_run = dry_run

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        if self.profile:
            event_dict.setdefault("profile", self.profile)
        if self.dry_run:
            event_dict["dry_run"] = True
        return event_dict


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    profile: Optional[str] = None,
    dry_run: bool = False,
) -> None:
    """Configure structlog for structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Environment name (development, production)
        profile: Classification profile stamped on every event
        dry_run: Mark every event while emissions are suppressed

    In production mode events are rendered as JSON lines with exception
    info included. In development mode they go through the colored console
    renderer.
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        add_component,
        ServiceContext(profile, dry_run),
    ]

    is_production = environment.lower() == "production"

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Route standard library logging (httpx, websockets, redis) through structlog
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level_int)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
