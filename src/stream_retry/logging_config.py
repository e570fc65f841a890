"""Structured logging setup (structlog).

Retry events are logged with keyword fields (attempt, delay_ms, status,
retry_hint, ...). Production renders them as JSON lines; development uses
the coloured console renderer. Logs go to stderr so they never interleave
with streamed output written to stdout.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.types import EventDict, WrappedLogger

APP_LOGGER_NAME = "stream-retry"

# Libraries whose INFO chatter would drown out retry events
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event with the application name."""
    event_dict["app"] = APP_LOGGER_NAME
    return event_dict


def drop_none_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Remove fields whose value is None (e.g. status or retry_hint when absent)."""
    return {key: value for key, value in event_dict.items() if value is not None}


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown names fall back to INFO.
        environment: "production" selects the JSON renderer, anything else the console renderer
        stream: Log destination (default: sys.stderr)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    is_production = environment.lower() == "production"

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        drop_none_fields,
    ]
    if is_production:
        processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=processors)
    )
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).debug(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
