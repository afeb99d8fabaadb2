"""Structured logging for Sitebook.

structlog renders every event; stdlib ``logging`` only supplies the output
handler (stdout, or a size-rotated file). Events are snake_case names with
key/value fields:

    >>> setup_logging(LoggingConfig(level="INFO", format="json"))
    >>> logger = get_logger(__name__)
    >>> bind_project_context(project_id="9b1c...", phase="quoted")
    >>> logger.info("phase_transition_confirmed", to_phase="contracted")

Two pieces of context ride along automatically: the request correlation ID
(set by the web middleware) and the project being worked on (bound by the
transition code paths).
"""

from __future__ import annotations

import contextvars
import enum
import logging
import logging.handlers
import sys
from typing import Any

import structlog

from sitebook.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Chatty at DEBUG; kept at WARNING unless asked for explicitly
QUIET_LOGGERS = ("aiosqlite", "asyncio", "multipart")


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor adding ``correlation_id`` when one is set."""
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def render_enum_values(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor replacing Enum members (phases, effects) with their values."""
    for key, value in event_dict.items():
        if isinstance(value, enum.Enum):
            event_dict[key] = value.value
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def bind_project_context(project_id: str, phase: str | None = None) -> None:
    """Attach the project (and its phase, when known) to subsequent events."""
    context: dict[str, Any] = {"project_id": project_id}
    if phase is not None:
        context["phase"] = phase
    structlog.contextvars.bind_contextvars(**context)


def _build_handler(config: LoggingConfig) -> logging.Handler:
    if config.file is None:
        return logging.StreamHandler(sys.stdout)

    config.file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=config.file,
        maxBytes=config.rotation_size_mb * 1024 * 1024,
        backupCount=config.retention_count,
        encoding="utf-8",
    )


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog and the root handler.

    Safe to call more than once; each call replaces the previous handler,
    which the CLI relies on when ``--verbose`` changes the level.

    Args:
        config: Logging section of SitebookConfig.
    """
    log_level = getattr(logging, config.level)

    handler = _build_handler(config)
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if config.format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            render_enum_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
