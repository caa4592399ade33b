# ruff: noqa: A005
"""Structured logging for the group graph service.

Modules call ``get_logger(__name__)`` and log with keyword context::

    logger = get_logger(__name__)
    logger.info("Closure rebuilt", version=3, pairs=120)

structlog renders the records through the stdlib ``logging`` handlers, so the
level threshold, the correlation context bound with ``log_context`` and
credential masking apply to every module alike.
"""

import logging
import re
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.typing import EventDict, Processor, WrappedLogger

from app.core.enums import Environment, LogFormat, LogLevel
from app.core.errors import ConfigurationError

_SENSITIVE_KEY = re.compile(r"password|token|secret|credential|api.?key", re.IGNORECASE)
_MASK = "***[MASKED]"

_configured: "LogConfig | None" = None


@dataclass
class LogConfig:
    """
    Logging options.

    The environment picks the renderer: a console layout while developing,
    plain key=value pairs under test and JSON everywhere else unless a format
    is given explicitly.
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat | None = None
    environment: Environment = Environment.DEVELOPMENT
    include_callsite: bool | None = None
    max_message_length: int = 10000

    def __post_init__(self):
        if self.max_message_length < 1000:
            raise ConfigurationError(
                "Maximum message length must be at least 1000 characters",
                config_key="max_message_length",
            )
        if self.environment is Environment.DEVELOPMENT:
            self.format = LogFormat.CONSOLE
        elif self.environment is Environment.TESTING:
            self.format = LogFormat.PLAIN
        elif self.format is None:
            self.format = LogFormat.JSON
        if self.include_callsite is None:
            self.include_callsite = self.environment is Environment.DEVELOPMENT


def _mask(values: dict[str, Any]) -> dict[str, Any]:
    masked = {}
    for key, value in values.items():
        if _SENSITIVE_KEY.search(key):
            masked[key] = _MASK
        elif isinstance(value, dict):
            masked[key] = _mask(value)
        else:
            masked[key] = value
    return masked


def mask_sensitive_values(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """structlog processor hiding values stored under credential-like keys."""
    return _mask(event_dict)


def _truncate_event(limit: int) -> Processor:
    def truncate(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        message = event_dict.get("event")
        if isinstance(message, str) and len(message) > limit:
            event_dict["event"] = message[:limit] + "... [TRUNCATED]"
        return event_dict

    return truncate


def _renderer(log_format: LogFormat) -> Processor:
    if log_format is LogFormat.JSON:
        return structlog.processors.JSONRenderer()
    if log_format is LogFormat.CONSOLE:
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.KeyValueRenderer(key_order=["event", "logger", "level"])


def configure_logging(config: LogConfig | None = None) -> None:
    """
    Install the structlog pipeline and the stdlib root handler.

    Args:
        config: Logging options; built from the application settings if omitted
    """
    global _configured  # noqa: PLW0603

    if config is None:
        from app.core.config import get_settings

        settings = get_settings()
        config = LogConfig(
            level=settings.log_level,
            format=settings.log_format,
            environment=settings.environment,
        )

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if config.include_callsite:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            )
        )
    processors += [
        mask_sensitive_values,
        _truncate_event(config.max_message_length),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _renderer(config.format),
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, force=True)
    logging.getLogger().setLevel(config.level.numeric)

    if config.environment is Environment.PRODUCTION:
        for noisy in ("sqlalchemy.engine", "aiosqlite"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = config


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return the structured logger for ``name`` (usually ``__name__``)."""
    if _configured is None:
        configure_logging()
    return structlog.stdlib.get_logger(name)


def log_context(**kwargs: Any) -> None:
    """Bind keyword context to every record logged from the current task."""
    bind_contextvars(**kwargs)


def clear_context() -> None:
    clear_contextvars()


@contextmanager
def log_duration(
    logger: structlog.stdlib.BoundLogger, operation: str, **kwargs: Any
) -> Iterator[None]:
    """Log how long the wrapped block took once it completes."""
    start = time.perf_counter()
    yield
    logger.info(
        f"{operation} completed",
        operation=operation,
        duration_ms=round((time.perf_counter() - start) * 1000, 3),
        **kwargs,
    )


__all__ = [
    "LogConfig",
    "clear_context",
    "configure_logging",
    "get_logger",
    "log_context",
    "log_duration",
    "mask_sensitive_values",
]
