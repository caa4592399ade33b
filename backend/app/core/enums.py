"""Enumerations read by both the settings loader and the logging setup."""

import logging
from enum import Enum


class Environment(Enum):
    """Deployment stage the service runs in."""

    DEVELOPMENT = "dev"
    TESTING = "test"
    STAGING = "staging"
    PRODUCTION = "prod"


class LogLevel(str, Enum):
    """Threshold below which log records are dropped."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_string(cls, raw: str) -> "LogLevel":
        try:
            return cls(raw.strip().upper())
        except ValueError:
            raise ValueError(f"Invalid log level: {raw}") from None

    @property
    def numeric(self) -> int:
        """Matching :mod:`logging` level number."""
        return logging.getLevelName(self.value)


class LogFormat(Enum):
    """Renderer used for log output."""

    JSON = "json"
    CONSOLE = "console"
    PLAIN = "plain"


__all__ = ["Environment", "LogFormat", "LogLevel"]
