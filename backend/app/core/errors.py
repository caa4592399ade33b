"""Error hierarchy shared by every layer of the group graph service.

Every error carries a stable ``code`` for callers, a ``user_message`` safe to
show to an end user, free-form ``details`` and a generated ``error_id`` that
ties the raised exception to the log record written when it was created.
"""

import logging
import time
import uuid
from enum import Enum
from typing import Any

_REDACTED_KEYS = ("password", "token", "secret", "credential")


class ErrorSeverity(Enum):
    """How loudly an error is logged."""

    LOW = logging.INFO
    MEDIUM = logging.WARNING
    HIGH = logging.ERROR
    CRITICAL = logging.CRITICAL


def _redact(details: dict[str, Any]) -> dict[str, Any]:
    redacted: dict[str, Any] = {}
    for key, value in details.items():
        if any(marker in key.lower() for marker in _REDACTED_KEYS):
            redacted[key] = "***REDACTED***"
        elif isinstance(value, dict):
            redacted[key] = _redact(value)
        else:
            redacted[key] = value
    return redacted


class GroupGraphError(Exception):
    """
    Base exception for all group graph errors.

    Subclasses set ``default_code`` and ``severity``; an instance logs itself
    once, at the level given by its severity, when it is created.
    """

    default_code: str = "ERROR"
    severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.user_message = user_message or message
        self.details: dict[str, Any] = dict(details or {})
        self.correlation_id = correlation_id
        self.error_id = str(uuid.uuid4())
        self.timestamp = time.time()

        self._log_error()

    def _log_error(self) -> None:
        logging.getLogger(f"groupgraph.errors.{type(self).__name__}").log(
            self.severity.value,
            "%s: %s",
            self.code,
            self.message,
            extra={
                "error_id": self.error_id,
                "correlation_id": self.correlation_id,
                "error_details": _redact(self.details),
            },
        )

    def to_dict(self, include_internal: bool = False) -> dict[str, Any]:
        """Serialize the error for an API response or an audit record."""
        data: dict[str, Any] = {"error": self.code, "message": self.user_message}
        if self.details:
            data["details"] = _redact(self.details)
        if include_internal:
            data["error_id"] = self.error_id
            data["correlation_id"] = self.correlation_id
            data["severity"] = self.severity.name.lower()
            data["internal_message"] = self.message
        return data

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class DomainError(GroupGraphError):
    """A rule of the group graph was broken."""

    default_code = "DOMAIN_ERROR"


class ApplicationError(GroupGraphError):
    """A request was rejected before reaching the domain."""

    default_code = "APPLICATION_ERROR"


class InfrastructureError(GroupGraphError):
    """Storage or wiring failure."""

    default_code = "INFRASTRUCTURE_ERROR"
    severity = ErrorSeverity.HIGH


class ValidationError(ApplicationError):
    """Input failed validation."""

    default_code = "VALIDATION_ERROR"
    severity = ErrorSeverity.LOW

    def __init__(self, message: str, field: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.field = field
        if field:
            self.details["field"] = field


class NotFoundError(ApplicationError):
    """A resource required by the caller does not exist."""

    default_code = "NOT_FOUND"
    severity = ErrorSeverity.LOW

    def __init__(self, resource: str, identifier: Any, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", f"The requested {resource.lower()} was not found")
        super().__init__(f"{resource} not found: {identifier}", **kwargs)
        self.details["resource"] = resource
        self.details["identifier"] = str(identifier)


class ConflictError(ApplicationError):
    """The change collides with existing state."""

    default_code = "CONFLICT"

    def __init__(self, message: str, resource: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        if resource:
            self.details["resource"] = resource


class ConfigurationError(InfrastructureError):
    """A setting is missing or invalid."""

    default_code = "CONFIGURATION_ERROR"
    severity = ErrorSeverity.CRITICAL

    def __init__(self, message: str, config_key: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("user_message", "Service configuration issue")
        super().__init__(message, **kwargs)
        if config_key:
            self.details["config_key"] = config_key


class PermissionDeniedError(ApplicationError):
    """The caller may not change the group graph."""

    default_code = "PERMISSION_DENIED"

    def __init__(
        self,
        message: str = "Permission denied",
        resource: str | None = None,
        action: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("user_message", "You don't have permission to perform this action")
        super().__init__(message, **kwargs)
        if resource:
            self.details["resource"] = resource
        if action:
            self.details["action"] = action


__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "ConflictError",
    "DomainError",
    "ErrorSeverity",
    "GroupGraphError",
    "InfrastructureError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
]
