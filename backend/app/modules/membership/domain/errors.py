"""
Membership Domain Errors

Error classes with rich context for group graph operations. Lookups that find
nothing return ``None``; the errors below are raised only for rejected
mutations and for call sites that require an existing group.
"""

from typing import Any
from uuid import UUID

from app.core.errors import ConflictError, DomainError, NotFoundError


class MembershipDomainError(DomainError):
    """Base error for the membership domain."""

    default_code = "MEMBERSHIP_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, user_message=user_message, details=details)
        self.details["domain"] = "membership"


class InvariantViolationError(MembershipDomainError):
    """Raised when a mutation would break a group graph invariant."""

    default_code = "INVARIANT_VIOLATION"


class PermanentGroupError(InvariantViolationError):
    """Raised on an attempt to rename or delete a permanent group."""

    def __init__(self, group_id: UUID, group_name: str | None, operation: str):
        super().__init__(
            message=f"Attempt to {operation} permanent group '{group_name}'",
            code="PERMANENT_GROUP",
            user_message=f"The group '{group_name}' is permanent and cannot be {operation}d.",
            details={
                "group_id": str(group_id),
                "group_name": group_name,
                "operation": operation,
            },
        )
        self.operation = operation


class SelfReferentialEdgeError(InvariantViolationError):
    """Raised when a group would become its own sub-group."""

    def __init__(self, group_id: UUID):
        super().__init__(
            message=f"Group {group_id} cannot contain itself",
            code="SELF_REFERENTIAL_EDGE",
            user_message="A group cannot be added as a member of itself.",
            details={"group_id": str(group_id)},
        )


class DuplicateGroupNameError(ConflictError):
    """Raised when a rename would collide with another group's name."""

    def __init__(self, group_name: str):
        super().__init__(
            f"Group '{group_name}' already exists",
            resource="group",
            user_message=f"A group with the name '{group_name}' already exists.",
        )
        self.code = "GROUP_ALREADY_EXISTS"
        self.details["group_name"] = group_name


class GroupNotFoundError(NotFoundError):
    """Raised by call sites that require a group to exist."""

    def __init__(self, group_id: UUID | None = None, group_name: str | None = None):
        super().__init__("Group", group_id if group_id is not None else group_name)
        self.code = "GROUP_NOT_FOUND"


__all__ = [
    "DuplicateGroupNameError",
    "GroupNotFoundError",
    "InvariantViolationError",
    "MembershipDomainError",
    "PermanentGroupError",
    "SelfReferentialEdgeError",
]
