"""Membership domain enumerations."""

from enum import Enum


class SubjectType(str, Enum):
    """Kind of entity placed into (or taken out of) a group."""

    PRINCIPAL = "principal"
    GROUP = "group"


class MembershipEventKind(str, Enum):
    """Notification kinds emitted by group mutations."""

    CREATE = "create"
    ADD = "add"
    REMOVE = "remove"
    DELETE = "delete"
    MODIFY = "modify"


__all__ = ["MembershipEventKind", "SubjectType"]
