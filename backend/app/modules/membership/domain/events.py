"""
Membership Domain Events

Notifications emitted once per committed group mutation. Each variant is
tagged by ``kind`` so consumers can dispatch on a single field, and
``parse_membership_event`` rebuilds the right variant from serialized data.
"""

from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import Field, TypeAdapter

from app.core.events.types import DomainEvent
from app.modules.membership.domain.enums import MembershipEventKind, SubjectType


class MembershipEvent(DomainEvent):
    """Base class for all group notifications."""

    group_id: UUID
    identifiers: tuple[str, ...] = ()

    @property
    def event_kind(self) -> MembershipEventKind:
        return MembershipEventKind(self.kind)

    def get_aggregate_id(self) -> str:
        return str(self.group_id)


class GroupCreated(MembershipEvent):
    """Event raised when a new group node is created."""

    kind: Literal["create"] = "create"


class GroupMemberAdded(MembershipEvent):
    """Event raised when a principal or a sub-group joins a group."""

    kind: Literal["add"] = "add"
    subject_type: SubjectType
    subject_id: UUID
    subject_label: str | None = None


class GroupMemberRemoved(MembershipEvent):
    """Event raised when a principal or a sub-group leaves a group."""

    kind: Literal["remove"] = "remove"
    subject_type: SubjectType
    subject_id: UUID
    subject_label: str | None = None


class GroupDeleted(MembershipEvent):
    """Event raised when a group is deleted."""

    kind: Literal["delete"] = "delete"
    group_name: str | None = None


class GroupModified(MembershipEvent):
    """Event raised when group metadata (its name) changes."""

    kind: Literal["modify"] = "modify"
    details: str


AnyMembershipEvent = Annotated[
    Union[GroupCreated, GroupMemberAdded, GroupMemberRemoved, GroupDeleted, GroupModified],
    Field(discriminator="kind"),
]

_event_adapter: TypeAdapter[AnyMembershipEvent] = TypeAdapter(AnyMembershipEvent)


def parse_membership_event(data: dict[str, Any]) -> MembershipEvent:
    """Rebuild the concrete event variant from its serialized form."""
    payload = {key: value for key, value in data.items() if key != "event_type"}
    return _event_adapter.validate_python(payload)


__all__ = [
    "AnyMembershipEvent",
    "GroupCreated",
    "GroupDeleted",
    "GroupMemberAdded",
    "GroupMemberRemoved",
    "GroupModified",
    "MembershipEvent",
    "parse_membership_event",
]
