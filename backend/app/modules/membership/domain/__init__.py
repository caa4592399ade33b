"""
Membership Domain Layer

The group graph, its transitive closure and the services that resolve and
mutate membership.
"""

from .aggregates import Group
from .enums import MembershipEventKind, SubjectType
from .errors import (
    DuplicateGroupNameError,
    GroupNotFoundError,
    InvariantViolationError,
    MembershipDomainError,
    PermanentGroupError,
    SelfReferentialEdgeError,
)
from .events import (
    GroupCreated,
    GroupDeleted,
    GroupMemberAdded,
    GroupMemberRemoved,
    GroupModified,
    MembershipEvent,
    parse_membership_event,
)
from .value_objects import ClosureEntry, ClosureSnapshot, Principal, RequestContext

__all__ = [
    "ClosureEntry",
    "ClosureSnapshot",
    "DuplicateGroupNameError",
    "Group",
    "GroupCreated",
    "GroupDeleted",
    "GroupMemberAdded",
    "GroupMemberRemoved",
    "GroupModified",
    "GroupNotFoundError",
    "InvariantViolationError",
    "MembershipDomainError",
    "MembershipEvent",
    "MembershipEventKind",
    "PermanentGroupError",
    "Principal",
    "RequestContext",
    "SelfReferentialEdgeError",
    "SubjectType",
    "parse_membership_event",
]
