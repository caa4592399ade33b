"""
Group Aggregate

One node of the group graph: its name, the permanent flag of the reserved
groups, the principals placed directly into it and its direct edges to other
groups. Edge ``(P, C)`` means P contains C, so it is recorded both in
``P.direct_children`` and in ``C.direct_parents``.
"""

from datetime import datetime
from uuid import UUID

from app.core.domain.base import AggregateRoot
from app.core.errors import ValidationError
from app.modules.membership.domain.errors import (
    PermanentGroupError,
    SelfReferentialEdgeError,
)


class Group(AggregateRoot):
    """
    Group aggregate root.

    Responsibilities:
    - Group identity, name and permanence
    - Direct principal membership
    - Both directions of the direct containment edges

    NOT responsible for:
    - Transitive membership (ClosureCache)
    - Persistence and notifications (store and GroupMutator)
    """

    def __init__(
        self,
        group_id: UUID | None = None,
        name: str | None = None,
        permanent: bool = False,
    ):
        self.name = name
        self.permanent = permanent
        self.direct_members: set[UUID] = set()
        self.direct_parents: set[UUID] = set()
        self.direct_children: set[UUID] = set()
        super().__init__(group_id)

    @classmethod
    def restore(
        cls,
        group_id: UUID,
        name: str | None,
        permanent: bool,
        direct_members: set[UUID] | None = None,
        direct_parents: set[UUID] | None = None,
        direct_children: set[UUID] | None = None,
        version: int = 1,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> "Group":
        """Rebuild a group from persisted state without touching its version."""
        group = cls(group_id=group_id, name=name, permanent=permanent)
        group.direct_members = set(direct_members or ())
        group.direct_parents = set(direct_parents or ())
        group.direct_children = set(direct_children or ())
        group._version = version
        if created_at is not None:
            group.created_at = created_at
        if updated_at is not None:
            group.updated_at = updated_at
        return group

    def _validate_entity(self) -> None:
        super()._validate_entity()

        if self.name is not None and not self.name.strip():
            raise ValidationError("Group name cannot be blank", field="name")

    # Principal membership

    def has_principal(self, principal_id: UUID) -> bool:
        return principal_id in self.direct_members

    def add_principal(self, principal_id: UUID) -> bool:
        """Place a principal directly into this group. Returns False if already there."""
        if principal_id in self.direct_members:
            return False
        self.direct_members.add(principal_id)
        self.mark_modified()
        return True

    def remove_principal(self, principal_id: UUID) -> bool:
        """Take a principal out of this group. Returns False if it was not a member."""
        if principal_id not in self.direct_members:
            return False
        self.direct_members.discard(principal_id)
        self.mark_modified()
        return True

    # Group edges

    def contains_child(self, child: "Group") -> bool:
        return child.id in self.direct_children

    def add_child(self, child: "Group") -> bool:
        """
        Record the edge self -> child on both groups.

        Raises:
            SelfReferentialEdgeError: If child is this group
        """
        if child.id == self.id:
            raise SelfReferentialEdgeError(self.id)
        if child.id in self.direct_children:
            return False

        self.direct_children.add(child.id)
        child.direct_parents.add(self.id)
        self.mark_modified()
        child.mark_modified()
        return True

    def remove_child(self, child: "Group") -> bool:
        """Drop the edge self -> child on both groups. Returns False if absent."""
        if child.id not in self.direct_children:
            return False

        self.direct_children.discard(child.id)
        child.direct_parents.discard(self.id)
        self.mark_modified()
        child.mark_modified()
        return True

    # Metadata

    def rename(self, new_name: str) -> bool:
        """
        Change the group name. Returns False when the name is unchanged.

        Raises:
            PermanentGroupError: If the group is permanent
            ValidationError: If the new name is blank
        """
        if self.permanent:
            raise PermanentGroupError(self.id, self.name, "rename")
        if not new_name or not new_name.strip():
            raise ValidationError("Group name cannot be blank", field="name")
        if new_name == self.name:
            return False

        self.name = new_name
        self.mark_modified()
        return True

    def mark_permanent(self) -> None:
        if not self.permanent:
            self.permanent = True
            self.mark_modified()

    def ensure_deletable(self) -> None:
        """
        Raises:
            PermanentGroupError: If the group is permanent
        """
        if self.permanent:
            raise PermanentGroupError(self.id, self.name, "delete")

    @property
    def is_leaf(self) -> bool:
        """True if the group has no principals and no sub-groups."""
        return not self.direct_members and not self.direct_children

    def __repr__(self) -> str:
        return f"Group(id={self.id}, name={self.name!r})"


__all__ = ["Group"]
