"""
Group Graph Models

SQLModel definitions for group graph persistence: group records, direct
principal membership, direct edges and the materialized closure.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlmodel import Field, SQLModel


class GroupModel(SQLModel, table=True):
    """Group persistence model."""

    __tablename__ = "groups"

    id: UUID = Field(primary_key=True)
    name: str | None = Field(default=None, unique=True, index=True)
    permanent: bool = Field(default=False)
    version: int = Field(default=1)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GroupMemberModel(SQLModel, table=True):
    """Direct principal membership."""

    __tablename__ = "group_members"

    group_id: UUID = Field(foreign_key="groups.id", primary_key=True)
    principal_id: UUID = Field(primary_key=True, index=True)


class GroupEdgeModel(SQLModel, table=True):
    """Direct containment edge: parent contains child."""

    __tablename__ = "group_edges"

    parent_id: UUID = Field(foreign_key="groups.id", primary_key=True)
    child_id: UUID = Field(foreign_key="groups.id", primary_key=True, index=True)


class GroupClosureModel(SQLModel, table=True):
    """Materialized ancestor/descendant pair, fully replaced on each rebuild."""

    __tablename__ = "group_closure"

    ancestor_id: UUID = Field(primary_key=True)
    descendant_id: UUID = Field(primary_key=True, index=True)
