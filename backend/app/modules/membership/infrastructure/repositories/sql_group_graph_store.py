"""
SQL Group Graph Store

SQLModel-based implementation of the group graph store interface. Writes go
through the caller's session and become durable on ``commit``. Member and
edge rows are written as differences against what is stored; the closure
table is replaced with one bulk delete and one bulk insert.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, insert, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, func, select

from app.core.logging import get_logger
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.value_objects.closure import ClosureEntry
from app.modules.membership.infrastructure.models.group_model import (
    GroupClosureModel,
    GroupEdgeModel,
    GroupMemberModel,
    GroupModel,
)

logger = get_logger(__name__)


class SQLGroupGraphStore:
    """SQLModel implementation of the group graph store."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # Groups

    async def create_group(self, name: str | None = None) -> Group:
        group = Group(name=name)
        await self.save_group(group)
        return group

    async def find_group(self, group_id: UUID) -> Group | None:
        model = await self.session.get(GroupModel, group_id)
        if model is None:
            return None
        groups = await self._to_domain([model])
        return groups[0]

    async def find_groups(self, group_ids: Iterable[UUID]) -> list[Group]:
        ids = set(group_ids)
        if not ids:
            return []
        stmt = select(GroupModel).where(col(GroupModel.id).in_(ids))
        return await self._fetch(stmt)

    async def find_group_by_name(self, name: str) -> Group | None:
        stmt = select(GroupModel).where(GroupModel.name == name)
        groups = await self._fetch(stmt)
        return groups[0] if groups else None

    async def list_groups(self, limit: int | None = None, offset: int = 0) -> list[Group]:
        stmt = self._ordered(select(GroupModel)).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._fetch(stmt)

    async def search_by_name(
        self, query: str, offset: int = 0, limit: int | None = None
    ) -> list[Group]:
        stmt = self._ordered(
            select(GroupModel).where(col(GroupModel.name).icontains(query, autoescape=True))
        ).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._fetch(stmt)

    async def count_by_name(self, query: str) -> int:
        stmt = (
            select(func.count())
            .select_from(GroupModel)
            .where(col(GroupModel.name).icontains(query, autoescape=True))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_groups(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(GroupModel))
        return result.scalar_one()

    async def find_empty_groups(self) -> list[Group]:
        has_members = select(GroupMemberModel.group_id).where(
            GroupMemberModel.group_id == GroupModel.id
        )
        has_children = select(GroupEdgeModel.parent_id).where(
            GroupEdgeModel.parent_id == GroupModel.id
        )
        stmt = self._ordered(
            select(GroupModel).where(~has_members.exists(), ~has_children.exists())
        )
        return await self._fetch(stmt)

    # Membership facts

    async def list_direct_edges(self) -> Sequence[tuple[UUID, UUID]]:
        result = await self.session.execute(
            select(GroupEdgeModel.parent_id, GroupEdgeModel.child_id)
        )
        return [(parent_id, child_id) for parent_id, child_id in result.all()]

    async def find_groups_containing_principal(self, principal_id: UUID) -> set[Group]:
        stmt = (
            select(GroupModel)
            .join(GroupMemberModel, GroupMemberModel.group_id == GroupModel.id)
            .where(GroupMemberModel.principal_id == principal_id)
        )
        return set(await self._fetch(stmt))

    async def find_principals_in_groups(self, group_ids: Iterable[UUID]) -> set[UUID]:
        ids = set(group_ids)
        if not ids:
            return set()
        result = await self.session.execute(
            select(GroupMemberModel.principal_id)
            .where(col(GroupMemberModel.group_id).in_(ids))
            .distinct()
        )
        return set(result.scalars().all())

    # Writes

    async def save_group(self, group: Group) -> None:
        model = await self.session.get(GroupModel, group.id)
        if model is None:
            model = GroupModel(id=group.id, created_at=group.created_at)

        model.name = group.name
        model.permanent = group.permanent
        model.version = group.version
        model.updated_at = group.updated_at
        self.session.add(model)
        await self.session.flush()

        await self._sync_members(group)
        await self._sync_children(group)

    async def delete_group(self, group: Group) -> None:
        await self.session.execute(
            delete(GroupMemberModel).where(GroupMemberModel.group_id == group.id)
        )
        await self.session.execute(
            delete(GroupEdgeModel).where(
                or_(GroupEdgeModel.parent_id == group.id, GroupEdgeModel.child_id == group.id)
            )
        )
        await self.session.execute(
            delete(GroupClosureModel).where(
                or_(
                    GroupClosureModel.ancestor_id == group.id,
                    GroupClosureModel.descendant_id == group.id,
                )
            )
        )

        model = await self.session.get(GroupModel, group.id)
        if model is not None:
            await self.session.delete(model)
            await self.session.flush()

        logger.debug("Group row deleted", group_id=str(group.id))

    # Closure table

    async def list_closure_entries(self) -> list[ClosureEntry]:
        result = await self.session.execute(
            select(GroupClosureModel.ancestor_id, GroupClosureModel.descendant_id)
        )
        return [ClosureEntry(ancestor_id, descendant_id) for ancestor_id, descendant_id in result.all()]

    async def replace_closure_entries(self, entries: Iterable[ClosureEntry]) -> None:
        rows = [
            {"ancestor_id": entry.ancestor_id, "descendant_id": entry.descendant_id}
            for entry in set(entries)
        ]
        await self.session.execute(delete(GroupClosureModel))
        if rows:
            await self.session.execute(insert(GroupClosureModel), rows)

    # Transaction

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # Helpers

    @staticmethod
    def _ordered(stmt):
        return stmt.order_by(col(GroupModel.name).nulls_first(), GroupModel.id)

    async def _fetch(self, stmt) -> list[Group]:
        result = await self.session.execute(stmt)
        return await self._to_domain(list(result.scalars().all()))

    async def _to_domain(self, models: list[GroupModel]) -> list[Group]:
        """Materialize groups with their members and edges in three queries."""
        if not models:
            return []
        ids = [model.id for model in models]

        members: dict[UUID, set[UUID]] = defaultdict(set)
        result = await self.session.execute(
            select(GroupMemberModel.group_id, GroupMemberModel.principal_id).where(
                col(GroupMemberModel.group_id).in_(ids)
            )
        )
        for group_id, principal_id in result.all():
            members[group_id].add(principal_id)

        children: dict[UUID, set[UUID]] = defaultdict(set)
        parents: dict[UUID, set[UUID]] = defaultdict(set)
        result = await self.session.execute(
            select(GroupEdgeModel.parent_id, GroupEdgeModel.child_id).where(
                or_(col(GroupEdgeModel.parent_id).in_(ids), col(GroupEdgeModel.child_id).in_(ids))
            )
        )
        for parent_id, child_id in result.all():
            children[parent_id].add(child_id)
            parents[child_id].add(parent_id)

        return [
            Group.restore(
                group_id=model.id,
                name=model.name,
                permanent=model.permanent,
                direct_members=members[model.id],
                direct_parents=parents[model.id],
                direct_children=children[model.id],
                version=model.version,
                created_at=model.created_at,
                updated_at=model.updated_at,
            )
            for model in models
        ]

    async def _sync_members(self, group: Group) -> None:
        result = await self.session.execute(
            select(GroupMemberModel.principal_id).where(GroupMemberModel.group_id == group.id)
        )
        stored = set(result.scalars().all())

        removed = stored - group.direct_members
        added = group.direct_members - stored
        if removed:
            await self.session.execute(
                delete(GroupMemberModel).where(
                    GroupMemberModel.group_id == group.id,
                    col(GroupMemberModel.principal_id).in_(removed),
                )
            )
        if added:
            await self.session.execute(
                insert(GroupMemberModel),
                [{"group_id": group.id, "principal_id": principal_id} for principal_id in added],
            )

    async def _sync_children(self, group: Group) -> None:
        result = await self.session.execute(
            select(GroupEdgeModel.child_id).where(GroupEdgeModel.parent_id == group.id)
        )
        stored = set(result.scalars().all())

        removed = stored - group.direct_children
        added = group.direct_children - stored
        if removed:
            await self.session.execute(
                delete(GroupEdgeModel).where(
                    GroupEdgeModel.parent_id == group.id,
                    col(GroupEdgeModel.child_id).in_(removed),
                )
            )
        if added:
            await self.session.execute(
                insert(GroupEdgeModel),
                [{"parent_id": group.id, "child_id": child_id} for child_id in added],
            )


__all__ = ["SQLGroupGraphStore"]
