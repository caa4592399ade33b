"""
In-Memory Group Graph Store

Dictionary-backed implementation of the group graph store interface with the
same transactional behaviour as the SQL store: writes land in a working copy
that ``commit`` publishes and ``rollback`` discards. Every lookup returns
freshly built ``Group`` objects, as a database would.
"""

import copy
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from app.core.logging import get_logger
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.errors import DuplicateGroupNameError
from app.modules.membership.domain.value_objects.closure import ClosureEntry

logger = get_logger(__name__)


@dataclass
class _GroupRecord:
    name: str | None
    permanent: bool
    version: int
    created_at: datetime
    updated_at: datetime
    members: set[UUID] = field(default_factory=set)


@dataclass
class _StoreState:
    groups: dict[UUID, _GroupRecord] = field(default_factory=dict)
    edges: set[tuple[UUID, UUID]] = field(default_factory=set)
    closure: set[ClosureEntry] = field(default_factory=set)

    def clone(self) -> "_StoreState":
        return copy.deepcopy(self)


def _sort_key(group: Group) -> tuple[bool, str, str]:
    return (group.name is not None, group.name or "", group.id.hex)


class InMemoryGroupGraphStore:
    """In-memory implementation of the group graph store."""

    def __init__(self):
        self._committed = _StoreState()
        self._working = _StoreState()

    # Groups

    async def create_group(self, name: str | None = None) -> Group:
        group = Group(name=name)
        await self.save_group(group)
        return group

    async def find_group(self, group_id: UUID) -> Group | None:
        if group_id not in self._working.groups:
            return None
        return self._materialize(group_id)

    async def find_groups(self, group_ids: Iterable[UUID]) -> list[Group]:
        return [
            self._materialize(group_id)
            for group_id in set(group_ids)
            if group_id in self._working.groups
        ]

    async def find_group_by_name(self, name: str) -> Group | None:
        for group_id, record in self._working.groups.items():
            if record.name == name:
                return self._materialize(group_id)
        return None

    async def list_groups(self, limit: int | None = None, offset: int = 0) -> list[Group]:
        groups = sorted(self._all(), key=_sort_key)
        return self._page(groups, offset, limit)

    async def search_by_name(
        self, query: str, offset: int = 0, limit: int | None = None
    ) -> list[Group]:
        return self._page(self._matching(query), offset, limit)

    async def count_by_name(self, query: str) -> int:
        return len(self._matching(query))

    async def count_groups(self) -> int:
        return len(self._working.groups)

    async def find_empty_groups(self) -> list[Group]:
        parents = {parent_id for parent_id, _ in self._working.edges}
        return sorted(
            (
                self._materialize(group_id)
                for group_id, record in self._working.groups.items()
                if not record.members and group_id not in parents
            ),
            key=_sort_key,
        )

    # Membership facts

    async def list_direct_edges(self) -> Sequence[tuple[UUID, UUID]]:
        return sorted(self._working.edges)

    async def find_groups_containing_principal(self, principal_id: UUID) -> set[Group]:
        return {
            self._materialize(group_id)
            for group_id, record in self._working.groups.items()
            if principal_id in record.members
        }

    async def find_principals_in_groups(self, group_ids: Iterable[UUID]) -> set[UUID]:
        principals: set[UUID] = set()
        for group_id in group_ids:
            record = self._working.groups.get(group_id)
            if record is not None:
                principals |= record.members
        return principals

    # Writes

    async def save_group(self, group: Group) -> None:
        state = self._working
        if group.name is not None:
            for group_id, record in state.groups.items():
                if group_id != group.id and record.name == group.name:
                    raise DuplicateGroupNameError(group.name)

        state.groups[group.id] = _GroupRecord(
            name=group.name,
            permanent=group.permanent,
            version=group.version,
            created_at=group.created_at,
            updated_at=group.updated_at,
            members=set(group.direct_members),
        )
        state.edges = {edge for edge in state.edges if edge[0] != group.id}
        state.edges |= {(group.id, child_id) for child_id in group.direct_children}

    async def delete_group(self, group: Group) -> None:
        state = self._working
        state.groups.pop(group.id, None)
        state.edges = {edge for edge in state.edges if group.id not in edge}
        state.closure = {
            entry
            for entry in state.closure
            if group.id not in (entry.ancestor_id, entry.descendant_id)
        }

    # Closure table

    async def list_closure_entries(self) -> list[ClosureEntry]:
        return sorted(self._working.closure)

    async def replace_closure_entries(self, entries: Iterable[ClosureEntry]) -> None:
        self._working.closure = set(entries)

    # Transaction

    async def commit(self) -> None:
        self._committed = self._working.clone()
        logger.debug(
            "In-memory store committed",
            group_count=len(self._committed.groups),
            edge_count=len(self._committed.edges),
            closure_count=len(self._committed.closure),
        )

    async def rollback(self) -> None:
        self._working = self._committed.clone()

    # Helpers

    def _all(self) -> list[Group]:
        return [self._materialize(group_id) for group_id in self._working.groups]

    def _matching(self, query: str) -> list[Group]:
        needle = query.lower()
        return sorted(
            (
                group
                for group in self._all()
                if group.name is not None and needle in group.name.lower()
            ),
            key=_sort_key,
        )

    @staticmethod
    def _page(groups: list[Group], offset: int, limit: int | None) -> list[Group]:
        end = None if limit is None else offset + limit
        return groups[offset:end]

    def _materialize(self, group_id: UUID) -> Group:
        state = self._working
        record = state.groups[group_id]
        return Group.restore(
            group_id=group_id,
            name=record.name,
            permanent=record.permanent,
            direct_members=record.members,
            direct_parents={parent for parent, child in state.edges if child == group_id},
            direct_children={child for parent, child in state.edges if parent == group_id},
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


__all__ = ["InMemoryGroupGraphStore"]
