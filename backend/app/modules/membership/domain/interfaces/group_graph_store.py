"""Group Graph Store Interface

Domain contract for the durable fact store behind the group graph: group
records, direct edges, direct principal membership and the persisted closure
table. It holds no cache of its own.

Edges are owned by the parent side: ``save_group`` writes the edges in which
the group is the parent, taken from ``direct_children``.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol
from uuid import UUID

from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.value_objects.closure import ClosureEntry


class IGroupGraphStore(Protocol):
    """Repository interface for the group graph."""

    async def create_group(self, name: str | None = None) -> Group:
        """Create and persist a new, empty, non-permanent group.

        Args:
            name: Optional initial name

        Returns:
            The new group
        """
        ...

    async def find_group(self, group_id: UUID) -> Group | None:
        """Find group by ID.

        Returns:
            Group if found, None otherwise
        """
        ...

    async def find_groups(self, group_ids: Iterable[UUID]) -> list[Group]:
        """Batch lookup by ID. Unknown IDs are skipped."""
        ...

    async def find_group_by_name(self, name: str) -> Group | None:
        """Find group by exact name.

        Returns:
            Group if found, None otherwise
        """
        ...

    async def list_groups(self, limit: int | None = None, offset: int = 0) -> list[Group]:
        """List groups sorted by name."""
        ...

    async def search_by_name(self, query: str, offset: int = 0, limit: int | None = None) -> list[Group]:
        """Case-insensitive substring match on name, sorted by name."""
        ...

    async def count_by_name(self, query: str) -> int:
        """Count groups whose name matches ``search_by_name``."""
        ...

    async def count_groups(self) -> int:
        """Count all groups."""
        ...

    async def list_direct_edges(self) -> Sequence[tuple[UUID, UUID]]:
        """All direct ``(parent_id, child_id)`` edges."""
        ...

    async def find_groups_containing_principal(self, principal_id: UUID) -> set[Group]:
        """Groups the principal is a direct member of."""
        ...

    async def find_principals_in_groups(self, group_ids: Iterable[UUID]) -> set[UUID]:
        """Union of the direct principal members of the given groups."""
        ...

    async def find_empty_groups(self) -> list[Group]:
        """Groups with no direct principal and no sub-group."""
        ...

    async def save_group(self, group: Group) -> None:
        """Persist the group with its members and the edges it parents."""
        ...

    async def delete_group(self, group: Group) -> None:
        """Remove the group record together with any edge that names it."""
        ...

    async def list_closure_entries(self) -> list[ClosureEntry]:
        """Read the persisted closure table."""
        ...

    async def replace_closure_entries(self, entries: Iterable[ClosureEntry]) -> None:
        """Delete every closure row and write ``entries`` in their place."""
        ...

    async def commit(self) -> None:
        """Make pending writes durable."""
        ...

    async def rollback(self) -> None:
        """Discard pending writes."""
        ...
