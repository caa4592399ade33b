"""
Group Directory

Lookups over stored groups. Misses come back as ``None`` or an empty list;
``require``/``require_by_name`` are for call sites that need the group to
exist.
"""

from uuid import UUID

from app.core.config import MembershipConfig
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.errors import GroupNotFoundError
from app.modules.membership.domain.interfaces.group_graph_store import IGroupGraphStore


def _as_uuid(identifier: str) -> UUID | None:
    try:
        return UUID(identifier.strip())
    except (ValueError, AttributeError):
        return None


class GroupDirectory:
    """Read-only group lookups and search."""

    def __init__(self, store: IGroupGraphStore, config: MembershipConfig | None = None):
        self._store = store
        self._config = config or MembershipConfig()

    async def find(self, group_id: UUID | None) -> Group | None:
        if group_id is None:
            return None
        return await self._store.find_group(group_id)

    async def find_by_name(self, name: str | None) -> Group | None:
        if not name:
            return None
        return await self._store.find_group_by_name(name)

    async def require(self, group_id: UUID) -> Group:
        """
        Raises:
            GroupNotFoundError: If no group has the ID
        """
        group = await self.find(group_id)
        if group is None:
            raise GroupNotFoundError(group_id=group_id)
        return group

    async def require_by_name(self, name: str) -> Group:
        """
        Raises:
            GroupNotFoundError: If no group has the name
        """
        group = await self.find_by_name(name)
        if group is None:
            raise GroupNotFoundError(group_name=name)
        return group

    async def find_all(self, limit: int | None = None, offset: int = 0) -> list[Group]:
        """All groups sorted by name, optionally paged."""
        return await self._store.list_groups(limit=limit, offset=max(offset, 0))

    async def search(
        self, identifier: str | None, offset: int = 0, limit: int | None = None
    ) -> list[Group]:
        """
        Find groups by ID or by name fragment.

        An identifier that parses as a UUID is a lookup by ID and yields at
        most one group. Anything else is a case-insensitive substring match
        on the name, sorted by name.
        """
        if limit is None:
            limit = self._config.search_page_size

        group_id = _as_uuid(identifier) if identifier else None
        if group_id is not None:
            group = await self._store.find_group(group_id)
            return [group] if group is not None and offset <= 0 else []

        return await self._store.search_by_name(identifier or "", offset=max(offset, 0), limit=limit)

    async def search_result_count(self, identifier: str | None) -> int:
        """Number of groups ``search`` would return without paging."""
        group_id = _as_uuid(identifier) if identifier else None
        if group_id is not None:
            return 1 if await self._store.find_group(group_id) is not None else 0
        return await self._store.count_by_name(identifier or "")

    async def get_empty_groups(self) -> list[Group]:
        """Groups without any direct principal or sub-group."""
        return await self._store.find_empty_groups()

    async def count_total(self) -> int:
        return await self._store.count_groups()


__all__ = ["GroupDirectory"]
