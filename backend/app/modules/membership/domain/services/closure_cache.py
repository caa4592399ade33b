"""
Closure Cache

Process-wide owner of the current closure snapshot. Readers take whatever
snapshot is current when they ask; a rebuild never patches it in place, it
hands over a complete new snapshot that replaces the old one in a single
assignment.
"""

from collections.abc import Iterable
from uuid import UUID

from app.core.logging import get_logger
from app.modules.membership.domain.interfaces.group_graph_store import IGroupGraphStore
from app.modules.membership.domain.value_objects.closure import ClosureSnapshot

logger = get_logger(__name__)


class ClosureCache:
    """Versioned holder of the transitive closure."""

    def __init__(self, snapshot: ClosureSnapshot | None = None):
        self._snapshot = snapshot if snapshot is not None else ClosureSnapshot.empty()

    @property
    def snapshot(self) -> ClosureSnapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def next_version(self) -> int:
        return self._snapshot.version + 1

    def replace(self, snapshot: ClosureSnapshot) -> bool:
        """
        Swap in a new snapshot.

        A snapshot older than the current one is ignored so a slow committer
        cannot roll readers back to a stale image.

        Returns:
            True if the snapshot was installed
        """
        current = self._snapshot
        if snapshot.version < current.version:
            logger.warning(
                "Ignoring stale closure snapshot",
                current_version=current.version,
                offered_version=snapshot.version,
            )
            return False

        self._snapshot = snapshot
        logger.debug(
            "Closure snapshot installed",
            version=snapshot.version,
            pair_count=len(snapshot),
        )
        return True

    async def load(self, store: IGroupGraphStore) -> ClosureSnapshot:
        """Warm the cache from the persisted closure table."""
        entries = await store.list_closure_entries()
        snapshot = ClosureSnapshot.from_entries(entries, self.next_version())
        self.replace(snapshot)
        return snapshot

    def descendants_of(self, group_id: UUID) -> frozenset[UUID]:
        """All groups transitively contained by the group."""
        return self._snapshot.descendants_of(group_id)

    def ancestors_of(self, group_ids: Iterable[UUID]) -> set[UUID]:
        """All groups that transitively contain any of the given groups."""
        snapshot = self._snapshot
        ancestors: set[UUID] = set()
        for group_id in group_ids:
            ancestors |= snapshot.ancestors_of(group_id)
        return ancestors

    def is_ancestor(self, ancestor_id: UUID, descendant_id: UUID) -> bool:
        return descendant_id in self._snapshot.descendants_of(ancestor_id)


__all__ = ["ClosureCache"]
