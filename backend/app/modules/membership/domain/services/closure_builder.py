"""
Closure Builder

Recomputes the complete transitive closure of the group graph from its
direct edges and replaces the persisted closure table with the result.

The walk is Tarjan's strongly connected components algorithm, iterative with
an explicit stack. Components finish children first, so when a component is
closed every group below it already has its final descendant set. All groups
of one component share a single set: the component's own groups, if it is a
cycle, plus everything reachable from its outgoing edges. Each group and
each edge is visited once, cycles included.

On a cycle every group in it ends up as its own descendant (``A -> B -> A``
gives ``A: {A, B}`` and ``B: {A, B}``).
"""

from collections.abc import Iterable, Iterator, Mapping
from uuid import UUID

from app.core.logging import get_logger, log_duration
from app.modules.membership.domain.interfaces.group_graph_store import IGroupGraphStore
from app.modules.membership.domain.value_objects.closure import ClosureSnapshot

logger = get_logger(__name__)


class ClosureBuilder:
    """Full-rebuild algorithm for the closure table."""

    def __init__(self, store: IGroupGraphStore):
        self._store = store

    async def rebuild(self, version: int) -> ClosureSnapshot:
        """
        Recompute the closure from the store's current edges and persist it.

        The persisted table is fully replaced within the caller's transaction.

        Args:
            version: Version stamped on the returned snapshot

        Returns:
            The new snapshot, ready to be swapped into a ClosureCache
        """
        edges = await self._store.list_direct_edges()

        with log_duration(logger, "Closure rebuild", edge_count=len(edges), version=version):
            descendants = self.compute(edges)
            snapshot = ClosureSnapshot.from_descendants(descendants, version)
            await self._store.replace_closure_entries(sorted(snapshot.entries()))

        logger.info(
            "Closure rebuilt",
            version=version,
            group_count=len(descendants),
            pair_count=len(snapshot),
        )
        return snapshot

    @staticmethod
    def adjacency(edges: Iterable[tuple[UUID, UUID]]) -> dict[UUID, set[UUID]]:
        """Map each parent to the set of its direct children."""
        children: dict[UUID, set[UUID]] = {}
        for parent_id, child_id in edges:
            children.setdefault(parent_id, set()).add(child_id)
        return children

    @classmethod
    def compute(cls, edges: Iterable[tuple[UUID, UUID]]) -> dict[UUID, frozenset[UUID]]:
        """Return every parent's complete descendant set."""
        children = cls.adjacency(edges)
        memo: dict[UUID, frozenset[UUID]] = {}
        cycles: list[frozenset[UUID]] = []

        for root in children:
            if root not in memo:
                cls._close_components(root, children, memo, cycles)

        if cycles:
            logger.warning(
                "Cycle detected in group graph",
                cycle_count=len(cycles),
                cyclic_group_count=sum(len(component) for component in cycles),
                group_count=len(children),
            )

        return {parent_id: memo[parent_id] for parent_id in children}

    @classmethod
    def descendants_of(
        cls, edges: Iterable[tuple[UUID, UUID]], group_id: UUID
    ) -> frozenset[UUID]:
        """Descendants of a single group, computed without memoizing the rest."""
        return cls.reachable(cls.adjacency(edges), group_id)

    @staticmethod
    def reachable(children: Mapping[UUID, set[UUID]], start: UUID) -> frozenset[UUID]:
        """Every node reachable from ``start`` by one or more edges."""
        seen: set[UUID] = set()
        pending = list(children.get(start, ()))
        while pending:
            node = pending.pop()
            if node in seen:
                continue
            seen.add(node)
            pending.extend(children.get(node, ()))
        return frozenset(seen)

    @staticmethod
    def _close_components(
        root: UUID,
        children: Mapping[UUID, set[UUID]],
        memo: dict[UUID, frozenset[UUID]],
        cycles: list[frozenset[UUID]],
    ) -> None:
        index: dict[UUID, int] = {}
        low: dict[UUID, int] = {}
        open_nodes: list[UUID] = []
        on_stack: set[UUID] = set()
        work: list[tuple[UUID, Iterator[UUID]]] = []

        def enter(node: UUID) -> None:
            index[node] = low[node] = len(index)
            open_nodes.append(node)
            on_stack.add(node)
            work.append((node, iter(children.get(node, ()))))

        enter(root)
        while work:
            node, pending = work[-1]
            for child in pending:
                if child in memo:
                    continue
                if child not in index:
                    enter(child)
                    break
                if child in on_stack:
                    low[node] = min(low[node], index[child])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    low[parent] = min(low[parent], low[node])
                if low[node] != index[node]:
                    continue

                component: set[UUID] = set()
                while True:
                    member = open_nodes.pop()
                    on_stack.discard(member)
                    component.add(member)
                    if member == node:
                        break

                reached: set[UUID] = set()
                for member in component:
                    for child in children.get(member, ()):
                        reached.add(child)
                        if child not in component:
                            reached |= memo[child]

                # only a cycle reaches back into its own component
                if reached & component:
                    cycles.append(frozenset(component))

                descendants = frozenset(reached)
                for member in component:
                    memo[member] = descendants


__all__ = ["ClosureBuilder"]
