"""
Closure Value Objects

``ClosureEntry`` is one materialized ancestor/descendant pair.
``ClosureSnapshot`` is an immutable, versioned image of the whole transitive
closure indexed in both directions.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from uuid import UUID

_EMPTY: frozenset[UUID] = frozenset()


@dataclass(frozen=True, order=True)
class ClosureEntry:
    """The descendant is reachable from the ancestor via one or more edges."""

    ancestor_id: UUID
    descendant_id: UUID


@dataclass(frozen=True)
class ClosureSnapshot:
    """Immutable closure image; replaced wholesale, never patched."""

    version: int
    descendants: Mapping[UUID, frozenset[UUID]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    ancestors: Mapping[UUID, frozenset[UUID]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def empty(cls, version: int = 0) -> "ClosureSnapshot":
        return cls(version=version)

    @classmethod
    def from_descendants(
        cls, descendants: Mapping[UUID, Iterable[UUID]], version: int
    ) -> "ClosureSnapshot":
        """Build a snapshot from an ancestor -> descendants mapping."""
        by_ancestor: dict[UUID, frozenset[UUID]] = {}
        by_descendant: dict[UUID, set[UUID]] = {}

        for ancestor_id, descendant_ids in descendants.items():
            members = frozenset(descendant_ids)
            if not members:
                continue
            by_ancestor[ancestor_id] = members
            for descendant_id in members:
                by_descendant.setdefault(descendant_id, set()).add(ancestor_id)

        return cls(
            version=version,
            descendants=MappingProxyType(by_ancestor),
            ancestors=MappingProxyType(
                {key: frozenset(value) for key, value in by_descendant.items()}
            ),
        )

    @classmethod
    def from_entries(cls, entries: Iterable[ClosureEntry], version: int) -> "ClosureSnapshot":
        descendants: dict[UUID, set[UUID]] = {}
        for entry in entries:
            descendants.setdefault(entry.ancestor_id, set()).add(entry.descendant_id)
        return cls.from_descendants(descendants, version)

    def descendants_of(self, group_id: UUID) -> frozenset[UUID]:
        return self.descendants.get(group_id, _EMPTY)

    def ancestors_of(self, group_id: UUID) -> frozenset[UUID]:
        return self.ancestors.get(group_id, _EMPTY)

    def entries(self) -> frozenset[ClosureEntry]:
        return frozenset(
            ClosureEntry(ancestor_id, descendant_id)
            for ancestor_id, members in self.descendants.items()
            for descendant_id in members
        )

    def references(self, group_id: UUID) -> bool:
        """True if any pair names the group on either side."""
        return group_id in self.descendants or group_id in self.ancestors

    def __len__(self) -> int:
        return sum(len(members) for members in self.descendants.values())
