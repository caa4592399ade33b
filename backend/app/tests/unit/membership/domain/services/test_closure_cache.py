"""
Unit tests for ClosureCache.

Tests cover:
- Snapshot swapping and version ordering
- Batched ancestor lookups
- Warming from the persisted table
"""

from uuid import uuid4

from app.modules.membership.domain.services.closure_cache import ClosureCache
from app.modules.membership.domain.value_objects.closure import ClosureEntry, ClosureSnapshot


class TestClosureCache:
    """Test suite for ClosureCache."""

    def test_starts_empty(self):
        """Test a new cache holds an empty version-0 snapshot."""
        cache = ClosureCache()

        assert cache.version == 0
        assert cache.next_version() == 1
        assert cache.descendants_of(uuid4()) == frozenset()

    def test_replace_swaps_whole_snapshot(self):
        """Test readers see the new image after a swap."""
        a, b = uuid4(), uuid4()
        cache = ClosureCache()
        before = cache.snapshot

        assert cache.replace(ClosureSnapshot.from_descendants({a: {b}}, version=1))

        assert cache.version == 1
        assert cache.descendants_of(a) == {b}
        assert before.descendants_of(a) == frozenset()

    def test_older_snapshot_ignored(self):
        """Test a snapshot older than the current one is not installed."""
        a, b = uuid4(), uuid4()
        cache = ClosureCache(ClosureSnapshot.from_descendants({a: {b}}, version=5))

        assert cache.replace(ClosureSnapshot.empty(version=4)) is False
        assert cache.descendants_of(a) == {b}

    def test_ancestors_of_many(self):
        """Test ancestors of several groups are unioned."""
        root, left, right, leaf = uuid4(), uuid4(), uuid4(), uuid4()
        cache = ClosureCache(
            ClosureSnapshot.from_descendants(
                {root: {left, right, leaf}, left: {leaf}}, version=1
            )
        )

        assert cache.ancestors_of([leaf, right]) == {root, left}
        assert cache.ancestors_of([]) == set()
        assert cache.is_ancestor(root, leaf)
        assert not cache.is_ancestor(leaf, root)

    async def test_load_from_store(self, memory_store):
        """Test the cache can be warmed from persisted entries."""
        a, b = uuid4(), uuid4()
        await memory_store.replace_closure_entries([ClosureEntry(a, b)])
        cache = ClosureCache()

        snapshot = await cache.load(memory_store)

        assert snapshot.version == 1
        assert cache.ancestors_of([b]) == {a}
