"""
Unit tests for InMemoryGroupGraphStore.

Tests cover:
- Commit and rollback of the working state
- Fresh objects on every lookup
- Name uniqueness
- Parent-owned edge persistence
"""

import pytest

from app.modules.membership.domain.errors import DuplicateGroupNameError


class TestInMemoryGroupGraphStore:
    """Test suite for the in-memory store."""

    async def test_rollback_restores_last_commit(self, memory_store):
        """Test uncommitted writes are discarded."""
        kept = await memory_store.create_group("Kept")
        await memory_store.commit()
        dropped = await memory_store.create_group("Dropped")

        await memory_store.rollback()

        assert await memory_store.find_group(kept.id) is not None
        assert await memory_store.find_group(dropped.id) is None

    async def test_lookups_return_fresh_objects(self, memory_store, alice):
        """Test changing a loaded group does not change the store."""
        group = await memory_store.create_group("Lab1")

        loaded = await memory_store.find_group(group.id)
        loaded.add_principal(alice.id)

        assert (await memory_store.find_group(group.id)).direct_members == set()

    async def test_duplicate_name_rejected(self, memory_store):
        """Test two groups cannot share a name."""
        await memory_store.create_group("Lab1")

        with pytest.raises(DuplicateGroupNameError):
            await memory_store.create_group("Lab1")

    async def test_edges_owned_by_parent(self, memory_store):
        """Test saving the parent writes the edge and loads both sides."""
        parent = await memory_store.create_group("Research")
        child = await memory_store.create_group("Lab1")
        parent.add_child(child)

        await memory_store.save_group(parent)

        assert await memory_store.list_direct_edges() == [(parent.id, child.id)]
        assert (await memory_store.find_group(child.id)).direct_parents == {parent.id}

    async def test_delete_removes_edges_on_both_sides(self, memory_store):
        """Test deleting a group drops every edge naming it."""
        top = await memory_store.create_group("Top")
        middle = await memory_store.create_group("Middle")
        bottom = await memory_store.create_group("Bottom")
        top.add_child(middle)
        middle.add_child(bottom)
        await memory_store.save_group(top)
        await memory_store.save_group(middle)

        await memory_store.delete_group(middle)

        assert await memory_store.list_direct_edges() == []
        assert await memory_store.count_groups() == 2

    async def test_principal_lookups(self, memory_store, alice, bob):
        """Test direct membership lookups in both directions."""
        lab1 = await memory_store.create_group("Lab1")
        lab2 = await memory_store.create_group("Lab2")
        lab1.add_principal(alice.id)
        lab2.add_principal(alice.id)
        lab2.add_principal(bob.id)
        await memory_store.save_group(lab1)
        await memory_store.save_group(lab2)

        assert {g.name for g in await memory_store.find_groups_containing_principal(alice.id)} == {
            "Lab1",
            "Lab2",
        }
        assert await memory_store.find_principals_in_groups([lab1.id, lab2.id]) == {
            alice.id,
            bob.id,
        }
        assert await memory_store.find_principals_in_groups([]) == set()
