"""
Integration tests for SQLGroupGraphStore against SQLite.

Tests cover:
- Group CRUD and batched materialization
- Member and edge writes as differences
- Closure table replacement
- Search, paging, counts and empty groups
- Commit and rollback through the session
"""

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.modules.membership.domain.value_objects.closure import ClosureEntry


class TestSQLGroupGraphStore:
    """Test suite for the SQL store."""

    async def test_create_and_find(self, sql_store):
        """Test a created group can be found by id and name."""
        group = await sql_store.create_group("Research")

        by_id = await sql_store.find_group(group.id)
        by_name = await sql_store.find_group_by_name("Research")

        assert by_id == group
        assert by_name.id == group.id
        assert by_id.name == "Research"
        assert not by_id.permanent
        assert await sql_store.find_group(uuid4()) is None
        assert await sql_store.find_group_by_name("Nope") is None

    async def test_members_written_as_differences(self, sql_store, alice, bob):
        """Test adding and removing principals round-trips."""
        group = await sql_store.create_group("Lab1")
        group.add_principal(alice.id)
        group.add_principal(bob.id)
        await sql_store.save_group(group)

        group.remove_principal(bob.id)
        await sql_store.save_group(group)

        stored = await sql_store.find_group(group.id)
        assert stored.direct_members == {alice.id}
        assert stored.version == group.version

    async def test_edges_and_batched_load(self, sql_store):
        """Test edges load on both sides when fetching several groups."""
        research = await sql_store.create_group("Research")
        lab1 = await sql_store.create_group("Lab1")
        lab2 = await sql_store.create_group("Lab2")
        research.add_child(lab1)
        research.add_child(lab2)
        await sql_store.save_group(research)

        groups = {g.name: g for g in await sql_store.find_groups([research.id, lab1.id, lab2.id])}

        assert groups["Research"].direct_children == {lab1.id, lab2.id}
        assert groups["Lab1"].direct_parents == {research.id}
        assert set(await sql_store.list_direct_edges()) == {
            (research.id, lab1.id),
            (research.id, lab2.id),
        }
        assert await sql_store.find_groups([]) == []

    async def test_remove_edge(self, sql_store):
        """Test removing a child drops only that edge."""
        research = await sql_store.create_group("Research")
        lab1 = await sql_store.create_group("Lab1")
        lab2 = await sql_store.create_group("Lab2")
        research.add_child(lab1)
        research.add_child(lab2)
        await sql_store.save_group(research)

        research.remove_child(lab1)
        await sql_store.save_group(research)

        assert await sql_store.list_direct_edges() == [(research.id, lab2.id)]

    async def test_principal_lookups(self, sql_store, alice, bob):
        """Test direct membership lookups in both directions."""
        lab1 = await sql_store.create_group("Lab1")
        lab2 = await sql_store.create_group("Lab2")
        lab1.add_principal(alice.id)
        lab2.add_principal(alice.id)
        lab2.add_principal(bob.id)
        await sql_store.save_group(lab1)
        await sql_store.save_group(lab2)

        containing = await sql_store.find_groups_containing_principal(alice.id)

        assert {g.name for g in containing} == {"Lab1", "Lab2"}
        assert await sql_store.find_principals_in_groups([lab1.id, lab2.id]) == {alice.id, bob.id}
        assert await sql_store.find_principals_in_groups([]) == set()

    async def test_replace_closure_entries(self, sql_store):
        """Test the closure table is fully replaced."""
        a, b, c = uuid4(), uuid4(), uuid4()
        await sql_store.replace_closure_entries([ClosureEntry(a, b), ClosureEntry(a, c)])

        await sql_store.replace_closure_entries([ClosureEntry(b, c)])

        assert await sql_store.list_closure_entries() == [ClosureEntry(b, c)]

        await sql_store.replace_closure_entries([])
        assert await sql_store.list_closure_entries() == []

    async def test_delete_group_removes_rows(self, sql_store, alice):
        """Test delete drops the record, its members, edges and closure pairs."""
        top = await sql_store.create_group("Top")
        middle = await sql_store.create_group("Middle")
        bottom = await sql_store.create_group("Bottom")
        top.add_child(middle)
        middle.add_child(bottom)
        middle.add_principal(alice.id)
        await sql_store.save_group(top)
        await sql_store.save_group(middle)
        await sql_store.replace_closure_entries(
            [ClosureEntry(top.id, middle.id), ClosureEntry(top.id, bottom.id), ClosureEntry(middle.id, bottom.id)]
        )

        await sql_store.delete_group(middle)

        assert await sql_store.find_group(middle.id) is None
        assert await sql_store.list_direct_edges() == []
        assert await sql_store.list_closure_entries() == [ClosureEntry(top.id, bottom.id)]
        assert await sql_store.find_groups_containing_principal(alice.id) == set()

    async def test_search_and_counts(self, sql_store):
        """Test case-insensitive search, paging and counts."""
        for name in ("Research", "Lab1", "Lab2", "Library", "50%_off"):
            await sql_store.create_group(name)
        await sql_store.create_group()

        found = await sql_store.search_by_name("LAB")
        paged = await sql_store.list_groups(limit=2, offset=1)

        assert [g.name for g in found] == ["Lab1", "Lab2"]
        assert await sql_store.count_by_name("lab") == 2
        assert [g.name for g in await sql_store.search_by_name("%_")] == ["50%_off"]
        assert await sql_store.count_groups() == 6
        assert [g.name for g in paged] == ["50%_off", "Lab1"]

    async def test_find_empty_groups(self, sql_store, alice):
        """Test groups with members or children are not empty."""
        parent = await sql_store.create_group("Parent")
        child = await sql_store.create_group("Child")
        member_only = await sql_store.create_group("Members")
        parent.add_child(child)
        member_only.add_principal(alice.id)
        await sql_store.save_group(parent)
        await sql_store.save_group(member_only)

        assert [g.name for g in await sql_store.find_empty_groups()] == ["Child"]

    async def test_duplicate_name_violates_constraint(self, sql_store):
        """Test the unique name constraint surfaces as a storage error."""
        await sql_store.create_group("Lab1")

        with pytest.raises(IntegrityError):
            await sql_store.create_group("Lab1")

    async def test_rollback_discards_uncommitted(self, sql_store):
        """Test writes vanish on rollback and survive after commit."""
        kept = await sql_store.create_group("Kept")
        await sql_store.commit()
        dropped = await sql_store.create_group("Dropped")

        await sql_store.rollback()

        assert await sql_store.find_group(kept.id) is not None
        assert await sql_store.find_group(dropped.id) is None
