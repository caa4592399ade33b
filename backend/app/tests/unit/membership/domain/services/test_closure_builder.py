"""
Unit tests for ClosureBuilder.

Tests cover:
- Transitive descendant computation (chains, diamonds, disconnected parts)
- Termination and defined output on cyclic graphs
- Deep graphs without recursion limits
- Persisting the rebuilt closure and idempotent rebuilds
"""

import time
from unittest.mock import patch
from uuid import uuid4

import pytest

from app.modules.membership.domain.services import closure_builder as closure_builder_module
from app.modules.membership.domain.services.closure_builder import ClosureBuilder
from app.modules.membership.domain.value_objects.closure import ClosureEntry


class TestClosureCompute:
    """Test suite for the in-memory closure algorithm."""

    def test_no_edges(self):
        """Test an empty graph has an empty closure."""
        assert ClosureBuilder.compute([]) == {}

    def test_chain(self):
        """Test A -> B -> C gives A every descendant."""
        a, b, c = uuid4(), uuid4(), uuid4()

        closure = ClosureBuilder.compute([(a, b), (b, c)])

        assert closure == {a: {b, c}, b: {c}}

    def test_diamond(self):
        """Test shared descendants are reached through both paths once."""
        top, left, right, bottom = uuid4(), uuid4(), uuid4(), uuid4()

        closure = ClosureBuilder.compute(
            [(top, left), (top, right), (left, bottom), (right, bottom)]
        )

        assert closure[top] == {left, right, bottom}
        assert closure[left] == {bottom}
        assert closure[right] == {bottom}

    def test_disconnected_components(self):
        """Test unrelated subgraphs do not leak into each other."""
        a, b, x, y = uuid4(), uuid4(), uuid4(), uuid4()

        closure = ClosureBuilder.compute([(a, b), (x, y)])

        assert closure == {a: {b}, x: {y}}

    def test_two_node_cycle_terminates(self):
        """Test A -> B -> A terminates with both groups containing both."""
        a, b = uuid4(), uuid4()

        closure = ClosureBuilder.compute([(a, b), (b, a)])

        assert closure == {a: {a, b}, b: {a, b}}

    def test_cycle_with_tail(self):
        """Test every group on a cycle reaches everything below it."""
        a, b, c, d = uuid4(), uuid4(), uuid4(), uuid4()

        closure = ClosureBuilder.compute([(a, b), (b, c), (c, a), (c, d)])

        for node in (a, b, c):
            assert closure[node] == {a, b, c, d}
        assert d not in closure

    def test_entry_into_cycle(self):
        """Test a parent outside a cycle reaches the whole cycle."""
        root, a, b = uuid4(), uuid4(), uuid4()

        closure = ClosureBuilder.compute([(root, a), (a, b), (b, a)])

        assert closure[root] == {a, b}
        assert closure[a] == {a, b}
        assert closure[b] == {a, b}

    def test_complete_digraph_expands_each_group_once(self):
        """Test a graph where every group contains every other finishes promptly."""
        nodes = [uuid4() for _ in range(12)]
        edges = [(parent, child) for parent in nodes for child in nodes if parent != child]

        started = time.perf_counter()
        closure = ClosureBuilder.compute(edges)

        assert time.perf_counter() - started < 2.0
        assert closure == {node: set(nodes) for node in nodes}

    def test_cycles_sharing_a_group(self):
        """Test two cycles joined at one group form a single component."""
        a, b, c, d, leaf = uuid4(), uuid4(), uuid4(), uuid4(), uuid4()

        closure = ClosureBuilder.compute(
            [(a, b), (b, a), (b, c), (c, d), (d, b), (d, leaf)]
        )

        for node in (a, b, c, d):
            assert closure[node] == {a, b, c, d, leaf}
        assert leaf not in closure

    def test_cycle_logs_warning(self):
        """Test a cycle is reported."""
        a, b = uuid4(), uuid4()

        with patch.object(closure_builder_module, "logger") as logger:
            ClosureBuilder.compute([(a, b), (b, a)])

        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "Cycle detected in group graph"

    def test_acyclic_graph_logs_no_warning(self):
        """Test no warning is emitted without a cycle."""
        a, b = uuid4(), uuid4()

        with patch.object(closure_builder_module, "logger") as logger:
            ClosureBuilder.compute([(a, b)])

        logger.warning.assert_not_called()

    def test_deep_chain(self):
        """Test a long chain is handled without recursion."""
        nodes = [uuid4() for _ in range(2000)]
        edges = list(zip(nodes, nodes[1:]))

        closure = ClosureBuilder.compute(edges)

        assert len(closure[nodes[0]]) == len(nodes) - 1
        assert closure[nodes[-2]] == {nodes[-1]}

    def test_descendants_of_single_group(self):
        """Test the single-group walk matches the full closure."""
        a, b, c = uuid4(), uuid4(), uuid4()
        edges = [(a, b), (b, c), (c, b)]

        assert ClosureBuilder.descendants_of(edges, a) == {b, c}
        assert ClosureBuilder.descendants_of(edges, c) == {b, c}
        assert ClosureBuilder.descendants_of(edges, uuid4()) == frozenset()


class TestClosureRebuild:
    """Test suite for rebuilding the persisted closure."""

    @pytest.fixture
    async def graph(self, memory_store):
        research = await memory_store.create_group("Research")
        lab = await memory_store.create_group("Lab1")
        bench = await memory_store.create_group("Bench")
        research.add_child(lab)
        lab.add_child(bench)
        for group in (research, lab, bench):
            await memory_store.save_group(group)
        return research, lab, bench

    async def test_rebuild_persists_entries(self, memory_store, graph):
        """Test the store holds exactly the computed pairs."""
        research, lab, bench = graph

        snapshot = await ClosureBuilder(memory_store).rebuild(version=1)

        assert snapshot.version == 1
        assert set(await memory_store.list_closure_entries()) == {
            ClosureEntry(research.id, lab.id),
            ClosureEntry(research.id, bench.id),
            ClosureEntry(lab.id, bench.id),
        }
        assert snapshot.entries() == set(await memory_store.list_closure_entries())

    async def test_rebuild_is_idempotent(self, memory_store, graph):
        """Test two rebuilds in a row leave an identical table."""
        builder = ClosureBuilder(memory_store)

        await builder.rebuild(version=1)
        first = await memory_store.list_closure_entries()
        await builder.rebuild(version=2)
        second = await memory_store.list_closure_entries()

        assert first == second

    async def test_rebuild_replaces_stale_entries(self, memory_store, graph):
        """Test pairs from removed edges disappear."""
        research, lab, _ = graph
        builder = ClosureBuilder(memory_store)
        await builder.rebuild(version=1)

        research.remove_child(lab)
        await memory_store.save_group(research)
        snapshot = await builder.rebuild(version=2)

        assert snapshot.descendants_of(research.id) == frozenset()
        assert all(
            entry.ancestor_id != research.id
            for entry in await memory_store.list_closure_entries()
        )

    async def test_rebuild_on_cycle_terminates(self, memory_store):
        """Test a stored cycle still rebuilds."""
        a = await memory_store.create_group("A")
        b = await memory_store.create_group("B")
        a.add_child(b)
        b.add_child(a)
        await memory_store.save_group(a)
        await memory_store.save_group(b)

        snapshot = await ClosureBuilder(memory_store).rebuild(version=1)

        assert snapshot.descendants_of(a.id) == {a.id, b.id}
        assert snapshot.ancestors_of(a.id) == {a.id, b.id}

    async def test_rebuild_without_edges_clears_table(self, memory_store):
        """Test an edgeless graph leaves an empty table."""
        await memory_store.replace_closure_entries([ClosureEntry(uuid4(), uuid4())])

        snapshot = await ClosureBuilder(memory_store).rebuild(version=1)

        assert len(snapshot) == 0
        assert await memory_store.list_closure_entries() == []
