# tests/test_scc.py
"""
Tests for andersen_pta.scc: Tarjan decomposition on plain adjacency maps
and on constraint graphs.
"""

from andersen_pta.constraint_graph import build_constraint_graph
from andersen_pta.scc import graph_sccs, tarjan_scc

from tests.conftest import make_chain, make_copy_cycle


def _sccs(adjacency):
    found = tarjan_scc(adjacency, lambda n: adjacency.get(n, ()))
    return [sorted(scc) for scc in found]


class TestTarjanSCC:

    def test_empty_graph(self):
        assert tarjan_scc([], lambda n: ()) == []

    def test_isolated_nodes_are_singletons(self):
        assert sorted(_sccs({0: [], 1: [], 2: []})) == [[0], [1], [2]]

    def test_self_loop_is_a_singleton(self):
        assert _sccs({0: [0]}) == [[0]]

    def test_simple_cycle(self):
        assert _sccs({0: [1], 1: [2], 2: [0]}) == [[0, 1, 2]]

    def test_two_cycles_joined_by_a_bridge(self):
        adjacency = {0: [1], 1: [0, 2], 2: [3], 3: [2]}
        assert sorted(_sccs(adjacency)) == [[0, 1], [2, 3]]

    def test_sinks_come_first(self):
        adjacency = {0: [1], 1: [0, 2], 2: []}
        assert _sccs(adjacency) == [[2], [0, 1]]

    def test_every_node_in_exactly_one_component(self):
        adjacency = {
            0: [1, 4], 1: [2], 2: [0, 3], 3: [5], 4: [5], 5: [3, 6], 6: [],
        }
        flat = [n for scc in _sccs(adjacency) for n in scc]
        assert sorted(flat) == list(range(7))

    def test_deep_chain_does_not_recurse(self):
        n = 20000
        adjacency = {i: [i + 1] for i in range(n - 1)}
        adjacency[n - 1] = [0]
        (scc,) = _sccs(adjacency)
        assert len(scc) == n

    def test_deep_acyclic_chain(self):
        n = 20000
        adjacency = {i: [i + 1] for i in range(n - 1)}
        adjacency[n - 1] = []
        found = tarjan_scc(adjacency, lambda v: adjacency[v])
        assert len(found) == n
        assert found[0] == [n - 1]


class TestGraphSCCs:

    def test_copy_cycle_found_in_constraint_graph(self):
        fn = make_copy_cycle()
        graph, _ = build_constraint_graph(fn)
        cycles = [scc for scc in graph_sccs(graph) if len(scc) > 1]
        assert len(cycles) == 1
        assert {graph.display_name(i) for i in cycles[0]} == {"a", "b", "c"}

    def test_long_copy_chain(self):
        graph, _ = build_constraint_graph(make_chain(5000))
        assert all(len(scc) == 1 for scc in graph_sccs(graph))
