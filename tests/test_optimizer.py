# tests/test_optimizer.py
"""
Tests for andersen_pta.optimizer: the auxiliary graph and the
classification of its cycles into collapse groups and redirections.
"""

from andersen_pta.ir import Function
from andersen_pta.optimizer import (
    OptimizationHints,
    build_auxiliary_graph,
    optimize_constraint_graph,
)

from tests.conftest import (
    make_copy_cycle,
    make_deref_cycle,
    make_scenario_a,
    make_scenario_b,
    make_unrealised_deref_cycle,
)


def _edges(graph):
    return {
        (graph.display_name(n.index), graph.display_name(s))
        for n in graph
        for s in graph.successors(n.index)
    }


class TestAuxiliaryGraph:

    def test_loads_and_stores_use_dereferenced_nodes(self):
        fn = make_scenario_a()
        graph = build_auxiliary_graph(fn)
        assert _edges(graph) == {
            ("y", "x"),
            ("z", "x"),
            ("z", "*p"),
            ("q", "p"),
            ("*p", "x"),
        }

    def test_base_facts_are_not_part_of_it(self):
        graph = build_auxiliary_graph(make_scenario_b())
        assert all(not node.points_to for node in graph)


class TestOptimizationHints:

    def test_acyclic_programs_yield_no_hints(self):
        for fn in (make_scenario_a(), make_scenario_b(), Function("empty")):
            hints = optimize_constraint_graph(fn)
            assert not hints
            assert hints.collapse_groups == []
            assert hints.redirections == []

    def test_copy_cycle_becomes_a_collapse_group(self):
        fn = make_copy_cycle()
        hints = optimize_constraint_graph(fn)
        assert hints.redirections == []
        (group,) = hints.collapse_groups
        assert {v.name for v in group} == {"a", "b", "c"}
        assert all(fn.variable(v.name) is v for v in group)

    def test_deref_cycle_becomes_a_redirection(self):
        fn = make_deref_cycle()
        hints = optimize_constraint_graph(fn)
        assert hints.collapse_groups == []
        (red,) = hints.redirections
        assert red.pointer is fn.variable("p")
        assert red.representative is fn.variable("t")

    def test_redirections_of_one_cycle_share_a_group(self):
        fn = make_unrealised_deref_cycle()
        hints = optimize_constraint_graph(fn)
        groups = hints.redirection_groups()
        assert len(groups) == 1
        (reds,) = groups.values()
        assert {r.pointer.name for r in reds} == {"p", "q"}
        assert {r.representative.name for r in reds} == {"u"}

    def test_separate_cycles_get_separate_groups(self):
        fn = Function("two")
        p, q, s, t = fn.declare("p", "q", "s", "t")
        fn.load(s, p)
        fn.store(p, s)
        fn.load(t, q)
        fn.store(q, t)
        hints = optimize_constraint_graph(fn)
        assert len(hints.redirection_groups()) == 2

    def test_self_copy_is_not_a_cycle(self):
        fn = Function("self")
        (a,) = fn.declare("a")
        fn.copy(a, a)
        assert not optimize_constraint_graph(fn)

    def test_self_load_and_store_form_a_two_node_cycle(self):
        # p = *p and *p = p give p -> *p -> p: two members, one of them *p
        fn = Function("selfref")
        (p,) = fn.declare("p")
        fn.load(p, p)
        fn.store(p, p)
        hints = optimize_constraint_graph(fn)
        assert hints.collapse_groups == []
        assert len(hints.redirection_groups()) == 1

    def test_hints_truthiness(self):
        assert not OptimizationHints()
        assert optimize_constraint_graph(make_copy_cycle())
