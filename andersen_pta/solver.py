"""
andersen_pta.solver
===================

Worklist fixpoint solver for inclusion-based points-to constraints.

Each step pops a node ``v`` and

1. for every location ``a`` in ``pts(v)``, materialises the edges implied
   by dereferencing ``v``: ``a → t`` for each ``t = *v`` and ``s → a`` for
   each ``*v = s``;
2. pushes ``pts(v)`` into every successor whose set would grow.

Points-to sets only grow and are bounded by the number of locations in the
function, so the loop terminates once the worklist drains.

Optimizer hints
---------------
Collapse groups are merged before the first pop.  A redirection group is
*armed* once every dereferenced pointer in it has a non-empty points-to
set; from then on each target of those pointers is merged with the
group's representative.  Both transformations only equate nodes that the
unoptimised fixpoint would give equal sets, so results do not depend on
whether hints are supplied.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Callable,
    DefaultDict,
    FrozenSet,
    List,
    Optional,
    Set,
    Tuple,
)

from .constraint_graph import ConstraintGraph, Worklist
from .errors import IterationLimitExceeded
from .ir import Variable
from .optimizer import OptimizationHints

logger = logging.getLogger(__name__)

#: Called as ``observer(node_index, old_points_to, new_points_to)`` whenever
#: a class's points-to set grows.
Observer = Callable[[int, FrozenSet[int], FrozenSet[int]], None]


@dataclass
class SolverStats:
    """Work performed by one :meth:`ConstraintSolver.solve` call.

    Attributes
    ----------
    iterations : int
        Worklist pops.
    edges_added : int
        Edges materialised from loads and stores.
    updates : int
        Points-to set growths caused by propagation along edges.
    merged_nodes : int
        Classes merged while solving (armed redirections).
    collapsed_nodes : int
        Classes merged before solving (copy cycles).
    converged : bool
        ``True`` once the worklist drained.
    elapsed_seconds : float
        Wall-clock time.
    """

    iterations: int = 0
    edges_added: int = 0
    updates: int = 0
    merged_nodes: int = 0
    collapsed_nodes: int = 0
    converged: bool = False
    elapsed_seconds: float = 0.0


class _RedirectionGroup:
    __slots__ = ("pointers", "representative", "armed")

    def __init__(self, pointers: List[int], representative: int) -> None:
        self.pointers = pointers
        self.representative = representative
        self.armed = False


class ConstraintSolver:
    """Drives *graph* to a fixpoint.

    Parameters
    ----------
    graph : ConstraintGraph
        Primary graph from :func:`~andersen_pta.constraint_graph.build_constraint_graph`.
    worklist : Worklist
        Initially dirty nodes.
    hints : OptimizationHints, optional
        Output of :func:`~andersen_pta.optimizer.optimize_constraint_graph`.
    max_iterations : int, optional
        Host-imposed cap on worklist pops; exceeding it raises
        :class:`~andersen_pta.errors.IterationLimitExceeded`.
    observer : callable, optional
        Notified of every points-to growth.
    """

    def __init__(
        self,
        graph: ConstraintGraph,
        worklist: Worklist,
        hints: Optional[OptimizationHints] = None,
        max_iterations: Optional[int] = None,
        observer: Optional[Observer] = None,
    ) -> None:
        self.graph = graph
        self.worklist = worklist
        self.max_iterations = max_iterations
        self.observer = observer
        self.collapsed = 0
        self._groups_of: DefaultDict[int, List[_RedirectionGroup]] = defaultdict(list)
        self._merges = 0

        if hints:
            self._apply_collapses(hints)
            self._prepare_redirections(hints)

    # ----- public -----------------------------------------------------------

    def solve(self) -> SolverStats:
        """Run until the worklist is empty."""
        stats = SolverStats(collapsed_nodes=self.collapsed)
        t0 = time.monotonic()
        graph, worklist = self.graph, self.worklist
        self._merges = 0

        while worklist:
            if (self.max_iterations is not None
                    and stats.iterations >= self.max_iterations):
                stats.elapsed_seconds = time.monotonic() - t0
                logger.warning(
                    "%s: giving up after %d iterations, %d node(s) pending",
                    graph.function.name, stats.iterations, len(worklist),
                )
                raise IterationLimitExceeded(self.max_iterations, len(worklist))

            v = graph.find(worklist.pop())
            stats.iterations += 1
            self._apply_redirections(v)
            self._materialise_dereferences(graph.find(v), stats)
            self._propagate(graph.find(v), stats)

        stats.merged_nodes = self._merges
        stats.converged = True
        stats.elapsed_seconds = time.monotonic() - t0
        logger.debug(
            "%s: fixpoint after %d iteration(s), %d dynamic edge(s), "
            "%d update(s), %d merge(s)",
            graph.function.name, stats.iterations, stats.edges_added,
            stats.updates, stats.merged_nodes,
        )
        return stats

    # ----- hint application -------------------------------------------------

    def _apply_collapses(self, hints: OptimizationHints) -> None:
        graph = self.graph
        for group in hints.collapse_groups:
            indices = [graph.get_or_create(var) for var in group]
            for idx in indices[1:]:
                _, changed = self._merge(indices[0], idx)
                if changed:
                    self.collapsed += 1

        # Queued members now stand for their class.
        pending = []
        while self.worklist:
            pending.append(self.worklist.pop())
        for idx in pending:
            self.worklist.push(graph.find(idx))

    def _prepare_redirections(self, hints: OptimizationHints) -> None:
        graph = self.graph
        for reds in hints.redirection_groups().values():
            group = _RedirectionGroup(
                pointers=[graph.get_or_create(r.pointer) for r in reds],
                representative=graph.get_or_create(reds[0].representative),
            )
            for idx in group.pointers:
                self._groups_of[idx].append(group)

    def _apply_redirections(self, v: int) -> None:
        if not self._groups_of:
            return
        graph = self.graph
        seen: Set[int] = set()
        for member in list(graph.members(v)):
            for group in self._groups_of.get(member, ()):
                if id(group) in seen:
                    continue
                seen.add(id(group))
                if not group.armed:
                    if not all(graph.node(graph.find(p)).points_to
                               for p in group.pointers):
                        continue
                    group.armed = True
                    logger.debug(
                        "redirection to %s armed",
                        graph.display_name(group.representative),
                    )
                for p in group.pointers:
                    for a in graph.points_to(p):
                        self._merge(group.representative, a)

    def _merge(self, keep: int, absorb: int) -> Tuple[int, bool]:
        graph = self.graph
        before: List[Tuple[int, FrozenSet[int]]] = []
        if self.observer is not None:
            before = [(graph.find(keep), graph.points_to(keep)),
                      (graph.find(absorb), graph.points_to(absorb))]
        rep, changed = graph.merge(keep, absorb)
        if not changed:
            return rep, False
        self._merges += 1
        if self.observer is not None:
            after = graph.points_to(rep)
            for idx, old in before:
                if old != after:
                    self.observer(idx, old, after)
        self.worklist.push(rep)
        return rep, True

    # ----- constraint steps -------------------------------------------------

    def _materialise_dereferences(self, v: int, stats: SolverStats) -> None:
        graph, worklist = self.graph, self.worklist
        function = graph.function
        targets = list(graph.node(v).points_to)
        if not targets:
            return
        for member in list(graph.members(v)):
            subject = graph.node(member).subject
            if not isinstance(subject, Variable):
                continue
            loads = function.loads_from(subject)
            stores = function.stores_to(subject)
            if not loads and not stores:
                continue
            for a in targets:
                for load in loads:
                    if graph.add_edge(a, graph.get_or_create(load.target)):
                        stats.edges_added += 1
                        worklist.push(graph.find(a))
                for store in stores:
                    src = graph.get_or_create(store.source)
                    if graph.add_edge(src, a):
                        stats.edges_added += 1
                        worklist.push(graph.find(src))

    def _propagate(self, v: int, stats: SolverStats) -> None:
        graph, worklist = self.graph, self.worklist
        src = graph.node(v).points_to
        if not src:
            return
        for q in graph.successors(v):
            if q == v:
                continue
            target = graph.node(q)
            if src <= target.points_to:
                continue
            if self.observer is not None:
                old = frozenset(target.points_to)
                target.points_to |= src
                self.observer(q, old, frozenset(target.points_to))
            else:
                target.points_to |= src
            stats.updates += 1
            worklist.push(q)


def solve_constraints(
    graph: ConstraintGraph,
    worklist: Worklist,
    hints: Optional[OptimizationHints] = None,
    **kwargs,
) -> SolverStats:
    """Convenience wrapper: build a :class:`ConstraintSolver` and run it."""
    return ConstraintSolver(graph, worklist, hints, **kwargs).solve()
