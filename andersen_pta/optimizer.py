"""
andersen_pta.optimizer
======================

Offline cycle detection over the constraints of a function.

The optimizer builds an *auxiliary* constraint graph in which loads and
stores are explicit:

* ``t = s``    →  ``s → t``
* ``t = *p``   →  ``*p → t``
* ``*p = s``   →  ``s → *p``

where ``*p`` is the DEREFERENCED node of ``p``.  Every SCC of this graph is
a set of nodes whose points-to sets are forced to be equal:

* an SCC without ``*`` nodes is a pure copy cycle; its members are
  collapsed into one node before solving;
* an SCC with ``*`` nodes ties every target of each dereferenced pointer
  to the SCC's ordinary members.  A DIRECT member is chosen as
  representative and one :class:`Redirection` is recorded per ``*`` node.

Hints name IR variables rather than auxiliary node indices so the solver
can apply them to its own graph.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import DefaultDict, Dict, List, Tuple

from .constraint_graph import ConstraintGraph, NodeRole
from .ir import Copy, Function, Load, Store, Variable
from .scc import graph_sccs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Redirection:
    """``*pointer`` shares its points-to set with ``representative``.

    Redirections recorded for the same SCC carry the same ``group``.
    """

    pointer: Variable
    representative: Variable
    group: int


@dataclass
class OptimizationHints:
    """What the optimizer found; consumed by the solver."""

    collapse_groups: List[Tuple[Variable, ...]] = field(default_factory=list)
    redirections: List[Redirection] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.collapse_groups or self.redirections)

    def redirection_groups(self) -> Dict[int, List[Redirection]]:
        groups: DefaultDict[int, List[Redirection]] = defaultdict(list)
        for red in self.redirections:
            groups[red.group].append(red)
        return dict(groups)


def build_auxiliary_graph(function: Function) -> ConstraintGraph:
    """Copy, load and store constraints with explicit ``*`` nodes."""
    graph = ConstraintGraph(function)
    for stmt in function.statements:
        if isinstance(stmt, Copy):
            graph.add_edge(
                graph.get_or_create(stmt.operand),
                graph.get_or_create(stmt.target),
            )
        elif isinstance(stmt, Load):
            graph.add_edge(
                graph.get_or_create(stmt.source, NodeRole.DEREFERENCED),
                graph.get_or_create(stmt.target),
            )
        elif isinstance(stmt, Store):
            graph.add_edge(
                graph.get_or_create(stmt.source),
                graph.get_or_create(stmt.destination, NodeRole.DEREFERENCED),
            )
    return graph


def optimize_constraint_graph(function: Function) -> OptimizationHints:
    """Find collapsible cycles and dereference redirections for *function*."""
    graph = build_auxiliary_graph(function)
    hints = OptimizationHints()
    groups = 0

    for scc in graph_sccs(graph):
        if len(scc) < 2:
            continue
        members = sorted(scc)
        derefs = [i for i in members if graph.node(i).is_dereferenced]
        if not derefs:
            hints.collapse_groups.append(
                tuple(graph.node(i).subject for i in members)
            )
            continue
        # Edges only join DIRECT and DEREFERENCED nodes through DIRECT ones,
        # so a cycle containing a * node always has a DIRECT member.
        representative = next(
            graph.node(i).subject for i in members
            if not graph.node(i).is_dereferenced
        )
        for i in derefs:
            hints.redirections.append(
                Redirection(graph.node(i).subject, representative, groups)
            )
        groups += 1

    logger.debug(
        "optimizer for %s: %d collapse group(s), %d redirection(s)",
        function.name, len(hints.collapse_groups), len(hints.redirections),
    )
    return hints
