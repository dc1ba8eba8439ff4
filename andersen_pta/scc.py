"""
andersen_pta.scc
================

Strongly connected components via Tarjan's index/low-link algorithm.

The traversal keeps its own stack of ``(node, successor-iterator)`` frames
instead of recursing, so long copy chains cannot exhaust the interpreter's
recursion limit.  Behaviour is identical to the recursive formulation:
SCCs come out in reverse topological order (sinks first), self-loops and
isolated nodes form singleton components.
"""

from __future__ import annotations

from typing import (
    Callable,
    Dict,
    Hashable,
    Iterable,
    Iterator,
    List,
    Set,
    Tuple,
    TypeVar,
)

from .constraint_graph import ConstraintGraph

N = TypeVar("N", bound=Hashable)

SCC = List[N]


def tarjan_scc(
    nodes: Iterable[N],
    successors: Callable[[N], Iterable[N]],
) -> List[SCC]:
    """Decompose a graph snapshot into SCCs in O(V + E).

    Parameters
    ----------
    nodes : iterable
        Every vertex of the graph.
    successors : callable(node) → iterable
        Outgoing neighbours of a vertex.

    Returns
    -------
    list[list]
        One list per SCC, sinks first.
    """
    index: Dict[N, int] = {}
    lowlink: Dict[N, int] = {}
    on_stack: Set[N] = set()
    stack: List[N] = []
    result: List[SCC] = []
    counter = 0

    for root in nodes:
        if root in index:
            continue

        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        frames: List[Tuple[N, Iterator[N]]] = [(root, iter(successors(root)))]

        while frames:
            v, succs = frames[-1]
            descended = False
            for w in succs:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    stack.append(w)
                    on_stack.add(w)
                    frames.append((w, iter(successors(w))))
                    descended = True
                    break
                if w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])
            if descended:
                continue

            frames.pop()
            if frames:
                parent = frames[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[v])

            if lowlink[v] == index[v]:
                scc: SCC = []
                while True:
                    w = stack.pop()
                    on_stack.discard(w)
                    scc.append(w)
                    if w == v:
                        break
                result.append(scc)

    return result


def graph_sccs(graph: ConstraintGraph) -> List[List[int]]:
    """SCCs of the current edge set of *graph*, as node indices."""
    return tarjan_scc(range(len(graph)), graph.successors)
