"""
andersen_pta.result
===================

Name-keyed view of a solved constraint graph.

Only nodes with a non-empty points-to set appear in the mapping.  Member
order inside an entry carries no meaning, so entries are frozensets.
"""

from __future__ import annotations

from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterator,
    List,
    Mapping,
    Optional,
)

from .constraint_graph import ConstraintGraph
from .solver import SolverStats


class PointsToResult(Mapping[str, FrozenSet[str]]):
    """Read-only mapping ``display name → frozenset of display names``.

    Attributes
    ----------
    function_name : str
        The analysed function.
    stats : SolverStats or None
        Work performed while solving.
    """

    def __init__(
        self,
        function_name: str,
        points_to: Dict[str, FrozenSet[str]],
        stats: Optional[SolverStats] = None,
    ) -> None:
        self.function_name = function_name
        self._points_to = points_to
        self.stats = stats

    def __getitem__(self, name: str) -> FrozenSet[str]:
        return self._points_to[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._points_to)

    def __len__(self) -> int:
        return len(self._points_to)

    def __repr__(self) -> str:
        return f"PointsToResult({self.function_name!r}, {self._points_to!r})"

    def points_to(self, name: str) -> FrozenSet[str]:
        """Like ``result[name]`` but empty for names never assigned."""
        return self._points_to.get(name, frozenset())

    def may_alias(self, a: str, b: str) -> bool:
        """Two names may alias when their points-to sets intersect."""
        return not self.points_to(a).isdisjoint(self.points_to(b))

    def pointed_to_by(self, location: str) -> FrozenSet[str]:
        """Every name whose points-to set contains *location*."""
        return frozenset(
            name for name, pts in self._points_to.items() if location in pts
        )

    def to_json(self) -> Dict[str, List[str]]:
        return {name: sorted(pts) for name, pts in sorted(self._points_to.items())}

    def stats_json(self) -> Dict[str, Any]:
        if self.stats is None:
            return {}
        return dict(vars(self.stats))


def extract_result(
    graph: ConstraintGraph, stats: Optional[SolverStats] = None
) -> PointsToResult:
    """Convert the per-node points-to sets of *graph* into a :class:`PointsToResult`."""
    mapping: Dict[str, FrozenSet[str]] = {}
    for node in graph:
        pts = graph.node(graph.find(node.index)).points_to
        if not pts:
            continue
        mapping[graph.display_name(node.index)] = frozenset(
            graph.display_name(loc) for loc in pts
        )
    return PointsToResult(graph.function.name, mapping, stats)
