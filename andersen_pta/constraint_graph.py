"""
andersen_pta.constraint_graph
=============================

The constraint graph for one function-level analysis run.

Nodes
-----
Every node stands for a ``(subject, role)`` pair where the subject is a
:class:`~andersen_pta.ir.Variable` or an
:class:`~andersen_pta.ir.AllocationSite` and the role is
:attr:`NodeRole.DIRECT` or :attr:`NodeRole.DEREFERENCED`.  The solver's
primary graph only ever contains DIRECT nodes; DEREFERENCED nodes appear
in the optimizer's auxiliary graph.

Nodes live in an arena owned by :class:`ConstraintGraph` and refer to each
other through stable integer indices.  ``points_to`` and ``successors`` are
index sets: ``points_to`` only ever grows and successor edges are
deduplicated.

Equivalence classes
-------------------
The graph keeps a union-find over node indices so that nodes proven to
share one points-to set can be merged.  The mutable state of a class
(``points_to`` and ``successors``) lives on its representative, but the
members keep their own index: a points-to set always names the original
location, never the representative.

Public API
----------
    NodeRole                - DIRECT / DEREFERENCED
    Node                    - one arena entry
    ConstraintGraph         - the arena, edges and equivalence classes
    Worklist                - FIFO queue with set semantics
    build_constraint_graph  - graph + initial worklist for a Function
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from typing import (
    Deque,
    Dict,
    FrozenSet,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    Union,
)

from .errors import ErrorCodes, InternalError
from .ir import (
    AddressOf,
    Allocation,
    AllocationSite,
    Copy,
    Declaration,
    Function,
    Load,
    Store,
    Variable,
)

logger = logging.getLogger(__name__)

Subject = Union[Variable, AllocationSite]


class NodeRole(enum.Enum):
    """Whether a node stands for a location or for what a variable points to."""

    DIRECT       = "direct"
    DEREFERENCED = "dereferenced"


class Node:
    """One vertex of the constraint graph.

    Attributes
    ----------
    index : int
        Position in the owning graph's arena.
    subject : Variable or AllocationSite
        The entity this node represents.
    role : NodeRole
        DIRECT, or DEREFERENCED for ``*v`` nodes.
    points_to : set[int]
        Indices of the locations this node may point to.
    successors : set[int]
        Indices of the nodes its points-to set flows into.

    Notes
    -----
    ``points_to`` and ``successors`` are only meaningful on a class
    representative.  :meth:`ConstraintGraph.merge` empties them on the
    absorbed node, so read them through :meth:`ConstraintGraph.points_to`
    and :meth:`ConstraintGraph.successors`, which resolve the class first.
    """

    __slots__ = ("index", "subject", "role", "points_to", "successors")

    def __init__(self, index: int, subject: Subject, role: NodeRole) -> None:
        self.index = index
        self.subject = subject
        self.role = role
        self.points_to: Set[int] = set()
        self.successors: Set[int] = set()

    @property
    def is_dereferenced(self) -> bool:
        return self.role is NodeRole.DEREFERENCED

    def __repr__(self) -> str:
        return (
            f"Node({self.index}, {self.subject!r}, {self.role.value}, "
            f"pts={sorted(self.points_to)}, succs={sorted(self.successors)})"
        )


class ConstraintGraph:
    """Owns every node of one analysis run.

    Parameters
    ----------
    function : Function
        The function the graph was built from.  Loads and stores are
        looked up through it while solving.
    """

    def __init__(self, function: Function) -> None:
        self.function = function
        self.nodes: List[Node] = []
        self._index: Dict[Tuple[Subject, NodeRole], int] = {}
        self._parent: List[int] = []
        self._members: Dict[int, List[int]] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    # ----- nodes ------------------------------------------------------------

    def get_or_create(
        self, subject: Subject, role: NodeRole = NodeRole.DIRECT
    ) -> int:
        """Return the index of the ``(subject, role)`` node, creating it lazily."""
        key = (subject, role)
        idx = self._index.get(key)
        if idx is not None:
            return idx
        idx = len(self.nodes)
        self.nodes.append(Node(idx, subject, role))
        self._index[key] = idx
        self._parent.append(idx)
        self._members[idx] = [idx]
        return idx

    def lookup(
        self, subject: Subject, role: NodeRole = NodeRole.DIRECT
    ) -> Optional[int]:
        return self._index.get((subject, role))

    def node(self, idx: int) -> Node:
        return self.nodes[idx]

    def display_name(self, idx: int) -> str:
        """Stable human-readable identifier of a node's subject (and role)."""
        node = self.nodes[idx]
        subject = node.subject
        if isinstance(subject, Variable):
            if node.is_dereferenced:
                return f"*{subject.name}"
            return subject.name
        if isinstance(subject, AllocationSite):
            return subject.label
        raise InternalError(
            f"node {idx} has an unknown subject {subject!r}",
            ErrorCodes.UNKNOWN_SUBJECT,
        )

    # ----- edges and facts --------------------------------------------------

    def add_edge(self, src: int, dst: int) -> bool:
        """Add ``src → dst``.  Returns ``False`` if the edge already existed."""
        s, d = self.find(src), self.find(dst)
        succs = self.nodes[s].successors
        if d in succs:
            return False
        succs.add(d)
        return True

    def add_points_to(self, idx: int, location: int) -> bool:
        """Record the base fact ``location ∈ pts(idx)``."""
        pts = self.nodes[self.find(idx)].points_to
        if location in pts:
            return False
        pts.add(location)
        return True

    def points_to(self, idx: int) -> FrozenSet[int]:
        """The current points-to set of *idx* (shared by its whole class)."""
        return frozenset(self.nodes[self.find(idx)].points_to)

    def successors(self, idx: int) -> Set[int]:
        """Canonical successor indices of *idx*'s class."""
        node = self.nodes[self.find(idx)]
        canonical = {self.find(q) for q in node.successors}
        if len(canonical) != len(node.successors):
            node.successors = canonical
        return canonical

    # ----- equivalence classes ----------------------------------------------

    def find(self, idx: int) -> int:
        """Representative of *idx*'s class (with path halving)."""
        parent = self._parent
        while parent[idx] != idx:
            parent[idx] = parent[parent[idx]]
            idx = parent[idx]
        return idx

    def members(self, idx: int) -> List[int]:
        """All node indices sharing *idx*'s class."""
        return self._members[self.find(idx)]

    def merge(self, keep: int, absorb: int) -> Tuple[int, bool]:
        """Fold *absorb*'s class into *keep*'s.

        Returns ``(representative, changed)``; ``changed`` is ``False``
        when both already belonged to the same class.
        """
        k, a = self.find(keep), self.find(absorb)
        if k == a:
            return k, False
        kept, gone = self.nodes[k], self.nodes[a]
        kept.points_to |= gone.points_to
        kept.successors |= gone.successors
        gone.points_to = set()
        gone.successors = set()
        self._parent[a] = k
        self._members[k].extend(self._members.pop(a))
        logger.debug(
            "merged %s into %s", self.display_name(a), self.display_name(k)
        )
        return k, True

    def is_representative(self, idx: int) -> bool:
        return self._parent[idx] == idx


class Worklist:
    """FIFO queue of node indices; a node is never queued twice."""

    def __init__(self) -> None:
        self._queue: Deque[int] = deque()
        self._queued: Set[int] = set()

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __contains__(self, idx: int) -> bool:
        return idx in self._queued

    def __iter__(self) -> Iterator[int]:
        return iter(self._queue)

    def push(self, idx: int) -> bool:
        if idx in self._queued:
            return False
        self._queue.append(idx)
        self._queued.add(idx)
        return True

    def pop(self) -> int:
        if not self._queue:
            raise InternalError(
                "cannot pop an empty worklist", ErrorCodes.EMPTY_WORKLIST
            )
        idx = self._queue.popleft()
        self._queued.discard(idx)
        return idx


def build_constraint_graph(function: Function) -> Tuple[ConstraintGraph, Worklist]:
    """Build the primary constraint graph and its initial worklist.

    Allocations and address-of statements become base points-to facts and
    seed the worklist; copies become static edges.  Loads and stores are
    left to the solver, which materialises their edges once the pointer's
    targets are known.
    """
    graph = ConstraintGraph(function)
    worklist = Worklist()

    for stmt in function.statements:
        if isinstance(stmt, Declaration):
            graph.get_or_create(stmt.variable)
        elif isinstance(stmt, Allocation):
            target = graph.get_or_create(stmt.target)
            graph.add_points_to(target, graph.get_or_create(stmt.site))
            worklist.push(target)
        elif isinstance(stmt, AddressOf):
            target = graph.get_or_create(stmt.target)
            graph.add_points_to(target, graph.get_or_create(stmt.operand))
            worklist.push(target)
        elif isinstance(stmt, Copy):
            graph.add_edge(
                graph.get_or_create(stmt.operand),
                graph.get_or_create(stmt.target),
            )
        elif isinstance(stmt, (Load, Store)):
            continue
        else:
            raise InternalError(f"unrecognised statement {stmt!r}")

    logger.debug(
        "constraint graph for %s: %d nodes, %d seeded",
        function.name, len(graph), len(worklist),
    )
    return graph, worklist
