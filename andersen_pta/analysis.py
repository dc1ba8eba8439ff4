"""
andersen_pta.analysis
=====================

The analysis pipeline::

    Function
       │
       ├──▶ build_constraint_graph ──▶ (graph, worklist)
       │
       └──▶ optimize_constraint_graph ──▶ OptimizationHints
                                               │
                    ConstraintSolver ◀─────────┘
                           │
                           ▼
                    extract_result ──▶ PointsToResult

Usage example
-------------
::

    from andersen_pta import Function, andersen_pta

    fn = Function("demo")
    a, b, i, j = fn.declare("a", "b", "i", "j")
    fn.address_of(a, i)
    fn.address_of(b, j)
    fn.copy(a, b)

    result = andersen_pta(fn)
    assert result["a"] == {"i", "j"}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from .constraint_graph import build_constraint_graph
from .ir import Function
from .optimizer import optimize_constraint_graph
from .result import PointsToResult, extract_result
from .solver import ConstraintSolver, Observer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOptions:
    """Knobs for one analysis run.

    Attributes
    ----------
    optimize : bool
        Run the SCC optimizer and apply its hints.  Results are identical
        either way; only the amount of work changes.
    max_iterations : int or None
        Cap on solver iterations.  ``None`` means unbounded.
    """

    optimize: bool = True
    max_iterations: Optional[int] = None


DEFAULT_OPTIONS = AnalysisOptions()


def andersen_pta(
    function: Function,
    options: AnalysisOptions = DEFAULT_OPTIONS,
    observer: Optional[Observer] = None,
) -> PointsToResult:
    """Compute flow-insensitive, inclusion-based points-to sets for *function*.

    Raises
    ------
    IterationLimitExceeded
        If ``options.max_iterations`` is set and the fixpoint is not reached
        within it.
    """
    graph, worklist = build_constraint_graph(function)
    hints = optimize_constraint_graph(function) if options.optimize else None
    solver = ConstraintSolver(
        graph,
        worklist,
        hints,
        max_iterations=options.max_iterations,
        observer=observer,
    )
    stats = solver.solve()
    result = extract_result(graph, stats)
    logger.info(
        "analysed %s: %d statement(s), %d node(s), %d iteration(s)",
        function.name, len(function), len(graph), stats.iterations,
    )
    return result


def analyze_program(
    functions: Iterable[Function],
    options: AnalysisOptions = DEFAULT_OPTIONS,
) -> Dict[str, PointsToResult]:
    """Analyse each function independently; keyed by function name."""
    return {fn.name: andersen_pta(fn, options) for fn in functions}
