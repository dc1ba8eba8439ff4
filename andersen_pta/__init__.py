"""
andersen_pta: Inclusion-Based Points-To Analysis
=================================================

Flow-insensitive, Andersen-style points-to analysis over a small pointer
IR (declarations, allocation, address-of, copy, load, store).

Submodules
----------
ir
    The statement model: variables, allocation sites, functions.
constraint_graph
    Node arena, constraint edges, worklist and the graph builder.
scc
    Iterative Tarjan strongly-connected-component decomposition.
optimizer
    Offline cycle detection producing collapse / redirection hints.
solver
    Worklist fixpoint solver that applies the optimizer's hints.
result
    Name-keyed result mapping.
analysis
    The end-to-end pipeline.
errors
    Exception hierarchy.
frontend
    Text notation for IR programs (parsimonious grammar).

Quick start
-----------
>>> from andersen_pta import Function, andersen_pta
>>> fn = Function("demo")
>>> p, q, x = fn.declare("p", "q", "x")
>>> _ = fn.address_of(p, x)
>>> _ = fn.copy(q, p)
>>> sorted(andersen_pta(fn)["q"])
['x']
"""

from __future__ import annotations

import logging

from .errors import (
    FrontendSyntaxError,
    InternalError,
    IRError,
    IterationLimitExceeded,
    PTAError,
)
from .ir import AllocationSite, Function, StmtKind, Variable
from .constraint_graph import (
    ConstraintGraph,
    NodeRole,
    Worklist,
    build_constraint_graph,
)
from .scc import tarjan_scc
from .optimizer import (
    OptimizationHints,
    Redirection,
    optimize_constraint_graph,
)
from .solver import ConstraintSolver, SolverStats, solve_constraints
from .result import PointsToResult, extract_result
from .analysis import AnalysisOptions, analyze_program, andersen_pta
from .frontend import parse_file, parse_function, parse_program

__version__ = "0.2.0"
__license__ = "MIT"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__: list[str] = [
    "__version__",
    # errors
    "PTAError",
    "IRError",
    "FrontendSyntaxError",
    "IterationLimitExceeded",
    "InternalError",
    # ir
    "Function",
    "Variable",
    "AllocationSite",
    "StmtKind",
    # constraint graph
    "ConstraintGraph",
    "NodeRole",
    "Worklist",
    "build_constraint_graph",
    "tarjan_scc",
    # optimizer and solver
    "OptimizationHints",
    "Redirection",
    "optimize_constraint_graph",
    "ConstraintSolver",
    "SolverStats",
    "solve_constraints",
    # results and pipeline
    "PointsToResult",
    "extract_result",
    "AnalysisOptions",
    "andersen_pta",
    "analyze_program",
    # text front-end
    "parse_program",
    "parse_function",
    "parse_file",
]
