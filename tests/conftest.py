# tests/conftest.py
"""
Shared sample programs, builders and fixtures for the andersen_pta tests.

Builders return fresh :class:`Function` objects so tests never share
mutable IR.  The ``*_SRC`` constants hold the same programs in the text
notation understood by :mod:`andersen_pta.frontend`.
"""

import random
from typing import Dict, FrozenSet, List, Tuple

import pytest

from andersen_pta.ir import Function


# ── Sample programs ──────────────────────────────────────────────

SCENARIO_A_SRC = """
function @scenario_a {
  var x, y, z, p, q
  p = alloc
  x = y
  x = z
  *p = z
  p = q
  q = &y
  x = *p
  p = &z
}
"""

SCENARIO_B_SRC = """
function @scenario_b {
  var i, j, k, a, b, c, p, q
  a = &i
  b = &k
  a = &j
  p = &a
  q = &b
  p = q
  c = *q
}
"""


def make_scenario_a() -> Function:
    f = Function("scenario_a")
    x, y, z, p, q = f.declare("x", "y", "z", "p", "q")
    f.alloc(p)
    f.copy(x, y)
    f.copy(x, z)
    f.store(p, z)
    f.copy(p, q)
    f.address_of(q, y)
    f.load(x, p)
    f.address_of(p, z)
    return f


def make_scenario_b() -> Function:
    f = Function("scenario_b")
    i, j, k, a, b, c, p, q = f.declare("i", "j", "k", "a", "b", "c", "p", "q")
    f.address_of(a, i)
    f.address_of(b, k)
    f.address_of(a, j)
    f.address_of(p, a)
    f.address_of(q, b)
    f.copy(p, q)
    f.load(c, q)
    return f


def make_copy_cycle() -> Function:
    """``a → b → c → a`` with two address facts feeding the cycle."""
    f = Function("copy_cycle")
    a, b, c, x, y = f.declare("a", "b", "c", "x", "y")
    f.address_of(a, x)
    f.copy(b, a)
    f.copy(c, b)
    f.copy(a, c)
    f.address_of(c, y)
    return f


def make_deref_cycle() -> Function:
    """``t = *p; *p = t``: the targets of ``p`` and ``t`` must agree."""
    f = Function("deref_cycle")
    p, t, a, x = f.declare("p", "t", "a", "x")
    f.address_of(p, a)
    f.address_of(a, x)
    f.load(t, p)
    f.store(p, t)
    return f


def make_unrealised_deref_cycle() -> Function:
    """A load/store cycle through ``*q`` where ``q`` never points anywhere."""
    f = Function("unrealised")
    p, q, t, u, a, x = f.declare("p", "q", "t", "u", "a", "x")
    f.load(u, q)
    f.store(p, u)
    f.load(t, p)
    f.store(q, t)
    f.address_of(p, a)
    f.address_of(a, x)
    return f


def make_chain(length: int) -> Function:
    """``v0 = &target; v1 = v0; ...; vN = vN-1``"""
    f = Function(f"chain_{length}")
    (target,) = f.declare("target")
    names = [f"v{i}" for i in range(length)]
    variables = f.declare(*names)
    f.address_of(variables[0], target)
    for prev, cur in zip(variables, variables[1:]):
        f.copy(cur, prev)
    return f


def make_random_function(seed: int, n_vars: int = 8, n_stmts: int = 24) -> Function:
    """A reproducible pseudo-random program over all six statement kinds."""
    rng = random.Random(seed)
    f = Function(f"random_{seed}")
    variables = f.declare(*(f"v{i}" for i in range(n_vars)))
    for _ in range(n_stmts):
        kind = rng.choice(("alloc", "addr", "copy", "copy", "load", "store"))
        lhs, rhs = rng.choice(variables), rng.choice(variables)
        if kind == "alloc":
            f.alloc(lhs)
        elif kind == "addr":
            f.address_of(lhs, rhs)
        elif kind == "copy":
            f.copy(lhs, rhs)
        elif kind == "load":
            f.load(lhs, rhs)
        else:
            f.store(lhs, rhs)
    return f


def as_sets(result) -> Dict[str, FrozenSet[str]]:
    """Plain-dict view of a PointsToResult for equality assertions."""
    return {name: frozenset(pts) for name, pts in result.items()}


class MonotonicityRecorder:
    """Solver observer that remembers every points-to update."""

    def __init__(self) -> None:
        self.updates: List[Tuple[int, FrozenSet[int], FrozenSet[int]]] = []

    def __call__(self, idx, old, new) -> None:
        self.updates.append((idx, old, new))

    def violations(self):
        return [(idx, old, new) for idx, old, new in self.updates
                if not old <= new]


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def scenario_a():
    return make_scenario_a()


@pytest.fixture
def scenario_b():
    return make_scenario_b()


@pytest.fixture
def ir_file(tmp_path):
    """Write IR text to a temporary file and return its path."""
    def _write(text: str, name: str = "program.pta"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write
