"""
andersen_pta.ir
===============

The pointer IR consumed by the analysis.

A :class:`Function` owns an ordered list of statements drawn from a closed
set of six kinds:

``Declaration``   ``var x``
``Allocation``    ``x = alloc``
``AddressOf``     ``x = &y``
``Copy``          ``x = y``
``Load``          ``x = *p``
``Store``         ``*p = y``

Variables and allocation sites are compared by identity, never by name.
The function validates operands as statements are created, so malformed
IR (a use of an undeclared variable, a variable borrowed from another
function) is rejected before any analysis runs.

Loads and stores are indexed per pointer variable at construction time;
:meth:`Function.loads_from` and :meth:`Function.stores_to` are the queries
the solver issues repeatedly.

Typical usage::

    from andersen_pta.ir import Function

    fn = Function("example")
    p, x, y = fn.declare("p", "x", "y")
    fn.address_of(p, y)
    fn.load(x, p)
"""

from __future__ import annotations

import enum
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    ClassVar,
    DefaultDict,
    Dict,
    Iterator,
    List,
    Sequence,
    Tuple,
    Union,
)

from .errors import (
    DuplicateVariableError,
    ForeignOperandError,
    UndeclaredVariableError,
)


# ---------------------------------------------------------------------------
# Statement kinds
# ---------------------------------------------------------------------------

class StmtKind(enum.Enum):
    """The closed set of IR statement kinds."""

    DECLARATION = "declaration"
    ALLOCATION  = "allocation"
    ADDRESS_OF  = "address-of"
    COPY        = "copy"
    LOAD        = "load"
    STORE       = "store"


# ---------------------------------------------------------------------------
# Operands
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Variable:
    """A named program variable. Identity, not the name, distinguishes it."""

    name: str

    def __repr__(self) -> str:
        return f"Variable({self.name!r})"


@dataclass(eq=False)
class AllocationSite:
    """The abstract object created by one ``x = alloc`` statement."""

    label: str
    ordinal: int

    def __repr__(self) -> str:
        return f"AllocationSite({self.label!r})"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Declaration:
    kind: ClassVar[StmtKind] = StmtKind.DECLARATION
    variable: Variable


@dataclass(frozen=True, eq=False)
class Allocation:
    kind: ClassVar[StmtKind] = StmtKind.ALLOCATION
    target: Variable
    site: AllocationSite


@dataclass(frozen=True, eq=False)
class AddressOf:
    kind: ClassVar[StmtKind] = StmtKind.ADDRESS_OF
    target: Variable
    operand: Variable


@dataclass(frozen=True, eq=False)
class Copy:
    kind: ClassVar[StmtKind] = StmtKind.COPY
    target: Variable
    operand: Variable


@dataclass(frozen=True, eq=False)
class Load:
    """``target = *source``"""

    kind: ClassVar[StmtKind] = StmtKind.LOAD
    target: Variable
    source: Variable


@dataclass(frozen=True, eq=False)
class Store:
    """``*destination = source``"""

    kind: ClassVar[StmtKind] = StmtKind.STORE
    destination: Variable
    source: Variable


Statement = Union[Declaration, Allocation, AddressOf, Copy, Load, Store]

# A variable may be passed either as the object or by its declared name.
VarRef = Union[Variable, str]


# ---------------------------------------------------------------------------
# Function
# ---------------------------------------------------------------------------

class Function:
    """An ordered, validated sequence of IR statements.

    Parameters
    ----------
    name : str
        Function name, used as the key in whole-program results.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._statements: List[Statement] = []
        self._variables: Dict[str, Variable] = {}
        self._sites: List[AllocationSite] = []
        self._loads: DefaultDict[Variable, List[Load]] = defaultdict(list)
        self._stores: DefaultDict[Variable, List[Store]] = defaultdict(list)

    def __repr__(self) -> str:
        return f"Function({self.name!r}, {len(self._statements)} statements)"

    def __iter__(self) -> Iterator[Statement]:
        return iter(self._statements)

    def __len__(self) -> int:
        return len(self._statements)

    # ----- read access ------------------------------------------------------

    @property
    def statements(self) -> Tuple[Statement, ...]:
        return tuple(self._statements)

    @property
    def variables(self) -> Tuple[Variable, ...]:
        """Declared variables in declaration order."""
        return tuple(self._variables.values())

    @property
    def allocation_sites(self) -> Tuple[AllocationSite, ...]:
        return tuple(self._sites)

    def variable(self, name: str) -> Variable:
        """Look up a declared variable by name."""
        try:
            return self._variables[name]
        except KeyError:
            raise UndeclaredVariableError(name, self.name) from None

    def loads_from(self, var: Variable) -> Sequence[Load]:
        """All ``t = *var`` statements."""
        return self._loads.get(var, ())

    def stores_to(self, var: Variable) -> Sequence[Store]:
        """All ``*var = s`` statements."""
        return self._stores.get(var, ())

    # ----- construction -----------------------------------------------------

    def declare(self, *names: str) -> Tuple[Variable, ...]:
        """Declare one variable per name and return them in order."""
        created = []
        for name in names:
            if name in self._variables:
                raise DuplicateVariableError(name, self.name)
            var = Variable(name)
            self._variables[name] = var
            self._statements.append(Declaration(var))
            created.append(var)
        return tuple(created)

    def alloc(self, target: VarRef) -> Allocation:
        """``target = alloc``"""
        target = self._resolve(target)
        ordinal = len(self._sites)
        site = AllocationSite(label=f"alloc-{ordinal}", ordinal=ordinal)
        self._sites.append(site)
        return self._append(Allocation(target, site))

    def address_of(self, target: VarRef, operand: VarRef) -> AddressOf:
        """``target = &operand``"""
        return self._append(
            AddressOf(self._resolve(target), self._resolve(operand))
        )

    def copy(self, target: VarRef, operand: VarRef) -> Copy:
        """``target = operand``"""
        return self._append(Copy(self._resolve(target), self._resolve(operand)))

    def load(self, target: VarRef, source: VarRef) -> Load:
        """``target = *source``"""
        stmt = Load(self._resolve(target), self._resolve(source))
        self._loads[stmt.source].append(stmt)
        return self._append(stmt)

    def store(self, destination: VarRef, source: VarRef) -> Store:
        """``*destination = source``"""
        stmt = Store(self._resolve(destination), self._resolve(source))
        self._stores[stmt.destination].append(stmt)
        return self._append(stmt)

    # ----- internal helpers -------------------------------------------------

    def _append(self, stmt):
        self._statements.append(stmt)
        return stmt

    def _resolve(self, ref: VarRef) -> Variable:
        if isinstance(ref, str):
            return self.variable(ref)
        if self._variables.get(ref.name) is not ref:
            raise ForeignOperandError(ref.name, self.name)
        return ref
