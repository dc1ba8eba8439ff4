"""
andersen_pta.errors
===================

Exception hierarchy for the points-to analysis pipeline.

Error Hierarchy
---------------
::

    PTAError (base)
    ├── IRError                  - malformed IR, raised at construction time
    │   ├── UndeclaredVariableError
    │   ├── DuplicateVariableError
    │   └── ForeignOperandError
    ├── FrontendSyntaxError      - text front-end parse failures
    ├── IterationLimitExceeded   - solver hit the host-imposed iteration cap
    └── InternalError            - contract violations (should never happen)

Error Codes
-----------
Each error carries a code of the form ``PTA-XXXX`` where ``XXXX`` is a
4-digit number in the ranges:

  - 1000-1999: IR construction errors
  - 2000-2999: front-end syntax errors
  - 5000-5999: resource limits
  - 9000-9999: internal errors
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorPhase(Enum):
    """Pipeline phase in which an error was raised."""

    IR = "ir"
    FRONTEND = "frontend"
    SOLVER = "solver"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorCode:
    """A stable, numbered error identifier."""

    number: int
    phase: ErrorPhase
    prefix: str = "PTA"

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code


class ErrorCodes:
    """Predefined error codes."""

    # IR construction (1000-1999)
    UNDECLARED_VARIABLE = ErrorCode(1000, ErrorPhase.IR)
    DUPLICATE_VARIABLE = ErrorCode(1001, ErrorPhase.IR)
    FOREIGN_OPERAND = ErrorCode(1002, ErrorPhase.IR)

    # Front-end (2000-2999)
    SYNTAX_ERROR = ErrorCode(2000, ErrorPhase.FRONTEND)
    DUPLICATE_FUNCTION = ErrorCode(2001, ErrorPhase.FRONTEND)
    UNKNOWN_FUNCTION = ErrorCode(2002, ErrorPhase.FRONTEND)

    # Resource limits (5000-5999)
    ITERATION_LIMIT = ErrorCode(5000, ErrorPhase.SOLVER)

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode(9000, ErrorPhase.INTERNAL)
    EMPTY_WORKLIST = ErrorCode(9001, ErrorPhase.INTERNAL)
    UNKNOWN_SUBJECT = ErrorCode(9002, ErrorPhase.INTERNAL)


class PTAError(Exception):
    """
    Base exception for all analysis errors.

    Carries a structured :class:`ErrorCode` so hosts can report failures
    without parsing messages.
    """

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_json(self) -> Dict[str, Any]:
        return {
            "code": self.code.code,
            "phase": self.code.phase.value,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# ---------------------------------------------------------------------------
# IR construction
# ---------------------------------------------------------------------------

class IRError(PTAError):
    """Malformed IR detected while building a function."""

    default_code = ErrorCodes.UNDECLARED_VARIABLE


class UndeclaredVariableError(IRError):
    default_code = ErrorCodes.UNDECLARED_VARIABLE

    def __init__(self, name: str, function: str) -> None:
        super().__init__(
            f"variable '{name}' is used in function '{function}' "
            f"before being declared"
        )
        self.name = name
        self.function = function


class DuplicateVariableError(IRError):
    default_code = ErrorCodes.DUPLICATE_VARIABLE

    def __init__(self, name: str, function: str) -> None:
        super().__init__(
            f"variable '{name}' is declared twice in function '{function}'"
        )
        self.name = name
        self.function = function


class ForeignOperandError(IRError):
    default_code = ErrorCodes.FOREIGN_OPERAND

    def __init__(self, name: str, function: str) -> None:
        super().__init__(
            f"variable '{name}' does not belong to function '{function}'"
        )
        self.name = name
        self.function = function


# ---------------------------------------------------------------------------
# Front-end
# ---------------------------------------------------------------------------

class FrontendSyntaxError(PTAError):
    """The textual IR could not be parsed."""

    default_code = ErrorCodes.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        line: int = 0,
        column: int = 0,
        code: Optional[ErrorCode] = None,
    ) -> None:
        super().__init__(message, code)
        self.line = line
        self.column = column

    def to_json(self) -> Dict[str, Any]:
        data = super().to_json()
        data["line"] = self.line
        data["column"] = self.column
        return data

    def __str__(self) -> str:
        if self.line:
            return f"{self.code}: {self.line}:{self.column}: {self.message}"
        return super().__str__()


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------

class IterationLimitExceeded(PTAError):
    """The solver did not reach a fixpoint within the configured cap.

    There are no partial results: the host should report the condition
    and treat the function as unanalysed.
    """

    default_code = ErrorCodes.ITERATION_LIMIT

    def __init__(self, limit: int, pending: int) -> None:
        super().__init__(
            f"fixpoint not reached after {limit} iterations "
            f"({pending} node(s) still queued)"
        )
        self.limit = limit
        self.pending = pending


class InternalError(PTAError):
    """An internal invariant was broken. This is a bug, not bad input."""

    default_code = ErrorCodes.INTERNAL_ERROR
