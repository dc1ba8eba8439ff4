"""
andersen_pta.frontend
=====================

Reads pointer IR written in a small textual notation::

    # comments run to the end of the line
    function @swap {
      var p, q, x, y
      p = &x
      q = &y
      x = *p
      *q = x
      p = alloc
    }

One statement per line (a trailing ``;`` is accepted).  The front-end only
handles syntax; variable checks are done by :class:`~andersen_pta.ir.Function`
while the statements are replayed, so a use of an undeclared name surfaces
as an :class:`~andersen_pta.errors.IRError`.

Dependencies
------------
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple, Union

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from .errors import ErrorCodes, FrontendSyntaxError, PTAError
from .ir import Function

logger = logging.getLogger(__name__)


PTA_GRAMMAR = Grammar(r'''
    program         = _ function* eof
    function        = "function" __ "@" ident _ "{" _ statement* "}" _

    statement       = (declaration / store / assignment) _ terminator?
    terminator      = ";" _

    declaration     = "var" __ ident more_names*
    more_names      = _ "," _ ident
    store           = "*" _ ident _ "=" _ ident
    assignment      = ident _ "=" _ rvalue
    rvalue          = allocation / address_of / load / ident
    allocation      = "alloc" !~r"[A-Za-z0-9_]"
    address_of      = "&" _ ident
    load            = "*" _ ident

    ident           = ~r"[A-Za-z_][A-Za-z0-9_]*"
    __              = ~r"[ \t]+"
    _               = (~r"\s+" / comment)*
    comment         = ~r"#[^\r\n]*"
    eof             = !~r"(?s)."
''')


# (opcode, operand names...)
Op = Tuple[str, ...]


class PTABuilder(NodeVisitor):
    """Turns a parse tree into :class:`Function` objects."""

    unwrapped_exceptions = (PTAError,)

    def generic_visit(self, node, visited_children):
        return visited_children

    def visit_program(self, node, visited_children):
        _, functions, _ = visited_children
        seen = set()
        for fn in functions:
            if fn.name in seen:
                raise FrontendSyntaxError(
                    f"function '@{fn.name}' is defined twice",
                    code=ErrorCodes.DUPLICATE_FUNCTION,
                )
            seen.add(fn.name)
        return functions

    def visit_function(self, node, visited_children):
        _, _, _, name, _, _, _, statements, _, _ = visited_children
        fn = Function(name)
        for op in statements:
            self._replay(fn, op)
        logger.debug("parsed @%s: %d statement(s)", name, len(fn))
        return fn

    def visit_statement(self, node, visited_children):
        choice, _, _ = visited_children
        return choice[0]

    def visit_declaration(self, node, visited_children):
        _, _, first, rest = visited_children
        return ("declare", first, *rest)

    def visit_more_names(self, node, visited_children):
        _, _, _, name = visited_children
        return name

    def visit_store(self, node, visited_children):
        _, _, destination, _, _, _, source = visited_children
        return ("store", destination, source)

    def visit_assignment(self, node, visited_children):
        target, _, _, _, rvalue = visited_children
        if isinstance(rvalue, str):
            return ("copy", target, rvalue)
        opcode, *operands = rvalue
        return (opcode, target, *operands)

    def visit_rvalue(self, node, visited_children):
        return visited_children[0]

    def visit_allocation(self, node, visited_children):
        return ("alloc",)

    def visit_address_of(self, node, visited_children):
        _, _, operand = visited_children
        return ("address_of", operand)

    def visit_load(self, node, visited_children):
        _, _, source = visited_children
        return ("load", source)

    def visit_ident(self, node, visited_children):
        return node.text

    @staticmethod
    def _replay(fn: Function, op: Op) -> None:
        opcode, *operands = op
        if opcode == "declare":
            fn.declare(*operands)
        elif opcode == "alloc":
            fn.alloc(*operands)
        elif opcode == "address_of":
            fn.address_of(*operands)
        elif opcode == "copy":
            fn.copy(*operands)
        elif opcode == "load":
            fn.load(*operands)
        elif opcode == "store":
            fn.store(*operands)
        else:
            raise FrontendSyntaxError(f"unknown statement {opcode!r}")


def parse_program(text: str) -> List[Function]:
    """Parse every ``function @name { ... }`` block in *text*."""
    try:
        tree = PTA_GRAMMAR.parse(text)
    except ParseError as exc:
        raise FrontendSyntaxError(
            f"cannot parse input near {text[exc.pos:exc.pos + 20]!r}",
            line=exc.line(),
            column=exc.column(),
        ) from exc
    return PTABuilder().visit(tree)


def parse_function(text: str) -> Function:
    """Parse *text*, which must hold exactly one function."""
    functions = parse_program(text)
    if len(functions) != 1:
        raise FrontendSyntaxError(
            f"expected exactly one function, found {len(functions)}"
        )
    return functions[0]


def parse_file(path: Union[str, Path]) -> List[Function]:
    return parse_program(Path(path).read_text(encoding="utf-8"))
