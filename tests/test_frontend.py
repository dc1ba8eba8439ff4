# tests/test_frontend.py
"""
Tests for andersen_pta.frontend: the text notation for IR programs.
"""

import importlib
import warnings

import pytest

from andersen_pta import andersen_pta, frontend
from andersen_pta.errors import (
    ErrorCodes,
    FrontendSyntaxError,
    IRError,
    UndeclaredVariableError,
)
from andersen_pta.frontend import parse_file, parse_function, parse_program
from andersen_pta.ir import StmtKind

from tests.conftest import (
    SCENARIO_A_SRC,
    SCENARIO_B_SRC,
    as_sets,
    make_scenario_a,
    make_scenario_b,
)


class TestParsing:

    def test_scenario_a_matches_builder(self):
        parsed = parse_function(SCENARIO_A_SRC)
        built = make_scenario_a()
        assert parsed.name == "scenario_a"
        assert [s.kind for s in parsed] == [s.kind for s in built]
        assert as_sets(andersen_pta(parsed)) == as_sets(andersen_pta(built))

    def test_scenario_b_matches_builder(self):
        parsed = parse_function(SCENARIO_B_SRC)
        assert as_sets(andersen_pta(parsed)) == as_sets(
            andersen_pta(make_scenario_b()))

    def test_every_statement_form(self):
        fn = parse_function("""
            function @forms {
              var p, q, x
              p = alloc
              q = &x
              x = q
              x = *p
              *p = x
            }
        """)
        kinds = [s.kind for s in fn][3:]
        assert kinds == [
            StmtKind.ALLOCATION,
            StmtKind.ADDRESS_OF,
            StmtKind.COPY,
            StmtKind.LOAD,
            StmtKind.STORE,
        ]

    def test_comments_and_semicolons(self):
        fn = parse_function("""
            # leading comment
            function @f {   # trailing comment
              var a, b;     # two variables
              a = &b;
              # a = &a
            }
        """)
        assert len(fn) == 3
        assert as_sets(andersen_pta(fn)) == {"a": {"b"}}

    def test_flexible_spacing(self):
        fn = parse_function("function @f { var p,q\n p=&q\n q = * p\n *p=q }")
        assert [s.kind for s in fn][-1] is StmtKind.STORE

    def test_alloc_prefix_is_an_identifier(self):
        fn = parse_function("""
            function @f {
              var allocator, p
              p = allocator
            }
        """)
        assert [s.kind for s in fn][-1] is StmtKind.COPY

    def test_multiple_functions(self):
        functions = parse_program(SCENARIO_A_SRC + SCENARIO_B_SRC)
        assert [fn.name for fn in functions] == ["scenario_a", "scenario_b"]

    def test_empty_input(self):
        assert parse_program("") == []
        assert parse_program("  # nothing here\n") == []

    def test_empty_function_body(self):
        fn = parse_function("function @empty { }")
        assert len(fn) == 0

    def test_parse_file(self, ir_file):
        path = ir_file(SCENARIO_B_SRC)
        (fn,) = parse_file(path)
        assert fn.name == "scenario_b"


class TestGrammar:

    def test_grammar_builds_without_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            importlib.reload(frontend)

    def test_tabs_and_crlf_are_whitespace(self):
        fn = parse_function("function\t@f {\r\n\tvar\tp, x\r\n\tp = &x\r\n}\r\n")
        assert as_sets(andersen_pta(fn)) == {"p": {"x"}}


class TestErrors:

    def test_syntax_error_location(self):
        text = "function @f {\n  var x, y\n  x = = y\n}\n"
        with pytest.raises(FrontendSyntaxError) as exc_info:
            parse_program(text)
        exc = exc_info.value
        assert exc.code is ErrorCodes.SYNTAX_ERROR
        assert exc.line == 3
        assert exc.to_json()["line"] == 3

    def test_missing_closing_brace(self):
        with pytest.raises(FrontendSyntaxError):
            parse_program("function @f {\n  var x\n")

    def test_undeclared_variable_reported_by_ir(self):
        with pytest.raises(UndeclaredVariableError) as exc_info:
            parse_program("function @f {\n  var p\n  p = &nope\n}")
        assert exc_info.value.name == "nope"

    def test_duplicate_variable(self):
        with pytest.raises(IRError):
            parse_program("function @f { var a, a }")

    def test_duplicate_function(self):
        text = "function @f { }\nfunction @f { }\n"
        with pytest.raises(FrontendSyntaxError) as exc_info:
            parse_program(text)
        assert exc_info.value.code is ErrorCodes.DUPLICATE_FUNCTION

    def test_parse_function_requires_exactly_one(self):
        with pytest.raises(FrontendSyntaxError):
            parse_function("")
        with pytest.raises(FrontendSyntaxError):
            parse_function(SCENARIO_A_SRC + SCENARIO_B_SRC)
