from __future__ import annotations

from textwrap import dedent

import pytest

from lox_ref.ast_printer import AstPrinter, to_lark, unparse
from lox_ref.token_types import TT, Tok
from lox_ref.tree import Binary, Expression, Grouping, Literal, Unary
from tests.support.harness import parse_program

ROUND_TRIP_PROGRAMS = [
    pytest.param("print 1 + 2 * (3 - 4);", id="arithmetic"),
    pytest.param('var s = "text"; print s + "!";', id="strings"),
    pytest.param("var a; a = b = nil; print !true or false and a;", id="logic-assign"),
    pytest.param("print 5 > 3 ? \"yes\" : \"no\";", id="ternary"),
    pytest.param("var arr = [1, [2, 3], []]; arr[1][0] = arr.length; print arr[0];", id="arrays"),
    pytest.param("var f = fun (a, b) { return a + b; }; print (fun () {})();", id="lambdas"),
    pytest.param(
        dedent(
            """\
            class A < B {
              init(x) { this.x = x; }
              get() { return super.get(); }
            }
            fun f(n) {
              if (n < 1) return;
              else { print n; }
              while (n > 0) n = n - 1;
            }
            for (var i = 0; i < 2; i = i + 1) print i;
            """
        ),
        id="declarations",
    ),
]


def _lisp(source: str) -> list:
    statements, errors = parse_program(source)
    assert not errors, errors

    printer = AstPrinter()
    forms = []
    for stmt in statements:
        expr = getattr(stmt, "expression", None) or getattr(stmt, "initializer", None)
        forms.append(printer.print(expr) if expr is not None else type(stmt).__name__)
    return forms


@pytest.mark.parametrize("source", ROUND_TRIP_PROGRAMS)
def test_unparse_round_trip(source: str) -> None:
    statements, errors = parse_program(source)
    assert not errors

    rendered = unparse(statements)
    reparsed, errors = parse_program(rendered)

    assert not errors, rendered
    assert unparse(reparsed) == rendered
    assert _lisp(rendered) == _lisp(source)


def test_unparse_number_literals() -> None:
    assert unparse(Literal(1e21)) == "1000000000000000000000"
    assert unparse(Literal(1e-7)) == "0.0000001"
    assert unparse(Literal(2.5)) == "2.5"


def test_printer_forms() -> None:
    minus = Tok(TT.MINUS, "-", None, 1)
    star = Tok(TT.STAR, "*", None, 1)
    expr = Binary(Unary(minus, Literal(123.0)), star, Grouping(Literal(45.67)))

    assert AstPrinter().print(expr) == "(* (- 123) (group 45.67))"


def test_literal_display_forms() -> None:
    printer = AstPrinter()

    assert printer.print(Literal(None)) == "nil"
    assert printer.print(Literal(True)) == "true"
    assert printer.print(Literal("hi")) == "hi"
    assert printer.print(Literal(3.0)) == "3"


def test_to_lark_labels() -> None:
    statements, errors = parse_program("var a = [1]; a[0] = -a[0]; print a.length;")
    assert not errors

    tree = to_lark(statements)
    assert tree.data == "program"
    assert [child.data for child in tree.children] == ["var", "expression", "print"]

    labels = {sub.data for sub in tree.iter_subtrees()}
    assert {"array_literal", "index_set", "index_get", "unary", "get", "variable"} <= labels


def test_to_lark_keeps_token_positions() -> None:
    statements, _errors = parse_program("\n  print x;")
    tree = to_lark(statements)

    (token,) = tree.scan_values(lambda value: value == "x")
    assert token.type == "IDENT"
    assert (token.line, token.column) == (2, 9)


def test_expression_statement_unparse() -> None:
    stmt = Expression(Literal("s"))
    assert unparse(stmt) == '"s";'
