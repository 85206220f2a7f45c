from __future__ import annotations

from textwrap import dedent

import pytest

from lox_ref.ast_printer import AstPrinter
from lox_ref.diagnostics import Diagnostics
from lox_ref.parser_rd import ParseError, Parser, parse_expr_fragment
from lox_ref.token_types import TT, Tok
from lox_ref.tree import (
    Assign,
    Block,
    Call,
    Class,
    Expression,
    Function,
    IndexSet,
    Lambda,
    Literal,
    Print,
    Set,
    Super,
    Var,
    While,
)
from tests.support.harness import parse_program, print_expr

PRINT_CASES = [
    pytest.param("1 + 2 * 3", "(+ 1 (* 2 3))", id="factor-binds-tighter"),
    pytest.param("(1 + 2) * 3", "(* (group (+ 1 2)) 3)", id="grouping"),
    pytest.param("1 - 2 - 3", "(- (- 1 2) 3)", id="left-assoc-term"),
    pytest.param("8 / 4 / 2", "(/ (/ 8 4) 2)", id="left-assoc-factor"),
    pytest.param("-1 < 2 == true", "(== (< (- 1) 2) true)", id="unary-comparison-equality"),
    pytest.param("!!nil", "(! (! nil))", id="double-negation"),
    pytest.param("a or b and c", "(or a (and b c))", id="and-over-or"),
    pytest.param("a = b = 3", "(= a (= b 3))", id="right-assoc-assign"),
    pytest.param("a.b.c = 1", "(= (. (. a b) c) 1)", id="set-on-chain"),
    pytest.param("f(1)(2)", "(call (call f 1) 2)", id="curried-call"),
    pytest.param("arr[0][1]", "([] ([] arr 0) 1)", id="nested-index"),
    pytest.param("m[0][1] = 2", "(= ([] ([] m 0) 1) 2)", id="index-assign"),
    pytest.param("[1, [2]]", "(array 1 (array 2))", id="array-literal"),
    pytest.param("[]", "(array)", id="empty-array"),
    pytest.param("5 > 3 ? \"yes\" : \"no\"", "(?: (> 5 3) yes no)", id="ternary-comparison"),
    pytest.param("(a ? 1 : 2)", "(group (?: a 1 2))", id="ternary-grouped"),
    pytest.param("fun (a, b) { return a; }", "(fun (a b))", id="lambda"),
    pytest.param("1.5 + 2", "(+ 1.5 2)", id="fraction"),
]


@pytest.mark.parametrize("source, expected", PRINT_CASES)
def test_expression_shapes(source: str, expected: str) -> None:
    assert print_expr(source) == expected


def test_ternary_from_raw_tokens() -> None:
    tokens = [
        Tok(TT.NUMBER, "1", 1.0, 1),
        Tok(TT.QMARK, "?", None, 1),
        Tok(TT.NUMBER, "2", 2.0, 1),
        Tok(TT.COLON, ":", None, 1),
        Tok(TT.NUMBER, "3", 3.0, 1),
        Tok(TT.EOF, "", None, 1),
    ]

    expr = Parser(tokens).parse_expr()
    assert AstPrinter().print(expr) == "(?: 1 2 3)"


def test_ternary_lookahead_stops_at_statement_end() -> None:
    statements, errors = parse_program("print 1;\nprint a ? 2 : 3;")

    assert not errors
    first, second = statements
    assert AstPrinter().print(first.expression) == "1"
    assert AstPrinter().print(second.expression) == "(?: a 2 3)"


def test_for_desugars_to_while() -> None:
    statements, errors = parse_program("for (var i = 0; i < 3; i = i + 1) print i;")

    assert not errors
    (outer,) = statements
    assert isinstance(outer, Block)
    init, loop = outer.statements
    assert isinstance(init, Var)
    assert isinstance(loop, While)
    assert AstPrinter().print(loop.condition) == "(< i 3)"

    body, increment = loop.body.statements
    assert isinstance(body, Print)
    assert isinstance(increment, Expression)
    assert isinstance(increment.expression, Assign)


def test_for_without_clauses_loops_on_true() -> None:
    statements, errors = parse_program("for (;;) print 1;")

    assert not errors
    (loop,) = statements
    assert isinstance(loop, While)
    assert isinstance(loop.condition, Literal)
    assert loop.condition.value is True
    assert isinstance(loop.body, Print)


def test_declarations() -> None:
    source = dedent(
        """\
        class B < A {
          init(x) { this.x = x; }
          get() { return super.get(); }
        }
        fun add(a, b) { return a + b; }
        var f = fun () {};
        fun () {};
        """
    )
    statements, errors = parse_program(source)

    assert not errors
    klass, fn, var, lam_stmt = statements

    assert isinstance(klass, Class)
    assert klass.superclass is not None and klass.superclass.name.lexeme == "A"
    assert [m.name.lexeme for m in klass.methods] == ["init", "get"]
    ret = klass.methods[1].body[0]
    assert isinstance(ret.value, Call)
    assert isinstance(ret.value.callee, Super)

    assert isinstance(fn, Function)
    assert [p.lexeme for p in fn.params] == ["a", "b"]

    assert isinstance(var.initializer, Lambda)
    assert isinstance(lam_stmt, Expression) and isinstance(lam_stmt.expression, Lambda)


def test_assignment_targets() -> None:
    statements, errors = parse_program("a.b = 1; a[0] = 2;")

    assert not errors
    assert isinstance(statements[0].expression, Set)
    assert isinstance(statements[1].expression, IndexSet)


def test_invalid_assignment_target_is_reported_not_fatal() -> None:
    statements, errors = parse_program("1 + 2 = 3;\nprint 4;")

    assert errors == ["[line 1] Error at '=': Invalid assignment target."]
    # Both statements still come back
    assert len(statements) == 2


ERROR_CASES = [
    pytest.param("print 1", ["[line 1] Error at end: Expect ';' after value."], id="missing-semi-at-end"),
    pytest.param("var = 1;", ["[line 1] Error at '=': Expect variable name."], id="missing-var-name"),
    pytest.param("1 +;", ["[line 1] Error at ';': Expect expression."], id="missing-operand"),
    pytest.param("f(1;", ["[line 1] Error at ';': Expect ')' after arguments."], id="unclosed-call"),
    pytest.param("a.;", ["[line 1] Error at ';': Expect property name after '.'."], id="missing-property"),
    pytest.param("if 1) print 1;", ["[line 1] Error at '1': Expect '(' after 'if'."], id="if-paren"),
    pytest.param("class { }", ["[line 1] Error at '{': Expect class name."], id="class-name"),
    pytest.param("super;", ["[line 1] Error at ';': Expect '.' after 'super'."], id="bare-super"),
    pytest.param("print a ? 1;", ["[line 1] Error at ';': Expect ':' after first expression."], id="ternary-colon"),
    pytest.param(
        dedent(
            """\
            var a = ;
            print 1;
            var = 2;
            fun f( { }
            """
        ),
        [
            "[line 1] Error at ';': Expect expression.",
            "[line 3] Error at '=': Expect variable name.",
            "[line 4] Error at '{': Expect parameter name.",
        ],
        id="synchronize-multiple",
    ),
]


@pytest.mark.parametrize("source, expected", ERROR_CASES)
def test_parse_errors(source: str, expected) -> None:
    _statements, errors = parse_program(source)
    assert errors == expected


def test_synchronize_keeps_good_statements() -> None:
    statements, errors = parse_program("var a = ;\nprint 1;\nprint 2;")

    assert len(errors) == 1
    assert [type(s) for s in statements] == [Print, Print]


def test_argument_limit_reported_without_abort() -> None:
    args = ", ".join(str(i) for i in range(256))
    statements, errors = parse_program(f"f({args});")

    assert errors == ["[line 1] Error at '255': Can't have more than 255 arguments."]
    assert len(statements) == 1
    assert len(statements[0].expression.arguments) == 256


def test_parameter_limit_reported() -> None:
    params = ", ".join(f"p{i}" for i in range(256))
    _statements, errors = parse_program(f"fun f({params}) {{}}")

    assert errors == ["[line 1] Error at 'p255': Can't have more than 255 parameters."]


def test_expr_fragment() -> None:
    assert AstPrinter().print(parse_expr_fragment("1 + 2")) == "(+ 1 2)"

    with pytest.raises(ParseError):
        parse_expr_fragment("1 2")

    with pytest.raises(ParseError):
        parse_expr_fragment("+")


def test_parser_never_raises() -> None:
    diagnostics = Diagnostics(sink=lambda _line: None)
    tokens = [Tok(TT.RPAR, ")", None, 1), Tok(TT.EOF, "", None, 1)]

    assert Parser(tokens, diagnostics).parse() == []
    assert diagnostics.had_error
