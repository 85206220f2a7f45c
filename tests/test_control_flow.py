from __future__ import annotations

from textwrap import dedent
from typing import List

import pytest

from tests.support.harness import run_lox

SCENARIOS = [
    pytest.param('if (true) print "then"; else print "else";', ["then"], id="if-then"),
    pytest.param('if (nil) print "then"; else print "else";', ["else"], id="if-else"),
    pytest.param('if (0) print "zero is truthy";', ["zero is truthy"], id="if-zero"),
    pytest.param('if (false) print "skipped";', [], id="if-no-else"),
    pytest.param(
        'if (true) if (false) print "inner"; else print "dangling";',
        ["dangling"],
        id="dangling-else-binds-inner",
    ),
    pytest.param(
        dedent(
            """\
            var i = 0;
            while (i < 3) {
              print i;
              i = i + 1;
            }
            """
        ),
        ["0", "1", "2"],
        id="while",
    ),
    pytest.param("while (false) print 1;", [], id="while-never"),
    pytest.param(
        "for (var i = 0; i < 3; i = i + 1) print i;",
        ["0", "1", "2"],
        id="for",
    ),
    pytest.param(
        dedent(
            """\
            var i = 10;
            for (i = 0; i < 2; i = i + 1) {}
            print i;
            """
        ),
        ["2"],
        id="for-expression-initializer",
    ),
    pytest.param(
        dedent(
            """\
            var i = "outer";
            for (var i = 0; i < 1; i = i + 1) {}
            print i;
            """
        ),
        ["outer"],
        id="for-variable-scoped-to-loop",
    ),
    pytest.param(
        dedent(
            """\
            var fns = [nil, nil];
            for (var i = 0; i < 2; i = i + 1) {
              var j = i;
              fns[i] = fun () { return j; };
            }
            print fns[0]();
            print fns[1]();
            """
        ),
        ["0", "1"],
        id="loop-body-closures",
    ),
    pytest.param('print 5 > 3 ? "yes" : "no";', ["yes"], id="ternary-true"),
    pytest.param('print 1 > 3 ? "yes" : "no";', ["no"], id="ternary-false"),
    pytest.param('print nil ? "yes" : "no";', ["no"], id="ternary-nil"),
    pytest.param(
        dedent(
            """\
            fun side(x) { print x; return x; }
            print true ? side("a") : side("b");
            """
        ),
        ["a", "a"],
        id="ternary-evaluates-one-branch",
    ),
    pytest.param('var label = 2 > 1 ? "big" : "small"; print label;', ["big"], id="ternary-initializer"),
    pytest.param('var x; x = 0 < 1 ? "lt" : "ge"; print x;', ["lt"], id="ternary-assign-rhs"),
    pytest.param(
        "fun pick(flag) { return flag ? 1 : 2; } print pick(false);",
        ["2"],
        id="ternary-return",
    ),
    pytest.param('print (true ? "a" : "b") + "!";', ["a!"], id="ternary-grouped"),
    pytest.param('print [true ? 1 : 2, false ? 3 : 4];', ["[ 1, 4 ]"], id="ternary-array-elements"),
]


@pytest.mark.parametrize("source, expected", SCENARIOS)
def test_control_flow_scenarios(source: str, expected: List[str]) -> None:
    assert run_lox(source) == expected


def test_condition_error_stops_loop() -> None:
    source = dedent(
        """\
        var i = 0;
        while (i < 5) {
          print i;
          i = i + 1;
          if (i == 2) i = "two";
        }
        print "unreachable";
        """
    )
    assert run_lox(source) == ["0", "1", "[line 2] Operands must be numbers."]
