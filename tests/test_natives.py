from __future__ import annotations

from textwrap import dedent
from typing import List

from lox_ref.diagnostics import Diagnostics
from lox_ref.evaluator import Interpreter
from lox_ref.parser_rd import parse_source
from lox_ref.resolver import Resolver
from lox_ref.runtime import default_natives
from lox_ref.types import LoxNative, LoxNumber, LoxString, LoxValue
from tests.support.harness import run_lox


def _run_with(natives, source: str) -> List[str]:
    lines: List[str] = []
    diagnostics = Diagnostics(sink=lines.append)
    interpreter = Interpreter(diagnostics, output=lines.append, natives=natives)

    statements = parse_source(source, diagnostics)
    interpreter.resolve_all(Resolver(diagnostics).resolve(statements))
    interpreter.interpret(statements)
    return lines


def test_clock_is_registered() -> None:
    natives = default_natives()

    assert "clock" in natives
    assert natives["clock"].arity == 0
    assert isinstance(natives["clock"].fn([]), LoxNumber)


def test_clock_measures_elapsed_time() -> None:
    source = dedent(
        """\
        var start = clock();
        var sum = 0;
        for (var i = 0; i < 1000; i = i + 1) {
          sum = sum + i;
        }
        print sum;
        print clock() - start >= 0;
        print clock() > 0;
        """
    )
    assert run_lox(source) == ["499500", "true", "true"]


def test_natives_can_be_shadowed_by_globals() -> None:
    assert run_lox("var clock = 1; print clock;") == ["1"]
    assert run_lox("fun clock() { return \"mine\"; } print clock();") == ["mine"]


def test_interpreter_accepts_custom_natives() -> None:
    def shout(args: List[LoxValue]) -> LoxValue:
        return LoxString(repr(args[0]).upper() + "!")

    natives = {"shout": LoxNative(name="shout", fn=shout, arity=1)}
    lines = _run_with(natives, 'print shout("hey"); print shout;')

    assert lines == ["HEY!", "<native fn>"]


def test_custom_native_arity_checked() -> None:
    natives = {"two": LoxNative(name="two", fn=lambda args: args[0], arity=2)}
    lines = _run_with(natives, "two(1);")

    assert lines == ["[line 1] Expected 2 arguments but got 1."]


def test_empty_natives_leave_globals_bare() -> None:
    lines = _run_with({}, "print clock;")

    assert lines == ["[line 1] Undefined variable 'clock'."]
