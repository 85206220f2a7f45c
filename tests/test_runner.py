from __future__ import annotations

from pathlib import Path

import pytest

from lox_ref.runner import (
    EXIT_NO_INPUT,
    EXIT_RUNTIME_ERROR,
    EXIT_STATIC_ERROR,
    EXIT_USAGE,
    USAGE,
    main,
)


def _script(tmp_path: Path, source: str) -> str:
    path = tmp_path / "script.lox"
    path.write_text(source, encoding="utf-8")
    return str(path)


def test_successful_script(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _script(tmp_path, 'print "hello";\nprint 1 + 2;\n')

    assert main([path]) == 0

    captured = capsys.readouterr()
    assert captured.out == "hello\n3\n"
    assert captured.err == ""


def test_static_error_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _script(tmp_path, 'print "never";\nvar = 1;\n')

    assert main([path]) == EXIT_STATIC_ERROR

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "[line 2] Error at '=': Expect variable name.\n"


def test_runtime_error_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _script(tmp_path, 'print "first";\nprint nil + 1;\n')

    assert main([path]) == EXIT_RUNTIME_ERROR

    captured = capsys.readouterr()
    assert captured.out == "first\n"
    assert captured.err == "[line 2] Operands must be two numbers or at least one string.\n"


def test_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([str(tmp_path / "nope.lox")]) == EXIT_NO_INPUT
    assert "Could not read" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv",
    [
        pytest.param(["a.lox", "b.lox"], id="two-scripts"),
        pytest.param(["--bogus"], id="unknown-option"),
        pytest.param(["--ast"], id="ast-without-script"),
    ],
)
def test_usage_errors(argv, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(argv) == EXIT_USAGE
    assert USAGE in capsys.readouterr().err


def test_ast_dump(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _script(tmp_path, "var a = 1 + 2;\nprint a;\n")

    assert main(["--ast", path]) == 0

    out = capsys.readouterr().out
    assert out.startswith("program")
    assert "\n  var\n" in out
    assert "\n  print\n" in out
    assert "binary" in out
    assert "variable\ta" in out


def test_ast_dump_does_not_run(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _script(tmp_path, 'print "side effect";\n')

    assert main([path, "--ast"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("program")
    assert "literal\tside effect" in out


def test_ast_dump_static_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _script(tmp_path, "print ;\n")

    assert main(["--ast", path]) == EXIT_STATIC_ERROR
    assert capsys.readouterr().err == "[line 1] Error at ';': Expect expression.\n"
