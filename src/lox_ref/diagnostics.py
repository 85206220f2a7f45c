"""
Diagnostics context shared by the lexer, parser, resolver and interpreter.

Every pass receives the same `Diagnostics` object explicitly; nothing here is
module-level state. Static problems (lex, parse, resolve) set `had_error`,
runtime failures set `had_runtime_error`. Both are reported as one line each
to the sink.
"""

from __future__ import annotations

import sys
import traceback
from typing import TYPE_CHECKING, Callable, List, Optional

from .token_types import TT, Tok
from .utils import debug_py_trace_enabled

if TYPE_CHECKING:
    from .types import LoxRuntimeError

Sink = Callable[[str], None]


class StaticError(Exception):
    """Error found before execution, rendered as `[line N] Error<where>: msg`."""

    def __init__(self, line: int, message: str, where: str = ""):
        self.line = line
        self.message = message
        self.where = where
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"[line {self.line}] Error{self.where}: {self.message}"


def where_of(token: Tok) -> str:
    if token.type == TT.EOF:
        return " at end"

    return f" at '{token.lexeme}'"


def _stderr_sink(line: str) -> None:
    print(line, file=sys.stderr)


class Diagnostics:
    def __init__(self, sink: Optional[Sink] = None):
        self.sink: Sink = sink or _stderr_sink
        self.had_error = False
        self.had_runtime_error = False
        self.errors: List[Exception] = []

    def report(self, err: StaticError) -> None:
        self.errors.append(err)
        self.had_error = True
        self.sink(str(err))

    def error(self, line: int, message: str) -> None:
        self.report(StaticError(line, message))

    def token_error(self, token: Tok, message: str) -> None:
        self.report(StaticError(token.line, message, where_of(token)))

    def runtime_error(self, err: LoxRuntimeError) -> None:
        self.errors.append(err)
        self.had_runtime_error = True
        self.sink(str(err))

        if debug_py_trace_enabled() and err.__traceback__ is not None:
            self.sink("Python traceback:")
            self.sink("".join(traceback.format_tb(err.__traceback__)).rstrip("\n"))

    def reset(self) -> None:
        """Clear the static error flag so an interactive session can go on."""
        self.had_error = False
        self.had_runtime_error = False
        self.errors.clear()
