from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Optional

from .ast_printer import to_lark
from .diagnostics import Diagnostics
from .evaluator import Interpreter
from .parser_rd import parse_source
from .resolver import Resolver

EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70

USAGE = "Usage: lox [--ast] [script]"

# Each Lox call costs roughly a dozen Python frames; this allows
# a little over a thousand nested Lox calls
RECURSION_LIMIT = 16000

class Lox:
    """
    One interpreter session: scan, parse, resolve, interpret.

    Globals persist across `run` calls. `output` receives `print` lines and
    `error_output` receives diagnostics; both default to the process streams.
    """

    def __init__(self, output: Optional[Callable[[str], None]]=None,
                 error_output: Optional[Callable[[str], None]]=None):
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)

        self.diagnostics = Diagnostics(error_output)
        self.interpreter = Interpreter(self.diagnostics, output)

    def run(self, source: str) -> None:
        statements = parse_source(source, self.diagnostics)

        # Static errors suppress execution
        if self.diagnostics.had_error:
            return

        locals_ = Resolver(self.diagnostics).resolve(statements)
        if self.diagnostics.had_error:
            return

        self.interpreter.resolve_all(locals_)
        self.interpreter.interpret(statements)

    def run_line(self, source: str) -> None:
        """Run one interactive entry; errors do not end the session."""
        self.run(source)
        self.diagnostics.reset()

    def run_file(self, path: str) -> int:
        source = Path(path).read_text(encoding="utf-8")
        self.run(source)
        return self.exit_code()

    def exit_code(self) -> int:
        if self.diagnostics.had_error:
            return EXIT_STATIC_ERROR

        if self.diagnostics.had_runtime_error:
            return EXIT_RUNTIME_ERROR

        return 0

    def dump_ast(self, path: str) -> int:
        """Parse without running and print the tree."""
        source = Path(path).read_text(encoding="utf-8")
        statements = parse_source(source, self.diagnostics)

        if self.diagnostics.had_error:
            return EXIT_STATIC_ERROR

        print(to_lark(statements).pretty(), end="")
        return 0

def main(argv: Optional[List[str]]=None) -> int:
    args = sys.argv[1:] if argv is None else argv
    dump_ast = False
    scripts: List[str] = []

    for token in args:
        if token == "--ast":
            dump_ast = True
            continue

        if token.startswith("--"):
            print(f"Unknown option: {token}", file=sys.stderr)
            print(USAGE, file=sys.stderr)
            return EXIT_USAGE

        scripts.append(token)

    if len(scripts) > 1:
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE

    if not scripts:
        if dump_ast:
            print(USAGE, file=sys.stderr)
            return EXIT_USAGE

        from .repl import repl  # local import: prompt_toolkit is only needed here
        repl()
        return 0

    lox = Lox()
    try:
        if dump_ast:
            return lox.dump_ast(scripts[0])
        return lox.run_file(scripts[0])
    except OSError as exc:
        print(f"Could not read {scripts[0]}: {exc.strerror or exc}", file=sys.stderr)
        return EXIT_NO_INPUT

if __name__ == "__main__":
    sys.exit(main())
