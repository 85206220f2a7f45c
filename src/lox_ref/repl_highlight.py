"""prompt_toolkit lexer for live Lox syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .diagnostics import Diagnostics
from .lexer_rd import Lexer as LoxTokenizer
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "type": "bold ansiblue",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
}

_KEYWORDS = {
    TT.AND, TT.CLASS, TT.ELSE, TT.FOR, TT.FUN, TT.IF, TT.OR, TT.PRINT,
    TT.RETURN, TT.SUPER, TT.THIS, TT.VAR, TT.WHILE,
}
_OPERATORS = {
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.NEG, TT.EQ, TT.NEQ,
    TT.LT, TT.LTE, TT.GT, TT.GTE, TT.ASSIGN, TT.QMARK, TT.COLON,
}

def _token_group(tokens: list[Tok], idx: int) -> str:
    tok = tokens[idx]
    t = tok.type

    if t in _KEYWORDS:
        return "keyword"
    if t in (TT.TRUE, TT.FALSE):
        return "boolean"
    if t == TT.NIL:
        return "constant"
    if t == TT.NUMBER:
        return "number"
    if t == TT.STRING:
        return "string"
    if t == TT.COMMENT:
        return "comment"
    if t in _OPERATORS:
        return "operator"
    if t == TT.IDENT:
        prev = tokens[idx - 1].type if idx > 0 else None
        if prev == TT.FUN:
            return "function"
        if prev == TT.CLASS:
            return "type"
        # Superclass in `class A < B`
        if prev == TT.LT and idx >= 3 and tokens[idx - 3].type == TT.CLASS:
            return "type"
        return "identifier"
    return "punctuation"

def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    # Diagnostics are dropped: a half-typed line is not an error
    silent = Diagnostics(sink=lambda _line: None)
    tokens = LoxTokenizer(text, silent, emit_comments=True).tokenize()

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type == TT.EOF or not tok.lexeme:
            continue

        # Columns are 1-based; the line is tokenized on its own
        idx = tok.column - 1
        if idx < pos:
            continue

        # Unstyled gap before token.
        if idx > pos:
            result.append(("", text[pos:idx]))

        style = GROUP_STYLE.get(_token_group(tokens, i), "")
        result.append((style, tok.lexeme))
        pos = idx + len(tok.lexeme)

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class LoxLexer(Lexer):
    """prompt_toolkit Lexer that highlights Lox source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
