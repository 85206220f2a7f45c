"""
Lexer for Lox - Recursive Descent Parser

Tokenizes Lox source code into a stream of tokens.

Features:
- Single-pass tokenization with one character of lookahead
- Position tracking (line, column)
- `//` line comments and non-nesting `/* */` block comments
- Non-fatal errors: bad input is reported and skipped, scanning goes on
"""

from typing import List, Optional

from .diagnostics import Diagnostics, StaticError
from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

# Only ASCII letters and digits; anything else is an unexpected character
def is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"

def is_alpha(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"

class LexError(StaticError):
    """Lexical error (reported, never raised out of the lexer)"""

class Lexer:
    """
    Lox lexer.

    Malformed input never aborts the scan: the problem is reported to the
    diagnostics context and the offending text produces no token, so one
    source can yield several diagnostics.
    """

    # Keyword mapping
    KEYWORDS = {
        'and': TT.AND,
        'class': TT.CLASS,
        'else': TT.ELSE,
        'false': TT.FALSE,
        'for': TT.FOR,
        'fun': TT.FUN,
        'if': TT.IF,
        'nil': TT.NIL,
        'or': TT.OR,
        'print': TT.PRINT,
        'return': TT.RETURN,
        'super': TT.SUPER,
        'this': TT.THIS,
        'true': TT.TRUE,
        'var': TT.VAR,
        'while': TT.WHILE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NEG),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (':', TT.COLON),
        (';', TT.SEMI),
        ('?', TT.QMARK),
    ]

    def __init__(self, source: str, diagnostics: Optional[Diagnostics] = None, emit_comments: bool = False):
        self.source = source
        self.diagnostics = diagnostics or Diagnostics()
        self.emit_comments = emit_comments
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

        # Start of the token being scanned
        self.start = 0
        self.start_line = 1
        self.start_column = 1

    # ========================================================================
    # Character Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, count: int = 1) -> str:
        """Consume characters, keeping line/column current"""
        chunk = self.source[self.pos:self.pos + count]
        for ch in chunk:
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += len(chunk)
        return chunk

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def emit(self, token_type: TT, literal=None) -> None:
        """Emit the token spanning start..pos"""
        lexeme = self.source[self.start:self.pos]
        self.tokens.append(Tok(token_type, lexeme, literal, self.start_line, self.start_column))

    def error(self, message: str, line: Optional[int] = None) -> None:
        self.diagnostics.report(LexError(self.start_line if line is None else line, message))

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while not self.at_end():
            self.start = self.pos
            self.start_line = self.line
            self.start_column = self.column
            self.scan_token()

        self.tokens.append(Tok(TT.EOF, '', None, self.line, self.column))
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        ch = self.peek()

        # Whitespace
        if ch in (' ', '\t', '\r', '\n'):
            self.advance()
            return

        # Comments
        if ch == '/' and self.peek(1) == '/':
            self.skip_line_comment()
            return

        if ch == '/' and self.peek(1) == '*':
            self.skip_block_comment()
            return

        # String literals
        if ch == '"':
            self.scan_string()
            return

        # Numbers
        if is_digit(ch):
            self.scan_number()
            return

        # Identifiers and keywords
        if is_alpha(ch):
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def skip_line_comment(self):
        """Skip // comment up to (not including) the newline"""
        while not self.at_end() and self.peek() != '\n':
            self.advance()

        if self.emit_comments:
            self.emit(TT.COMMENT)

    def skip_block_comment(self):
        """Skip /* ... */ comment; nesting is not supported"""
        self.advance(2)

        while not self.at_end():
            if self.peek() == '*' and self.peek(1) == '/':
                self.advance(2)
                if self.emit_comments:
                    self.emit(TT.COMMENT)
                return
            self.advance()

        # Reported where input ran out, not where the comment opened
        self.error("Unterminated block comment.", self.line)

    def scan_string(self):
        """Scan string literal: "..." (no escapes, may span lines)"""
        self.advance()  # Opening quote

        while not self.at_end() and self.peek() != '"':
            self.advance()

        if self.at_end():
            self.error("Unterminated string.", self.line)
            return

        self.advance()  # Closing quote
        self.emit(TT.STRING, self.source[self.start + 1:self.pos - 1])

    def scan_number(self):
        """Scan number literal: digits with an optional fraction"""
        while is_digit(self.peek()):
            self.advance()

        # A trailing dot without digits is left for the DOT token
        if self.peek() == '.' and is_digit(self.peek(1)):
            self.advance()
            while is_digit(self.peek()):
                self.advance()

        self.emit(TT.NUMBER, float(self.source[self.start:self.pos]))

    def scan_identifier(self):
        """Scan identifier or keyword (maximal munch)"""
        while is_alpha(self.peek()) or is_digit(self.peek()):
            self.advance()

        text = self.source[self.start:self.pos]
        self.emit(self.KEYWORDS.get(text, TT.IDENT))

    def scan_operator(self):
        """Scan operator or punctuation"""
        for op, token_type in self.OPERATORS:
            if self.source.startswith(op, self.pos):
                self.advance(len(op))
                self.emit(token_type)
                return

        ch = self.advance()
        self.error(f"Unexpected character '{ch}'.")

# ============================================================================
# Convenience Function
# ============================================================================

def tokenize(source: str, diagnostics: Optional[Diagnostics] = None) -> List[Tok]:
    """Tokenize source code"""
    lexer = Lexer(source, diagnostics)
    return lexer.tokenize()
