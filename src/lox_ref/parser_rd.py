"""
Recursive Descent Parser for Lox

Structure:
- Lexer: Token stream from source
- Parser: Recursive descent with one method per precedence level
- AST: Frozen dataclass nodes from `tree`

Errors never escape `parse()`: each failing declaration is reported to the
diagnostics context, the parser synchronizes on the next statement boundary
and carries on, so one run can report several syntax errors.
"""

from typing import Callable, List, Optional

from .diagnostics import Diagnostics, StaticError, where_of
from .token_types import TT, Tok
from .tree import (
    ArrayLiteral,
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    IndexGet,
    IndexSet,
    Lambda,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    Ternary,
    This,
    Unary,
    Var,
    Variable,
    While,
)

MAX_ARGS = 255

# ============================================================================
# Parser
# ============================================================================

class ParseError(StaticError):
    """Parse error with position info"""
    def __init__(self, message: str, token: Tok):
        self.token = token
        super().__init__(token.line, message, where_of(token))

class Parser:
    """
    Recursive descent parser for Lox.

    Expression precedence (lowest to highest):
    1. lambda (fun (...) { ... })
    2. ternary (? :), chosen by lookahead for a depth-0 '?'
    3. assignment (=)
    4. or
    5. and
    6. equality (==, !=)
    7. comparison (<, <=, >, >=)
    8. term (+, -)
    9. factor (*, /)
    10. unary (!, -)
    11. call (call, .field, [index])
    12. primary (literals, identifiers, this, super, parens, arrays)
    """

    # Tokens that can start a fresh declaration or statement
    SYNC_TOKENS = {TT.CLASS, TT.FUN, TT.VAR, TT.FOR, TT.IF, TT.WHILE, TT.PRINT, TT.RETURN}

    # Tokens that end the lookahead for a ternary '?'
    _TERNARY_STOP = {TT.SEMI, TT.EOF, TT.ASSIGN, TT.COMMA}
    _OPENERS = {TT.LPAR, TT.LSQB, TT.LBRACE}
    _CLOSERS = {TT.RPAR, TT.RSQB, TT.RBRACE}

    def __init__(self, tokens: List[Tok], diagnostics: Optional[Diagnostics] = None):
        self.tokens = tokens if tokens else [Tok(TT.EOF, '', None, 1, 1)]
        self.diagnostics = diagnostics or Diagnostics()
        self.pos = 0
        self.current = self.tokens[0]

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def previous(self) -> Tok:
        return self.tokens[self.pos - 1]

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type != TT.EOF:
            self.pos += 1
            self.current = self.peek()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: str) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            raise self.error(self.current, message)
        return self.advance()

    def at_end(self) -> bool:
        return self.current.type == TT.EOF

    def error(self, token: Tok, message: str) -> ParseError:
        """Report an error and hand it back for the caller to raise (or not)"""
        err = ParseError(message, token)
        self.diagnostics.report(err)
        return err

    def synchronize(self) -> None:
        """Discard tokens until a likely statement boundary"""
        self.advance()

        while not self.at_end():
            if self.previous().type == TT.SEMI:
                return

            if self.current.type in self.SYNC_TOKENS:
                return

            self.advance()

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> List[Stmt]:
        """Parse entire program"""
        statements: List[Stmt] = []

        while not self.at_end():
            try:
                stmt = self.parse_declaration()
            except RecursionError:
                # Unwound to the top: report once, then skip the statement
                self.error(self.current, "Expression nesting too deep.")
                self.synchronize()
                continue

            if stmt is not None:
                statements.append(stmt)

        return statements

    def parse_declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TT.CLASS):
                return self.parse_class_decl()

            # `fun` followed by a name declares; otherwise it opens a lambda
            if self.check(TT.FUN) and self.peek(1).type == TT.IDENT:
                self.advance()
                return self.parse_function("function")

            if self.match(TT.VAR):
                return self.parse_var_decl()

            return self.parse_statement()
        except ParseError:
            self.synchronize()
            return None

    def parse_class_decl(self) -> Stmt:
        name = self.expect(TT.IDENT, "Expect class name.")

        superclass = None
        if self.match(TT.LT):
            self.expect(TT.IDENT, "Expect superclass name.")
            superclass = Variable(self.previous())

        self.expect(TT.LBRACE, "Expect '{' before class body.")

        methods = []
        while not self.check(TT.RBRACE) and not self.at_end():
            methods.append(self.parse_function("method"))

        self.expect(TT.RBRACE, "Expect '}' after class body.")
        return Class(name, superclass, tuple(methods))

    def parse_function(self, kind: str) -> Function:
        name = self.expect(TT.IDENT, f"Expect {kind} name.")
        self.expect(TT.LPAR, f"Expect '(' after {kind} name.")
        params, body = self.parse_function_tail(kind)
        return Function(name, params, body)

    def parse_function_tail(self, kind: str):
        """Parse `params? ")" block` after the opening paren"""
        params: List[Tok] = []

        if not self.check(TT.RPAR):
            while True:
                if len(params) >= MAX_ARGS:
                    self.error(self.current, f"Can't have more than {MAX_ARGS} parameters.")
                params.append(self.expect(TT.IDENT, "Expect parameter name."))
                if not self.match(TT.COMMA):
                    break

        self.expect(TT.RPAR, "Expect ')' after parameters.")
        self.expect(TT.LBRACE, f"Expect '{{' before {kind} body.")
        return tuple(params), tuple(self.parse_block())

    def parse_var_decl(self) -> Stmt:
        name = self.expect(TT.IDENT, "Expect variable name.")

        initializer = None
        if self.match(TT.ASSIGN):
            initializer = self.parse_expr()

        self.expect(TT.SEMI, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Stmt:
        if self.match(TT.PRINT):
            return self.parse_print_stmt()
        if self.match(TT.RETURN):
            return self.parse_return_stmt()
        if self.match(TT.WHILE):
            return self.parse_while_stmt()
        if self.match(TT.IF):
            return self.parse_if_stmt()
        if self.match(TT.FOR):
            return self.parse_for_stmt()
        if self.match(TT.LBRACE):
            return Block(tuple(self.parse_block()))

        return self.parse_expr_stmt()

    def parse_print_stmt(self) -> Stmt:
        value = self.parse_expr()
        self.expect(TT.SEMI, "Expect ';' after value.")
        return Print(value)

    def parse_return_stmt(self) -> Stmt:
        keyword = self.previous()

        value = None
        if not self.check(TT.SEMI):
            value = self.parse_expr()

        self.expect(TT.SEMI, "Expect ';' after return value.")
        return Return(keyword, value)

    def parse_while_stmt(self) -> Stmt:
        self.expect(TT.LPAR, "Expect '(' after 'while'.")
        condition = self.parse_expr()
        self.expect(TT.RPAR, "Expect ')' after condition.")
        return While(condition, self.parse_statement())

    def parse_if_stmt(self) -> Stmt:
        self.expect(TT.LPAR, "Expect '(' after 'if'.")
        condition = self.parse_expr()
        self.expect(TT.RPAR, "Expect ')' after if condition.")

        then_branch = self.parse_statement()
        else_branch = None
        if self.match(TT.ELSE):
            else_branch = self.parse_statement()

        return If(condition, then_branch, else_branch)

    def parse_for_stmt(self) -> Stmt:
        """
        Parse a for loop and desugar it:

            { init; while (cond) { body; incr; } }
        """
        self.expect(TT.LPAR, "Expect '(' after 'for'.")

        if self.match(TT.SEMI):
            initializer = None
        elif self.match(TT.VAR):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition = None
        if not self.check(TT.SEMI):
            condition = self.parse_expr()
        self.expect(TT.SEMI, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TT.RPAR):
            increment = self.parse_expr()
        self.expect(TT.RPAR, "Expect ')' after for clauses.")

        body = self.parse_statement()

        if increment is not None:
            body = Block((body, Expression(increment)))

        if condition is None:
            condition = Literal(True)
        body = While(condition, body)

        if initializer is not None:
            body = Block((initializer, body))

        return body

    def parse_block(self) -> List[Stmt]:
        """Parse declarations up to the closing brace ('{' already consumed)"""
        statements: List[Stmt] = []

        while not self.check(TT.RBRACE) and not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)

        self.expect(TT.RBRACE, "Expect '}' after block.")
        return statements

    def parse_expr_stmt(self) -> Stmt:
        expr = self.parse_expr()
        self.expect(TT.SEMI, "Expect ';' after expression.")
        return Expression(expr)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Expr:
        if self.check(TT.FUN):
            return self.parse_lambda()

        if self._scan_for_ternary():
            return self.parse_ternary_expr()

        return self.parse_assignment()

    def _scan_for_ternary(self) -> bool:
        """True when a '?' appears at bracket depth 0 before the expression ends."""
        depth = 0

        for tok in self.tokens[self.pos:]:
            t = tok.type
            if t in self._OPENERS:
                depth += 1
            elif t in self._CLOSERS:
                if depth == 0:
                    return False
                depth -= 1
            elif depth == 0:
                if t == TT.QMARK:
                    return True
                if t in self._TERNARY_STOP:
                    return False

        return False

    def parse_lambda(self) -> Expr:
        keyword = self.advance()
        self.expect(TT.LPAR, "Expect '(' after 'fun'.")
        params, body = self.parse_function_tail("lambda")
        return Lambda(keyword, params, body)

    def parse_ternary_expr(self) -> Expr:
        """Parse ternary: cond ? then : else (operands are comparisons)"""
        condition = self.parse_comparison()
        question = self.expect(TT.QMARK, "Expect '?' after condition.")
        then_branch = self.parse_comparison()
        self.expect(TT.COLON, "Expect ':' after first expression.")
        else_branch = self.parse_comparison()
        return Ternary(condition, question, then_branch, else_branch)

    def parse_assignment(self) -> Expr:
        expr = self.parse_or_expr()

        if self.match(TT.ASSIGN):
            equals = self.previous()
            value = self.parse_expr()

            match expr:
                case Variable(name=name):
                    return Assign(name, value)
                case Get(obj=obj, name=name):
                    return Set(obj, name, value)
                case IndexGet(obj=obj, bracket=bracket, index=index):
                    return IndexSet(obj, bracket, index, value)

            # Reported, not raised: the statement itself is still well formed
            self.error(equals, "Invalid assignment target.")

        return expr

    def _parse_left_assoc(self, operand: Callable[[], Expr], types, node=Binary) -> Expr:
        expr = operand()

        while self.check(*types):
            op = self.advance()
            right = operand()
            expr = node(expr, op, right)

        return expr

    def parse_or_expr(self) -> Expr:
        return self._parse_left_assoc(self.parse_and_expr, (TT.OR,), Logical)

    def parse_and_expr(self) -> Expr:
        return self._parse_left_assoc(self.parse_equality, (TT.AND,), Logical)

    def parse_equality(self) -> Expr:
        return self._parse_left_assoc(self.parse_comparison, (TT.NEQ, TT.EQ))

    def parse_comparison(self) -> Expr:
        return self._parse_left_assoc(self.parse_term, (TT.GT, TT.GTE, TT.LT, TT.LTE))

    def parse_term(self) -> Expr:
        return self._parse_left_assoc(self.parse_factor, (TT.MINUS, TT.PLUS))

    def parse_factor(self) -> Expr:
        return self._parse_left_assoc(self.parse_unary, (TT.SLASH, TT.STAR))

    def parse_unary(self) -> Expr:
        if self.check(TT.NEG, TT.MINUS):
            op = self.advance()
            return Unary(op, self.parse_unary())

        return self.parse_call()

    def parse_call(self) -> Expr:
        """Parse postfix chain: call, field access and indexing"""
        expr = self.parse_primary()

        while True:
            if self.match(TT.LPAR):
                expr = self.finish_call(expr)
            elif self.match(TT.DOT):
                name = self.expect(TT.IDENT, "Expect property name after '.'.")
                expr = Get(expr, name)
            elif self.match(TT.LSQB):
                bracket = self.previous()
                index = self.parse_expr()
                self.expect(TT.RSQB, "Expect ']' after index.")
                expr = IndexGet(expr, bracket, index)
            else:
                break

        return expr

    def finish_call(self, callee: Expr) -> Expr:
        args = self.parse_arg_list(TT.RPAR)
        paren = self.expect(TT.RPAR, "Expect ')' after arguments.")
        return Call(callee, paren, tuple(args))

    def parse_arg_list(self, closer: TT) -> List[Expr]:
        args: List[Expr] = []

        if self.check(closer):
            return args

        while True:
            if len(args) >= MAX_ARGS:
                self.error(self.current, f"Can't have more than {MAX_ARGS} arguments.")
            args.append(self.parse_expr())
            if not self.match(TT.COMMA):
                break

        return args

    def parse_primary(self) -> Expr:
        tok = self.current

        match tok.type:
            case TT.FALSE:
                self.advance()
                return Literal(False)
            case TT.TRUE:
                self.advance()
                return Literal(True)
            case TT.NIL:
                self.advance()
                return Literal(None)
            case TT.NUMBER | TT.STRING:
                self.advance()
                return Literal(tok.literal)
            case TT.THIS:
                self.advance()
                return This(tok)
            case TT.SUPER:
                self.advance()
                self.expect(TT.DOT, "Expect '.' after 'super'.")
                method = self.expect(TT.IDENT, "Expect superclass method name.")
                return Super(tok, method)
            case TT.IDENT:
                self.advance()
                return Variable(tok)
            case TT.LPAR:
                self.advance()
                expr = self.parse_expr()
                self.expect(TT.RPAR, "Expect ')' after expression.")
                return Grouping(expr)
            case TT.LSQB:
                self.advance()
                elements = self.parse_arg_list(TT.RSQB)
                self.expect(TT.RSQB, "Expect ']' after elements.")
                return ArrayLiteral(tok, tuple(elements))

        raise self.error(tok, "Expect expression.")

# ============================================================================
# Convenience Functions
# ============================================================================

def parse_source(source: str, diagnostics: Optional[Diagnostics] = None) -> List[Stmt]:
    """
    Parse Lox source code to a statement list.

    Errors are reported to `diagnostics`; check its `had_error` flag before
    using the result.
    """
    from .lexer_rd import tokenize

    diagnostics = diagnostics or Diagnostics()
    tokens = tokenize(source, diagnostics)
    return Parser(tokens, diagnostics).parse()


def parse_expr_fragment(source: str, diagnostics: Optional[Diagnostics] = None) -> Expr:
    """
    Parse a standalone expression fragment.
    Raises ParseError when the fragment is malformed or has trailing tokens.
    """
    from .lexer_rd import tokenize

    diagnostics = diagnostics or Diagnostics(sink=lambda _line: None)
    tokens = tokenize(source, diagnostics)
    parser = Parser(tokens, diagnostics)
    expr = parser.parse_expr()

    # Ensure we've consumed the entire fragment
    if not parser.check(TT.EOF):
        raise parser.error(parser.current, "Expect end of expression.")
    return expr
