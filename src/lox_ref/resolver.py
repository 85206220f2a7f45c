"""
Static resolver.

Walks the parsed program once and records, for every variable reference and
every `this`/`super`, how many scopes out its binding lives. Names that are
not found in any local scope are left out of the table and looked up as
globals at runtime.

Problems found here (bad `return`, `this` outside a class, duplicate locals,
self-inheritance, ...) are reported and resolution continues.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Dict, List, Optional, Sequence

from .diagnostics import Diagnostics, StaticError, where_of
from .token_types import Tok
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
    FunctionDecl,
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
    first_token,
)


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()
    LAMBDA = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class ResolutionError(StaticError):
    def __init__(self, token: Tok, message: str):
        self.token = token
        super().__init__(token.line, message, where_of(token))


class Resolver:
    def __init__(self, diagnostics: Optional[Diagnostics] = None):
        self.diagnostics = diagnostics or Diagnostics()
        # Each scope maps a name to True once its initializer has finished
        self.scopes: List[Dict[str, bool]] = []
        self.locals: Dict[Expr, int] = {}
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements: Sequence[Stmt]) -> Dict[Expr, int]:
        for stmt in statements:
            try:
                self.resolve_stmt(stmt)
            except RecursionError:
                self.nesting_error(stmt)
        return self.locals

    def resolve_statements(self, statements: Sequence[Stmt]) -> None:
        for stmt in statements:
            self.resolve_stmt(stmt)

    def nesting_error(self, stmt: Stmt) -> None:
        # The walk was cut short; top-level state is known to be empty
        self.scopes = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

        token = first_token(stmt)
        if token is None:
            self.diagnostics.error(0, "Expression nesting too deep.")
        else:
            self.error(token, "Expression nesting too deep.")

    def error(self, token: Tok, message: str) -> None:
        self.diagnostics.report(ResolutionError(token, message))

    # ---------------- statements ----------------

    def resolve_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case Block(statements=statements):
                self.begin_scope()
                self.resolve_statements(statements)
                self.end_scope()
            case Var(name=name, initializer=initializer):
                self.declare(name)
                if initializer is not None:
                    self.resolve_expr(initializer)
                self.define(name)
            case Function(name=name):
                # Defined before the body so the function can recurse
                self.declare(name)
                self.define(name)
                self.resolve_function(stmt, FunctionType.FUNCTION)
            case Class():
                self.resolve_class(stmt)
            case Expression(expression=expr) | Print(expression=expr):
                self.resolve_expr(expr)
            case If(condition=condition, then_branch=then_branch, else_branch=else_branch):
                self.resolve_expr(condition)
                self.resolve_stmt(then_branch)
                if else_branch is not None:
                    self.resolve_stmt(else_branch)
            case While(condition=condition, body=body):
                self.resolve_expr(condition)
                self.resolve_stmt(body)
            case Return(keyword=keyword, value=value):
                if self.current_function == FunctionType.NONE:
                    self.error(keyword, "Can't return from top-level code.")

                if value is not None:
                    if self.current_function == FunctionType.INITIALIZER:
                        self.error(keyword, "Can't return a value from an initializer.")
                    self.resolve_expr(value)
            case _:
                raise TypeError(f"Unknown statement node {type(stmt).__name__}")

    def resolve_class(self, stmt: Class) -> None:
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        superclass = stmt.superclass
        if superclass is not None:
            if superclass.name.lexeme == stmt.name.lexeme:
                self.error(superclass.name, "A class can't inherit from itself.")

            self.current_class = ClassType.SUBCLASS
            self.resolve_expr(superclass)

            self.begin_scope()
            self.scopes[-1]["super"] = True

        self.begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            kind = FunctionType.METHOD
            if method.name.lexeme == "init":
                kind = FunctionType.INITIALIZER
            self.resolve_function(method, kind)

        self.end_scope()

        if superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def resolve_function(self, fn: FunctionDecl, kind: FunctionType) -> None:
        enclosing_function = self.current_function
        self.current_function = kind

        self.begin_scope()
        for param in fn.params:
            self.declare(param)
            self.define(param)
        self.resolve_statements(fn.body)
        self.end_scope()

        self.current_function = enclosing_function

    # ---------------- expressions ----------------

    def resolve_expr(self, expr: Expr) -> None:
        match expr:
            case Variable(name=name):
                if self.scopes and self.scopes[-1].get(name.lexeme) is False:
                    self.error(name, "Can't read local variable in its own initializer.")
                self.resolve_local(expr, name)
            case Assign(name=name, value=value):
                self.resolve_expr(value)
                self.resolve_local(expr, name)
            case This(keyword=keyword):
                if self.current_class == ClassType.NONE:
                    self.error(keyword, "Can't use 'this' outside of a class.")
                    return
                self.resolve_local(expr, keyword)
            case Super(keyword=keyword):
                if self.current_class == ClassType.NONE:
                    self.error(keyword, "Can't use 'super' outside of a class.")
                elif self.current_class != ClassType.SUBCLASS:
                    self.error(keyword, "Can't use 'super' in a class with no superclass.")
                self.resolve_local(expr, keyword)
            case Lambda():
                self.resolve_function(expr, FunctionType.LAMBDA)
            case Literal():
                pass
            case Grouping(expression=inner) | Unary(right=inner):
                self.resolve_expr(inner)
            case Binary(left=left, right=right) | Logical(left=left, right=right):
                self.resolve_expr(left)
                self.resolve_expr(right)
            case Ternary(condition=condition, then_branch=then_branch, else_branch=else_branch):
                self.resolve_expr(condition)
                self.resolve_expr(then_branch)
                self.resolve_expr(else_branch)
            case Call(callee=callee, arguments=arguments):
                self.resolve_expr(callee)
                for arg in arguments:
                    self.resolve_expr(arg)
            case Get(obj=obj):
                self.resolve_expr(obj)
            case Set(obj=obj, value=value):
                self.resolve_expr(value)
                self.resolve_expr(obj)
            case ArrayLiteral(elements=elements):
                for element in elements:
                    self.resolve_expr(element)
            case IndexGet(obj=obj, index=index):
                self.resolve_expr(obj)
                self.resolve_expr(index)
            case IndexSet(obj=obj, index=index, value=value):
                self.resolve_expr(obj)
                self.resolve_expr(index)
                self.resolve_expr(value)
            case _:
                raise TypeError(f"Unknown expression node {type(expr).__name__}")

    # ---------------- scopes ----------------

    def begin_scope(self) -> None:
        self.scopes.append({})

    def end_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Tok) -> None:
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def define(self, name: Tok) -> None:
        if not self.scopes:
            return

        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expr, name: Tok) -> None:
        for i in range(len(self.scopes) - 1, -1, -1):
            if name.lexeme in self.scopes[i]:
                self.locals[expr] = len(self.scopes) - 1 - i
                return
