from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional, Sequence

from .diagnostics import Diagnostics
from .runtime import bind, call_value, default_natives
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
    LiteralValue,
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
from .types import (
    NIL,
    Completion,
    Environment,
    LoxArray,
    LoxBool,
    LoxNative,
    LoxNumber,
    LoxPropertyError,
    LoxRuntimeError,
    LoxString,
    LoxValue,
    ReturnSignal,
)
from .utils import stringify

from .eval.expr import eval_binary, eval_logical, eval_ternary, eval_unary
from .eval.fn import declare_class, make_function
from .eval.helpers import is_truthy
from .eval.objects import get_property, index_get, index_set, set_property

Output = Callable[[str], None]

def literal_value(value: LiteralValue) -> LoxValue:
    match value:
        case None:
            return NIL
        case bool():
            return LoxBool(value)
        case float() | int():
            return LoxNumber(float(value))
        case str():
            return LoxString(value)

    raise TypeError(f"Unsupported literal {value!r}")

class Interpreter:
    """
    Tree-walking evaluator.

    One `Interpreter` keeps its `globals` between `interpret` calls, so an
    interactive session can build on earlier input. `locals` is the distance
    table produced by the resolver, keyed by node identity.
    """

    def __init__(self, diagnostics: Optional[Diagnostics]=None, output: Optional[Output]=None,
                 natives: Optional[Mapping[str, LoxNative]]=None):
        self.diagnostics = diagnostics or Diagnostics()
        self.output: Output = output or print
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[Expr, int] = {}

        if natives is None:
            natives = default_natives()

        for name, native in natives.items():
            self.globals.define(name, native)

    def resolve(self, expr: Expr, depth: int) -> None:
        self.locals[expr] = depth

    def resolve_all(self, table: Mapping[Expr, int]) -> None:
        self.locals.update(table)

    def interpret(self, statements: Sequence[Stmt]) -> bool:
        """Run top-level statements; a runtime error stops the rest and is reported."""
        try:
            for stmt in statements:
                try:
                    self.execute(stmt)
                except RecursionError:
                    # Deep expression nesting outside any call
                    token = first_token(stmt) or Tok(TT.EOF, "", None, 1)
                    raise LoxRuntimeError(token, "Stack overflow.") from None
        except LoxRuntimeError as err:
            self.diagnostics.runtime_error(err)
            return False

        return True

    # ---------------- statements ----------------

    def execute(self, stmt: Stmt) -> Completion:
        match stmt:
            case Expression(expression=expr):
                self.evaluate(expr)
            case Print(expression=expr):
                self.output(stringify(self.evaluate(expr)))
            case Var(name=name, initializer=initializer):
                value = NIL if initializer is None else self.evaluate(initializer)
                self.environment.define(name.lexeme, value)
            case Block(statements=statements):
                return self.execute_block(statements, Environment(self.environment))
            case If(condition=condition, then_branch=then_branch, else_branch=else_branch):
                if is_truthy(self.evaluate(condition)):
                    return self.execute(then_branch)
                if else_branch is not None:
                    return self.execute(else_branch)
            case While(condition=condition, body=body):
                while is_truthy(self.evaluate(condition)):
                    signal = self.execute(body)
                    if signal is not None:
                        return signal
            case Function(name=name):
                self.environment.define(name.lexeme, make_function(stmt, self.environment))
            case Return(value=value):
                return ReturnSignal(NIL if value is None else self.evaluate(value))
            case Class():
                declare_class(stmt, self.environment, self.evaluate)
            case _:
                raise TypeError(f"Unknown statement node {type(stmt).__name__}")

        return None

    def execute_block(self, statements: Sequence[Stmt], env: Environment) -> Completion:
        previous = self.environment
        self.environment = env

        try:
            for stmt in statements:
                signal = self.execute(stmt)
                if signal is not None:
                    return signal
        finally:
            self.environment = previous

        return None

    # ---------------- expressions ----------------

    def evaluate(self, expr: Expr) -> LoxValue:
        match expr:
            case Literal(value=value):
                return literal_value(value)
            case Grouping(expression=inner):
                return self.evaluate(inner)
            case Unary():
                return eval_unary(expr, self.evaluate)
            case Binary():
                return eval_binary(expr, self.evaluate)
            case Logical():
                return eval_logical(expr, self.evaluate)
            case Ternary():
                return eval_ternary(expr, self.evaluate)
            case Variable(name=name):
                return self.look_up_variable(name, expr)
            case Assign(name=name, value=value_expr):
                value = self.evaluate(value_expr)
                distance = self.locals.get(expr)
                if distance is not None:
                    self.environment.assign_at(distance, name, value)
                else:
                    self.globals.assign(name, value)
                return value
            case This(keyword=keyword):
                return self.look_up_variable(keyword, expr)
            case Super():
                return self.eval_super(expr)
            case Lambda():
                return make_function(expr, self.environment)
            case Call(callee=callee_expr, paren=paren, arguments=arguments):
                callee = self.evaluate(callee_expr)
                args = [self.evaluate(arg) for arg in arguments]
                return call_value(callee, args, paren, self)
            case Get(obj=obj, name=name):
                return get_property(self.evaluate(obj), name)
            case Set(obj=obj, name=name, value=value_expr):
                target = self.evaluate(obj)
                return set_property(target, name, self.evaluate(value_expr))
            case ArrayLiteral(elements=elements):
                return LoxArray([self.evaluate(element) for element in elements])
            case IndexGet(obj=obj, bracket=bracket, index=index):
                target = self.evaluate(obj)
                return index_get(target, self.evaluate(index), bracket)
            case IndexSet(obj=obj, bracket=bracket, index=index, value=value_expr):
                target = self.evaluate(obj)
                key = self.evaluate(index)
                return index_set(target, key, self.evaluate(value_expr), bracket)
            case _:
                raise TypeError(f"Unknown expression node {type(expr).__name__}")

    def eval_super(self, expr: Super) -> LoxValue:
        distance = self.locals[expr]
        superclass = self.environment.get_at(distance, "super")
        # `this` lives in the scope just inside the one binding `super`
        instance = self.environment.get_at(distance - 1, "this")

        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxPropertyError(expr.method)

        return bind(method, instance)

    def look_up_variable(self, name: Tok, expr: Expr) -> LoxValue:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)

        return self.globals.get(name)
