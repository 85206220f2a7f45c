from __future__ import annotations

from typing import Callable, Dict, Optional

from ..tree import Class, Expr, FunctionDecl
from ..types import NIL, Environment, LoxClass, LoxFunction, LoxTypeError, LoxValue

EvalFunc = Callable[[Expr], LoxValue]

def make_function(decl: FunctionDecl, env: Environment, is_initializer: bool = False) -> LoxFunction:
    """Close `decl` over the environment that is active right now."""
    return LoxFunction(decl, env, is_initializer)

def declare_class(stmt: Class, env: Environment, eval_func: EvalFunc) -> LoxClass:
    """
    Build the class value for a declaration.

    Methods close over an extra scope binding `super` when the class has a
    superclass; the resolver counts that scope when computing distances.
    """
    superclass: Optional[LoxClass] = None

    if stmt.superclass is not None:
        value = eval_func(stmt.superclass)
        if not isinstance(value, LoxClass):
            raise LoxTypeError(stmt.superclass.name, "Superclass must be a class.")
        superclass = value

    # Name exists before the methods close over the scope
    env.define(stmt.name.lexeme, NIL)

    method_env = env
    if superclass is not None:
        method_env = Environment(env)
        method_env.define("super", superclass)

    methods: Dict[str, LoxFunction] = {}
    for method in stmt.methods:
        methods[method.name.lexeme] = make_function(method, method_env, method.name.lexeme == "init")

    klass = LoxClass(stmt.name.lexeme, superclass, methods)
    env.assign(stmt.name, klass)
    return klass
