from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Dict, List

from .token_types import Tok
from .types import (
    NIL,
    Environment,
    LoxArityError,
    LoxClass,
    LoxFunction,
    LoxInstance,
    LoxNative,
    LoxPropertyError,
    LoxRuntimeError,
    LoxTypeError,
    LoxValue,
    NativeFn,
)

if TYPE_CHECKING:
    from .evaluator import Interpreter

_STDLIB_INITIALIZED = False

class Builtins:
    natives: Dict[str, LoxNative] = {}

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_native hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("lox_ref.stdlib")
    _STDLIB_INITIALIZED = True

def register_native(name: str, *, arity: int = 0):
    def dec(fn: NativeFn):
        Builtins.natives[name] = LoxNative(name=name, fn=fn, arity=arity)
        return fn

    return dec

def default_natives() -> Dict[str, LoxNative]:
    init_stdlib()
    return dict(Builtins.natives)

# ---------- Functions ----------

def bind(fn: LoxFunction, instance: LoxInstance) -> LoxFunction:
    """Return a copy of `fn` whose closure defines `this` as `instance`."""
    env = Environment(fn.closure)
    env.define("this", instance)
    return LoxFunction(fn.declaration, env, fn.is_initializer)

def call_function(fn: LoxFunction, args: List[LoxValue], interpreter: 'Interpreter') -> LoxValue:
    """
    Call semantics:
    - a fresh environment parented to the closure, not to the caller
    - parameters bound positionally (arity already checked)
    - an initializer always yields its bound `this`
    """
    env = Environment(fn.closure)

    for param, arg in zip(fn.declaration.params, args):
        env.define(param.lexeme, arg)

    signal = interpreter.execute_block(fn.declaration.body, env)

    if fn.is_initializer:
        return fn.closure.get_at(0, "this")

    if signal is not None:
        return signal.value

    return NIL

def call_class(klass: LoxClass, args: List[LoxValue], interpreter: 'Interpreter') -> LoxInstance:
    instance = LoxInstance(klass)
    initializer = klass.find_method("init")

    if initializer is not None:
        call_function(bind(initializer, instance), args, interpreter)

    return instance

def call_value(callee: LoxValue, args: List[LoxValue], paren: Tok, interpreter: 'Interpreter') -> LoxValue:
    if not isinstance(callee, (LoxFunction, LoxNative, LoxClass)):
        raise LoxTypeError(paren, "Can only call functions and classes.")

    if len(args) != callee.arity:
        raise LoxArityError(paren, callee.arity, len(args))

    try:
        match callee:
            case LoxFunction():
                return call_function(callee, args, interpreter)
            case LoxClass():
                return call_class(callee, args, interpreter)
            case LoxNative(fn=fn):
                return fn(args)
    except RecursionError:
        raise LoxRuntimeError(paren, "Stack overflow.") from None

    raise LoxTypeError(paren, "Can only call functions and classes.")

# ---------- Instances ----------

def instance_get(instance: LoxInstance, name: Tok) -> LoxValue:
    """Fields shadow methods; methods come back bound to the instance."""
    if name.lexeme in instance.fields:
        return instance.fields[name.lexeme]

    method = instance.klass.find_method(name.lexeme)
    if method is not None:
        return bind(method, instance)

    raise LoxPropertyError(name)

def instance_set(instance: LoxInstance, name: Tok, value: LoxValue) -> None:
    instance.fields[name.lexeme] = value
