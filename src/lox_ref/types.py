from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from typing_extensions import TypeAlias

from .token_types import Tok
from .tree import FunctionDecl, Lambda

# ---------- Value Model ----------

@dataclass(frozen=True)
class LoxNil:
    def __repr__(self) -> str:
        return "nil"

@dataclass(frozen=True)
class LoxBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class LoxNumber:
    value: float
    def __repr__(self) -> str:
        v = self.value

        if math.isnan(v):
            return "NaN"

        if math.isinf(v):
            return "Infinity" if v > 0 else "-Infinity"

        if v.is_integer() and abs(v) < 1e21:
            return str(int(v))

        text = repr(v)
        if "e" in text:
            mantissa, exp = text.split("e")
            exponent = int(exp)
            # Exponent form only outside 1e-7 .. 1e21, unpadded and signed
            if -7 < exponent < 21:
                text = format(Decimal(text), "f")
            else:
                text = f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"
        return text

@dataclass(frozen=True)
class LoxString:
    value: str
    def __repr__(self) -> str:
        return self.value

@dataclass(eq=False)
class LoxArray:
    items: List['LoxValue']
    def __repr__(self) -> str:
        return "[ " + ", ".join(repr(x) for x in self.items) + " ]"

@dataclass(eq=False)
class LoxFunction:
    declaration: FunctionDecl     # AST node, shared, never copied
    closure: 'Environment'        # Environment active at creation
    is_initializer: bool = False

    @property
    def arity(self) -> int:
        return len(self.declaration.params)

    @property
    def name(self) -> str:
        if isinstance(self.declaration, Lambda):
            return "lambda"
        return self.declaration.name.lexeme

    def __repr__(self) -> str:
        return f"<fn {self.name}>"

NativeFn = Callable[[List['LoxValue']], 'LoxValue']

@dataclass(frozen=True, eq=False)
class LoxNative:
    name: str
    fn: NativeFn
    arity: int = 0
    def __repr__(self) -> str:
        return "<native fn>"

@dataclass(eq=False)
class LoxClass:
    name: str
    superclass: Optional['LoxClass']
    methods: Dict[str, LoxFunction]

    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self

        while klass is not None:
            method = klass.methods.get(name)
            if method is not None:
                return method
            klass = klass.superclass

        return None

    @property
    def arity(self) -> int:
        initializer = self.find_method("init")
        return initializer.arity if initializer is not None else 0

    def __repr__(self) -> str:
        return self.name

@dataclass(eq=False)
class LoxInstance:
    klass: LoxClass
    fields: Dict[str, 'LoxValue'] = field(default_factory=dict)
    def __repr__(self) -> str:
        return f"{self.klass.name} instance"

LoxValue: TypeAlias = (
    LoxNil
    | LoxBool
    | LoxNumber
    | LoxString
    | LoxArray
    | LoxFunction
    | LoxNative
    | LoxClass
    | LoxInstance
)

LoxCallable: TypeAlias = LoxFunction | LoxNative | LoxClass

NIL = LoxNil()

# ---------- Exceptions ----------

class LoxRuntimeError(Exception):
    """Runtime failure tied to the token whose evaluation failed."""

    def __init__(self, token: Tok, message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    def __str__(self) -> str:
        return f"[line {self.token.line}] {self.message}"

class LoxTypeError(LoxRuntimeError):
    pass

class LoxArityError(LoxRuntimeError):
    def __init__(self, token: Tok, expected: int, got: int):
        super().__init__(token, f"Expected {expected} arguments but got {got}.")
        self.expected = expected
        self.got = got

class LoxNameError(LoxRuntimeError):
    def __init__(self, token: Tok):
        super().__init__(token, f"Undefined variable '{token.lexeme}'.")

class LoxPropertyError(LoxRuntimeError):
    def __init__(self, token: Tok):
        super().__init__(token, f"Undefined property '{token.lexeme}'.")

class LoxIndexError(LoxRuntimeError):
    pass

# ---------- Control flow ----------

@dataclass(frozen=True)
class ReturnSignal:
    """Outcome of a `return` statement, passed up to the enclosing call."""
    value: LoxValue

# None means the statement completed normally
Completion: TypeAlias = Optional[ReturnSignal]

# ---------- Environment ----------

class Environment:
    def __init__(self, enclosing: Optional['Environment']=None):
        self.enclosing = enclosing
        self.values: Dict[str, LoxValue] = {}

    def define(self, name: str, val: LoxValue) -> None:
        self.values[name] = val

    def get(self, name: Tok) -> LoxValue:
        env: Optional[Environment] = self

        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing

        raise LoxNameError(name)

    def assign(self, name: Tok, val: LoxValue) -> None:
        env: Optional[Environment] = self

        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = val
                return
            env = env.enclosing

        raise LoxNameError(name)

    def ancestor(self, distance: int) -> 'Environment':
        env = self

        for _ in range(distance):
            if env.enclosing is None:
                raise RuntimeError(f"Environment chain shorter than resolved distance {distance}")
            env = env.enclosing

        return env

    def get_at(self, distance: int, name: str) -> LoxValue:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Tok, val: LoxValue) -> None:
        self.ancestor(distance).values[name.lexeme] = val
