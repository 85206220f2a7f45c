"""
AST node definitions.

Nodes are frozen dataclasses compared and hashed by identity (`eq=False`), so
the resolver can key its distance table on the node object itself. Two
closed unions, `Expr` and `Stmt`, are the only shapes the evaluator matches
on.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional, Tuple, Union
from typing_extensions import TypeAlias

from .token_types import Tok

LiteralValue = Union[None, bool, float, str]

_node = dataclass(frozen=True, eq=False)

# ---------- Expressions ----------

@_node
class Literal:
    value: LiteralValue

@_node
class Grouping:
    expression: Expr

@_node
class Unary:
    operator: Tok
    right: Expr

@_node
class Binary:
    left: Expr
    operator: Tok
    right: Expr

@_node
class Logical:
    left: Expr
    operator: Tok
    right: Expr

@_node
class Ternary:
    condition: Expr
    question: Tok
    then_branch: Expr
    else_branch: Expr

@_node
class Assign:
    name: Tok
    value: Expr

@_node
class Variable:
    name: Tok

@_node
class Call:
    callee: Expr
    paren: Tok
    arguments: Tuple[Expr, ...]

@_node
class Get:
    obj: Expr
    name: Tok

@_node
class Set:
    obj: Expr
    name: Tok
    value: Expr

@_node
class This:
    keyword: Tok

@_node
class Super:
    keyword: Tok
    method: Tok

@_node
class Lambda:
    keyword: Tok
    params: Tuple[Tok, ...]
    body: Tuple[Stmt, ...]

@_node
class ArrayLiteral:
    bracket: Tok
    elements: Tuple[Expr, ...]

@_node
class IndexGet:
    obj: Expr
    bracket: Tok
    index: Expr

@_node
class IndexSet:
    obj: Expr
    bracket: Tok
    index: Expr
    value: Expr

# ---------- Statements ----------

@_node
class Expression:
    expression: Expr

@_node
class Print:
    expression: Expr

@_node
class Var:
    name: Tok
    initializer: Optional[Expr]

@_node
class Block:
    statements: Tuple[Stmt, ...]

@_node
class If:
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]

@_node
class While:
    condition: Expr
    body: Stmt

@_node
class Function:
    name: Tok
    params: Tuple[Tok, ...]
    body: Tuple[Stmt, ...]

@_node
class Return:
    keyword: Tok
    value: Optional[Expr]

@_node
class Class:
    name: Tok
    superclass: Optional[Variable]
    methods: Tuple[Function, ...]

Expr: TypeAlias = (
    Literal
    | Grouping
    | Unary
    | Binary
    | Logical
    | Ternary
    | Assign
    | Variable
    | Call
    | Get
    | Set
    | This
    | Super
    | Lambda
    | ArrayLiteral
    | IndexGet
    | IndexSet
)

Stmt: TypeAlias = (
    Expression
    | Print
    | Var
    | Block
    | If
    | While
    | Function
    | Return
    | Class
)

FunctionDecl: TypeAlias = Function | Lambda

def first_token(node: object) -> Optional[Tok]:
    """Leftmost token under `node`, found without recursion."""
    stack = [node]

    while stack:
        current = stack.pop()
        if isinstance(current, Tok):
            return current
        if isinstance(current, (tuple, list)):
            stack.extend(reversed(current))
        elif dataclasses.is_dataclass(current):
            stack.extend(reversed([getattr(current, f.name) for f in dataclasses.fields(current)]))

    return None
