from __future__ import annotations

import math
from typing import Callable

from ..token_types import TT, Tok
from ..tree import Binary, Expr, Logical, Ternary, Unary
from ..types import LoxBool, LoxNumber, LoxString, LoxTypeError, LoxValue
from ..utils import lox_equals, stringify
from .common import require_number, require_numbers
from .helpers import is_truthy

EvalFunc = Callable[[Expr], LoxValue]

def eval_unary(node: Unary, eval_func: EvalFunc) -> LoxValue:
    right = eval_func(node.right)

    match node.operator.type:
        case TT.NEG:
            return LoxBool(not is_truthy(right))
        case TT.MINUS:
            return LoxNumber(-require_number(node.operator, right))

    raise LoxTypeError(node.operator, f"Unknown unary operator '{node.operator.lexeme}'.")

def eval_binary(node: Binary, eval_func: EvalFunc) -> LoxValue:
    # Operands evaluate left to right before the operator applies
    left = eval_func(node.left)
    right = eval_func(node.right)
    return apply_binary_op(node.operator, left, right)

def apply_binary_op(op: Tok, left: LoxValue, right: LoxValue) -> LoxValue:
    match op.type:
        case TT.EQ:
            return LoxBool(lox_equals(left, right))
        case TT.NEQ:
            return LoxBool(not lox_equals(left, right))
        case TT.PLUS:
            return add_values(op, left, right)
        case TT.MINUS:
            a, b = require_numbers(op, left, right)
            return LoxNumber(a - b)
        case TT.STAR:
            a, b = require_numbers(op, left, right)
            return LoxNumber(a * b)
        case TT.SLASH:
            a, b = require_numbers(op, left, right)
            return LoxNumber(divide(a, b))
        case TT.GT:
            a, b = require_numbers(op, left, right)
            return LoxBool(a > b)
        case TT.GTE:
            a, b = require_numbers(op, left, right)
            return LoxBool(a >= b)
        case TT.LT:
            a, b = require_numbers(op, left, right)
            return LoxBool(a < b)
        case TT.LTE:
            a, b = require_numbers(op, left, right)
            return LoxBool(a <= b)

    raise LoxTypeError(op, f"Unknown binary operator '{op.lexeme}'.")

def add_values(op: Tok, left: LoxValue, right: LoxValue) -> LoxValue:
    match (left, right):
        case (LoxNumber(value=a), LoxNumber(value=b)):
            return LoxNumber(a + b)
        case (LoxString(), _) | (_, LoxString()):
            return LoxString(stringify(left) + stringify(right))

    raise LoxTypeError(op, "Operands must be two numbers or at least one string.")

def divide(a: float, b: float) -> float:
    """IEEE-754 division: a zero divisor yields an infinity or NaN."""
    if b != 0:
        return a / b

    if a == 0 or math.isnan(a):
        return math.nan

    # Sign follows both operands, including a negative zero divisor
    sign = math.copysign(1.0, a) * math.copysign(1.0, b)
    return math.copysign(math.inf, sign)

def eval_logical(node: Logical, eval_func: EvalFunc) -> LoxValue:
    left = eval_func(node.left)

    if node.operator.type == TT.OR:
        if is_truthy(left):
            return left
    elif not is_truthy(left):
        return left

    return eval_func(node.right)

def eval_ternary(node: Ternary, eval_func: EvalFunc) -> LoxValue:
    if is_truthy(eval_func(node.condition)):
        return eval_func(node.then_branch)

    return eval_func(node.else_branch)
