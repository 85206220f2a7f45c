from __future__ import annotations

from typing import Tuple

from ..token_types import Tok
from ..types import LoxNumber, LoxTypeError, LoxValue

def require_number(operator: Tok, operand: LoxValue) -> float:
    if isinstance(operand, LoxNumber):
        return operand.value

    raise LoxTypeError(operator, "Operand must be a number.")

def require_numbers(operator: Tok, left: LoxValue, right: LoxValue) -> Tuple[float, float]:
    if isinstance(left, LoxNumber) and isinstance(right, LoxNumber):
        return left.value, right.value

    raise LoxTypeError(operator, "Operands must be numbers.")
