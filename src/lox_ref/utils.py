from __future__ import annotations

import math
import os

from .types import (
    LoxValue,
    LoxNil,
    LoxBool,
    LoxNumber,
    LoxString,
)

DEBUG_PY_TRACE_ENV = "LOX_DEBUG_PY_TRACE"


def debug_py_trace_enabled() -> bool:
    """True when runtime errors should also print the Python traceback."""
    return os.environ.get(DEBUG_PY_TRACE_ENV, "").lower() in ("1", "true", "yes", "on")


def stringify(value: LoxValue) -> str:
    """Display form used by `print` and string concatenation."""
    return repr(value)


def lox_equals(lhs: LoxValue, rhs: LoxValue) -> bool:
    match (lhs, rhs):
        case (LoxNil(), LoxNil()):
            return True
        case (LoxBool(value=a), LoxBool(value=b)):
            return a == b
        case (LoxNumber(value=a), LoxNumber(value=b)):
            # NaN never equals anything, itself included
            if math.isnan(a) or math.isnan(b):
                return False
            return a == b
        case (LoxString(value=a), LoxString(value=b)):
            return a == b
        case _:
            # Arrays, functions, classes and instances compare by identity
            return lhs is rhs
