"""Built-in native functions registered via register_native."""

from __future__ import annotations

import time
from typing import List

from .runtime import register_native
from .types import LoxNumber, LoxValue

@register_native("clock", arity=0)
def std_clock(_args: List[LoxValue]) -> LoxNumber:
    return LoxNumber(time.time())
