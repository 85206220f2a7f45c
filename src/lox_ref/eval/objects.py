from __future__ import annotations

from ..runtime import instance_get, instance_set
from ..token_types import Tok
from ..types import (
    LoxArray,
    LoxIndexError,
    LoxInstance,
    LoxNumber,
    LoxPropertyError,
    LoxTypeError,
    LoxValue,
)

# Synthetic read-only properties of arrays
def _array_length(arr: LoxArray) -> LoxValue:
    return LoxNumber(float(len(arr.items)))

ARRAY_PROPERTIES = {
    "length": _array_length,
}

def get_property(obj: LoxValue, name: Tok) -> LoxValue:
    match obj:
        case LoxInstance():
            return instance_get(obj, name)
        case LoxArray():
            getter = ARRAY_PROPERTIES.get(name.lexeme)
            if getter is None:
                raise LoxPropertyError(name)
            return getter(obj)

    raise LoxTypeError(name, "Only instances have properties.")

def set_property(obj: LoxValue, name: Tok, value: LoxValue) -> LoxValue:
    match obj:
        case LoxInstance():
            instance_set(obj, name, value)
            return value
        case LoxArray():
            raise LoxTypeError(name, "Can't set properties on arrays.")

    raise LoxTypeError(name, "Only instances have fields.")

def _array_slot(obj: LoxValue, index: LoxValue, bracket: Tok) -> tuple[LoxArray, int]:
    if not isinstance(obj, LoxArray):
        raise LoxTypeError(bracket, "Only arrays can be indexed.")

    if not isinstance(index, LoxNumber):
        raise LoxIndexError(bracket, "Only numbers are allowed as index.")

    raw = index.value
    if not raw.is_integer() or raw < 0 or raw >= len(obj.items):
        raise LoxIndexError(bracket, "Index out of range.")

    return obj, int(raw)

def index_get(obj: LoxValue, index: LoxValue, bracket: Tok) -> LoxValue:
    arr, idx = _array_slot(obj, index, bracket)
    return arr.items[idx]

def index_set(obj: LoxValue, index: LoxValue, value: LoxValue, bracket: Tok) -> LoxValue:
    arr, idx = _array_slot(obj, index, bracket)
    arr.items[idx] = value
    return value
