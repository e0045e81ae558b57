"""Conversion of raw strings into the natively supported field types."""

from __future__ import annotations

import math
import struct
from typing import Any, Callable, Dict, NewType

Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Float32 = NewType("Float32", float)

_INT32_RANGE = (-(2**31), 2**31 - 1)
_INT64_RANGE = (-(2**63), 2**63 - 1)


def parse_bool(value: str) -> bool:
    # Permissive: anything other than "true" is False
    return value.lower() == "true"


def _parse_int(value: str) -> int:
    # int() also accepts "1_000" and surrounding whitespace; only plain base-10 digits are valid here
    if "_" in value or value != value.strip():
        raise ValueError(f"invalid literal for int() with base 10: {value!r}")
    return int(value, 10)


def _bounded_int(bounds: tuple) -> Callable[[str], int]:
    low, high = bounds

    def parse(value: str) -> int:
        number = _parse_int(value)
        if not low <= number <= high:
            raise ValueError(f"{number} is out of range [{low}, {high}]")
        return number

    return parse


def _parse_float(value: str) -> float:
    text = value.strip()
    if "_" in text:
        raise ValueError(f"could not convert string to float: {value!r}")
    return float(text)


def _parse_float32(value: str) -> float:
    number = _parse_float(value)
    try:
        single = struct.unpack("f", struct.pack("f", number))[0]
    except OverflowError as e:
        raise ValueError(f"{value!r} is out of range for a 32-bit float") from e
    # newer interpreters round overflowing values to inf instead of raising
    if math.isinf(single) and not math.isinf(number):
        raise ValueError(f"{value!r} is out of range for a 32-bit float")
    return single


NATIVE_PARSERS: Dict[Any, Callable[[str], Any]] = {
    str: lambda value: value,
    bool: parse_bool,
    int: _parse_int,
    Int32: _bounded_int(_INT32_RANGE),
    Int64: _bounded_int(_INT64_RANGE),
    float: _parse_float,
    Float32: _parse_float32,
}


def is_native(type_: Any) -> bool:
    return type_ in NATIVE_PARSERS


def parse_native(type_: Any, value: str) -> Any:
    """Parse ``value`` into ``type_``; raises ValueError on malformed numbers."""
    return NATIVE_PARSERS[type_](value)
