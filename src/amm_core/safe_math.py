"""Checked integer arithmetic over fixed-width unsigned and signed types.

Python integers never wrap, so every helper here re-imposes the width of the
field the value is stored in and fails with ``MathOverflow`` instead of
returning an out-of-range result.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple

from amm_core.errors import MathOverflow, TypeCastFailed

LOGGER = logging.getLogger("bonding_amm.safe_math")


class Rounding(Enum):
    UP = "up"
    DOWN = "down"


class IntType(NamedTuple):
    name: str
    bits: int
    signed: bool = False

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value


U8 = IntType("u8", 8)
U16 = IntType("u16", 16)
U32 = IntType("u32", 32)
U64 = IntType("u64", 64)
U128 = IntType("u128", 128)
U256 = IntType("u256", 256)
U512 = IntType("u512", 512)
I64 = IntType("i64", 64, signed=True)
I128 = IntType("i128", 128, signed=True)


def _overflow(op: str, kind: IntType, *operands: int) -> MathOverflow:
    LOGGER.debug("Math error in %s on %s with operands %s", op, kind.name, operands)
    return MathOverflow(f"{op} on {kind.name}")


def _check_operands(op: str, kind: IntType, *operands: int) -> None:
    for value in operands:
        if not kind.contains(value):
            raise _overflow(op, kind, *operands)


def checked(value: int, kind: IntType = U64) -> int:
    """Return ``value`` unchanged if it fits ``kind``."""
    if not kind.contains(value):
        raise _overflow("range", kind, value)
    return value


def cast(value: int, kind: IntType = U64) -> int:
    """Narrow ``value`` into ``kind``; lossy narrowing is a cast failure."""
    if not kind.contains(value):
        raise TypeCastFailed(f"{value} does not fit {kind.name}")
    return value


def safe_add(a: int, b: int, kind: IntType = U64) -> int:
    _check_operands("add", kind, a, b)
    result = a + b
    if not kind.contains(result):
        raise _overflow("add", kind, a, b)
    return result


def safe_sub(a: int, b: int, kind: IntType = U64) -> int:
    _check_operands("sub", kind, a, b)
    result = a - b
    if not kind.contains(result):
        raise _overflow("sub", kind, a, b)
    return result


def safe_mul(a: int, b: int, kind: IntType = U64) -> int:
    _check_operands("mul", kind, a, b)
    result = a * b
    if not kind.contains(result):
        raise _overflow("mul", kind, a, b)
    return result


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def safe_div(a: int, b: int, kind: IntType = U64) -> int:
    """Divide truncating toward zero; division by zero is an overflow."""
    _check_operands("div", kind, a, b)
    if b == 0:
        raise _overflow("div", kind, a, b)
    result = _trunc_div(a, b)
    if not kind.contains(result):
        raise _overflow("div", kind, a, b)
    return result


def safe_rem(a: int, b: int, kind: IntType = U64) -> int:
    """Remainder carrying the sign of the dividend."""
    _check_operands("rem", kind, a, b)
    if b == 0:
        raise _overflow("rem", kind, a, b)
    return a - b * _trunc_div(a, b)


def safe_shl(value: int, offset: int, kind: IntType = U64) -> int:
    _check_operands("shl", kind, value)
    if offset < 0 or offset >= kind.bits:
        raise _overflow("shl", kind, value, offset)
    result = value << offset
    if not kind.contains(result):
        raise _overflow("shl", kind, value, offset)
    return result


def safe_shr(value: int, offset: int, kind: IntType = U64) -> int:
    _check_operands("shr", kind, value)
    if offset < 0 or offset >= kind.bits:
        raise _overflow("shr", kind, value, offset)
    return value >> offset


def _div_rounding(numerator: int, denominator: int, rounding: Rounding) -> int:
    if rounding is Rounding.UP:
        return -(-numerator // denominator)
    return numerator // denominator


def safe_mul_div_cast_u64(
    x: int,
    y: int,
    denominator: int,
    rounding: Rounding,
    result_type: IntType = U64,
) -> int:
    """Return ``x * y / denominator`` for u64 operands using a u128 product.

    Callers pick ``Rounding.UP`` for amounts owed to the protocol and
    ``Rounding.DOWN`` for amounts owed to the user.
    """
    _check_operands("mul_div", U64, x, y, denominator)
    product = safe_mul(x, y, U128)
    if denominator == 0:
        raise _overflow("mul_div", U128, x, y, denominator)
    if rounding is Rounding.UP:
        product = safe_sub(safe_add(product, denominator, U128), 1, U128)
    return cast(product // denominator, result_type)


def mul_div(
    x: int,
    y: int,
    denominator: int,
    rounding: Rounding,
    wide: IntType = U256,
) -> int:
    """Return ``x * y / denominator`` computed inside the ``wide`` type."""
    product = safe_mul(x, y, wide)
    _check_operands("mul_div", wide, denominator)
    if denominator == 0:
        raise _overflow("mul_div", wide, x, y, denominator)
    return _div_rounding(product, denominator, rounding)
