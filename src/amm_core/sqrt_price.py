"""Exact Q64.64 square-root price derivation from reserve amounts."""

from __future__ import annotations

import logging

from amm_core.constants import RESOLUTION
from amm_core.errors import AmountIsZero, MathOverflow
from amm_core.safe_math import U128, U256, cast, safe_div, safe_mul, safe_shl

LOGGER = logging.getLogger("bonding_amm.sqrt_price")

PRICE_SCALE = 10**18
MAX_SQRT_ITERATIONS = 255


def sqrt_u256(value: int) -> int:
    """Integer square root (floor) of a 256-bit value via Newton's method.

    The initial guess is ``2 ** ((bit_length - 1) // 2)``. The walk stops on a
    fixed point; values one below a perfect square cycle between ``floor`` and
    ``floor + 1`` and fail with MathOverflow once the iteration cap is hit.
    """
    if value < 0 or value >= 1 << 256:
        raise MathOverflow("sqrt operand outside u256")
    if value == 0:
        return 0

    x = 1
    bits = value.bit_length()
    if bits > 1:
        x <<= (bits - 1) // 2

    iterations = 0
    while True:
        previous = x
        x = (x + value // x) >> 1
        iterations += 1
        if x == previous or iterations >= MAX_SQRT_ITERATIONS:
            break

    if iterations >= MAX_SQRT_ITERATIONS:
        LOGGER.debug("sqrt did not converge for %s", value)
        raise MathOverflow("sqrt did not converge")
    return x


def adjust_price_for_decimals(price: int, base_decimal: int, quote_decimal: int) -> int:
    """Rescale a quote/base price by the decimal-place gap between the tokens."""
    decimal_diff = base_decimal - quote_decimal
    if decimal_diff > 0:
        return safe_div(price, 10**decimal_diff, U256)
    if decimal_diff < 0:
        return safe_mul(price, 10 ** (-decimal_diff), U256)
    return price


def get_sqrt_price_from_price(price: int, base_decimal: int, quote_decimal: int) -> int:
    price_adjusted = adjust_price_for_decimals(price, base_decimal, quote_decimal)
    sqrt_price = sqrt_u256(price_adjusted)
    sqrt_price_q64 = safe_shl(sqrt_price, RESOLUTION, U256)
    return cast(sqrt_price_q64, U128)


def get_sqrt_price_from_amounts(
    base_amount: int,
    quote_amount: int,
    base_decimal: int,
    quote_decimal: int,
) -> int:
    """Return the Q64.64 sqrt price implied by ``quote_amount / base_amount``.

    The ratio is carried with 18 decimal places of precision before the root
    is taken, so the result is reproducible bit-for-bit without floats.
    """
    if base_amount == 0:
        raise AmountIsZero("base amount")
    price_scaled = safe_div(
        safe_mul(cast(quote_amount, U128), PRICE_SCALE, U256),
        cast(base_amount, U128),
        U256,
    )
    return get_sqrt_price_from_price(price_scaled, base_decimal, quote_decimal)
