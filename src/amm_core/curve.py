"""Segmented concentrated-liquidity curve evaluator.

A curve is an ordered list of ``(sqrt_price, liquidity)`` points. Liquidity
``curve[i].liquidity`` applies between the previous point (or the initial
price) and ``curve[i].sqrt_price``. Unused trailing slots are zero points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from amm_core.constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE, RESOLUTION
from amm_core.errors import NotEnoughLiquidity, SwapAmountIsOverAThreshold
from amm_core.models import CurvePoint
from amm_core.safe_math import (
    U64,
    U128,
    U256,
    U512,
    Rounding,
    cast,
    mul_div,
    safe_add,
    safe_div,
    safe_mul,
    safe_shl,
    safe_sub,
)

LOGGER = logging.getLogger("bonding_amm.curve")

Q128 = 1 << (RESOLUTION * 2)


@dataclass(frozen=True)
class SwapAmount:
    output_amount: int
    next_sqrt_price: int
    amount_left: int = 0


def get_delta_amount_quote_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    """Quote spanned by ``[lower, upper]``: ``L * (upper - lower) / 2^128``."""
    delta_sqrt_price = safe_sub(upper_sqrt_price, lower_sqrt_price, U256)
    product = safe_mul(liquidity, delta_sqrt_price, U256)
    if rounding is Rounding.UP:
        return -(-product // Q128)
    return product >> (RESOLUTION * 2)


def get_delta_amount_base_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    """Base spanned by ``[lower, upper]``: ``L * (upper - lower) / (upper * lower)``."""
    numerator = safe_sub(upper_sqrt_price, lower_sqrt_price, U256)
    denominator = safe_mul(lower_sqrt_price, upper_sqrt_price, U256)
    return mul_div(liquidity, numerator, denominator, rounding)


def _next_sqrt_price_from_base_rounding_up(
    sqrt_price: int, liquidity: int, amount: int
) -> int:
    if amount == 0:
        return sqrt_price
    product = safe_mul(amount, sqrt_price, U256)
    denominator = safe_add(liquidity, product, U256)
    return mul_div(liquidity, sqrt_price, denominator, Rounding.UP)


def _next_sqrt_price_from_quote_rounding_down(
    sqrt_price: int, liquidity: int, amount: int
) -> int:
    quotient = safe_shl(amount, RESOLUTION * 2, U256) // liquidity
    return safe_add(sqrt_price, quotient, U256)


def get_next_sqrt_price_from_input(
    sqrt_price: int,
    liquidity: int,
    amount_in: int,
    base_for_quote: bool,
) -> int:
    """Price reached inside one segment after injecting ``amount_in``.

    Selling base moves the price down and rounds up; buying with quote moves
    it up and rounds down. Either way the pool keeps the residue.
    """
    if base_for_quote:
        next_price = _next_sqrt_price_from_base_rounding_up(sqrt_price, liquidity, amount_in)
    else:
        next_price = _next_sqrt_price_from_quote_rounding_down(
            sqrt_price, liquidity, amount_in
        )
    if not MIN_SQRT_PRICE <= next_price <= MAX_SQRT_PRICE:
        LOGGER.debug(
            "Next sqrt price %s outside [%s, %s]", next_price, MIN_SQRT_PRICE, MAX_SQRT_PRICE
        )
        raise NotEnoughLiquidity("price would leave the curve bounds")
    return next_price


def get_max_swallow_amount(migration_quote_threshold: int, swallow_percentage: int) -> int:
    return mul_div(migration_quote_threshold, swallow_percentage, 100, Rounding.DOWN)


def get_swap_amount_from_quote_to_base(
    curve: Sequence[CurvePoint],
    current_sqrt_price: int,
    amount_in: int,
    max_swallow_amount: int,
) -> SwapAmount:
    """Walk the curve upward spending ``amount_in`` quote.

    Input left over once every configured point is passed is absorbed only up
    to ``max_swallow_amount``.
    """
    total_output = 0
    sqrt_price = current_sqrt_price
    amount_left = amount_in

    for point in curve:
        if point.is_empty:
            break
        if point.sqrt_price <= sqrt_price:
            continue

        max_amount_in = get_delta_amount_quote_unsigned(
            sqrt_price, point.sqrt_price, point.liquidity, Rounding.UP
        )
        if amount_left < max_amount_in:
            next_sqrt_price = get_next_sqrt_price_from_input(
                sqrt_price, point.liquidity, amount_left, False
            )
            output = get_delta_amount_base_unsigned(
                sqrt_price, next_sqrt_price, point.liquidity, Rounding.DOWN
            )
            total_output = safe_add(total_output, cast(output, U64))
            sqrt_price = next_sqrt_price
            amount_left = 0
            break

        output = get_delta_amount_base_unsigned(
            sqrt_price, point.sqrt_price, point.liquidity, Rounding.DOWN
        )
        total_output = safe_add(total_output, cast(output, U64))
        sqrt_price = point.sqrt_price
        amount_left = safe_sub(amount_left, max_amount_in)

    if amount_left > max_swallow_amount:
        raise SwapAmountIsOverAThreshold(
            f"{amount_left} left after the last curve point, {max_swallow_amount} allowed"
        )
    if amount_left:
        LOGGER.warning(
            "Curve swallowed %s quote past its last point at sqrt price %s",
            amount_left,
            sqrt_price,
        )
    return SwapAmount(
        output_amount=total_output, next_sqrt_price=sqrt_price, amount_left=amount_left
    )


def get_swap_amount_from_base_to_quote(
    curve: Sequence[CurvePoint],
    current_sqrt_price: int,
    amount_in: int,
) -> SwapAmount:
    """Walk the curve downward selling ``amount_in`` base.

    Segments are visited in reverse. Anything left once the first point is
    passed trades against ``curve[0].liquidity``.
    """
    total_output = 0
    sqrt_price = current_sqrt_price
    amount_left = amount_in

    for index in range(len(curve) - 2, -1, -1):
        lower = curve[index]
        upper = curve[index + 1]
        if lower.is_empty or upper.is_empty:
            continue
        if lower.sqrt_price >= sqrt_price:
            continue

        max_amount_in = get_delta_amount_base_unsigned(
            lower.sqrt_price, sqrt_price, upper.liquidity, Rounding.UP
        )
        if amount_left < max_amount_in:
            next_sqrt_price = get_next_sqrt_price_from_input(
                sqrt_price, upper.liquidity, amount_left, True
            )
            output = get_delta_amount_quote_unsigned(
                next_sqrt_price, sqrt_price, upper.liquidity, Rounding.DOWN
            )
            total_output = safe_add(total_output, cast(output, U64))
            sqrt_price = next_sqrt_price
            amount_left = 0
            break

        output = get_delta_amount_quote_unsigned(
            lower.sqrt_price, sqrt_price, upper.liquidity, Rounding.DOWN
        )
        total_output = safe_add(total_output, cast(output, U64))
        sqrt_price = lower.sqrt_price
        amount_left = safe_sub(amount_left, max_amount_in)

    if amount_left:
        liquidity = curve[0].liquidity
        next_sqrt_price = get_next_sqrt_price_from_input(
            sqrt_price, liquidity, amount_left, True
        )
        output = get_delta_amount_quote_unsigned(
            next_sqrt_price, sqrt_price, liquidity, Rounding.DOWN
        )
        total_output = safe_add(total_output, cast(output, U64))
        sqrt_price = next_sqrt_price

    return SwapAmount(output_amount=total_output, next_sqrt_price=sqrt_price)


def get_initial_liquidity_from_delta_base(
    base_amount: int, sqrt_max_price: int, sqrt_price: int
) -> int:
    """``L = base * sqrt_price * sqrt_max_price / (sqrt_max_price - sqrt_price)``."""
    price_delta = safe_sub(sqrt_max_price, sqrt_price, U512)
    product = safe_mul(safe_mul(base_amount, sqrt_price, U512), sqrt_max_price, U512)
    return safe_div(product, price_delta, U512)


def get_initial_liquidity_from_delta_quote(
    quote_amount: int, sqrt_min_price: int, sqrt_price: int
) -> int:
    """``L = (quote << 128) / (sqrt_price - sqrt_min_price)``."""
    price_delta = safe_sub(sqrt_price, sqrt_min_price, U256)
    quote_shifted = safe_shl(quote_amount, RESOLUTION * 2, U256)
    return cast(safe_div(quote_shifted, price_delta, U256), U128)


def get_liquidity_for_adding_liquidity(
    base_amount: int, quote_amount: int, sqrt_price: int
) -> int:
    """Full-range liquidity for seeding a pool at ``sqrt_price``.

    The base side spans up to MAX_SQRT_PRICE and the quote side down to
    MIN_SQRT_PRICE; the binding side wins.
    """
    from_base = get_initial_liquidity_from_delta_base(base_amount, MAX_SQRT_PRICE, sqrt_price)
    from_quote = get_initial_liquidity_from_delta_quote(
        quote_amount, MIN_SQRT_PRICE, sqrt_price
    )
    if from_base > from_quote:
        return from_quote
    return cast(from_base, U128)
