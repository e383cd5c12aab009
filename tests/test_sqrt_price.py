from __future__ import annotations

import math

import pytest

from amm_core.constants import ONE_Q64
from amm_core.errors import AmountIsZero, MathOverflow
from amm_core.sqrt_price import (
    adjust_price_for_decimals,
    get_sqrt_price_from_amounts,
    sqrt_u256,
)


@pytest.mark.parametrize(
    "value",
    [0, 1, 2, 4, 16, 17, 144, 10**18, 10**40, 10**40 + 1, 2**200, 2**255 + 12345],
)
def test_sqrt_matches_integer_floor_root(value: int) -> None:
    assert sqrt_u256(value) == math.isqrt(value)


@pytest.mark.parametrize("root", [2, 3, 4, 10, 10**20])
def test_sqrt_one_below_perfect_square_does_not_converge(root: int) -> None:
    with pytest.raises(MathOverflow, match="converge"):
        sqrt_u256(root * root - 1)


def test_sqrt_price_from_amounts_propagates_non_convergence() -> None:
    # quote * 1e18 // base leaves 8, one below 3 * 3
    with pytest.raises(MathOverflow):
        get_sqrt_price_from_amounts(10**18, 8, 9, 9)


def test_sqrt_rejects_values_outside_u256() -> None:
    with pytest.raises(MathOverflow):
        sqrt_u256(-1)
    with pytest.raises(MathOverflow):
        sqrt_u256(1 << 256)


def test_adjust_price_for_decimals() -> None:
    assert adjust_price_for_decimals(5_000, 6, 9) == 5_000_000
    assert adjust_price_for_decimals(5_000, 9, 6) == 5
    assert adjust_price_for_decimals(5_000, 9, 9) == 5_000


def test_sqrt_price_from_equal_amounts() -> None:
    # price 1 carried at 18 decimals -> sqrt 1e9, then shifted into Q64.64
    assert get_sqrt_price_from_amounts(1_000_000, 1_000_000, 9, 9) == 10**9 * ONE_Q64


def test_sqrt_price_from_amounts_rejects_zero_base() -> None:
    with pytest.raises(AmountIsZero):
        get_sqrt_price_from_amounts(0, 1_000, 6, 9)


def test_sqrt_price_is_monotonic_in_quote() -> None:
    base = 214_750_000_000_000
    previous = 0
    for quote in (1, 10, 999, 1_000_000, 45_600_000_000, 91_200_000_000, 10**15):
        sqrt_price = get_sqrt_price_from_amounts(base, quote, 6, 9)
        assert sqrt_price >= previous
        previous = sqrt_price
