from __future__ import annotations

from decimal import Decimal

import pytest

from amm_core.constants import ONE_Q64
from amm_core.curve_builder import (
    convert_to_lamports,
    get_first_curve,
    get_locked_vesting_params,
    get_migration_quote_threshold_from_migration_quote_amount,
    get_sqrt_price_from_price,
    get_total_vesting_amount,
)


def test_convert_to_lamports() -> None:
    assert convert_to_lamports(85, 9) == 85_000_000_000
    assert convert_to_lamports(1, 6) == 1_000_000


def test_no_vesting_is_empty_schedule() -> None:
    params = get_locked_vesting_params(0, 0, 0, 0, 0, 6)

    assert get_total_vesting_amount(params) == 0
    assert not params.has_vesting


def test_cliff_only_vesting_keeps_one_token_for_a_single_period() -> None:
    params = get_locked_vesting_params(100, 10, 100, 1000, 60, 6)

    assert params.cliff_unlock_amount == 99_000_000
    assert params.amount_per_period == 1_000_000
    assert params.number_of_period == 1
    assert get_total_vesting_amount(params) == 100_000_000


def test_vesting_remainder_moves_into_cliff() -> None:
    params = get_locked_vesting_params(1000, 7, 0, 700, 30, 6)

    assert params.amount_per_period == 142_000_000
    assert params.cliff_unlock_amount == 6_000_000
    assert params.frequency == 100
    assert params.cliff_duration_from_migration_time == 30
    assert get_total_vesting_amount(params) == 1_000_000_000


def test_vesting_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        get_locked_vesting_params(1000, 0, 0, 700, 0, 6)
    with pytest.raises(ValueError):
        get_locked_vesting_params(1000, 2, 2000, 700, 0, 6)


def test_sqrt_price_from_price() -> None:
    assert get_sqrt_price_from_price("1", 9, 9) == ONE_Q64
    assert get_sqrt_price_from_price("0.001", 6, 9) == ONE_Q64
    assert get_sqrt_price_from_price("4", 9, 9) == 2 * ONE_Q64


def test_migration_quote_threshold_grosses_up_fee() -> None:
    threshold = get_migration_quote_threshold_from_migration_quote_amount(Decimal("95"), 5)

    assert threshold == Decimal("100")


def test_first_curve_ends_at_migration_price() -> None:
    migration_sqrt_price = 371637737252560528

    first = get_first_curve(
        migration_sqrt_price,
        migration_base_amount=200_000_000_000_000,
        swap_amount=800_000_000_000_000,
        migration_quote_threshold=96_000_000_000,
        migration_fee_percent=5,
    )

    assert 0 < first.initial_sqrt_price < migration_sqrt_price
    (point,) = first.curve
    assert point.sqrt_price == migration_sqrt_price
    assert point.liquidity > 0
