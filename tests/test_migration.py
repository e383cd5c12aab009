from __future__ import annotations

import pytest

from amm_core.constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE
from amm_core.errors import PoolIsIncompleted
from amm_core.models import Config, TradeDirection
from amm_core.sqrt_price import get_sqrt_price_from_amounts
from engine.migration import (
    build_migration_plan,
    get_migration_amount,
    get_migration_quote_amount,
    get_vesting_schedule,
)
from engine.state import BondingCurve
from engine.swap import get_swap_result


def _graduated(config: Config) -> BondingCurve:
    curve = BondingCurve.create(config, "config-1", "creator", "mint-1")
    result = get_swap_result(config, curve, 200_000_000_000, TradeDirection.QUOTE_TO_BASE)
    curve.apply_swap_result(result, TradeDirection.QUOTE_TO_BASE)
    curve.complete_if_graduated(config, now=1_000)
    return curve


def test_migration_quote_amount_splits_threshold(segmented_config: Config) -> None:
    amounts = get_migration_quote_amount(segmented_config)

    assert amounts.quote_amount == 91_200_000_000
    assert amounts.migration_fee == 4_800_000_000


def test_migration_amount_rounds_up(segmented_config: Config) -> None:
    curve = BondingCurve.create(segmented_config, "config-1", "creator", "mint-1")
    curve.quote_reserve = 3
    curve.base_reserve = 7

    amounts = get_migration_amount(curve, 5_000)

    # 3 * 0.95 = 2.85 and 7 * 0.95 = 6.65
    assert amounts.quote_amount == 3
    assert amounts.base_amount == 7


def test_plan_requires_complete_curve(segmented_config: Config) -> None:
    curve = BondingCurve.create(segmented_config, "config-1", "creator", "mint-1")

    with pytest.raises(PoolIsIncompleted):
        build_migration_plan(segmented_config, curve)


def test_segmented_plan_deposits_within_available(segmented_config: Config) -> None:
    curve = _graduated(segmented_config)

    plan = build_migration_plan(segmented_config, curve)

    assert plan.sqrt_price == segmented_config.migration_sqrt_price
    assert plan.migration_fee == 4_800_000_000
    assert 0 < plan.deposited_quote_amount <= 91_200_000_000
    assert 0 < plan.deposited_base_amount <= curve.base_reserve
    assert plan.initial_liquidity > 0


def test_segmented_plan_uses_reported_vault_balance(segmented_config: Config) -> None:
    curve = _graduated(segmented_config)

    small = build_migration_plan(segmented_config, curve, base_vault_balance=10**12)

    assert small.deposited_base_amount <= 10**12


def test_constant_product_plan_derives_price_from_amounts(
    constant_product_config: Config,
) -> None:
    curve = _graduated(constant_product_config)
    amounts = get_migration_amount(curve, constant_product_config.migration_fee_basis_points)

    plan = build_migration_plan(constant_product_config, curve)

    assert plan.sqrt_price == get_sqrt_price_from_amounts(
        amounts.base_amount, amounts.quote_amount, 6, 9
    )
    assert MIN_SQRT_PRICE < plan.sqrt_price < MAX_SQRT_PRICE
    assert plan.migration_fee == curve.quote_reserve - amounts.quote_amount
    assert plan.deposited_quote_amount <= amounts.quote_amount
    assert plan.deposited_base_amount <= amounts.base_amount


def test_vesting_schedule_starts_at_cliff(vesting_config: Config) -> None:
    curve = _graduated(vesting_config)

    schedule = get_vesting_schedule(vesting_config, curve)

    assert schedule.cliff_time == 1_000 + 3600
    assert schedule.total_amount == 15_000_000_000_000
    assert schedule.frequency == 86400
