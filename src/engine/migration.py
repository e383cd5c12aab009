"""Seeding amounts for the pool a graduated curve migrates into."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from amm_core.constants import FEE_DENOMINATOR, MAX_SQRT_PRICE, MIN_SQRT_PRICE
from amm_core.curve import (
    get_delta_amount_base_unsigned,
    get_delta_amount_quote_unsigned,
    get_liquidity_for_adding_liquidity,
)
from amm_core.errors import (
    InsufficientLiquidityForMigration,
    InvalidMigrationCalculation,
    PoolIsIncompleted,
)
from amm_core.models import Config, ConstantProductModel
from amm_core.safe_math import Rounding, safe_add, safe_mul_div_cast_u64, safe_sub
from amm_core.sqrt_price import get_sqrt_price_from_amounts
from engine.state import BondingCurve

LOGGER = logging.getLogger("bonding_amm.migration")


@dataclass(frozen=True)
class MigrationAmount:
    quote_amount: int
    base_amount: int


@dataclass(frozen=True)
class MigrationQuoteAmount:
    quote_amount: int
    migration_fee: int


@dataclass(frozen=True)
class MigrationPlan:
    deposited_base_amount: int
    deposited_quote_amount: int
    migration_fee: int
    initial_liquidity: int
    sqrt_price: int


@dataclass(frozen=True)
class VestingSchedule:
    cliff_time: int
    frequency: int
    cliff_unlock_amount: int
    amount_per_period: int
    number_of_period: int

    @property
    def total_amount(self) -> int:
        return self.cliff_unlock_amount + self.amount_per_period * self.number_of_period


def _after_migration_fee(amount: int, migration_fee_basis_points: int) -> int:
    return safe_mul_div_cast_u64(
        amount,
        safe_sub(FEE_DENOMINATOR, migration_fee_basis_points),
        FEE_DENOMINATOR,
        Rounding.UP,
    )


def get_migration_amount(
    curve: BondingCurve, migration_fee_basis_points: int
) -> MigrationAmount:
    """Both reserves net of the migration fee, rounded up."""
    return MigrationAmount(
        quote_amount=_after_migration_fee(curve.quote_reserve, migration_fee_basis_points),
        base_amount=_after_migration_fee(curve.base_reserve, migration_fee_basis_points),
    )


def get_migration_quote_amount(config: Config) -> MigrationQuoteAmount:
    """Quote threshold split into the pool deposit and the migration fee."""
    quote_amount = _after_migration_fee(
        config.migration_quote_threshold, config.migration_fee_basis_points
    )
    return MigrationQuoteAmount(
        quote_amount=quote_amount,
        migration_fee=safe_sub(config.migration_quote_threshold, quote_amount),
    )


def get_vesting_schedule(config: Config, curve: BondingCurve) -> VestingSchedule:
    vesting = config.locked_vesting
    return VestingSchedule(
        cliff_time=safe_add(
            curve.curve_finish_timestamp, vesting.cliff_duration_from_migration_time
        ),
        frequency=vesting.frequency,
        cliff_unlock_amount=vesting.cliff_unlock_amount,
        amount_per_period=vesting.amount_per_period,
        number_of_period=vesting.number_of_period,
    )


def build_migration_plan(
    config: Config,
    curve: BondingCurve,
    base_vault_balance: Optional[int] = None,
) -> MigrationPlan:
    """Compute what the migration deposits into the new pool.

    Constant-product curves migrate their post-fee reserves at the price those
    amounts imply unless the config pins a sqrt price. Segmented curves deposit
    the post-fee quote threshold at the configured migration price against
    whatever base the vault holds.
    """
    if not curve.is_curve_complete(config):
        raise PoolIsIncompleted(curve.base_mint)

    model = config.curve_model
    if isinstance(model, ConstantProductModel):
        amounts = get_migration_amount(curve, config.migration_fee_basis_points)
        quote_available = amounts.quote_amount
        base_available = amounts.base_amount
        migration_fee = safe_sub(curve.quote_reserve, quote_available)
        if model.migration_sqrt_price is not None:
            sqrt_price = model.migration_sqrt_price
        else:
            sqrt_price = get_sqrt_price_from_amounts(
                base_available,
                quote_available,
                config.base_decimal,
                config.quote_decimal,
            )
    else:
        quote_amounts = get_migration_quote_amount(config)
        quote_available = quote_amounts.quote_amount
        migration_fee = quote_amounts.migration_fee
        base_available = (
            curve.base_reserve if base_vault_balance is None else base_vault_balance
        )
        sqrt_price = model.migration_sqrt_price

    if not MIN_SQRT_PRICE < sqrt_price < MAX_SQRT_PRICE:
        raise InvalidMigrationCalculation(f"migration sqrt price {sqrt_price} out of range")

    liquidity = get_liquidity_for_adding_liquidity(base_available, quote_available, sqrt_price)
    deposited_base = get_delta_amount_base_unsigned(
        sqrt_price, MAX_SQRT_PRICE, liquidity, Rounding.UP
    )
    deposited_quote = get_delta_amount_quote_unsigned(
        MIN_SQRT_PRICE, sqrt_price, liquidity, Rounding.UP
    )
    if deposited_base > base_available or deposited_quote > quote_available:
        raise InsufficientLiquidityForMigration(
            f"deposit {deposited_base}/{deposited_quote} exceeds "
            f"{base_available}/{quote_available}"
        )

    LOGGER.debug(
        "Migration plan for %s: base=%s quote=%s fee=%s liquidity=%s sqrt_price=%s",
        curve.base_mint,
        deposited_base,
        deposited_quote,
        migration_fee,
        liquidity,
        sqrt_price,
    )
    return MigrationPlan(
        deposited_base_amount=deposited_base,
        deposited_quote_amount=deposited_quote,
        migration_fee=migration_fee,
        initial_liquidity=liquidity,
        sqrt_price=sqrt_price,
    )
