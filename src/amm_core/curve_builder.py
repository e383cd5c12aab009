"""Off-chain helpers for deriving curve configuration values.

Everything here runs on ``Decimal`` and is only used to prepare a config; the
engine itself never touches these functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, localcontext

from amm_core.constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE, RESOLUTION
from amm_core.curve import (
    get_initial_liquidity_from_delta_base,
    get_initial_liquidity_from_delta_quote,
)
from amm_core.models import CurvePoint, LockedVestingConfig

Q64 = Decimal(2) ** RESOLUTION
BUILDER_PRECISION = 80


@dataclass(frozen=True)
class FirstCurve:
    initial_sqrt_price: int
    curve: tuple[CurvePoint, ...]


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def convert_to_lamports(amount: int, token_decimal: int) -> int:
    return _floor(Decimal(amount) * (Decimal(10) ** token_decimal))


def get_locked_vesting_params(
    total_locked_vesting_amount: int,
    number_of_vesting_period: int,
    cliff_unlock_amount: int,
    total_vesting_duration: int,
    cliff_duration_from_migration_time: int,
    token_base_decimal: int,
) -> LockedVestingConfig:
    """Split a whole-token vesting allocation into per-period lamport amounts.

    The rounding remainder of the per-period amount is folded into the cliff
    unlock so the schedule still releases exactly the requested total.
    """
    if total_locked_vesting_amount == 0:
        return LockedVestingConfig()

    if total_locked_vesting_amount == cliff_unlock_amount:
        return LockedVestingConfig(
            amount_per_period=convert_to_lamports(1, token_base_decimal),
            cliff_duration_from_migration_time=cliff_duration_from_migration_time,
            frequency=1,
            number_of_period=1,
            cliff_unlock_amount=convert_to_lamports(
                total_locked_vesting_amount - 1, token_base_decimal
            ),
        )

    if number_of_vesting_period <= 0 or total_vesting_duration <= 0:
        raise ValueError(
            "number_of_vesting_period and total_vesting_duration must both be greater than zero"
        )
    if cliff_unlock_amount > total_locked_vesting_amount:
        raise ValueError(
            "cliff_unlock_amount cannot be greater than total_locked_vesting_amount"
        )

    amount_per_period = (
        total_locked_vesting_amount - cliff_unlock_amount
    ) // number_of_vesting_period
    remainder = total_locked_vesting_amount - (
        cliff_unlock_amount + amount_per_period * number_of_vesting_period
    )
    return LockedVestingConfig(
        amount_per_period=convert_to_lamports(amount_per_period, token_base_decimal),
        cliff_duration_from_migration_time=cliff_duration_from_migration_time,
        frequency=total_vesting_duration // number_of_vesting_period,
        number_of_period=number_of_vesting_period,
        cliff_unlock_amount=convert_to_lamports(
            cliff_unlock_amount + remainder, token_base_decimal
        ),
    )


def get_total_vesting_amount(locked_vesting: LockedVestingConfig) -> int:
    return locked_vesting.total_amount


def get_sqrt_price_from_price(
    price: Decimal | str, base_decimal: int, quote_decimal: int
) -> int:
    """Q64.64 sqrt price for a human price, floored."""
    with localcontext() as ctx:
        ctx.prec = BUILDER_PRECISION
        adjusted = Decimal(str(price)) / (Decimal(10) ** (base_decimal - quote_decimal))
        return _floor(adjusted.sqrt() * Q64)


def get_migration_quote_threshold_from_migration_quote_amount(
    migration_quote_amount: Decimal, migration_fee_percent: Decimal | int
) -> Decimal:
    """Gross threshold whose post-fee amount equals ``migration_quote_amount``."""
    with localcontext() as ctx:
        ctx.prec = BUILDER_PRECISION
        hundred = Decimal(100)
        return (
            Decimal(str(migration_quote_amount))
            * hundred
            / (hundred - Decimal(str(migration_fee_percent)))
        )


def get_liquidity(
    base_amount: int,
    quote_amount: int,
    min_sqrt_price: int = MIN_SQRT_PRICE,
    max_sqrt_price: int = MAX_SQRT_PRICE,
) -> int:
    """Liquidity a range ``[min, max]`` can hold given both token budgets."""
    from_base = get_initial_liquidity_from_delta_base(
        base_amount, max_sqrt_price, min_sqrt_price
    )
    from_quote = get_initial_liquidity_from_delta_quote(
        quote_amount, min_sqrt_price, max_sqrt_price
    )
    return min(from_base, from_quote)


def get_first_curve(
    migration_sqrt_price: int,
    migration_base_amount: Decimal | int,
    swap_amount: int,
    migration_quote_threshold: int,
    migration_fee_percent: Decimal | int,
) -> FirstCurve:
    """Single-segment curve ending at ``migration_sqrt_price``.

    With Pmin/Pmax the sqrt prices at both ends of the segment:
    swap_amount * (1 - fee) / migration_base_amount = Pmax / Pmin.
    """
    with localcontext() as ctx:
        ctx.prec = BUILDER_PRECISION
        hundred = Decimal(100)
        denominator = (
            Decimal(swap_amount) * (hundred - Decimal(str(migration_fee_percent))) / hundred
        )
        initial = (
            Decimal(migration_sqrt_price) * Decimal(str(migration_base_amount)) / denominator
        )
    initial_sqrt_price = _floor(initial)
    liquidity = get_liquidity(
        swap_amount,
        migration_quote_threshold,
        min_sqrt_price=initial_sqrt_price,
        max_sqrt_price=migration_sqrt_price,
    )
    return FirstCurve(
        initial_sqrt_price=initial_sqrt_price,
        curve=(CurvePoint(sqrt_price=migration_sqrt_price, liquidity=liquidity),),
    )
