"""Swap quoting and the graduation cap.

``get_swap_result`` is pure: it reads the config and the current curve and
returns a ``SwapResult`` without touching either. Applying the result is the
caller's job (see ``BondingCurve.apply_swap_result``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from amm_core import constant_product, curve as segmented
from amm_core.errors import (
    AmountIsZero,
    InvalidMigrationCalculation,
    NotEnoughLiquidity,
    PoolIsCompleted,
)
from amm_core.models import (
    Config,
    ConstantProductModel,
    MigrationStatus,
    SegmentedCurveModel,
    TradeDirection,
)
from amm_core.safe_math import safe_add, safe_sub
from engine.cashback import CashbackTier
from engine.fees import NO_REFERRAL, FeeBreakdown, ReferralFlags, get_fee_on_amount

if TYPE_CHECKING:
    from engine.state import BondingCurve

LOGGER = logging.getLogger("bonding_amm.swap")


@dataclass(frozen=True)
class SwapResult:
    direction: TradeDirection
    actual_input_amount: int
    output_amount: int
    # None for constant-product curves, which carry no sqrt price.
    next_sqrt_price: Optional[int]
    trading_fee: int
    protocol_fee: int
    cashback_fee: int
    creator_fee: int
    l1_referral_fee: int
    l2_referral_fee: int
    l3_referral_fee: int
    capped: bool = False

    @property
    def input_transfer_amount(self) -> int:
        """What the trader sends: buys pay the fee on top of the net input."""
        if self.direction == TradeDirection.QUOTE_TO_BASE:
            return self.actual_input_amount + self.trading_fee
        return self.actual_input_amount

    @property
    def referral_fee(self) -> int:
        return self.l1_referral_fee + self.l2_referral_fee + self.l3_referral_fee


def _build_result(
    direction: TradeDirection,
    actual_input_amount: int,
    output_amount: int,
    next_sqrt_price: Optional[int],
    fees: FeeBreakdown,
    capped: bool,
) -> SwapResult:
    return SwapResult(
        direction=direction,
        actual_input_amount=actual_input_amount,
        output_amount=output_amount,
        next_sqrt_price=next_sqrt_price,
        trading_fee=fees.trading_fee,
        protocol_fee=fees.protocol_fee,
        cashback_fee=fees.cashback_fee,
        creator_fee=fees.creator_fee,
        l1_referral_fee=fees.l1_referral_fee,
        l2_referral_fee=fees.l2_referral_fee,
        l3_referral_fee=fees.l3_referral_fee,
        capped=capped,
    )


def get_swap_result(
    config: Config,
    curve: "BondingCurve",
    amount_in: int,
    direction: TradeDirection,
    referrals: ReferralFlags = NO_REFERRAL,
    cashback_tier: Optional[CashbackTier] = None,
) -> SwapResult:
    """Quote one trade against ``curve``.

    Buys are charged on the quote input before pricing; sells are priced
    first and charged on the gross quote output. A buy that would carry the
    curve past its migration threshold is cut down to land exactly on it.
    """
    if amount_in == 0:
        raise AmountIsZero("swap input")
    if (
        curve.migration_status != MigrationStatus.PRE_BONDING_CURVE
        or curve.is_curve_complete(config)
    ):
        raise PoolIsCompleted(curve.base_mint)

    direction = TradeDirection(direction)
    model = config.curve_model
    if isinstance(model, ConstantProductModel):
        if direction == TradeDirection.QUOTE_TO_BASE:
            result = _constant_product_buy(config, model, curve, amount_in, referrals, cashback_tier)
        else:
            result = _constant_product_sell(config, model, curve, amount_in, referrals, cashback_tier)
    elif direction == TradeDirection.QUOTE_TO_BASE:
        result = _segmented_buy(config, model, curve, amount_in, referrals, cashback_tier)
    else:
        result = _segmented_sell(config, model, curve, amount_in, referrals, cashback_tier)

    LOGGER.debug(
        "Swap %s on %s: in=%s out=%s fee=%s capped=%s",
        direction.name,
        curve.base_mint,
        result.actual_input_amount,
        result.output_amount,
        result.trading_fee,
        result.capped,
    )
    return result


def _constant_product_buy(
    config: Config,
    model: ConstantProductModel,
    curve: "BondingCurve",
    amount_in: int,
    referrals: ReferralFlags,
    cashback_tier: Optional[CashbackTier],
) -> SwapResult:
    fee_type = curve.fee_type
    fees = get_fee_on_amount(config, amount_in, referrals, fee_type, cashback_tier)
    output = constant_product.get_swap_amount_from_quote_to_base(
        curve.virtual_quote_reserve,
        curve.virtual_base_reserve,
        fees.amount,
        model.base_scale,
    )
    if (
        output < curve.base_reserve
        and curve.base_reserve - output >= config.migration_base_threshold
    ):
        return _build_result(
            TradeDirection.QUOTE_TO_BASE, fees.amount, output, None, fees, False
        )

    # Solve for the input that leaves exactly the base threshold behind.
    capped_output = safe_sub(curve.base_reserve, config.migration_base_threshold)
    capped_amount_in = constant_product.get_quote_in_for_base_out(
        curve.virtual_quote_reserve,
        curve.virtual_base_reserve,
        capped_output,
        model.base_scale,
    )
    reachable = constant_product.get_swap_amount_from_quote_to_base(
        curve.virtual_quote_reserve,
        curve.virtual_base_reserve,
        capped_amount_in,
        model.base_scale,
    )
    if reachable < capped_output:
        raise InvalidMigrationCalculation(
            f"capped input {capped_amount_in} buys {reachable}, needs {capped_output}"
        )
    capped_fees = get_fee_on_amount(
        config, capped_amount_in, referrals, fee_type, cashback_tier
    )
    LOGGER.info(
        "Buy on %s capped at migration threshold: input %s -> %s",
        curve.base_mint,
        fees.amount,
        capped_amount_in,
    )
    return _build_result(
        TradeDirection.QUOTE_TO_BASE,
        capped_amount_in,
        capped_output,
        None,
        capped_fees,
        True,
    )


def _constant_product_sell(
    config: Config,
    model: ConstantProductModel,
    curve: "BondingCurve",
    amount_in: int,
    referrals: ReferralFlags,
    cashback_tier: Optional[CashbackTier],
) -> SwapResult:
    gross_output = constant_product.get_swap_amount_from_base_to_quote(
        curve.virtual_quote_reserve,
        curve.virtual_base_reserve,
        amount_in,
        model.base_scale,
    )
    if gross_output > curve.quote_reserve:
        raise NotEnoughLiquidity(
            f"sell needs {gross_output} quote, reserve holds {curve.quote_reserve}"
        )
    fees = get_fee_on_amount(config, gross_output, referrals, curve.fee_type, cashback_tier)
    return _build_result(
        TradeDirection.BASE_TO_QUOTE, amount_in, fees.amount, None, fees, False
    )


def _segmented_buy(
    config: Config,
    model: SegmentedCurveModel,
    curve: "BondingCurve",
    amount_in: int,
    referrals: ReferralFlags,
    cashback_tier: Optional[CashbackTier],
) -> SwapResult:
    fee_type = curve.fee_type
    fees = get_fee_on_amount(config, amount_in, referrals, fee_type, cashback_tier)
    net_amount = fees.amount
    capped = False

    remaining = safe_sub(config.migration_quote_threshold, curve.quote_reserve)
    if net_amount > remaining:
        net_amount = remaining
        fees = get_fee_on_amount(config, net_amount, referrals, fee_type, cashback_tier)
        capped = True
        LOGGER.info(
            "Buy on %s capped at migration threshold: input -> %s",
            curve.base_mint,
            net_amount,
        )

    swap_amount = segmented.get_swap_amount_from_quote_to_base(
        model.curve,
        curve.sqrt_price,
        net_amount,
        segmented.get_max_swallow_amount(
            config.migration_quote_threshold, model.swallow_percentage
        ),
    )
    if capped and safe_add(curve.quote_reserve, net_amount) != config.migration_quote_threshold:
        raise InvalidMigrationCalculation(
            f"capped input {net_amount} misses threshold {config.migration_quote_threshold}"
        )
    return _build_result(
        TradeDirection.QUOTE_TO_BASE,
        net_amount,
        swap_amount.output_amount,
        swap_amount.next_sqrt_price,
        fees,
        capped,
    )


def _segmented_sell(
    config: Config,
    model: SegmentedCurveModel,
    curve: "BondingCurve",
    amount_in: int,
    referrals: ReferralFlags,
    cashback_tier: Optional[CashbackTier],
) -> SwapResult:
    swap_amount = segmented.get_swap_amount_from_base_to_quote(
        model.curve, curve.sqrt_price, amount_in
    )
    gross_output = swap_amount.output_amount
    if gross_output > curve.quote_reserve:
        raise NotEnoughLiquidity(
            f"sell needs {gross_output} quote, reserve holds {curve.quote_reserve}"
        )
    fees = get_fee_on_amount(config, gross_output, referrals, curve.fee_type, cashback_tier)
    return _build_result(
        TradeDirection.BASE_TO_QUOTE,
        amount_in,
        fees.amount,
        swap_amount.next_sqrt_price,
        fees,
        False,
    )
