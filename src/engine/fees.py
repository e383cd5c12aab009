"""Trading fee decomposition."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from amm_core.constants import FEE_DENOMINATOR
from amm_core.models import Config, FeeType
from amm_core.safe_math import Rounding, safe_mul_div_cast_u64, safe_sub
from engine.cashback import CashbackTier

LOGGER = logging.getLogger("bonding_amm.fees")


@dataclass(frozen=True)
class ReferralFlags:
    l1: bool = False
    l2: bool = False
    l3: bool = False

    @property
    def has_referral(self) -> bool:
        return self.l1 or self.l2 or self.l3


NO_REFERRAL = ReferralFlags()


@dataclass(frozen=True)
class FeeBreakdown:
    amount: int
    protocol_fee: int
    l1_referral_fee: int = 0
    l2_referral_fee: int = 0
    l3_referral_fee: int = 0
    creator_fee: int = 0
    cashback_fee: int = 0

    @property
    def trading_fee(self) -> int:
        return (
            self.l1_referral_fee
            + self.l2_referral_fee
            + self.l3_referral_fee
            + self.creator_fee
            + self.cashback_fee
            + self.protocol_fee
        )


def creator_fee_basis_points(config: Config, fee_type: FeeType) -> int:
    if fee_type == FeeType.CREATOR:
        return config.creator_fee_basis_points
    if fee_type == FeeType.MEME:
        return config.meme_fee_basis_points
    return 0


def _fee(amount_in: int, basis_points: int) -> int:
    return safe_mul_div_cast_u64(amount_in, basis_points, FEE_DENOMINATOR, Rounding.DOWN)


def get_fee_on_amount(
    config: Config,
    amount_in: int,
    referrals: ReferralFlags = NO_REFERRAL,
    fee_type: FeeType = FeeType.CREATOR,
    cashback_tier: Optional[CashbackTier] = None,
) -> FeeBreakdown:
    """Split ``amount_in`` into the net amount and every fee component.

    Components are floored in a fixed order and the protocol fee is whatever
    the total leaves over, so the parts always sum back to ``amount_in``.
    """
    l1_referral_fee = _fee(amount_in, config.l1_referral_fee_basis_points) if referrals.l1 else 0
    l2_referral_fee = _fee(amount_in, config.l2_referral_fee_basis_points) if referrals.l2 else 0
    l3_referral_fee = _fee(amount_in, config.l3_referral_fee_basis_points) if referrals.l3 else 0

    cashback_bps = cashback_tier.bps if cashback_tier is not None else 0
    cashback_fee = _fee(amount_in, cashback_bps)

    creator_fee = _fee(amount_in, creator_fee_basis_points(config, fee_type))

    if referrals.has_referral:
        effective_bps = safe_sub(
            config.fee_basis_points, config.referee_discount_basis_points
        )
    else:
        effective_bps = config.fee_basis_points
    total_fee = _fee(amount_in, effective_bps)

    protocol_fee = total_fee
    for component in (
        l1_referral_fee,
        l2_referral_fee,
        l3_referral_fee,
        creator_fee,
        cashback_fee,
    ):
        protocol_fee = safe_sub(protocol_fee, component)

    amount = safe_sub(amount_in, total_fee)
    LOGGER.debug(
        "Fee on %s: total=%s protocol=%s creator=%s cashback=%s",
        amount_in,
        total_fee,
        protocol_fee,
        creator_fee,
        cashback_fee,
    )
    return FeeBreakdown(
        amount=amount,
        protocol_fee=protocol_fee,
        l1_referral_fee=l1_referral_fee,
        l2_referral_fee=l2_referral_fee,
        l3_referral_fee=l3_referral_fee,
        creator_fee=creator_fee,
        cashback_fee=cashback_fee,
    )
