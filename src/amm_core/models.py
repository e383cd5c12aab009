"""Pydantic models for the static curve configuration."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from amm_core.constants import (
    CONSTANT_PRODUCT_BASE_SCALE,
    DEFAULT_SWALLOW_PERCENTAGE,
    MAX_CURVE_POINT,
)

U8Int = Annotated[int, Field(ge=0, le=(1 << 8) - 1)]
U16Int = Annotated[int, Field(ge=0, le=(1 << 16) - 1)]
U64Int = Annotated[int, Field(ge=0, le=(1 << 64) - 1)]
U128Int = Annotated[int, Field(ge=0, le=(1 << 128) - 1)]


# ============================================================================
# Enums
# ============================================================================


class TradeDirection(IntEnum):
    """Swap direction; BaseToQuote sells base, QuoteToBase buys it."""

    BASE_TO_QUOTE = 0
    QUOTE_TO_BASE = 1


class FeeType(IntEnum):
    """Who receives the creator share of the trading fee."""

    CREATOR = 0
    MEME = 1
    BLOCKED = 2


class MigrationStatus(IntEnum):
    """Curve lifecycle phase. Values only ever increase."""

    PRE_BONDING_CURVE = 0
    POST_BONDING_CURVE = 1
    LOCKED_VESTING = 2
    CREATED_POOL = 3


class AuthorityRole(str, Enum):
    ADMIN = "admin"
    FEE_TYPE_REVIEWER = "fee_type_reviewer"
    MIGRATION = "migration"


# ============================================================================
# Curve models
# ============================================================================


class CurvePoint(BaseModel):
    """One breakpoint of a segmented curve."""

    model_config = ConfigDict(frozen=True)

    sqrt_price: U128Int
    liquidity: U128Int

    @property
    def is_empty(self) -> bool:
        return self.sqrt_price == 0 or self.liquidity == 0


class LockedVestingConfig(BaseModel):
    """Creator allocation released after graduation.

    total = cliff_unlock_amount + amount_per_period * number_of_period
    """

    model_config = ConfigDict(frozen=True)

    amount_per_period: U64Int = 0
    cliff_duration_from_migration_time: U64Int = 0
    frequency: U64Int = 0
    number_of_period: U64Int = 0
    cliff_unlock_amount: U64Int = 0

    @property
    def total_amount(self) -> int:
        return self.cliff_unlock_amount + self.amount_per_period * self.number_of_period

    @property
    def has_vesting(self) -> bool:
        return self.total_amount > 0


class ConstantProductModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["constant_product"] = "constant_product"
    initial_virtual_quote_reserve: U64Int
    initial_virtual_base_reserve: U64Int
    base_scale: U64Int = CONSTANT_PRODUCT_BASE_SCALE
    # Derived from the post-fee migration amounts when unset.
    migration_sqrt_price: Optional[U128Int] = None


class SegmentedCurveModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["segmented"] = "segmented"
    initial_sqrt_price: U128Int
    migration_sqrt_price: U128Int
    curve: tuple[CurvePoint, ...] = Field(min_length=1, max_length=MAX_CURVE_POINT)
    swallow_percentage: U8Int = DEFAULT_SWALLOW_PERCENTAGE

    @property
    def active_points(self) -> tuple[CurvePoint, ...]:
        points = []
        for point in self.curve:
            if point.is_empty:
                break
            points.append(point)
        return tuple(points)


CurveModel = Annotated[
    Union[ConstantProductModel, SegmentedCurveModel], Field(discriminator="kind")
]


# ============================================================================
# Config
# ============================================================================


class AuthorityConfig(BaseModel):
    """Principals allowed to run the privileged operations."""

    model_config = ConfigDict(frozen=True)

    admins: frozenset[str] = frozenset()
    fee_type_reviewers: frozenset[str] = frozenset()
    migration_authorities: frozenset[str] = frozenset()

    def members(self, role: AuthorityRole) -> frozenset[str]:
        if role is AuthorityRole.ADMIN:
            return self.admins
        if role is AuthorityRole.FEE_TYPE_REVIEWER:
            return self.fee_type_reviewers
        return self.migration_authorities


class Config(BaseModel):
    """Static parameters shared by every curve created from this config.

    Fee rates are out of FEE_DENOMINATOR (100,000).
    """

    model_config = ConfigDict(frozen=True)

    quote_mint: str
    fee_claimer: str

    base_token_flag: U8Int = 0
    quote_token_flag: U8Int = 0
    base_decimal: U8Int = 6
    quote_decimal: U8Int = 9

    fee_basis_points: U16Int
    l1_referral_fee_basis_points: U16Int = 0
    l2_referral_fee_basis_points: U16Int = 0
    l3_referral_fee_basis_points: U16Int = 0
    referee_discount_basis_points: U16Int = 0
    creator_fee_basis_points: U16Int = 0
    meme_fee_basis_points: U16Int = 0
    migration_fee_basis_points: U16Int = 0

    migration_base_threshold: U64Int
    migration_quote_threshold: U64Int

    curve_model: CurveModel
    locked_vesting: LockedVestingConfig = LockedVestingConfig()
    authorities: AuthorityConfig = AuthorityConfig()

    @property
    def is_constant_product(self) -> bool:
        return isinstance(self.curve_model, ConstantProductModel)

    @property
    def migration_sqrt_price(self) -> Optional[int]:
        return self.curve_model.migration_sqrt_price
