"""Configuration validation for bonding curve configs."""

from __future__ import annotations

from typing import Any, Iterable

from amm_core.constants import (
    CASHBACK_CHAMPION_BPS,
    MAX_BASE_DECIMAL,
    MAX_CREATOR_FEE_BASIS_POINTS,
    MAX_FEE_BASIS_POINTS,
    MAX_SQRT_PRICE,
    MIN_BASE_DECIMAL,
    MIN_SQRT_PRICE,
    TOKEN_TOTAL_SUPPLY,
)
from amm_core.curve import get_delta_amount_quote_unsigned, get_max_swallow_amount
from amm_core.errors import (
    InvalidAmmConfig,
    InvalidCreatorTradingFeePercentage,
    InvalidCurve,
    InvalidFeeBasisPoints,
    InvalidQuoteThreshold,
    InvalidTokenDecimals,
    MathOverflow,
)
from amm_core.models import (
    Config,
    ConstantProductModel,
    LockedVestingConfig,
    SegmentedCurveModel,
)
from amm_core.safe_math import U64, U128, Rounding, checked, safe_add, safe_mul


class ConfigValidationError(ValueError):
    """Raised when a raw configuration mapping is malformed."""


REQUIRED_FIELDS = (
    "quote_mint",
    "fee_claimer",
    "fee_basis_points",
    "migration_base_threshold",
    "migration_quote_threshold",
    "curve_model",
)


def validate_required_fields(
    config: dict[str, Any], fields: Iterable[str] = REQUIRED_FIELDS
) -> None:
    """Validate that every required top-level field is present."""
    if not isinstance(config, dict):
        raise ConfigValidationError(
            f"Config must be a mapping, got: {type(config).__name__}"
        )
    for field in fields:
        if field not in config:
            raise ConfigValidationError(f"Missing required field: {field}")


def validate_token_decimals(config: Config) -> None:
    if not MIN_BASE_DECIMAL <= config.base_decimal <= MAX_BASE_DECIMAL:
        raise InvalidTokenDecimals(
            f"base_decimal must be between {MIN_BASE_DECIMAL} and {MAX_BASE_DECIMAL}, "
            f"got: {config.base_decimal}"
        )


def validate_fee_basis_points(config: Config) -> None:
    """Validate fee rates so the protocol share can never go negative.

    Rates are out of FEE_DENOMINATOR except the gross-rate cap, which is
    compared against MAX_FEE_BASIS_POINTS directly.
    """
    fee = config.fee_basis_points
    if fee > MAX_FEE_BASIS_POINTS:
        raise InvalidFeeBasisPoints(
            f"fee_basis_points must be at most {MAX_FEE_BASIS_POINTS}, got: {fee}"
        )

    l1 = config.l1_referral_fee_basis_points
    l2 = config.l2_referral_fee_basis_points
    l3 = config.l3_referral_fee_basis_points
    # All-zero referral rates mean the referral program is off.
    if (l1, l2, l3) != (0, 0, 0) and not l1 > l2 > l3:
        raise InvalidFeeBasisPoints(
            f"referral fees must be strictly decreasing, got: {l1}, {l2}, {l3}"
        )

    for name, value in (
        ("creator_fee_basis_points", config.creator_fee_basis_points),
        ("meme_fee_basis_points", config.meme_fee_basis_points),
    ):
        if value > MAX_CREATOR_FEE_BASIS_POINTS:
            raise InvalidCreatorTradingFeePercentage(
                f"{name} must be at most {MAX_CREATOR_FEE_BASIS_POINTS}, got: {value}"
            )

    components = (
        l1
        + l2
        + l3
        + max(config.creator_fee_basis_points, config.meme_fee_basis_points)
        + CASHBACK_CHAMPION_BPS
    )
    if components >= fee:
        raise InvalidFeeBasisPoints(
            f"fee components ({components}) must stay below fee_basis_points ({fee})"
        )

    discount = config.referee_discount_basis_points
    if discount > fee - components:
        raise InvalidFeeBasisPoints(
            f"referee_discount_basis_points must be at most {fee - components}, "
            f"got: {discount}"
        )


def validate_thresholds(config: Config) -> None:
    if config.migration_quote_threshold <= 0:
        raise InvalidQuoteThreshold("migration_quote_threshold must be positive")
    if config.migration_base_threshold <= 0:
        raise InvalidAmmConfig("migration_base_threshold must be positive")


def validate_constant_product(model: ConstantProductModel) -> None:
    if model.initial_virtual_quote_reserve <= 0:
        raise InvalidAmmConfig("initial_virtual_quote_reserve must be positive")
    if model.initial_virtual_base_reserve <= 0:
        raise InvalidAmmConfig("initial_virtual_base_reserve must be positive")
    if model.base_scale <= 0:
        raise InvalidAmmConfig("base_scale must be positive")
    try:
        scaled = safe_mul(model.initial_virtual_base_reserve, model.base_scale, U128)
        safe_mul(model.initial_virtual_quote_reserve, scaled, U128)
    except MathOverflow as exc:
        raise InvalidAmmConfig("virtual reserve product does not fit u128") from exc
    if model.migration_sqrt_price is not None and not (
        MIN_SQRT_PRICE < model.migration_sqrt_price < MAX_SQRT_PRICE
    ):
        raise InvalidCurve(
            f"migration_sqrt_price out of range, got: {model.migration_sqrt_price}"
        )


def validate_segmented_curve(model: SegmentedCurveModel) -> None:
    """Validate breakpoints, the starting price and the migration price."""
    if not MIN_SQRT_PRICE <= model.initial_sqrt_price < MAX_SQRT_PRICE:
        raise InvalidCurve(
            f"initial_sqrt_price out of range, got: {model.initial_sqrt_price}"
        )

    active = model.active_points
    if not active:
        raise InvalidCurve("curve needs at least one configured point")
    if any(not point.is_empty for point in model.curve[len(active) :]):
        raise InvalidCurve("configured points must not follow an empty point")

    previous = model.initial_sqrt_price
    for index, point in enumerate(active):
        if point.sqrt_price <= previous:
            raise InvalidCurve(
                f"curve[{index}].sqrt_price must be above {previous}, got: {point.sqrt_price}"
            )
        if point.sqrt_price > MAX_SQRT_PRICE:
            raise InvalidCurve(
                f"curve[{index}].sqrt_price above MAX_SQRT_PRICE, got: {point.sqrt_price}"
            )
        previous = point.sqrt_price

    last_price = active[-1].sqrt_price
    if not model.initial_sqrt_price < model.migration_sqrt_price <= last_price:
        raise InvalidCurve(
            f"migration_sqrt_price must be in ({model.initial_sqrt_price}, {last_price}], "
            f"got: {model.migration_sqrt_price}"
        )
    if model.migration_sqrt_price >= MAX_SQRT_PRICE:
        raise InvalidCurve("migration_sqrt_price must be below MAX_SQRT_PRICE")

    if model.swallow_percentage > 100:
        raise InvalidCurve(
            f"swallow_percentage must be at most 100, got: {model.swallow_percentage}"
        )


def get_curve_quote_capacity(model: SegmentedCurveModel) -> int:
    """Quote the configured points absorb from ``initial_sqrt_price`` to the last one."""
    capacity = 0
    lower = model.initial_sqrt_price
    for point in model.active_points:
        capacity = safe_add(
            capacity,
            get_delta_amount_quote_unsigned(lower, point.sqrt_price, point.liquidity, Rounding.UP),
            U128,
        )
        lower = point.sqrt_price
    return capacity


def validate_migration_reachable(config: Config) -> None:
    """Check a capped buy can always land the curve on its migration threshold."""
    model = config.curve_model
    if isinstance(model, ConstantProductModel):
        base_reserve = TOKEN_TOTAL_SUPPLY - config.locked_vesting.total_amount
        if base_reserve <= config.migration_base_threshold:
            raise InvalidAmmConfig(
                f"migration_base_threshold ({config.migration_base_threshold}) must be "
                f"below the initial base reserve ({base_reserve})"
            )
        sellable = base_reserve - config.migration_base_threshold
        if sellable >= model.initial_virtual_base_reserve:
            raise InvalidAmmConfig(
                f"initial_virtual_base_reserve must exceed the {sellable} base sold "
                f"before migration, got: {model.initial_virtual_base_reserve}"
            )
        return

    threshold = config.migration_quote_threshold
    try:
        capacity = get_curve_quote_capacity(model)
    except MathOverflow as exc:
        raise InvalidCurve("curve quote capacity does not fit u128") from exc
    swallow = get_max_swallow_amount(threshold, model.swallow_percentage)
    if capacity + swallow < threshold:
        raise InvalidQuoteThreshold(
            f"curve absorbs {capacity} quote plus {swallow} swallowed, "
            f"below migration_quote_threshold ({threshold})"
        )


def validate_locked_vesting(vesting: LockedVestingConfig) -> None:
    if vesting.amount_per_period > 0 and vesting.number_of_period == 0:
        raise InvalidAmmConfig("amount_per_period requires number_of_period")
    if vesting.number_of_period > 0 and vesting.frequency == 0:
        raise InvalidAmmConfig("number_of_period requires a positive frequency")
    try:
        checked(vesting.total_amount, U64)
    except MathOverflow as exc:
        raise InvalidAmmConfig("locked vesting total does not fit u64") from exc


def validate_config(config: Config) -> None:
    """Validate every invariant a config must satisfy before any curve uses it."""
    validate_token_decimals(config)
    validate_fee_basis_points(config)
    validate_thresholds(config)
    if isinstance(config.curve_model, ConstantProductModel):
        validate_constant_product(config.curve_model)
    else:
        validate_segmented_curve(config.curve_model)
    validate_locked_vesting(config.locked_vesting)
    validate_migration_reachable(config)
