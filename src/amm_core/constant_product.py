"""Virtual-reserve constant-product pricing.

The base side is scaled by ``base_scale`` before the product is taken so a
9-decimal quote and a 6-decimal base keep comparable precision.
"""

from __future__ import annotations

from amm_core.constants import CONSTANT_PRODUCT_BASE_SCALE
from amm_core.errors import NotEnoughLiquidity
from amm_core.safe_math import U64, U128, cast, safe_add, safe_div, safe_mul, safe_sub


def get_swap_amount_from_quote_to_base(
    virtual_quote: int,
    virtual_base: int,
    amount_in: int,
    base_scale: int = CONSTANT_PRODUCT_BASE_SCALE,
) -> int:
    """Base received for ``amount_in`` quote (a buy)."""
    virtual_base_scaled = safe_mul(virtual_base, base_scale, U128)
    k = safe_mul(virtual_quote, virtual_base_scaled, U128)
    new_virtual_quote = safe_add(virtual_quote, amount_in, U128)
    new_virtual_base_scaled = safe_div(k, new_virtual_quote, U128)
    base_out = safe_div(
        safe_sub(virtual_base_scaled, new_virtual_base_scaled, U128), base_scale, U128
    )
    return cast(base_out, U64)


def get_swap_amount_from_base_to_quote(
    virtual_quote: int,
    virtual_base: int,
    amount_in: int,
    base_scale: int = CONSTANT_PRODUCT_BASE_SCALE,
) -> int:
    """Gross quote released for ``amount_in`` base (a sell)."""
    virtual_base_scaled = safe_mul(virtual_base, base_scale, U128)
    amount_in_scaled = safe_mul(amount_in, base_scale, U128)
    new_virtual_base_scaled = safe_add(virtual_base_scaled, amount_in_scaled, U128)
    k = safe_mul(virtual_base_scaled, virtual_quote, U128)
    new_quote = safe_div(k, new_virtual_base_scaled, U128)
    return cast(safe_sub(virtual_quote, new_quote, U128), U64)


def get_quote_in_for_base_out(
    virtual_quote: int,
    virtual_base: int,
    base_out: int,
    base_scale: int = CONSTANT_PRODUCT_BASE_SCALE,
) -> int:
    """Net quote input needed to buy ``base_out``.

    Rounds up so the forward formula applied to the result never falls short.
    """
    if base_out >= virtual_base:
        raise NotEnoughLiquidity(f"cannot take {base_out} of {virtual_base} virtual base")
    virtual_base_scaled = safe_mul(virtual_base, base_scale, U128)
    k = safe_mul(virtual_quote, virtual_base_scaled, U128)
    remaining_scaled = safe_sub(
        virtual_base_scaled, safe_mul(base_out, base_scale, U128), U128
    )
    new_virtual_quote = -(-k // remaining_scaled)
    return cast(safe_sub(new_virtual_quote, virtual_quote, U128), U64)


def get_price(
    virtual_quote: int,
    virtual_base: int,
    base_scale: int = CONSTANT_PRODUCT_BASE_SCALE,
) -> int:
    """Integer quote-per-base price, truncated as the on-chain view returns it."""
    virtual_base_scaled = safe_mul(virtual_base, base_scale, U128)
    return safe_div(virtual_quote, virtual_base_scaled, U128)
