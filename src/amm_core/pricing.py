"""Human-readable price helpers for quotes and dashboards."""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Protocol

from amm_core.constants import RESOLUTION
from amm_core.models import Config

Q64 = Decimal(2) ** RESOLUTION
PRICE_PRECISION = 80


class ReserveView(Protocol):
    base_reserve: int
    quote_reserve: int


def price_from_sqrt_price(
    sqrt_price: int, base_decimals: int, quote_decimals: int
) -> Decimal:
    """Return quote per whole base token for a Q64.64 sqrt price."""
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        sqrt_dec = Decimal(sqrt_price) / Q64
        scale = Decimal(10) ** (base_decimals - quote_decimals)
        return (sqrt_dec * sqrt_dec) * scale


def virtual_price(
    virtual_quote: int,
    virtual_base: int,
    base_decimals: int,
    quote_decimals: int,
) -> Decimal:
    """Return quote per whole base token for a pair of virtual reserves."""
    if virtual_base <= 0:
        return Decimal("0")
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        quote = Decimal(virtual_quote) / (Decimal(10) ** quote_decimals)
        base = Decimal(virtual_base) / (Decimal(10) ** base_decimals)
        return quote / base


def migration_progress(curve: ReserveView, config: Config) -> Decimal:
    """Fraction of the way to graduation, clamped to ``[0, 1]``."""
    if config.is_constant_product and curve.base_reserve <= config.migration_base_threshold:
        return Decimal("1")
    threshold = Decimal(config.migration_quote_threshold)
    if threshold <= 0:
        return Decimal("0")
    progress = Decimal(curve.quote_reserve) / threshold
    return max(Decimal("0"), min(Decimal("1"), progress))
