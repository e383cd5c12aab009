"""Mutable per-curve state and its lifecycle transitions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from amm_core.constants import TOKEN_TOTAL_SUPPLY
from amm_core.errors import (
    FeeTypeAlreadySet,
    InsufficientLiquidityForMigration,
    InvalidFeeType,
    InvalidMigrationStatus,
)
from amm_core.models import (
    Config,
    ConstantProductModel,
    FeeType,
    MigrationStatus,
    TradeDirection,
)
from amm_core.safe_math import safe_add, safe_div, safe_sub
from engine.swap import SwapResult

LOGGER = logging.getLogger("bonding_amm.state")

_NEXT_STATUSES: dict[MigrationStatus, frozenset[MigrationStatus]] = {
    MigrationStatus.PRE_BONDING_CURVE: frozenset(
        {MigrationStatus.POST_BONDING_CURVE, MigrationStatus.LOCKED_VESTING}
    ),
    MigrationStatus.POST_BONDING_CURVE: frozenset({MigrationStatus.LOCKED_VESTING}),
    MigrationStatus.LOCKED_VESTING: frozenset({MigrationStatus.CREATED_POOL}),
    MigrationStatus.CREATED_POOL: frozenset(),
}


@dataclass
class BondingCurve:
    config: str
    creator: str
    base_mint: str
    base_reserve: int = 0
    quote_reserve: int = 0
    virtual_base_reserve: int = 0
    virtual_quote_reserve: int = 0
    sqrt_price: int = 0
    migration_status: MigrationStatus = MigrationStatus.PRE_BONDING_CURVE
    fee_type: FeeType = FeeType.CREATOR
    protocol_fee: int = 0
    creator_fee: int = 0
    curve_finish_timestamp: int = 0
    is_migrated: bool = False

    @classmethod
    def create(
        cls,
        config: Config,
        config_key: str,
        creator: str,
        base_mint: str,
        initial_base_supply: int = TOKEN_TOTAL_SUPPLY,
    ) -> "BondingCurve":
        """Seed a fresh curve; the vesting allocation stays out of the reserve."""
        base_reserve = safe_sub(initial_base_supply, config.locked_vesting.total_amount)
        model = config.curve_model
        if isinstance(model, ConstantProductModel):
            return cls(
                config=config_key,
                creator=creator,
                base_mint=base_mint,
                base_reserve=base_reserve,
                virtual_base_reserve=model.initial_virtual_base_reserve,
                virtual_quote_reserve=model.initial_virtual_quote_reserve,
            )
        return cls(
            config=config_key,
            creator=creator,
            base_mint=base_mint,
            base_reserve=base_reserve,
            sqrt_price=model.initial_sqrt_price,
        )

    def copy(self) -> "BondingCurve":
        return replace(self)

    def commit(self, staged: "BondingCurve") -> None:
        """Adopt every field of ``staged`` at once."""
        for item in fields(self):
            setattr(self, item.name, getattr(staged, item.name))

    def apply_swap_result(
        self, swap_result: SwapResult, trade_direction: TradeDirection
    ) -> None:
        """Move reserves and fee counters by one settled swap.

        Sells take the gross quote (net plus fees) out of the reserve. Nothing
        is written unless every checked step succeeds.
        """
        base_reserve = self.base_reserve
        quote_reserve = self.quote_reserve
        virtual_base = self.virtual_base_reserve
        virtual_quote = self.virtual_quote_reserve
        uses_virtual = swap_result.next_sqrt_price is None

        if trade_direction == TradeDirection.BASE_TO_QUOTE:
            gross_output = safe_add(swap_result.output_amount, swap_result.trading_fee)
            base_reserve = safe_add(base_reserve, swap_result.actual_input_amount)
            quote_reserve = safe_sub(quote_reserve, gross_output)
            if uses_virtual:
                virtual_base = safe_add(virtual_base, swap_result.actual_input_amount)
                virtual_quote = safe_sub(virtual_quote, gross_output)
        else:
            quote_reserve = safe_add(quote_reserve, swap_result.actual_input_amount)
            base_reserve = safe_sub(base_reserve, swap_result.output_amount)
            if uses_virtual:
                virtual_quote = safe_add(virtual_quote, swap_result.actual_input_amount)
                virtual_base = safe_sub(virtual_base, swap_result.output_amount)

        creator_fee = safe_add(self.creator_fee, swap_result.creator_fee)
        protocol_fee = safe_add(self.protocol_fee, swap_result.protocol_fee)

        self.base_reserve = base_reserve
        self.quote_reserve = quote_reserve
        self.virtual_base_reserve = virtual_base
        self.virtual_quote_reserve = virtual_quote
        if not uses_virtual:
            self.sqrt_price = swap_result.next_sqrt_price
        self.creator_fee = creator_fee
        self.protocol_fee = protocol_fee

    def is_curve_complete(self, config: Config) -> bool:
        if config.is_constant_product:
            return self.base_reserve <= config.migration_base_threshold
        return self.quote_reserve >= config.migration_quote_threshold

    def complete_if_graduated(
        self,
        config: Config,
        now: int,
        base_vault_balance: int | None = None,
    ) -> bool:
        """Close the bonding phase the first time the threshold is reached.

        Returns True only on the call that performs the transition; later
        calls are no-ops once the curve has left PreBondingCurve.
        """
        if self.migration_status != MigrationStatus.PRE_BONDING_CURVE:
            return False
        if not self.is_curve_complete(config):
            return False

        if base_vault_balance is None:
            base_vault_balance = safe_add(
                self.base_reserve, config.locked_vesting.total_amount
            )
        if base_vault_balance < config.migration_base_threshold:
            raise InsufficientLiquidityForMigration(
                f"base vault {base_vault_balance} below {config.migration_base_threshold}"
            )

        if config.locked_vesting.has_vesting:
            next_status = MigrationStatus.POST_BONDING_CURVE
        else:
            next_status = MigrationStatus.LOCKED_VESTING
        self.curve_finish_timestamp = now
        self.migration_status = next_status
        LOGGER.info(
            "Curve %s complete at %s: base=%s quote=%s status=%s",
            self.base_mint,
            now,
            self.base_reserve,
            self.quote_reserve,
            next_status.name,
        )
        return True

    def advance_migration_status(self, new_status: MigrationStatus) -> None:
        self.migration_status = MigrationStatus(self.migration_status)
        new_status = MigrationStatus(new_status)
        if new_status not in _NEXT_STATUSES[self.migration_status]:
            raise InvalidMigrationStatus(
                f"{self.migration_status.name} -> {new_status.name}"
            )
        LOGGER.info(
            "Curve %s migration status %s -> %s",
            self.base_mint,
            self.migration_status.name,
            new_status.name,
        )
        self.migration_status = new_status

    def set_fee_type(self, config: Config, new_fee_type: FeeType) -> int:
        """Switch the fee recipient and return the amount swept to protocol."""
        try:
            new_fee_type = FeeType(new_fee_type)
        except ValueError as exc:
            raise InvalidFeeType(str(new_fee_type)) from exc
        current = FeeType(self.fee_type)
        if current is new_fee_type:
            raise FeeTypeAlreadySet(new_fee_type.name)

        if new_fee_type is FeeType.BLOCKED:
            swept = self.creator_fee
            creator_fee = 0
        elif current is FeeType.CREATOR and new_fee_type is FeeType.MEME:
            creator_fee = self._rescale_creator_fee(config)
            swept = safe_sub(self.creator_fee, creator_fee)
        elif current is FeeType.MEME and new_fee_type is FeeType.CREATOR:
            creator_fee = self.creator_fee
            swept = 0
        else:
            raise InvalidFeeType(f"{current.name} -> {new_fee_type.name}")

        protocol_fee = safe_add(self.protocol_fee, swept)
        self.creator_fee = creator_fee
        self.protocol_fee = protocol_fee
        self.fee_type = new_fee_type
        LOGGER.info(
            "Curve %s fee type %s -> %s, swept %s to protocol",
            self.base_mint,
            current.name,
            new_fee_type.name,
            swept,
        )
        return swept

    def _rescale_creator_fee(self, config: Config) -> int:
        """Divide the accrued fee by the whole ratio creator_bps // meme_bps."""
        creator_bps = config.creator_fee_basis_points
        meme_bps = config.meme_fee_basis_points
        if creator_bps == 0:
            return self.creator_fee
        if meme_bps == 0:
            return 0
        ratio = creator_bps // meme_bps
        if ratio <= 1:
            return self.creator_fee
        return safe_div(self.creator_fee, ratio)

    def claim_protocol_fee(self) -> int:
        claim_amount = self.protocol_fee
        self.protocol_fee = 0
        return claim_amount

    def claim_creator_fee(self) -> int:
        claim_amount = self.creator_fee
        self.creator_fee = 0
        return claim_amount

    def update_after_migration(self) -> None:
        self.is_migrated = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "config": self.config,
            "creator": self.creator,
            "base_mint": self.base_mint,
            "base_reserve": self.base_reserve,
            "quote_reserve": self.quote_reserve,
            "virtual_base_reserve": self.virtual_base_reserve,
            "virtual_quote_reserve": self.virtual_quote_reserve,
            # Q64.64 values can exceed what JSON consumers parse as numbers.
            "sqrt_price": str(self.sqrt_price),
            "migration_status": int(self.migration_status),
            "fee_type": int(self.fee_type),
            "protocol_fee": self.protocol_fee,
            "creator_fee": self.creator_fee,
            "curve_finish_timestamp": self.curve_finish_timestamp,
            "is_migrated": self.is_migrated,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BondingCurve":
        return cls(
            config=payload["config"],
            creator=payload["creator"],
            base_mint=payload["base_mint"],
            base_reserve=int(payload.get("base_reserve", 0)),
            quote_reserve=int(payload.get("quote_reserve", 0)),
            virtual_base_reserve=int(payload.get("virtual_base_reserve", 0)),
            virtual_quote_reserve=int(payload.get("virtual_quote_reserve", 0)),
            sqrt_price=int(payload.get("sqrt_price", 0)),
            migration_status=MigrationStatus(
                payload.get("migration_status", MigrationStatus.PRE_BONDING_CURVE)
            ),
            fee_type=FeeType(payload.get("fee_type", FeeType.CREATOR)),
            protocol_fee=int(payload.get("protocol_fee", 0)),
            creator_fee=int(payload.get("creator_fee", 0)),
            curve_finish_timestamp=int(payload.get("curve_finish_timestamp", 0)),
            is_migrated=bool(payload.get("is_migrated", False)),
        )

    def save(self, path: str | Path) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = self.to_payload()
        target.write_text(
            json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
        )

    @classmethod
    def load(cls, path: str | Path) -> "BondingCurve":
        target = Path(path)
        payload = json.loads(target.read_text(encoding="utf-8"))
        return cls.from_payload(payload)
