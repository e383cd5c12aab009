"""Per-trader cashback tiers and claimable balances."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any

from amm_core.constants import (
    CASHBACK_BRONZE_BPS,
    CASHBACK_CHAMPION_BPS,
    CASHBACK_CLAIM_COOLDOWN,
    CASHBACK_DIAMOND_BPS,
    CASHBACK_GOLD_BPS,
    CASHBACK_INACTIVE_PERIOD,
    CASHBACK_PLATINUM_BPS,
    CASHBACK_SILVER_BPS,
    CASHBACK_WOOD_BPS,
)
from amm_core.errors import (
    AccountNotInactive,
    ClaimCooldownNotMet,
    InvalidCashbackTier,
    NoCashbackToClaim,
)
from amm_core.safe_math import I64, U8, safe_add, safe_sub

LOGGER = logging.getLogger("bonding_amm.cashback")


class CashbackTier(IntEnum):
    WOOD = 0
    BRONZE = 1
    SILVER = 2
    GOLD = 3
    PLATINUM = 4
    DIAMOND = 5
    CHAMPION = 6

    @property
    def bps(self) -> int:
        return _TIER_BPS[self]

    @classmethod
    def from_raw(cls, value: int) -> "CashbackTier":
        """Read a stored tier; anything past the table counts as Champion."""
        if value < 0:
            raise InvalidCashbackTier(str(value))
        return cls(min(value, cls.CHAMPION))


_TIER_BPS = {
    CashbackTier.WOOD: CASHBACK_WOOD_BPS,
    CashbackTier.BRONZE: CASHBACK_BRONZE_BPS,
    CashbackTier.SILVER: CASHBACK_SILVER_BPS,
    CashbackTier.GOLD: CASHBACK_GOLD_BPS,
    CashbackTier.PLATINUM: CASHBACK_PLATINUM_BPS,
    CashbackTier.DIAMOND: CASHBACK_DIAMOND_BPS,
    CashbackTier.CHAMPION: CASHBACK_CHAMPION_BPS,
}


@dataclass
class CashbackAccount:
    owner: str
    current_tier: int = CashbackTier.WOOD
    last_claim_timestamp: int = 0
    balance: int = 0

    @classmethod
    def create(cls, owner: str, now: int) -> "CashbackAccount":
        # The first claim has to wait a full cooldown.
        return cls(owner=owner, current_tier=CashbackTier.WOOD, last_claim_timestamp=now)

    def get_tier(self) -> CashbackTier:
        return CashbackTier.from_raw(self.current_tier)

    def update_tier(self, new_tier: int) -> int:
        """Store a raw tier value and return the previous one."""
        if not U8.contains(new_tier):
            raise InvalidCashbackTier(str(new_tier))
        old_tier = self.current_tier
        self.current_tier = new_tier
        LOGGER.info("Cashback tier for %s: %s -> %s", self.owner, old_tier, new_tier)
        return old_tier

    def credit(self, amount: int) -> None:
        self.balance = safe_add(self.balance, amount)

    def claim(self, now: int) -> int:
        """Pay out the whole balance once the cooldown has elapsed."""
        elapsed = safe_sub(now, self.last_claim_timestamp, I64)
        if elapsed < CASHBACK_CLAIM_COOLDOWN:
            raise ClaimCooldownNotMet(
                f"{CASHBACK_CLAIM_COOLDOWN - elapsed}s remaining for {self.owner}"
            )
        if self.balance <= 0:
            raise NoCashbackToClaim(self.owner)
        amount = self.balance
        self.balance = 0
        self.last_claim_timestamp = now
        LOGGER.info("Cashback claimed by %s: %s", self.owner, amount)
        return amount

    def reclaim(self, now: int) -> int:
        """Sweep a dormant balance to the protocol without touching the claim clock."""
        elapsed = safe_sub(now, self.last_claim_timestamp, I64)
        if elapsed < CASHBACK_INACTIVE_PERIOD:
            raise AccountNotInactive(self.owner)
        if self.balance <= 0:
            raise NoCashbackToClaim(self.owner)
        amount = self.balance
        self.balance = 0
        LOGGER.info("Cashback reclaimed from %s: %s", self.owner, amount)
        return amount

    def copy(self) -> "CashbackAccount":
        return replace(self)

    def to_payload(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "current_tier": int(self.current_tier),
            "last_claim_timestamp": self.last_claim_timestamp,
            "balance": self.balance,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CashbackAccount":
        return cls(
            owner=payload["owner"],
            current_tier=payload.get("current_tier", CashbackTier.WOOD),
            last_claim_timestamp=payload.get("last_claim_timestamp", 0),
            balance=payload.get("balance", 0),
        )
