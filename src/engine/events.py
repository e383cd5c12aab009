"""Immutable audit records for swaps and lifecycle transitions."""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Iterator, Optional, Union

from engine.swap import SwapResult


@dataclass(frozen=True)
class SwapEvent:
    curve: str
    base_mint: str
    trader: str
    amount_in: int
    minimum_amount_out: int
    has_referral: bool
    swap_result: SwapResult
    event_type: str = "swap"


@dataclass(frozen=True)
class CurveCompleteEvent:
    curve: str
    config: str
    base_reserve: int
    quote_reserve: int
    curve_finish_timestamp: int
    event_type: str = "curve_complete"


@dataclass(frozen=True)
class FeeTypeChangedEvent:
    curve: str
    old_fee_type: int
    new_fee_type: int
    swept_to_protocol: int
    event_type: str = "fee_type_changed"


@dataclass(frozen=True)
class ClaimFeeEvent:
    curve: str
    claimer: str
    quote_token_claim_amount: int
    is_protocol: bool
    event_type: str = "claim_fee"


@dataclass(frozen=True)
class CashbackClaimEvent:
    owner: str
    claim_amount: int
    tier: int
    event_type: str = "cashback_claim"


@dataclass(frozen=True)
class CashbackReclaimEvent:
    owner: str
    authority: str
    reclaim_amount: int
    event_type: str = "cashback_reclaim"


@dataclass(frozen=True)
class CashbackTierUpdatedEvent:
    owner: str
    old_tier: int
    new_tier: int
    event_type: str = "cashback_tier_updated"


@dataclass(frozen=True)
class CreateLockerEvent:
    curve: str
    config: str
    cliff_time: int
    total_amount: int
    event_type: str = "create_locker"


@dataclass(frozen=True)
class MigrationEvent:
    curve: str
    config: str
    deposited_base_amount: int
    deposited_quote_amount: int
    initial_liquidity: int
    sqrt_price: int
    event_type: str = "migration"


AuditEvent = Union[
    SwapEvent,
    CurveCompleteEvent,
    FeeTypeChangedEvent,
    ClaimFeeEvent,
    CashbackClaimEvent,
    CashbackReclaimEvent,
    CashbackTierUpdatedEvent,
    CreateLockerEvent,
    MigrationEvent,
]


def event_to_dict(event: AuditEvent) -> dict[str, Any]:
    return asdict(event)


class EventLog:
    """Bounded in-memory sink; the oldest events fall off first."""

    def __init__(self, maxlen: Optional[int] = 10_000) -> None:
        self.events: deque[AuditEvent] = deque(maxlen=maxlen)

    def add(self, event: AuditEvent) -> None:
        self.events.append(event)

    def tail(self, n: int = 200) -> list[AuditEvent]:
        if n <= 0:
            return []
        if n >= len(self.events):
            return list(self.events)
        return list(self.events)[-n:]

    def of_type(self, event_type: str) -> list[AuditEvent]:
        return [event for event in self.events if event.event_type == event_type]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[AuditEvent]:
        return iter(self.events)
