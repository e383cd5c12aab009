"""Instruction-level entry points.

Each operation checks who is calling, runs the pure math against staged
copies of the mutable state, and commits only when every step succeeded.
Audit events go to an optional ``EventLog`` supplied by the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from amm_core.constants import TOKEN_TOTAL_SUPPLY
from amm_core.errors import (
    ExceededSlippage,
    NothingToClaim,
    NotPermitToDoThisAction,
    PoolIsIncompleted,
    Unauthorized,
)
from amm_core.models import (
    AuthorityConfig,
    AuthorityRole,
    Config,
    FeeType,
    MigrationStatus,
    TradeDirection,
)
from amm_core.safe_math import safe_add, safe_sub
from engine.cashback import CashbackAccount
from engine.events import (
    AuditEvent,
    CashbackClaimEvent,
    CashbackReclaimEvent,
    CashbackTierUpdatedEvent,
    ClaimFeeEvent,
    CreateLockerEvent,
    CurveCompleteEvent,
    EventLog,
    FeeTypeChangedEvent,
    MigrationEvent,
    SwapEvent,
)
from engine.fees import NO_REFERRAL, ReferralFlags
from engine.migration import (
    MigrationPlan,
    VestingSchedule,
    build_migration_plan,
    get_vesting_schedule,
)
from engine.state import BondingCurve
from engine.swap import SwapResult, get_swap_result
from utils.logging_config import LogContext

LOGGER = logging.getLogger("bonding_amm.operations")


def _emit(event_log: Optional[EventLog], event: AuditEvent) -> None:
    if event_log is not None:
        event_log.add(event)


def ensure_authorized(
    authorities: AuthorityConfig, role: AuthorityRole, caller: str
) -> None:
    if caller not in authorities.members(role):
        LOGGER.warning("Rejected %s call from %s", role.value, caller)
        raise Unauthorized(f"{caller} is not a {role.value} authority")


def create_curve(
    config: Config,
    config_key: str,
    creator: str,
    base_mint: str,
    initial_base_supply: int = TOKEN_TOTAL_SUPPLY,
) -> BondingCurve:
    curve = BondingCurve.create(config, config_key, creator, base_mint, initial_base_supply)
    LOGGER.info(
        "Created curve %s for %s: base_reserve=%s", base_mint, creator, curve.base_reserve
    )
    return curve


def swap(
    config: Config,
    curve: BondingCurve,
    trader: str,
    amount_in: int,
    minimum_amount_out: int,
    direction: TradeDirection,
    now: int,
    referrals: ReferralFlags = NO_REFERRAL,
    cashback_account: Optional[CashbackAccount] = None,
    base_vault_balance: Optional[int] = None,
    event_log: Optional[EventLog] = None,
) -> SwapResult:
    """Quote, slippage-check and settle one trade.

    The trader's cashback account, when given, sets the cashback tier and is
    credited with the cashback fee.
    """
    direction = TradeDirection(direction)
    with LogContext(curve=curve.base_mint, direction=direction.name):
        cashback_tier = cashback_account.get_tier() if cashback_account else None
        result = get_swap_result(
            config, curve, amount_in, direction, referrals, cashback_tier
        )
        if result.output_amount < minimum_amount_out:
            raise ExceededSlippage(
                f"output {result.output_amount} below minimum {minimum_amount_out}"
            )

        staged = curve.copy()
        staged.apply_swap_result(result, direction)
        completed = staged.complete_if_graduated(config, now, base_vault_balance)

        staged_cashback = None
        if cashback_account is not None:
            staged_cashback = cashback_account.copy()
            staged_cashback.credit(result.cashback_fee)

        curve.commit(staged)
        if staged_cashback is not None:
            cashback_account.balance = staged_cashback.balance

        _emit(
            event_log,
            SwapEvent(
                curve=curve.base_mint,
                base_mint=curve.base_mint,
                trader=trader,
                amount_in=amount_in,
                minimum_amount_out=minimum_amount_out,
                has_referral=referrals.has_referral,
                swap_result=result,
            ),
        )
        if completed:
            _emit(
                event_log,
                CurveCompleteEvent(
                    curve=curve.base_mint,
                    config=curve.config,
                    base_reserve=curve.base_reserve,
                    quote_reserve=curve.quote_reserve,
                    curve_finish_timestamp=curve.curve_finish_timestamp,
                ),
            )
    return result


def set_fee_type(
    config: Config,
    curve: BondingCurve,
    caller: str,
    new_fee_type: FeeType,
    event_log: Optional[EventLog] = None,
) -> int:
    ensure_authorized(config.authorities, AuthorityRole.FEE_TYPE_REVIEWER, caller)
    old_fee_type = FeeType(curve.fee_type)
    with LogContext(curve=curve.base_mint, fee_type=int(new_fee_type)):
        swept = curve.set_fee_type(config, new_fee_type)
    _emit(
        event_log,
        FeeTypeChangedEvent(
            curve=curve.base_mint,
            old_fee_type=int(old_fee_type),
            new_fee_type=int(curve.fee_type),
            swept_to_protocol=swept,
        ),
    )
    return swept


def claim_protocol_fee(
    config: Config,
    curve: BondingCurve,
    caller: str,
    quote_vault_balance: Optional[int] = None,
    event_log: Optional[EventLog] = None,
) -> int:
    """Pay accrued protocol fees to the fee claimer.

    Once the pool exists the whole remaining quote vault is swept, which
    includes the migration fee left behind by ``migrate_pool``.
    """
    if caller != config.fee_claimer:
        raise Unauthorized(f"{caller} is not the fee claimer")

    if curve.migration_status == MigrationStatus.CREATED_POOL:
        if quote_vault_balance is None:
            quote_vault_balance = safe_add(curve.quote_reserve, curve.protocol_fee)
        if quote_vault_balance == 0:
            raise NothingToClaim("quote vault is empty")
        curve.claim_protocol_fee()
        curve.quote_reserve = 0
        claim_amount = quote_vault_balance
    else:
        if curve.protocol_fee == 0:
            raise NothingToClaim("no protocol fee accrued")
        claim_amount = curve.claim_protocol_fee()

    LOGGER.info("Protocol fee claimed on %s: %s", curve.base_mint, claim_amount)
    _emit(
        event_log,
        ClaimFeeEvent(
            curve=curve.base_mint,
            claimer=caller,
            quote_token_claim_amount=claim_amount,
            is_protocol=True,
        ),
    )
    return claim_amount


def claim_creator_fee(
    curve: BondingCurve,
    caller: str,
    event_log: Optional[EventLog] = None,
) -> int:
    if caller != curve.creator:
        raise Unauthorized(f"{caller} is not the curve creator")
    if curve.creator_fee == 0:
        raise NothingToClaim("no creator fee accrued")
    claim_amount = curve.claim_creator_fee()
    LOGGER.info("Creator fee claimed on %s: %s", curve.base_mint, claim_amount)
    _emit(
        event_log,
        ClaimFeeEvent(
            curve=curve.base_mint,
            claimer=caller,
            quote_token_claim_amount=claim_amount,
            is_protocol=False,
        ),
    )
    return claim_amount


def create_cashback_account(owner: str, now: int) -> CashbackAccount:
    account = CashbackAccount.create(owner, now)
    LOGGER.info("Created cashback account for %s", owner)
    return account


def update_cashback_tier(
    config: Config,
    caller: str,
    account: CashbackAccount,
    new_tier: int,
    event_log: Optional[EventLog] = None,
) -> None:
    ensure_authorized(config.authorities, AuthorityRole.ADMIN, caller)
    old_tier = account.update_tier(new_tier)
    _emit(
        event_log,
        CashbackTierUpdatedEvent(owner=account.owner, old_tier=old_tier, new_tier=new_tier),
    )


def claim_cashback(
    account: CashbackAccount,
    caller: str,
    now: int,
    event_log: Optional[EventLog] = None,
) -> int:
    if caller != account.owner:
        raise Unauthorized(f"{caller} does not own this cashback account")
    amount = account.claim(now)
    _emit(
        event_log,
        CashbackClaimEvent(
            owner=account.owner, claim_amount=amount, tier=int(account.get_tier())
        ),
    )
    return amount


def reclaim_cashback(
    config: Config,
    caller: str,
    account: CashbackAccount,
    now: int,
    event_log: Optional[EventLog] = None,
) -> int:
    ensure_authorized(config.authorities, AuthorityRole.ADMIN, caller)
    amount = account.reclaim(now)
    _emit(
        event_log,
        CashbackReclaimEvent(owner=account.owner, authority=caller, reclaim_amount=amount),
    )
    return amount


def create_locker(
    config: Config,
    curve: BondingCurve,
    event_log: Optional[EventLog] = None,
) -> VestingSchedule:
    """Lock the creator allocation and move the curve on to LockedVesting."""
    if curve.migration_status != MigrationStatus.POST_BONDING_CURVE:
        raise NotPermitToDoThisAction(
            f"create_locker in {MigrationStatus(curve.migration_status).name}"
        )
    if not config.locked_vesting.has_vesting:
        raise NotPermitToDoThisAction("no locked vesting configured")

    schedule = get_vesting_schedule(config, curve)
    curve.advance_migration_status(MigrationStatus.LOCKED_VESTING)
    _emit(
        event_log,
        CreateLockerEvent(
            curve=curve.base_mint,
            config=curve.config,
            cliff_time=schedule.cliff_time,
            total_amount=schedule.total_amount,
        ),
    )
    return schedule


def migrate_pool(
    config: Config,
    curve: BondingCurve,
    caller: str,
    base_vault_balance: Optional[int] = None,
    event_log: Optional[EventLog] = None,
) -> MigrationPlan:
    """Compute the pool deposit and close the curve for good."""
    ensure_authorized(config.authorities, AuthorityRole.MIGRATION, caller)
    if curve.migration_status != MigrationStatus.LOCKED_VESTING:
        raise NotPermitToDoThisAction(
            f"migrate_pool in {MigrationStatus(curve.migration_status).name}"
        )
    if not curve.is_curve_complete(config):
        raise PoolIsIncompleted(curve.base_mint)

    with LogContext(curve=curve.base_mint, migration_status=MigrationStatus.CREATED_POOL.name):
        plan = build_migration_plan(config, curve, base_vault_balance)

        staged = curve.copy()
        # A reported vault balance may cover more than the tracked reserve.
        staged.base_reserve = safe_sub(
            staged.base_reserve, min(plan.deposited_base_amount, staged.base_reserve)
        )
        staged.quote_reserve = safe_sub(staged.quote_reserve, plan.deposited_quote_amount)
        staged.update_after_migration()
        staged.advance_migration_status(MigrationStatus.CREATED_POOL)
        curve.commit(staged)

    _emit(
        event_log,
        MigrationEvent(
            curve=curve.base_mint,
            config=curve.config,
            deposited_base_amount=plan.deposited_base_amount,
            deposited_quote_amount=plan.deposited_quote_amount,
            initial_liquidity=plan.initial_liquidity,
            sqrt_price=plan.sqrt_price,
        ),
    )
    return plan
