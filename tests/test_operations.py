from __future__ import annotations

import pytest

from amm_core.constants import CASHBACK_CLAIM_COOLDOWN, CASHBACK_INACTIVE_PERIOD
from amm_core.errors import (
    ExceededSlippage,
    NothingToClaim,
    NotPermitToDoThisAction,
    PoolIsCompleted,
    Unauthorized,
)
from amm_core.models import (
    AuthorityRole,
    Config,
    FeeType,
    MigrationStatus,
    TradeDirection,
)
from engine import operations
from engine.events import EventLog, event_to_dict
from engine.fees import ReferralFlags

BUY = TradeDirection.QUOTE_TO_BASE
SELL = TradeDirection.BASE_TO_QUOTE
NOW = 1_700_000_000


def _create(config: Config):
    return operations.create_curve(config, "config-1", "creator", "mint-1")


def test_ensure_authorized_checks_role_membership(segmented_config: Config) -> None:
    operations.ensure_authorized(segmented_config.authorities, AuthorityRole.ADMIN, "admin")
    with pytest.raises(Unauthorized):
        operations.ensure_authorized(
            segmented_config.authorities, AuthorityRole.MIGRATION, "admin"
        )


def test_slippage_failure_leaves_everything_untouched(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    account = operations.create_cashback_account("trader", NOW)
    events = EventLog()
    before = curve.to_payload()

    with pytest.raises(ExceededSlippage):
        operations.swap(
            segmented_config,
            curve,
            "trader",
            1_000_000_000,
            10**18,
            BUY,
            NOW,
            cashback_account=account,
            event_log=events,
        )

    assert curve.to_payload() == before
    assert account.balance == 0
    assert len(events) == 0


def test_swap_credits_cashback_and_records_event(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    account = operations.create_cashback_account("trader", NOW)
    events = EventLog()

    result = operations.swap(
        segmented_config,
        curve,
        "trader",
        1_000_000_000,
        1,
        BUY,
        NOW,
        referrals=ReferralFlags(l1=True),
        cashback_account=account,
        event_log=events,
    )

    assert result.cashback_fee == 500_000
    assert account.balance == 500_000
    assert curve.quote_reserve == result.actual_input_amount
    (event,) = events.of_type("swap")
    assert event.trader == "trader"
    assert event.has_referral
    assert event_to_dict(event)["swap_result"]["output_amount"] == result.output_amount


def test_graduating_swap_emits_completion(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    events = EventLog()

    operations.swap(segmented_config, curve, "whale", 200_000_000_000, 1, BUY, NOW, event_log=events)

    assert curve.migration_status is MigrationStatus.LOCKED_VESTING
    assert [event.event_type for event in events] == ["swap", "curve_complete"]
    complete = events.of_type("curve_complete")[0]
    assert complete.curve_finish_timestamp == NOW
    with pytest.raises(PoolIsCompleted):
        operations.swap(segmented_config, curve, "late", 1_000_000, 0, SELL, NOW)


def test_set_fee_type_requires_reviewer(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    curve.creator_fee = 1_000
    events = EventLog()

    with pytest.raises(Unauthorized):
        operations.set_fee_type(segmented_config, curve, "creator", FeeType.MEME)

    swept = operations.set_fee_type(
        segmented_config, curve, "reviewer", FeeType.MEME, event_log=events
    )

    assert swept == 667
    (event,) = events.of_type("fee_type_changed")
    assert (event.old_fee_type, event.new_fee_type) == (0, 1)


def test_fee_claims_pay_the_right_parties(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    events = EventLog()
    result = operations.swap(segmented_config, curve, "trader", 1_000_000_000, 1, BUY, NOW)

    with pytest.raises(Unauthorized):
        operations.claim_protocol_fee(segmented_config, curve, "creator")
    with pytest.raises(Unauthorized):
        operations.claim_creator_fee(curve, "treasury")

    protocol = operations.claim_protocol_fee(segmented_config, curve, "treasury", event_log=events)
    creator = operations.claim_creator_fee(curve, "creator", event_log=events)

    assert protocol == result.protocol_fee
    assert creator == result.creator_fee
    assert [event.is_protocol for event in events.of_type("claim_fee")] == [True, False]
    with pytest.raises(NothingToClaim):
        operations.claim_creator_fee(curve, "creator")
    with pytest.raises(NothingToClaim):
        operations.claim_protocol_fee(segmented_config, curve, "treasury")


def test_cashback_operations(segmented_config: Config) -> None:
    account = operations.create_cashback_account("trader", NOW)
    account.credit(900)
    events = EventLog()

    with pytest.raises(Unauthorized):
        operations.update_cashback_tier(segmented_config, "trader", account, 3)
    operations.update_cashback_tier(segmented_config, "admin", account, 3, event_log=events)

    with pytest.raises(Unauthorized):
        operations.claim_cashback(account, "someone-else", NOW + CASHBACK_CLAIM_COOLDOWN)
    assert operations.claim_cashback(
        account, "trader", NOW + CASHBACK_CLAIM_COOLDOWN, event_log=events
    ) == 900

    account.credit(50)
    later = NOW + CASHBACK_CLAIM_COOLDOWN + CASHBACK_INACTIVE_PERIOD
    with pytest.raises(Unauthorized):
        operations.reclaim_cashback(segmented_config, "trader", account, later)
    assert operations.reclaim_cashback(
        segmented_config, "admin", account, later, event_log=events
    ) == 50

    assert [event.event_type for event in events] == [
        "cashback_tier_updated",
        "cashback_claim",
        "cashback_reclaim",
    ]
    assert events.of_type("cashback_claim")[0].tier == 3


def test_full_lifecycle_with_vesting(vesting_config: Config) -> None:
    curve = _create(vesting_config)
    events = EventLog()

    with pytest.raises(NotPermitToDoThisAction):
        operations.create_locker(vesting_config, curve)

    operations.swap(vesting_config, curve, "whale", 200_000_000_000, 1, BUY, NOW, event_log=events)
    assert curve.migration_status is MigrationStatus.POST_BONDING_CURVE

    with pytest.raises(NotPermitToDoThisAction):
        operations.migrate_pool(vesting_config, curve, "migrator")

    schedule = operations.create_locker(vesting_config, curve, event_log=events)
    assert schedule.cliff_time == NOW + 3600
    assert curve.migration_status is MigrationStatus.LOCKED_VESTING

    with pytest.raises(Unauthorized):
        operations.migrate_pool(vesting_config, curve, "creator")

    quote_before = curve.quote_reserve
    plan = operations.migrate_pool(vesting_config, curve, "migrator", event_log=events)

    assert curve.migration_status is MigrationStatus.CREATED_POOL
    assert curve.is_migrated
    assert curve.quote_reserve == quote_before - plan.deposited_quote_amount
    assert [event.event_type for event in events] == [
        "swap",
        "curve_complete",
        "create_locker",
        "migration",
    ]


def test_locker_needs_vesting_config(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    curve.migration_status = MigrationStatus.POST_BONDING_CURVE

    with pytest.raises(NotPermitToDoThisAction):
        operations.create_locker(segmented_config, curve)


def test_protocol_claim_after_migration_sweeps_vault(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    operations.swap(segmented_config, curve, "whale", 200_000_000_000, 1, BUY, NOW)
    operations.migrate_pool(segmented_config, curve, "migrator")
    expected = curve.quote_reserve + curve.protocol_fee

    claimed = operations.claim_protocol_fee(segmented_config, curve, "treasury")

    assert claimed == expected
    # Leftover quote includes the migration fee.
    assert claimed >= 4_800_000_000
    assert curve.quote_reserve == 0
    assert curve.protocol_fee == 0
    with pytest.raises(NothingToClaim):
        operations.claim_protocol_fee(segmented_config, curve, "treasury")


def test_migrate_pool_refuses_second_run(segmented_config: Config) -> None:
    curve = _create(segmented_config)
    operations.swap(segmented_config, curve, "whale", 200_000_000_000, 1, BUY, NOW)
    operations.migrate_pool(segmented_config, curve, "migrator")

    with pytest.raises(NotPermitToDoThisAction):
        operations.migrate_pool(segmented_config, curve, "migrator")
