from __future__ import annotations

from engine.events import (
    ClaimFeeEvent,
    CurveCompleteEvent,
    EventLog,
    event_to_dict,
)


def _claim(amount: int) -> ClaimFeeEvent:
    return ClaimFeeEvent(
        curve="mint-1", claimer="treasury", quote_token_claim_amount=amount, is_protocol=True
    )


def test_event_log_drops_oldest_when_full() -> None:
    log = EventLog(maxlen=2)

    for amount in (1, 2, 3):
        log.add(_claim(amount))

    assert len(log) == 2
    assert [event.quote_token_claim_amount for event in log] == [2, 3]


def test_tail_and_filter() -> None:
    log = EventLog()
    log.add(_claim(1))
    log.add(
        CurveCompleteEvent(
            curve="mint-1",
            config="config-1",
            base_reserve=5,
            quote_reserve=6,
            curve_finish_timestamp=7,
        )
    )
    log.add(_claim(2))

    assert [event.event_type for event in log.tail(2)] == ["curve_complete", "claim_fee"]
    assert log.tail(0) == []
    assert len(log.tail(10)) == 3
    assert [event.quote_token_claim_amount for event in log.of_type("claim_fee")] == [1, 2]


def test_event_to_dict_keeps_type() -> None:
    payload = event_to_dict(_claim(9))

    assert payload == {
        "curve": "mint-1",
        "claimer": "treasury",
        "quote_token_claim_amount": 9,
        "is_protocol": True,
        "event_type": "claim_fee",
    }
