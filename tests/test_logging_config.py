from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from utils.logging_config import LogContext, StructuredFormatter, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_structured_formatter_includes_context_fields() -> None:
    record = logging.LogRecord(
        name="bonding_amm.swap",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Swap settled: %s",
        args=(42,),
        exc_info=None,
    )
    record.curve = "mint-1"
    record.direction = "QUOTE_TO_BASE"
    record.amount_in = 1_000

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["message"] == "Swap settled: 42"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "bonding_amm.swap"
    assert payload["curve"] == "mint-1"
    assert payload["direction"] == "QUOTE_TO_BASE"
    assert payload["amount_in"] == 1_000


def test_log_context_tags_records_and_restores_factory(
    caplog: pytest.LogCaptureFixture,
) -> None:
    logger = logging.getLogger("bonding_amm.test")
    factory = logging.getLogRecordFactory()

    with caplog.at_level(logging.INFO, logger="bonding_amm.test"):
        with LogContext(curve="mint-1", fee_type=1):
            logger.info("inside")
        logger.info("outside")

    inside, outside = caplog.records
    assert inside.curve == "mint-1"
    assert inside.fee_type == 1
    assert not hasattr(outside, "curve")
    assert logging.getLogRecordFactory() is factory


def test_setup_logging_writes_json_to_file(
    tmp_path: Path, restore_root_logger: logging.Logger
) -> None:
    log_file = tmp_path / "logs" / "amm.log"

    setup_logging("debug", structured=True, log_file=str(log_file))
    logger = get_logger("bonding_amm.test", curve="mint-9")
    logger.info("Curve complete", extra={"migration_status": "LOCKED_VESTING"})
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["curve"] == "mint-9"
    assert payload["migration_status"] == "LOCKED_VESTING"


def test_setup_logging_falls_back_to_info(restore_root_logger: logging.Logger) -> None:
    setup_logging("chatty")

    assert restore_root_logger.level == logging.INFO
