"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from finledger.config import TestingConfig
from finledger.logging_config import JSONFormatter, get_logger, setup_logging


def _record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="finledger.services.goal_sync",
        level=kwargs.pop("level", logging.INFO),
        pathname="goal_sync.py",
        lineno=42,
        msg=kwargs.pop("msg", "Synchronized 2 goal(s)"),
        args=(),
        exc_info=kwargs.pop("exc_info", None),
    )
    record.module = "goal_sync"
    record.funcName = "handle"
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter():
    """JSONFormatter emits the standard fields."""
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "finledger.services.goal_sync"
    assert log_data["message"] == "Synchronized 2 goal(s)"
    assert log_data["module"] == "goal_sync"
    assert log_data["function"] == "handle"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_with_extra_fields():
    log_data = json.loads(JSONFormatter().format(_record(owner_id=7, transaction_id=12)))

    assert log_data["extra"] == {"owner_id": 7, "transaction_id": 12}


def test_json_formatter_with_exception():
    """Exceptions are serialized with type, message and traceback."""
    try:
        raise ValueError("Goal 9 not found")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))

    assert log_data["exception"]["type"] == "ValueError"
    assert "Goal 9 not found" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"]


def test_setup_logging(tmp_path):
    """Setup creates the rotating JSON log file under the data directory."""
    config = TestingConfig(tmp_path)
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "finledger"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "finledger.log"
    assert log_file.exists()

    logger.info("Recorded income 10.00 as transaction 1")
    logger.warning("Rejected recompute of goal 3 for user 2")
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    assert len(lines) >= 3
    entries = [json.loads(line) for line in lines]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[0]["extra"]["dev_mode"] is True
    assert {"timestamp", "level", "message"} <= set(entries[-1])


def test_setup_logging_twice_does_not_stack_handlers(tmp_path):
    config = TestingConfig(tmp_path)

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_module_loggers_propagate_to_file(tmp_path):
    config = TestingConfig(tmp_path)
    setup_logging(config)

    logging.getLogger("finledger.services.goal_progress").info("Goal 1 moved active -> completed")
    for handler in logging.getLogger("finledger").handlers:
        handler.flush()

    content = (tmp_path / "logs" / "finledger.log").read_text(encoding="utf-8")
    assert "Goal 1 moved active -> completed" in content


def test_get_logger():
    """get_logger returns loggers namespaced under the package."""
    logger1 = get_logger("reports")
    logger2 = get_logger("charts")

    assert logger1.name == "finledger.reports"
    assert logger2.name == "finledger.charts"
    assert logger1 != logger2


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Console verbosity follows dev mode."""
    config = TestingConfig(tmp_path)
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = next(
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    expected_level = logging.INFO if dev_mode else logging.WARNING
    assert console_handler.level == expected_level
