"""
Tests for Pulse structured logging.

Usage:
    pytest tests/test_logging_config.py -v
"""

import json
import logging

import pytest

from src.orchestrator.logging_config import (
    ConsoleFormatter,
    JSONFormatter,
    setup_logging,
    timed,
)


def make_record(msg="Built %d groups", args=(3,), **fields) -> logging.LogRecord:
    record = logging.LogRecord("src.reviews.grouping", logging.INFO, __file__, 1, msg, args, None)
    for key, value in fields.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_json_line(self):
        entry = json.loads(JSONFormatter().format(make_record(rows=120, group_by="Region")))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "src.reviews.grouping"
        assert entry["msg"] == "Built 3 groups"
        assert entry["rows"] == 120
        assert entry["group_by"] == "Region"

    def test_json_ignores_unknown_attributes(self):
        entry = json.loads(JSONFormatter().format(make_record(customer="x")))
        assert "customer" not in entry

    def test_console_appends_fields(self):
        line = ConsoleFormatter().format(make_record(rows=120))
        assert "Built 3 groups" in line
        assert line.endswith("[rows=120]")

    def test_console_without_fields(self):
        assert "[" not in ConsoleFormatter().format(make_record())


class TestTimed:

    def test_logs_duration_and_fields(self, caplog):
        logger = logging.getLogger("tests.timed")
        caplog.set_level(logging.INFO, logger="tests.timed")

        with timed(logger, "Grouped upload", rows=5) as fields:
            fields["groups"] = 2

        record = caplog.records[-1]
        assert record.getMessage() == "Grouped upload (groups=2)"
        assert record.rows == 5
        assert record.duration >= 0

    def test_no_log_on_error(self, caplog):
        logger = logging.getLogger("tests.timed")
        caplog.set_level(logging.INFO, logger="tests.timed")

        with pytest.raises(RuntimeError):
            with timed(logger, "Failing stage"):
                raise RuntimeError("boom")

        assert not any(r.getMessage().startswith("Failing stage") for r in caplog.records)


class TestSetupLogging:

    def teardown_method(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)

    def test_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "pulse.log"
        setup_logging(level="INFO", json_output=True, log_file=str(log_file))

        logging.getLogger("src.test").info("hello", extra={"rows": 3})
        for handler in logging.getLogger().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["msg"] == "hello"
        assert entry["rows"] == 3

    def test_replaces_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO
