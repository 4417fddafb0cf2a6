"""Tests for daily_coin.core.logger."""
import json
import logging
import sys

import pytest

from daily_coin.core.logger import JsonFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(level, msg="hello", exc_info=None):
    return logging.LogRecord("daily_coin.test", level, "/srv/app.py", 42, msg, None, exc_info)


class TestJsonFormatter:

    def test_info_fields(self):
        payload = json.loads(JsonFormatter().format(make_record(logging.INFO, "今日运势")))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "daily_coin.test"
        assert payload["message"] == "今日运势"
        assert "location" not in payload

    def test_error_has_location_and_stack(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record(logging.ERROR, exc_info=sys.exc_info())

        payload = json.loads(JsonFormatter().format(record))

        assert payload["location"] == "/srv/app.py:42"
        assert "ValueError: bad" in payload["stack_trace"]


class TestSetupLogging:

    def test_repeated_setup_does_not_stack_handlers(self, restore_root_logger):
        setup_logging("DEBUG")
        setup_logging("DEBUG")
        assert len(restore_root_logger.handlers) == 1
        assert restore_root_logger.level == logging.DEBUG

    def test_noisy_libraries_quieted(self, restore_root_logger):
        setup_logging()
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.ERROR

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_dir = tmp_path / "logs"
        setup_logging("INFO", str(log_dir))

        logging.getLogger("daily_coin.test").info("written")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert len(restore_root_logger.handlers) == 2
        lines = (log_dir / "server.log").read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["message"] == "written"
        for handler in restore_root_logger.handlers:
            handler.close()
