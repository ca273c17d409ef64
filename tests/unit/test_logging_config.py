"""
Unit tests for logging_config.py - JSON log formatting.
"""

import json
import logging

from shared.logging_config import JSONFormatter, configure_logging


def make_record(**extra):
    record = logging.LogRecord(
        name="agent.routing.intent_router",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Reply via %s",
        args=("ask_time",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_base_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "agent.routing.intent_router"
        assert data["message"] == "Reply via ask_time"
        assert "timestamp" in data
        assert "user_id" not in data

    def test_extra_fields(self):
        record = make_record(user_id="42", facility_id="padel", branch="ask_time", unrelated="x")

        data = json.loads(JSONFormatter().format(record))

        assert data["user_id"] == "42"
        assert data["facility_id"] == "padel"
        assert data["branch"] == "ask_time"
        assert "unrelated" not in data

    def test_exception_included(self):
        try:
            raise ValueError("bad slot")
        except ValueError:
            import sys

            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad slot" in data["exception"]


def test_configure_logging_installs_json_handler():
    configure_logging()

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, JSONFormatter)
    assert logging.getLogger().level == logging.WARNING
