"""
Tests for the JSON log formatter
"""

import json
import logging

from core.logging import SERVICE_NAME, JSONFormatter, log_fields


def _record(msg="hello", **extra):
    record = logging.LogRecord("services.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_fields_are_merged_into_the_line():
    record = _record(**log_fields(user_id="user-1", source="ai"))
    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "hello"
    assert data["service"] == SERVICE_NAME
    assert data["level"] == "INFO"
    assert data["user_id"] == "user-1"
    assert data["source"] == "ai"


def test_non_serialisable_values_are_stringified():
    from datetime import date

    record = _record(**log_fields(day=date(2026, 3, 15)))
    assert json.loads(JSONFormatter().format(record))["day"] == "2026-03-15"
