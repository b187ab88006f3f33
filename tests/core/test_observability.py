"""Structured Logging — JSON formatter and idempotent setup.

Tests:
    - JSON output carries level, logger, message and known extras only
    - exceptions are included when logged with exc_info
    - setup_logging installs exactly one handler across repeated calls
"""

import json
import logging
import sys

from geck.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord("geck.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_surfaces_known_extras():
    line = JSONFormatter().format(_record(collection="users", route="user.read", secret="s"))
    log = json.loads(line)
    assert log["message"] == "hello x"
    assert log["level"] == "INFO"
    assert log["logger"] == "geck.test"
    assert log["collection"] == "users"
    assert log["route"] == "user.read"
    assert "secret" not in log


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    log = json.loads(JSONFormatter().format(record))
    assert "ValueError: boom" in log["exception"]


def test_setup_logging_is_idempotent():
    before = len(logging.root.handlers)
    level = logging.root.level
    first = setup_logging("DEBUG", "json")
    setup_logging("INFO", "text")
    named = [h for h in logging.root.handlers if h.get_name() == "geck"]
    assert len(named) == 1
    assert first not in logging.root.handlers
    assert logging.root.level == logging.INFO
    for handler in named:
        logging.root.removeHandler(handler)
    logging.root.setLevel(level)
    assert len(logging.root.handlers) <= before
