"""Unit tests for the JSON log formatter."""
import sys
sys.path.insert(0, 'backend')

import json
import logging
import pytest
from logger import JSONFormatter, setup_logging


def _record(message="Order stored", exc_info=None, **extra):
    record = logging.LogRecord(
        name="services.order_store",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=exc_info
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_format_is_json_line():
    """Test that a record is rendered as one JSON object."""
    line = JSONFormatter().format(_record())

    entry = json.loads(line)
    assert entry["level"] == "INFO"
    assert entry["logger"] == "services.order_store"
    assert entry["message"] == "Order stored"
    assert entry["timestamp"].endswith("Z")
    assert "\n" not in line


def test_format_merges_extra_fields():
    """Test that extra= context lands at the top level of the entry."""
    entry = json.loads(JSONFormatter().format(_record(sender="+33600000000", completeness=0.9)))

    assert entry["sender"] == "+33600000000"
    assert entry["completeness"] == 0.9
    assert "pathname" not in entry
    assert "lineno" not in entry


def test_format_includes_exception():
    try:
        raise RuntimeError("datastore down")
    except RuntimeError:
        exc_info = sys.exc_info()

    entry = json.loads(JSONFormatter().format(_record("Failed", exc_info=exc_info)))

    assert "RuntimeError: datastore down" in entry["exception"]


def test_format_keeps_non_ascii():
    entry = json.loads(JSONFormatter().format(_record("Commande reçue ✅")))
    assert entry["message"] == "Commande reçue ✅"


def test_setup_logging_replaces_handlers():
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level

    try:
        setup_logging("WARNING")

        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        for handler in saved_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(saved_level)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
