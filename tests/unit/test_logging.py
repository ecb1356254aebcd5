import logging

import orjson
import pytest

from utils.logging import JsonFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("enricher", logging.WARNING, __file__, 10, "lookup failed: %s", ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_message_and_extra_fields() -> None:
    line = JsonFormatter().format(_record(user_id=3, reason="timeout"))
    payload = orjson.loads(line)

    assert payload["message"] == "lookup failed: x"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "enricher"
    assert payload["user_id"] == 3
    assert payload["reason"] == "timeout"
    assert "msg" not in payload


def test_json_formatter_falls_back_to_str_for_unknown_types() -> None:
    payload = orjson.loads(JsonFormatter().format(_record(path=object())))

    assert payload["path"].startswith("<object object")


def test_setup_logging_replaces_root_handlers() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging(level="DEBUG", format_type="text")
        setup_logging(level="WARNING", format_type="json")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


@pytest.mark.parametrize(
    "kwargs",
    [{"level": "LOUD"}, {"format_type": "xml"}, {"output": "file"}],
)
def test_setup_logging_rejects_invalid_options(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        setup_logging(**kwargs)
