from __future__ import annotations

import json
import logging

from gateway.utils.logging import JsonFormatter, KeyValueFormatter, configure_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("gateway.test", logging.INFO, __file__, 1, "gateway.fetch.saved", (), None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_extra_fields():
    line = JsonFormatter().format(_record(source="news_api", saved=3))
    payload = json.loads(line)

    assert payload["event"] == "gateway.fetch.saved"
    assert payload["level"] == "INFO"
    assert payload["source"] == "news_api"
    assert payload["saved"] == 3
    assert "args" not in payload


def test_key_value_formatter_appends_extras():
    line = KeyValueFormatter("%(levelname)s %(message)s").format(_record(query="sports"))
    assert line == "INFO gateway.fetch.saved query=sports"


def test_configure_logging_replaces_handlers():
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        configure_logging("debug", json_enabled=True)
        configure_logging("debug", json_enabled=True)
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved[0]:
            root.addHandler(handler)
        root.setLevel(saved[1])
