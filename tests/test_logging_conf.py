"""Tests for the JSON log line format."""
import json
import logging

from tokenkeeper.logging_conf import JsonFormatter, get_logger


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.makeLogRecord({"name": "tokenkeeper.service.tokens", "msg": msg, "levelname": "INFO"})
    record.__dict__.update(extra)
    return record


def test_line_carries_service_event_and_extras():
    line = json.loads(JsonFormatter().format(_record("token.create", event="token_create", token_number="TKN-000001")))
    assert line["service"] == "tokenkeeper"
    assert line["logger"] == "tokenkeeper.service.tokens"
    assert line["event"] == "token_create"
    assert line["message"] == "token.create"
    assert line["token_number"] == "TKN-000001"
    assert "lineno" not in line


def test_event_is_derived_from_message_when_missing():
    line = json.loads(JsonFormatter().format(_record("store.reset")))
    assert line["event"] == "store_reset"


def test_non_json_values_are_stringified(tmp_path):
    line = json.loads(JsonFormatter().format(_record("storage.ready", data_dir=tmp_path)))
    assert line["data_dir"] == str(tmp_path)


def test_get_logger_namespaces_under_service():
    assert get_logger("api").name == "tokenkeeper.api"
