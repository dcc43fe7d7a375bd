import json
import logging

from chat_core.infrastructure.logging.logger import JsonFormatter, setup_logger


def _record(msg, extra=None):
    record = logging.LogRecord("chat_core", logging.INFO, __file__, 1, msg, None, None)
    if extra is not None:
        record.extra = extra
    return record


def test_json_formatter_includes_extra():
    line = JsonFormatter().format(_record("session_client.request", {"method": "GET", "path": "/session/history"}))
    payload = json.loads(line)
    assert payload["msg"] == "session_client.request"
    assert payload["level"] == "INFO"
    assert payload["method"] == "GET"
    assert payload["ts"].endswith("Z")


def test_json_formatter_redacts_long_messages():
    payload = json.loads(JsonFormatter(redact=True).format(_record("x" * 200)))
    assert len(payload["msg"]) == 64


def test_setup_logger_is_idempotent(tmp_path):
    class SettingsStub:
        log_dir = str(tmp_path / "logs")
        log_redact_content = False

    logger = setup_logger(SettingsStub())
    count = len(logger.handlers)
    assert setup_logger(SettingsStub()) is logger
    assert len(logger.handlers) == count
