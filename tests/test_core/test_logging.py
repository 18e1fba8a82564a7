# tests/test_core/test_logging.py

import json
import logging

import pytest
from loguru import logger

from microdrama.core.logger import INTERCEPTED_LOGGERS, InterceptHandler, configure_logging


@pytest.fixture()
def file_logs(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_DIR", str(tmp_path))
    monkeypatch.setenv("LOG_FILE", "service.log")
    yield tmp_path / "service.log"
    configure_logging()


def test_service_and_framework_loggers_are_intercepted():
    for name in INTERCEPTED_LOGGERS:
        std = logging.getLogger(name)
        assert [type(h) for h in std.handlers] == [InterceptHandler]
        assert std.propagate is False


def test_json_file_sink_carries_request_id_from_stdlib_loggers(file_logs):
    configure_logging(level="INFO", json_logs=True, to_file=True)

    with logger.contextualize(request_id="rid-123"):
        logging.getLogger("microdrama.services.subscription_service").info("Subscription created id=%s", 7)
    logger.complete()

    lines = [json.loads(line) for line in file_logs.read_text(encoding="utf-8").splitlines()]
    assert lines[-1]["message"] == "Subscription created id=7"
    assert lines[-1]["level"] == "INFO"
    assert lines[-1]["request_id"] == "rid-123"


def test_level_filters_file_sink(file_logs):
    configure_logging(level="WARNING", json_logs=True, to_file=True)

    logging.getLogger("microdrama").info("quiet")
    logging.getLogger("microdrama").warning("loud {braces} kept")
    logger.complete()

    messages = [json.loads(line)["message"] for line in file_logs.read_text(encoding="utf-8").splitlines()]
    assert messages == ["loud {braces} kept"]
