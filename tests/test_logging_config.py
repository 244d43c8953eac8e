import io
import json
import logging

import pytest

from bucketman.logging_config import configure_logging, get_logger, with_context


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_carry_context(monkeypatch):
    monkeypatch.setenv("LOG_JSON", "true")
    stream = io.StringIO()
    configure_logging(level="debug", service="media-api", stream=stream)

    with_context(get_logger("bucketman.test"), bucket="media").info("Uploaded object: key=%s", "a.txt")

    payload = json.loads(stream.getvalue().strip())
    assert payload["level"] == "INFO"
    assert payload["service"] == "media-api"
    assert payload["message"] == "Uploaded object: key=a.txt"
    assert payload["context"] == {"bucket": "media"}


def test_text_format_by_default(monkeypatch):
    monkeypatch.delenv("LOG_JSON", raising=False)
    stream = io.StringIO()
    configure_logging(level="INFO", stream=stream)

    get_logger("bucketman.test").info("Deleted object: key=%s", "x", extra={"bucket": "media"})

    line = stream.getvalue().strip()
    assert "INFO bucketman.test service=bucketman Deleted object: key=x" in line
    assert line.endswith("bucket='media'")


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    stream = io.StringIO()
    configure_logging(stream=stream)

    get_logger("bucketman.test").info("hidden")

    assert stream.getvalue() == ""
    assert logging.getLogger().level == logging.WARNING


def test_unknown_level_falls_back_to_info(monkeypatch):
    monkeypatch.delenv("LOG_JSON", raising=False)
    configure_logging(level="chatty", stream=io.StringIO())

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("botocore").level == logging.INFO


def test_json_output_includes_exception(monkeypatch):
    monkeypatch.setenv("LOG_JSON", "on")
    stream = io.StringIO()
    configure_logging(stream=stream)

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        get_logger("bucketman.test").exception("Failed to delete object: key=%s", "x")

    payload = json.loads(stream.getvalue().strip().splitlines()[0])
    assert "context" not in payload
    assert "RuntimeError: boom" in payload["exception"]
