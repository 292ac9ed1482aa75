from __future__ import annotations

import io
import json
import logging

import pytest

from movie_catalog.core.logging import (
    CORRELATION_ID_CTX,
    JsonLogFormatter,
    TextLogFormatter,
    set_correlation_id,
    setup_logging,
)


def _record(message: str = "Movie created", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("movie_catalog.movies", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def correlation_id():
    token = CORRELATION_ID_CTX.set("req-42")
    yield "req-42"
    CORRELATION_ID_CTX.reset(token)


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


def test_json_formatter_emits_extra_fields_and_correlation_id(correlation_id: str) -> None:
    line = JsonLogFormatter().format(_record(movie_id="m1", user_id="u1", file_name=""))

    payload = json.loads(line)
    assert payload["message"] == "Movie created"
    assert payload["correlation_id"] == correlation_id
    assert payload["movie_id"] == "m1"
    assert payload["user_id"] == "u1"
    assert "file_name" not in payload
    assert "args" not in payload


def test_text_formatter_appends_fields(correlation_id: str) -> None:
    line = TextLogFormatter().format(_record(status_code=201))

    assert "movie_catalog.movies: Movie created" in line
    assert line.endswith("correlation_id=req-42 status_code=201")


def test_setup_logging_routes_root_logger_to_stream(restore_root_logger: None) -> None:
    stream = io.StringIO()
    setup_logging("warning", "json", stream=stream)
    set_correlation_id("")

    logging.getLogger("movie_catalog.test").info("hidden")
    logging.getLogger("movie_catalog.test").warning("Poster cleanup failed", extra={"file_name": "a.png"})

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["file_name"] == "a.png"
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
