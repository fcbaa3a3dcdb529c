from __future__ import annotations

import json
from io import StringIO

from imgopt_engine.errors import FetchFailure
from imgopt_engine.logs import EventLog


def test_event_log_writes_json_lines() -> None:
    stream = StringIO()
    log = EventLog(stream=stream, request_id="req-123")
    log.emit("image_fetched", bytes=42)
    lines = stream.getvalue().strip().splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["type"] == "image_fetched"
    assert payload["request_id"] == "req-123"
    assert "ts" in payload
    assert payload["bytes"] == 42


def test_error_includes_exception_and_cause() -> None:
    stream = StringIO()
    try:
        try:
            raise ConnectionError("reset by peer")
        except ConnectionError as exc:
            raise FetchFailure("GET https://x.test/a.png failed") from exc
    except FetchFailure as exc:
        EventLog(stream=stream).error("Error downloading original image", exc)
    payload = json.loads(stream.getvalue())
    assert payload["type"] == "application_error"
    assert payload["message"] == "Error downloading original image"
    assert payload["error"] == "FetchFailure: GET https://x.test/a.png failed"
    assert payload["cause"] == "ConnectionError: reset by peer"
    assert "request_id" not in payload


def test_bind_returns_new_log_for_request() -> None:
    stream = StringIO()
    base = EventLog(stream=stream)
    bound = base.bind("req-9")
    bound.emit("image_request")
    assert base.request_id is None
    assert json.loads(stream.getvalue())["request_id"] == "req-9"


def test_event_log_defaults_to_stdout(capsys) -> None:
    EventLog().emit("image_request", source="a.png")
    assert json.loads(capsys.readouterr().out)["source"] == "a.png"
