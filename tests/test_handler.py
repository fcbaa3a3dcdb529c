from __future__ import annotations

import base64
import json
from io import BytesIO, StringIO
from types import SimpleNamespace

from PIL import Image

from imgopt_engine.config import PipelineConfig
from imgopt_engine.handler import create_handler, handle_event, to_response
from imgopt_engine.logs import EventLog
from imgopt_engine.pipeline.orchestrator import ImagePipeline
from imgopt_engine.pipeline.outcome import Failure, Inline, Redirect
from imgopt_engine.storage.source import SourceImage


class _StaticSource:
    def __init__(self, image: SourceImage) -> None:
        self.image = image
        self.keys: list[str] = []

    def describe(self, key: str) -> str:
        return key

    def fetch(self, key: str) -> SourceImage:
        self.keys.append(key)
        return self.image


class _RecordingCache:
    def __init__(self) -> None:
        self.keys: list[str] = []

    def put(self, key: str, body: bytes, content_type: str, cache_control: str | None) -> None:
        self.keys.append(key)


class _FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body
        self.status = 200
        self.headers = {"Content-Type": "image/png"}

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc: object) -> None:
        return None


def _png(size: tuple[int, int] = (40, 20)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, (250, 200, 10)).save(buf, format="PNG")
    return buf.getvalue()


def _event(method: str, path: str) -> dict[str, object]:
    return {
        "rawPath": path,
        "rawQueryString": "v=3",
        "requestContext": {"http": {"method": method, "path": path}},
    }


def test_inline_response_is_base64_encoded() -> None:
    outcome = Inline(body=b"\x89PNG", content_type="image/png", cache_control="max-age=60", timing="img-download;dur=1")
    response = to_response(outcome)
    assert response["statusCode"] == 200
    assert response["isBase64Encoded"] is True
    assert base64.b64decode(response["body"]) == b"\x89PNG"
    assert response["headers"] == {
        "Content-Type": "image/png",
        "Cache-Control": "max-age=60",
        "Server-Timing": "img-download;dur=1",
    }


def test_redirect_response_headers() -> None:
    response = to_response(Redirect(location="/a.png?width=10", timing="img-upload;dur=2"))
    assert response == {
        "statusCode": 302,
        "headers": {
            "Location": "/a.png?width=10",
            "Cache-Control": "private,no-store",
            "Server-Timing": "img-upload;dur=2",
        },
    }


def test_failure_response() -> None:
    assert to_response(Failure(403, "Requested transformed image is too big")) == {
        "statusCode": 403,
        "body": "Requested transformed image is too big",
    }


def test_handle_event_runs_pipeline_and_tags_request_id() -> None:
    stream = StringIO()
    source = _StaticSource(SourceImage(_png(), "image/png"))
    pipeline = ImagePipeline(
        PipelineConfig(max_image_size=1_000_000, source_base_url="https://x.test"),
        source,
        events=EventLog(stream=stream),
    )

    response = handle_event(pipeline, _event("GET", "/images/a.png/width=10,format=webp"), SimpleNamespace(aws_request_id="req-1"))

    assert response["statusCode"] == 200
    assert response["headers"]["Content-Type"] == "image/webp"
    assert source.keys == ["images/a.png"]
    events = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert all(e["request_id"] == "req-1" for e in events)
    assert events[0]["query"] == {"v": "3"}


def test_handle_event_rejects_post() -> None:
    pipeline = ImagePipeline(
        PipelineConfig(max_image_size=10, source_base_url="https://x.test"),
        _StaticSource(SourceImage(b"", None)),
        events=EventLog(stream=StringIO()),
    )
    response = handle_event(pipeline, _event("POST", "/a.png/width=10"))
    assert response == {"statusCode": 400, "body": "Only GET method is supported"}


def test_create_handler_fetches_over_http(monkeypatch) -> None:
    calls: list[str] = []

    def fake_urlopen(req, timeout):
        calls.append(req.full_url)
        return _FakeResponse(_png())

    monkeypatch.setattr("imgopt_engine.storage.source.urlopen", fake_urlopen)
    handler = create_handler(
        PipelineConfig(max_image_size=1_000_000, source_base_url="https://photos.example.test"),
        events=EventLog(stream=StringIO()),
    )

    response = handler(_event("GET", "/rio/my photo.png/height=5"), None)

    assert calls == ["https://photos.example.test/rio/my+photo.png"]
    assert response["statusCode"] == 200
    with Image.open(BytesIO(base64.b64decode(response["body"]))) as img:
        assert img.size == (10, 5)


def test_create_handler_without_configuration_answers_500(monkeypatch) -> None:
    monkeypatch.delenv("MAX_IMAGE_SIZE", raising=False)
    stream = StringIO()
    handler = create_handler(events=EventLog(stream=stream))

    response = handler(_event("GET", "/a.png/original"), SimpleNamespace(aws_request_id="req-2"))

    assert response["statusCode"] == 500
    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert "MAX_IMAGE_SIZE" in lines[0]["error"]
    assert lines[-1]["request_id"] == "req-2"


def test_escaped_path_yields_decoded_source_key_and_redirect() -> None:
    source = _StaticSource(SourceImage(_png(), "image/png"))
    cache = _RecordingCache()
    pipeline = ImagePipeline(
        PipelineConfig(max_image_size=1, source_base_url="https://x.test", transformed_bucket="cache"),
        source,
        cache=cache,
        events=EventLog(stream=StringIO()),
    )
    event = {
        "rawPath": "/rio/my%20photo.png/width=10",
        "requestContext": {"http": {"method": "GET", "path": "/rio/my photo.png/width=10"}},
    }

    response = handle_event(pipeline, event)

    assert source.keys == ["rio/my photo.png"]
    assert cache.keys == ["rio/my photo.png/width=10"]
    assert response["statusCode"] == 302
    assert response["headers"]["Location"] == "/rio/my photo.png?width=10"


def test_raw_path_alone_is_percent_decoded() -> None:
    source = _StaticSource(SourceImage(_png(), "image/png"))
    pipeline = ImagePipeline(
        PipelineConfig(max_image_size=1_000_000, source_base_url="https://x.test"),
        source,
        events=EventLog(stream=StringIO()),
    )
    event = {"rawPath": "/rio/my%20photo.png/original", "requestContext": {"http": {"method": "GET"}}}

    response = handle_event(pipeline, event)

    assert response["statusCode"] == 200
    assert source.keys == ["rio/my photo.png"]
