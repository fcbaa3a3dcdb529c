"""
AWS Lambda front end for the image transformation pipeline.

Designed to work behind a Lambda Function URL (or API Gateway HTTP API) with
a CDN in front of it:
- GET /<source image key>/<directive>: transformed image bytes (base64 body).
- Oversized results are answered with a redirect to the cached copy.

Configuration is read once, when the handler is created at cold start.
"""

from __future__ import annotations

import base64
from typing import Any, Callable
from urllib.parse import parse_qs, unquote

from .config import PipelineConfig, load_config
from .errors import ConfigError
from .logs import EventLog
from .pipeline.orchestrator import ImagePipeline
from .pipeline.outcome import Failure, Inline, PipelineOutcome, Redirect


Handler = Callable[[dict[str, Any], Any], dict[str, Any]]


def _get_method(event: dict[str, Any]) -> str:
    return str(((event.get("requestContext") or {}).get("http") or {}).get("method") or "").upper()


def _get_path(event: dict[str, Any]) -> str:
    # requestContext.http.path is already decoded; rawPath keeps percent-escapes.
    path = ((event.get("requestContext") or {}).get("http") or {}).get("path")
    if isinstance(path, str) and path:
        return path
    raw = event.get("rawPath")
    if isinstance(raw, str) and raw:
        return unquote(raw)
    return ""


def _get_query_params(event: dict[str, Any]) -> dict[str, str]:
    q = event.get("queryStringParameters")
    if isinstance(q, dict):
        out: dict[str, str] = {}
        for k, v in q.items():
            if isinstance(k, str) and isinstance(v, str):
                out[k] = v
        return out
    raw = event.get("rawQueryString")
    if isinstance(raw, str) and raw:
        parsed = parse_qs(raw, keep_blank_values=False)
        return {k: v[0] for k, v in parsed.items() if v}
    return {}


def _request_id(context: Any) -> str | None:
    return getattr(context, "aws_request_id", None)


def to_response(outcome: PipelineOutcome) -> dict[str, Any]:
    if isinstance(outcome, Inline):
        return {
            "statusCode": outcome.status_code,
            "body": base64.b64encode(outcome.body).decode("ascii"),
            "isBase64Encoded": True,
            "headers": {
                "Content-Type": outcome.content_type,
                "Cache-Control": outcome.cache_control,
                "Server-Timing": outcome.timing,
            },
        }
    if isinstance(outcome, Redirect):
        return {
            "statusCode": outcome.status_code,
            "headers": {
                "Location": outcome.location,
                "Cache-Control": outcome.cache_control,
                "Server-Timing": outcome.timing,
            },
        }
    return {"statusCode": outcome.status_code, "body": outcome.message}


def handle_event(pipeline: ImagePipeline, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    events = pipeline.events.bind(_request_id(context))
    outcome = pipeline.run(
        _get_method(event),
        _get_path(event),
        _get_query_params(event),
        events=events,
    )
    return to_response(outcome)


def create_handler(
    config: PipelineConfig | None = None,
    *,
    s3_client: Any | None = None,
    events: EventLog | None = None,
) -> Handler:
    log = events or EventLog()
    try:
        cfg = config or load_config()
    except ConfigError as exc:
        config_error = exc
        log.error(config_error.public_message, config_error)
        failure = Failure(status_code=config_error.status_code, message=config_error.public_message)

        def misconfigured(event: dict[str, Any], context: Any) -> dict[str, Any]:
            log.bind(_request_id(context)).error(config_error.public_message, config_error)
            return to_response(failure)

        return misconfigured

    pipeline = ImagePipeline.from_config(cfg, s3_client=s3_client, events=log)

    def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
        return handle_event(pipeline, event, context)

    return lambda_handler
