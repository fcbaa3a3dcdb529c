#!/usr/bin/env python3
"""
Local image transformation server.

Routes plain HTTP GET requests through the same pipeline the Lambda handler
uses, so directives can be tried from a browser.

Usage:
  python scripts/image_server.py --port 8788 --source-base-url https://example-bucket.s3.amazonaws.com

Endpoints:
  GET /healthz
  GET /<source image key>/<directive>
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse

from imgopt_engine.config import PipelineConfig, load_config
from imgopt_engine.errors import ConfigError
from imgopt_engine.logs import EventLog
from imgopt_engine.pipeline.orchestrator import ImagePipeline
from imgopt_engine.pipeline.outcome import Inline, Redirect


class _Handler(BaseHTTPRequestHandler):
    server_version = "imgopt/0"

    def _send(self, status: int, body: bytes, headers: dict[str, str]) -> None:
        self.send_response(status)
        for k, v in headers.items():
            self.send_header(k, v)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _dispatch(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path == "/healthz":
            payload = (json.dumps({"ok": True}) + "\n").encode("utf-8")
            self._send(HTTPStatus.OK, payload, {"Content-Type": "application/json; charset=utf-8"})
            return

        pipeline: ImagePipeline = self.server.pipeline  # type: ignore[attr-defined]
        query = {k: v[0] for k, v in parse_qs(parsed.query).items() if v}
        outcome = pipeline.run(self.command, parsed.path, query)
        if isinstance(outcome, Inline):
            self._send(
                outcome.status_code,
                outcome.body,
                {
                    "Content-Type": outcome.content_type,
                    "Cache-Control": outcome.cache_control,
                    "Server-Timing": outcome.timing,
                },
            )
        elif isinstance(outcome, Redirect):
            self._send(
                outcome.status_code,
                b"",
                {
                    "Location": outcome.location,
                    "Cache-Control": outcome.cache_control,
                    "Server-Timing": outcome.timing,
                },
            )
        else:
            self._send(
                outcome.status_code,
                (outcome.message + "\n").encode("utf-8"),
                {"Content-Type": "text/plain; charset=utf-8"},
            )

    do_GET = _dispatch
    do_HEAD = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch

    def log_message(self, format: str, *args: Any) -> None:
        sys.stderr.write("%s - %s\n" % (self.address_string(), format % args))


def _build_config(args: argparse.Namespace) -> PipelineConfig:
    overrides = {
        "SOURCE_BASE_URL": args.source_base_url,
        "MAX_IMAGE_SIZE": str(args.max_image_size) if args.max_image_size is not None else None,
    }
    env = dict(os.environ)
    env.update({k: v for k, v in overrides.items() if v})
    return load_config(env)


def main() -> int:
    ap = argparse.ArgumentParser(description="Local image transformation server.")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8788)
    ap.add_argument("--source-base-url", default="", help="Overrides SOURCE_BASE_URL.")
    ap.add_argument("--max-image-size", type=int, default=None, help="Overrides MAX_IMAGE_SIZE (bytes).")
    args = ap.parse_args()

    try:
        config = _build_config(args)
    except ConfigError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    server = ThreadingHTTPServer((args.host, args.port), _Handler)
    server.pipeline = ImagePipeline.from_config(config, events=EventLog(stream=sys.stderr))  # type: ignore[attr-defined]

    sys.stderr.write(f"imgopt listening on {args.host}:{args.port}\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        sys.stderr.write("Shutting down...\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
