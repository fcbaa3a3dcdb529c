"""imgopt CLI entrypoints."""

from __future__ import annotations

import argparse
import json
import mimetypes
import sys
from pathlib import Path

from .errors import TransformFailure
from .pipeline.size_guard import is_oversized
from .pipeline.timing import TimingLog
from .storage.source import SourceImage
from .transform.directives import parse_directive
from .transform.executor import TransformExecutor


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="imgopt", description="On-demand image transformation")
    sub = parser.add_subparsers(dest="command")

    parse = sub.add_parser("parse", help="Show the operations a directive resolves to")
    parse.add_argument("directive", help="e.g. width=300,format=webp,quality=70")

    transform = sub.add_parser("transform", help="Transform a local image file")
    transform.add_argument("--input", required=True, help="Path to the source image")
    transform.add_argument("--directive", default="original")
    transform.add_argument("--out", required=True, help="Output image path")
    transform.add_argument("--content-type", dest="content_type", help="Source content type (guessed from the file name)")
    transform.add_argument("--max-image-size", dest="max_image_size", type=int, help="Report when the output exceeds this many bytes")

    return parser


def _handle_parse(args: argparse.Namespace) -> int:
    operations = parse_directive(args.directive)
    payload = operations.as_dict()
    if operations.flags:
        payload["flags"] = sorted(operations.flags)
    print(json.dumps(payload, indent=2))
    return 0


def _handle_transform(args: argparse.Namespace) -> int:
    in_path = Path(args.input)
    out_path = Path(args.out)
    content_type = args.content_type or mimetypes.guess_type(in_path.name)[0]
    source = SourceImage(body=in_path.read_bytes(), content_type=content_type)
    timing = TimingLog()
    try:
        with timing.measure("img-transform"):
            result = TransformExecutor().execute(source, parse_directive(args.directive))
    except TransformFailure as exc:
        print(f"Transform failed: {exc}", file=sys.stderr)
        return 1
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.body)
    print(f"Wrote {out_path} ({result.content_type}, {result.size} bytes)")
    print(f"Server-Timing: {timing.header_value()}")
    if args.max_image_size is not None and is_oversized(result.size, args.max_image_size):
        print(f"Output exceeds {args.max_image_size} bytes; the endpoint would redirect or refuse it.")
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    if args.command == "parse":
        raise SystemExit(_handle_parse(args))
    if args.command == "transform":
        raise SystemExit(_handle_transform(args))
    parser.print_help()
    raise SystemExit(1)


if __name__ == "__main__":
    main()
