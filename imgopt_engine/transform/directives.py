"""Directive string parsing.

A directive is the trailing path segment of a request, a comma-separated
list of ``key=value`` tokens such as ``width=300,format=webp,quality=70``.
The literal ``original`` (or an empty string) requests no operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import DirectiveParseError


ORIGINAL_DIRECTIVE = "original"
MAX_QUALITY = 100


@dataclass(frozen=True)
class OperationSet:
    width: int | None = None
    height: int | None = None
    format: str | None = None
    quality: int | None = None
    # Tokens given without "=", e.g. "original".
    flags: frozenset[str] = field(default_factory=frozenset)

    @property
    def wants_resize(self) -> bool:
        return self.width is not None or self.height is not None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key in ("width", "height", "format", "quality"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


def parse_directive(directive: str) -> OperationSet:
    if not isinstance(directive, str):
        raise DirectiveParseError(f"directive must be a string, got {type(directive).__name__}")

    values: dict[str, str] = {}
    flags: set[str] = set()
    for token in directive.split(","):
        token = token.strip()
        if not token:
            continue
        if "=" not in token:
            flags.add(token)
            continue
        key, value = token.split("=", 1)
        key = key.strip()
        if key:
            values[key] = value.strip()

    fmt = values.get("format")
    return OperationSet(
        width=_positive_int(values.get("width")),
        height=_positive_int(values.get("height")),
        format=fmt.lower() if fmt else None,
        quality=_quality(values.get("quality")),
        flags=frozenset(flags),
    )


def _parse_int(raw: str | None) -> int | None:
    if not raw or not raw.isascii() or not raw.isdigit():
        return None
    return int(raw, 10)


def _positive_int(raw: str | None) -> int | None:
    value = _parse_int(raw)
    if value is None or value <= 0:
        return None
    return value


def _quality(raw: str | None) -> int | None:
    value = _parse_int(raw)
    if value is None or not 1 <= value <= MAX_QUALITY:
        return None
    return value
