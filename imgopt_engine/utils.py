"""Shared utilities for the imgopt engine."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Mapping


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def getenv_str(environ: Mapping[str, str], key: str) -> str | None:
    raw = environ.get(key)
    if raw is None:
        return None
    value = raw.strip()
    return value or None
