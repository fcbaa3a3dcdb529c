"""Structured JSON-line logging to stdout."""

from __future__ import annotations

import json
import sys
import threading
from dataclasses import dataclass, field, replace
from typing import Any, TextIO

from .utils import now_utc_iso


@dataclass
class EventLog:
    stream: TextIO | None = None
    request_id: str | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, init=False)

    def emit(self, event_type: str, **payload: Any) -> dict[str, Any]:
        event: dict[str, Any] = {
            "type": event_type,
            "ts": now_utc_iso(),
        }
        if self.request_id:
            event["request_id"] = self.request_id
        event.update(payload)
        line = json.dumps(event, default=str)
        with self._lock:
            stream = self.stream or sys.stdout
            stream.write(line + "\n")
            stream.flush()
        return event

    def error(self, message: str, exc: BaseException | None = None, **payload: Any) -> dict[str, Any]:
        if exc is not None:
            payload["error"] = f"{type(exc).__name__}: {exc}"
            cause = exc.__cause__
            if cause is not None:
                payload["cause"] = f"{type(cause).__name__}: {cause}"
        return self.emit("application_error", message=message, **payload)

    def bind(self, request_id: str | None) -> "EventLog":
        return replace(self, request_id=request_id)
