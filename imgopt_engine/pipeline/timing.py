"""Per-stage timing rendered as a Server-Timing header value."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from ..utils import monotonic_ms


@dataclass
class TimingLog:
    entries: list[tuple[str, int]] = field(default_factory=list)

    def record(self, stage: str, duration_ms: float) -> None:
        self.entries.append((stage, max(0, int(duration_ms))))

    @contextmanager
    def measure(self, stage: str) -> Iterator[None]:
        """Record the block's duration, also when it raises."""
        start = monotonic_ms()
        try:
            yield
        finally:
            self.record(stage, monotonic_ms() - start)

    def header_value(self) -> str:
        return ",".join(f"{stage};dur={duration}" for stage, duration in self.entries)
