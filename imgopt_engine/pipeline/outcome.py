"""Terminal outcomes of one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


REDIRECT_CACHE_CONTROL = "private,no-store"


@dataclass(frozen=True)
class Inline:
    body: bytes
    content_type: str
    cache_control: str
    timing: str
    status_code: int = 200


@dataclass(frozen=True)
class Redirect:
    location: str
    timing: str
    cache_control: str = REDIRECT_CACHE_CONTROL
    status_code: int = 302


@dataclass(frozen=True)
class Failure:
    status_code: int
    message: str


PipelineOutcome = Union[Inline, Redirect, Failure]
