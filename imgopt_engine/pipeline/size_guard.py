"""Output size policy."""

from __future__ import annotations


def is_oversized(size: int, max_size: int) -> bool:
    return size > max_size
