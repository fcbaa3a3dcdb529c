"""Process configuration, read once at start-up."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigError
from .utils import getenv_str


DEFAULT_CACHE_CONTROL = "max-age=31622400"
DEFAULT_FETCH_TIMEOUT_S = 10.0


@dataclass(frozen=True)
class PipelineConfig:
    max_image_size: int
    source_base_url: str | None = None
    source_bucket: str | None = None
    # Absent disables caching entirely.
    transformed_bucket: str | None = None
    cache_control: str = DEFAULT_CACHE_CONTROL
    fetch_timeout_s: float = DEFAULT_FETCH_TIMEOUT_S

    @property
    def cache_enabled(self) -> bool:
        return bool(self.transformed_bucket)


def load_config(environ: Mapping[str, str] | None = None) -> PipelineConfig:
    env = os.environ if environ is None else environ

    raw_max = getenv_str(env, "MAX_IMAGE_SIZE")
    if raw_max is None:
        raise ConfigError("Missing env var MAX_IMAGE_SIZE (maximum transformed image size in bytes).")
    try:
        max_image_size = int(raw_max)
    except ValueError as exc:
        raise ConfigError(f"MAX_IMAGE_SIZE must be an integer, got {raw_max!r}.") from exc

    source_base_url = getenv_str(env, "SOURCE_BASE_URL")
    source_bucket = getenv_str(env, "ORIGINAL_IMAGE_BUCKET")
    if not source_base_url and not source_bucket:
        raise ConfigError("Set SOURCE_BASE_URL or ORIGINAL_IMAGE_BUCKET to locate source images.")

    raw_timeout = getenv_str(env, "SOURCE_FETCH_TIMEOUT")
    fetch_timeout_s = DEFAULT_FETCH_TIMEOUT_S
    if raw_timeout is not None:
        try:
            fetch_timeout_s = float(raw_timeout)
        except ValueError as exc:
            raise ConfigError(f"SOURCE_FETCH_TIMEOUT must be a number, got {raw_timeout!r}.") from exc

    return PipelineConfig(
        max_image_size=max_image_size,
        source_base_url=source_base_url.rstrip("/") if source_base_url else None,
        source_bucket=source_bucket,
        transformed_bucket=getenv_str(env, "TRANSFORMED_IMAGE_BUCKET"),
        cache_control=getenv_str(env, "TRANSFORMED_IMAGE_CACHE_TTL") or DEFAULT_CACHE_CONTROL,
        fetch_timeout_s=fetch_timeout_s,
    )
