from __future__ import annotations

import pytest

from imgopt_engine.config import DEFAULT_CACHE_CONTROL, load_config
from imgopt_engine.errors import ConfigError


def test_load_config_reads_environment() -> None:
    config = load_config(
        {
            "MAX_IMAGE_SIZE": "4700000",
            "SOURCE_BASE_URL": "https://photos.example.test/",
            "TRANSFORMED_IMAGE_BUCKET": "transformed",
            "TRANSFORMED_IMAGE_CACHE_TTL": "max-age=60",
            "SOURCE_FETCH_TIMEOUT": "2.5",
        }
    )
    assert config.max_image_size == 4_700_000
    assert config.source_base_url == "https://photos.example.test"
    assert config.transformed_bucket == "transformed"
    assert config.cache_enabled
    assert config.cache_control == "max-age=60"
    assert config.fetch_timeout_s == 2.5


def test_cache_is_disabled_without_bucket() -> None:
    config = load_config({"MAX_IMAGE_SIZE": "10", "ORIGINAL_IMAGE_BUCKET": "originals", "TRANSFORMED_IMAGE_BUCKET": " "})
    assert not config.cache_enabled
    assert config.source_bucket == "originals"
    assert config.cache_control == DEFAULT_CACHE_CONTROL


@pytest.mark.parametrize(
    "env",
    [
        {"SOURCE_BASE_URL": "https://photos.example.test"},
        {"MAX_IMAGE_SIZE": "big", "SOURCE_BASE_URL": "https://photos.example.test"},
        {"MAX_IMAGE_SIZE": "10"},
        {"MAX_IMAGE_SIZE": "10", "SOURCE_BASE_URL": "https://x.test", "SOURCE_FETCH_TIMEOUT": "soon"},
    ],
)
def test_invalid_configuration_raises(env: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        load_config(env)


def test_load_config_defaults_to_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("MAX_IMAGE_SIZE", "99")
    monkeypatch.setenv("SOURCE_BASE_URL", "https://photos.example.test")
    monkeypatch.delenv("TRANSFORMED_IMAGE_BUCKET", raising=False)
    assert load_config().max_image_size == 99
