"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from filerelay.config import Settings


def make_settings(**kwargs) -> Settings:
    """Build settings without reading a local .env file."""
    return Settings(_env_file=None, **kwargs)


def test_settings_has_defaults(monkeypatch):
    """Settings should start without any environment variables."""
    for name in ("REMOTE_BASE_URL", "MINIO_BUCKET", "FETCH_CONCURRENCY", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = make_settings()

    assert settings.log_level == "INFO"
    assert settings.remote_base_url == "http://localhost:8080"
    assert settings.fetch_concurrency == 8
    assert settings.max_archive_bytes is None
    assert settings.minio_bucket == "my-bucket"
    assert settings.destination_name == "result.zip"


def test_settings_loads_from_env(monkeypatch):
    """Settings should load from environment variables."""
    monkeypatch.setenv("REMOTE_BASE_URL", "https://files.example.com/")
    monkeypatch.setenv("REMOTE_API_KEY", "token_1234567890")
    monkeypatch.setenv("MINIO_ENDPOINT", "minio:9000")
    monkeypatch.setenv("MINIO_SECURE", "true")
    monkeypatch.setenv("FETCH_CONCURRENCY", "4")

    settings = make_settings()

    assert settings.remote_base_url == "https://files.example.com"
    assert settings.remote_api_key == "token_1234567890"
    assert settings.minio_endpoint == "minio:9000"
    assert settings.minio_secure is True
    assert settings.fetch_concurrency == 4


def test_log_level_normalized():
    assert make_settings(log_level="debug").log_level == "DEBUG"


def test_invalid_log_level():
    with pytest.raises(ValidationError, match="log_level"):
        make_settings(log_level="LOUD")


def test_invalid_base_url():
    with pytest.raises(ValidationError):
        make_settings(remote_base_url="ftp://files.example.com")


@pytest.mark.parametrize("value", [0, 101])
def test_fetch_concurrency_bounds(value):
    with pytest.raises(ValidationError):
        make_settings(fetch_concurrency=value)


def test_max_archive_bytes_positive():
    with pytest.raises(ValidationError):
        make_settings(max_archive_bytes=0)


def test_destination_name_stripped():
    assert make_settings(destination_name=" /out/result.zip ").destination_name == "out/result.zip"


def test_blank_destination_name():
    with pytest.raises(ValidationError):
        make_settings(destination_name="   ")
