"""Tests for settings loading and logging configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from mailframe.config.settings import LoggingSettings, load_settings
from mailframe.utils.logging import JsonLogFormatter


def test_defaults_without_imap(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Defaults apply when nothing is configured."""
    monkeypatch.chdir(tmp_path)
    settings = load_settings(env_file=None)
    assert settings.imap is None
    assert settings.codec.body_chunk_size == 64 * 1024
    assert settings.logging.json_logs is True


def test_nested_env_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Nested settings are read from prefixed environment variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MAILFRAME_IMAP__USERNAME", "user@example.com")
    monkeypatch.setenv("MAILFRAME_IMAP__APP_PASSWORD", "secret")
    monkeypatch.setenv("MAILFRAME_CODEC__BODY_CHUNK_SIZE", "4096")
    settings = load_settings(env_file=None)
    assert settings.imap is not None
    assert settings.imap.username == "user@example.com"
    assert settings.imap.port == 993
    assert "secret" not in repr(settings.imap)
    assert settings.codec.body_chunk_size == 4096


def test_env_file(tmp_path: Path) -> None:
    """An explicit .env file is honored."""
    env_file = tmp_path / "mailframe.env"
    env_file.write_text("MAILFRAME_LOGGING__LEVEL=DEBUG\nMAILFRAME_LOGGING__JSON_LOGS=false\n", encoding="utf-8")
    settings = load_settings(env_file=env_file)
    assert settings.logging == LoggingSettings(level="DEBUG", json_logs=False)


def test_json_log_formatter_includes_extra_fields() -> None:
    """Extra record attributes are emitted alongside the message."""
    record = logging.LogRecord("mailframe.test", logging.DEBUG, __file__, 1, "fetched %s", ("headers",), None)
    record.uid = 42
    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["msg"] == "fetched headers"
    assert payload["level"] == "DEBUG"
    assert payload["uid"] == 42
    assert "args" not in payload
