"""Tests for the Typer CLI."""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import mailframe.cli.app as cli_app
from mailframe.cli.app import app
from mailframe.message.entity import EmailMessage
from mailframe.message.errors import MessageParseError
from mailframe.models.types import MessageSummary

runner = CliRunner()

RAW = (
    b"Message-ID: <cli@example.com>\r\n"
    b"Subject: CLI test\r\n"
    b"From: sender@example.com\r\n"
    b"To: rcpt@example.com\r\n"
    b"\r\n"
    b"Body text\r\n"
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("MAILFRAME_IMAP__USERNAME", "MAILFRAME_IMAP__APP_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MAILFRAME_LOGGING__JSON_LOGS", "false")


def test_inspect_prints_summary(tmp_path: Path) -> None:
    """inspect emits derived fields and warning names as JSON."""
    path = tmp_path / "msg.eml"
    path.write_bytes(RAW)
    result = runner.invoke(app, ["inspect", str(path)])
    assert result.exit_code == 0, result.output
    summary = json.loads(result.stdout)
    assert summary["subject"] == "CLI test"
    assert summary["message_id"] == "<cli@example.com>"
    assert summary["date"] is None
    assert summary["warnings"] == ["NO_RECEIVED", "NO_DATE"]
    assert summary["size_bytes"] == len(b"Body text\r\n") + len(
        "<cli@example.com>" "CLI test" "sender@example.com" "rcpt@example.com",
    )


def test_reformat_writes_output_file(tmp_path: Path) -> None:
    """reformat re-serializes the message to the given file."""
    source = tmp_path / "msg.eml"
    source.write_bytes(RAW)
    target = tmp_path / "out.eml"
    result = runner.invoke(app, ["reformat", str(source), "--output", str(target)])
    assert result.exit_code == 0, result.output
    assert target.read_bytes() == (
        b"Message-ID: <cli@example.com>\n"
        b"Subject: CLI test\n"
        b"From: sender@example.com\n"
        b"To: rcpt@example.com\n"
        b"\n"
        b"Body text\r\n"
    )


def test_missing_file_exits_with_usage_error(tmp_path: Path) -> None:
    """A missing message file is reported with exit code 2."""
    result = runner.invoke(app, ["inspect", str(tmp_path / "nope.eml")])
    assert result.exit_code == 2


def test_remote_inspect_requires_imap_settings() -> None:
    """Remote commands refuse to run without IMAP credentials."""
    result = runner.invoke(app, ["remote-inspect", "--mailbox", "INBOX", "--uid", "1"])
    assert result.exit_code == 2


def test_inspect_closes_source_when_summary_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    """The message file is closed even if the body was never read."""
    source = io.BytesIO(RAW)

    def fail(message: EmailMessage) -> MessageSummary:
        raise MessageParseError("bad message")

    monkeypatch.setattr(cli_app, "_open_source", lambda _: source)
    monkeypatch.setattr(cli_app, "summarize", fail)
    result = runner.invoke(app, ["inspect", "msg.eml"])
    assert result.exit_code == 1
    assert source.closed
