"""Typer CLI for inspecting and re-folding email messages."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import IO

import typer

from mailframe.config.settings import AppSettings, load_settings
from mailframe.imap.client import ImapError, ImapMailboxStore
from mailframe.message.diagnostics import warning_names
from mailframe.message.entity import EmailMessage
from mailframe.message.errors import MessageError
from mailframe.models.types import MessageRef, MessageSummary
from mailframe.utils.logging import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Inspect, diagnose, and re-fold RFC 5322 email messages.",
)

_ENV_FILE_OPTION = typer.Option(
    None,
    "--env-file",
    exists=True,
    dir_okay=False,
    help="Optional path to a .env file (in addition to environment variables).",
)


def _setup(env_file: Path | None) -> AppSettings:
    """Load settings and configure logging for a command."""
    settings = load_settings(env_file=env_file)
    configure_logging(settings=settings.logging)
    return settings


def _open_source(source: str) -> IO[bytes]:
    """Open a message file, or stdin for ``-``."""
    if source == "-":
        return sys.stdin.buffer
    path = Path(source)
    if not path.is_file():
        typer.echo(f"No such message file: {source}", err=True)
        raise typer.Exit(code=2)
    return path.open("rb")


def summarize(message: EmailMessage) -> MessageSummary:
    """Build an inspection summary for a message.

    Args:
        message: Message to summarize.

    Returns:
        Summary with derived fields and warning names.
    """
    date = message.date()
    return MessageSummary(
        subject=message.subject(),
        message_id=message.message_id(),
        date=date.isoformat() if date is not None else None,
        key=message.key(),
        size_bytes=message.size(),
        warnings=warning_names(message.warnings),
    )


def _require_store(settings: AppSettings) -> ImapMailboxStore:
    if settings.imap is None:
        typer.echo(
            "Missing IMAP settings. Set at least MAILFRAME_IMAP__USERNAME and "
            "MAILFRAME_IMAP__APP_PASSWORD.",
            err=True,
        )
        raise typer.Exit(code=2)
    return ImapMailboxStore(settings=settings.imap)


@app.command("inspect")
def inspect_cmd(
    source: str = typer.Argument(..., help="Message file, or '-' for stdin."),
    env_file: Path | None = _ENV_FILE_OPTION,
) -> None:
    """Print a JSON summary of a message: subject, ids, size, and warnings."""
    settings = _setup(env_file)
    with _open_source(source) as stream:
        message = EmailMessage.from_stream(stream, chunk_size=settings.codec.body_chunk_size)
        try:
            summary = summarize(message)
        except MessageError as exc:
            typer.echo(f"Failed to read message: {exc}", err=True)
            raise typer.Exit(code=1) from None
    typer.echo(summary.model_dump_json(indent=2))


@app.command("reformat")
def reformat_cmd(
    source: str = typer.Argument(..., help="Message file, or '-' for stdin."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help="Write the message here instead of stdout.",
    ),
    env_file: Path | None = _ENV_FILE_OPTION,
) -> None:
    """Re-serialize a message with its headers unfolded and re-folded."""
    settings = _setup(env_file)
    with _open_source(source) as stream:
        message = EmailMessage.from_stream(stream, chunk_size=settings.codec.body_chunk_size)
        try:
            if output is None:
                message.serialize()
                sys.stdout.flush()
            else:
                with output.open("wb") as handle:
                    message.serialize(handle)
        except MessageError as exc:
            typer.echo(f"Failed to write message: {exc}", err=True)
            raise typer.Exit(code=1) from None


@app.command("remote-inspect")
def remote_inspect_cmd(
    mailbox: str = typer.Option(..., "--mailbox", help="Mailbox path, e.g. INBOX."),
    uid: int = typer.Option(..., "--uid", min=1, help="Message UID."),
    env_file: Path | None = _ENV_FILE_OPTION,
) -> None:
    """Print a JSON summary of a message stored on the IMAP server."""
    settings = _setup(env_file)
    try:
        with _require_store(settings) as store:
            message = EmailMessage.from_store(store, MessageRef(path=mailbox, uid=uid))
            summary = summarize(message)
    except ImapError as exc:
        logger.error("IMAP access failed: %s", exc)
        typer.echo(f"IMAP access failed: {exc}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(summary.model_dump_json(indent=2))


@app.command("remote-delete")
def remote_delete_cmd(
    mailbox: str = typer.Option(..., "--mailbox", help="Mailbox path, e.g. INBOX."),
    uid: int = typer.Option(..., "--uid", min=1, help="Message UID."),
    env_file: Path | None = _ENV_FILE_OPTION,
) -> None:
    """Delete a message from the IMAP server."""
    settings = _setup(env_file)
    try:
        with _require_store(settings) as store:
            deleted = EmailMessage.from_store(store, MessageRef(path=mailbox, uid=uid)).delete()
    except ImapError as exc:
        logger.error("IMAP access failed: %s", exc)
        typer.echo(f"IMAP access failed: {exc}", err=True)
        raise typer.Exit(code=1) from None
    if not deleted:
        typer.echo(f"Server refused to delete {mailbox}/{uid}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted {mailbox}/{uid}")
