"""replay-recordings upload / upload-all -- send recordings to the server."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from replay_recordings.cli.common import build_manager, console, fail
from replay_recordings.errors import UnknownRecordingError


def upload(
    recording_id: str = typer.Argument(..., help="Local id of the recording to upload."),
    directory: Optional[str] = typer.Option(None, "--directory", help="Alternate recording directory."),
    server: Optional[str] = typer.Option(None, "--server", help="Alternate server to upload recordings to."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Authentication API key."),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Log upload progress."),
) -> None:
    """Upload a recording to the remote server."""
    manager = build_manager(directory, server=server, api_key=api_key, verbose=verbose)
    try:
        remote_id = asyncio.run(manager.upload_recording(recording_id))
    except UnknownRecordingError as exc:
        fail(str(exc))
    if not remote_id:
        fail(f"Upload of {recording_id} failed. Rerun with --verbose for details.")
    console.print(f"Uploaded {recording_id} as [bold]{remote_id}[/bold]")


def upload_all(
    directory: Optional[str] = typer.Option(None, "--directory", help="Alternate recording directory."),
    server: Optional[str] = typer.Option(None, "--server", help="Alternate server to upload recordings to."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Authentication API key."),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Log upload progress."),
) -> None:
    """Upload all recordings to the remote server."""
    manager = build_manager(directory, server=server, api_key=api_key, verbose=verbose)
    if not asyncio.run(manager.upload_all_recordings()):
        fail("Some recordings failed to upload. Rerun with --verbose for details.")
