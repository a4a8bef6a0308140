"""replay-recordings view / view-latest -- open a recording in the viewer.

Recordings that are not uploaded yet are uploaded first.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from replay_recordings.cli.common import build_manager, fail
from replay_recordings.errors import UnknownRecordingError


def view(
    recording_id: str = typer.Argument(..., help="Local id of the recording to view."),
    directory: Optional[str] = typer.Option(None, "--directory", help="Alternate recording directory."),
    server: Optional[str] = typer.Option(None, "--server", help="Alternate server to upload recordings to."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Authentication API key."),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Log upload progress."),
) -> None:
    """Load a recording in the Replay viewer, uploading it first if needed."""
    manager = build_manager(directory, server=server, api_key=api_key, verbose=verbose)
    try:
        viewed = asyncio.run(manager.view_recording(recording_id))
    except UnknownRecordingError as exc:
        fail(str(exc))
    if not viewed:
        fail(f"Could not view {recording_id}. Rerun with --verbose for details.")


def view_latest(
    directory: Optional[str] = typer.Option(None, "--directory", help="Alternate recording directory."),
    server: Optional[str] = typer.Option(None, "--server", help="Alternate server to upload recordings to."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Authentication API key."),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Log upload progress."),
) -> None:
    """Load the most recently created recording in the Replay viewer."""
    manager = build_manager(directory, server=server, api_key=api_key, verbose=verbose)
    if not asyncio.run(manager.view_latest_recording()):
        fail("Could not view the latest recording. Rerun with --verbose for details.")
