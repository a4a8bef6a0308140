"""replay-recordings rm / rm-all -- delete recordings and their log entries."""

from __future__ import annotations

from typing import Optional

import typer

from replay_recordings.cli.common import build_manager, fail
from replay_recordings.errors import UnknownRecordingError


def remove(
    recording_id: str = typer.Argument(..., help="Local id of the recording to remove."),
    directory: Optional[str] = typer.Option(None, "--directory", help="Alternate recording directory."),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Log what is removed."),
) -> None:
    """Remove a specific recording."""
    manager = build_manager(directory, verbose=verbose)
    try:
        manager.remove_recording(recording_id)
    except UnknownRecordingError as exc:
        fail(str(exc))


def remove_all(
    directory: Optional[str] = typer.Option(None, "--directory", help="Alternate recording directory."),
) -> None:
    """Remove all recordings."""
    build_manager(directory).remove_all_recordings()
