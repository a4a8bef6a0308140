"""replay-recordings ls -- list the recordings in the log.

Prints JSON by default, matching the log's camelCase field names, or a
Rich table with --table.
"""

from __future__ import annotations

import json
import sys
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from replay_recordings.cli.common import build_manager
from replay_recordings.models.recording import Recording, RecordingStatus

# Status styling map: status -> Rich markup style
_STATUS_STYLES: dict[RecordingStatus, str] = {
    RecordingStatus.uploaded: "green",
    RecordingStatus.on_disk: "cyan",
    RecordingStatus.started_write: "yellow",
    RecordingStatus.started_upload: "yellow",
    RecordingStatus.unusable: "dim",
    RecordingStatus.crashed: "bold red",
}


def render_table(recordings: list[Recording], console: Console) -> None:
    """Render recordings as a compact Rich table."""
    table = Table(box=box.SIMPLE, padding=(0, 2))
    table.add_column("ID", style="bold")
    table.add_column("Status")
    table.add_column("Runtime")
    table.add_column("Created")
    table.add_column("Remote ID")

    for recording in recordings:
        style = _STATUS_STYLES.get(recording.status, "white")
        created = recording.create_time.isoformat() if recording.create_time else "-"
        table.add_row(
            recording.id,
            f"[{style}]{recording.status.value}[/{style}]",
            recording.runtime,
            created,
            recording.recording_id or "-",
        )

    console.print(table)


def list_recordings(
    directory: Optional[str] = typer.Option(None, "--directory", help="Alternate recording directory."),
    include_hidden: bool = typer.Option(
        False, "--all", help="Include recordings that captured no interesting content."
    ),
    table: bool = typer.Option(False, "--table", help="Show a table instead of JSON."),
) -> None:
    """List information about all recordings."""
    manager = build_manager(directory)
    recordings = manager.list_recordings(include_hidden=include_hidden)

    if table:
        render_table(recordings, Console())
        return

    sys.stdout.write(json.dumps([r.to_listing() for r in recordings], indent=2))
    sys.stdout.write("\n")
