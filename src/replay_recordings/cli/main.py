"""replay-recordings CLI entry point."""

import typer

from replay_recordings import __version__
from replay_recordings.cli.list_cmd import list_recordings
from replay_recordings.cli.remove_cmd import remove, remove_all
from replay_recordings.cli.upload_cmd import upload, upload_all
from replay_recordings.cli.view_cmd import view, view_latest

app = typer.Typer(
    name="replay-recordings",
    help="Manage and upload local Replay recordings",
    no_args_is_help=True,
)

# Register subcommands
app.command(name="ls")(list_recordings)
app.command()(upload)
app.command(name="upload-all")(upload_all)
app.command()(view)
app.command(name="view-latest")(view_latest)
app.command(name="rm")(remove)
app.command(name="rm-all")(remove_all)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"replay-recordings {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Manage and upload local Replay recordings."""
