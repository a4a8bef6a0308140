"""Shared option handling for the recordings CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from replay_recordings.manager import RecordingManager
from replay_recordings.models.config import load_config

console = Console(stderr=True)


def build_manager(
    directory: str | None,
    server: str | None = None,
    api_key: str | None = None,
    verbose: bool = False,
) -> RecordingManager:
    """Resolve configuration and create a RecordingManager.

    Exits with code 1 if config.yaml in the recordings directory is invalid.
    """
    try:
        config = load_config(directory, server=server, api_key=api_key, verbose=verbose)
    except (ValidationError, yaml.YAMLError) as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid config.yaml: {exc}")
        raise typer.Exit(code=1)
    return RecordingManager(config, console=console)


def fail(message: str) -> NoReturn:
    """Print an error and exit with code 1."""
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)
