"""Configuration model for the recordings tool.

Settings come from, in order of precedence: explicit options (CLI flags),
environment variables, an optional config.yaml inside the recordings
directory, and finally built-in defaults.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

DEFAULT_SERVER = "wss://dispatch.replay.io"

DIRECTORY_ENV = "RECORD_REPLAY_DIRECTORY"
SERVER_ENV = "RECORD_REPLAY_SERVER"
API_KEY_ENV = "RECORD_REPLAY_API_KEY"

CONFIG_FILENAME = "config.yaml"


class FileConfig(BaseModel):
    """Optional settings read from <directory>/config.yaml."""

    model_config = {"extra": "forbid"}

    server: str | None = None
    api_key: str | None = None
    verbose: bool = False


class RecordingsConfig(BaseModel):
    """Resolved settings for a single command invocation."""

    model_config = {"extra": "forbid"}

    directory: Path
    server: str = DEFAULT_SERVER
    api_key: str | None = None
    verbose: bool = False


def default_directory() -> Path:
    """Return the recordings directory from the environment or ~/.replay."""
    env_dir = os.environ.get(DIRECTORY_ENV)
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".replay"


def load_file_config(directory: Path) -> FileConfig:
    """Load FileConfig from config.yaml in the directory. Returns defaults if not found.

    Args:
        directory: The recordings directory.

    Returns:
        Validated FileConfig instance.
    """
    config_path = directory / CONFIG_FILENAME
    if not config_path.exists():
        return FileConfig()
    import yaml

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return FileConfig()
    return FileConfig.model_validate(raw)


def load_config(
    directory: str | Path | None = None,
    server: str | None = None,
    api_key: str | None = None,
    verbose: bool = False,
) -> RecordingsConfig:
    """Resolve a RecordingsConfig from options, environment and config file.

    Args:
        directory: Explicit recordings directory, overriding the environment.
        server: Explicit server address.
        api_key: Explicit API key used to authenticate the connection.
        verbose: Print progress messages.

    Returns:
        The resolved RecordingsConfig.
    """
    resolved_dir = Path(directory) if directory else default_directory()
    file_config = load_file_config(resolved_dir)

    return RecordingsConfig(
        directory=resolved_dir,
        server=server or os.environ.get(SERVER_ENV) or file_config.server or DEFAULT_SERVER,
        api_key=api_key or os.environ.get(API_KEY_ENV) or file_config.api_key,
        verbose=verbose or file_config.verbose,
    )
