"""Recordings data models - re-exports all public model classes."""

from replay_recordings.models.config import RecordingsConfig
from replay_recordings.models.recording import (
    EventKind,
    Recording,
    RecordingStatus,
)

__all__ = [
    "EventKind",
    "Recording",
    "RecordingStatus",
    "RecordingsConfig",
]
