"""Recording state reconstruction from the event log."""

from replay_recordings.recording.state import RecordingStateMachine, read_recordings

__all__ = ["RecordingStateMachine", "read_recordings"]
