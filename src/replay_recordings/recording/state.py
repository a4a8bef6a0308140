"""Fold the recordings event log into Recording entities.

Each event updates the recording it names; the last event to touch a
field wins. Nothing is validated: an uploadFinished without a prior
uploadStarted still marks the recording uploaded, and events for ids
that were never created are dropped.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from replay_recordings.models.recording import (
    EventKind,
    Recording,
    RecordingStatus,
    get_build_runtime,
    timestamp_to_datetime,
)

if TYPE_CHECKING:
    from replay_recordings.storage.event_log import EventLog


# Events that only move a recording to a new status.
_STATUS_EVENTS: dict[EventKind, RecordingStatus] = {
    EventKind.write_finished: RecordingStatus.on_disk,
    EventKind.upload_finished: RecordingStatus.uploaded,
    EventKind.crashed: RecordingStatus.crashed,
}


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class RecordingStateMachine:
    """Builds an id-indexed table of recordings from lifecycle events.

    Recordings are kept in creation order. When the log declares the same
    id twice, both recordings are listed but only the first one receives
    later events.
    """

    def __init__(self) -> None:
        self.recordings: list[Recording] = []
        self._index: dict[str, Recording] = {}

    def fold(self, events: Iterable[dict[str, Any]]) -> dict[str, Recording]:
        """Apply every event in order and return the id -> Recording index.

        Args:
            events: Parsed log events, oldest first.

        Returns:
            Mapping from recording id to the first recording with that id.
        """
        for event in events:
            self.apply(event)
        return dict(self._index)

    def find(self, recording_id: str) -> Recording | None:
        return self._index.get(recording_id)

    def visible(self, include_hidden: bool = False) -> list[Recording]:
        """Return recordings, hiding content-less ones unless asked not to.

        Gecko/chromium content processes that never load anything still
        log a recording, and the append-only log can't avoid that, so
        most callers filter them out here.
        """
        if include_hidden:
            return list(self.recordings)
        return [r for r in self.recordings if not r.is_hidden]

    def apply(self, event: dict[str, Any]) -> None:
        """Apply a single event. Unknown kinds and unknown ids are ignored."""
        try:
            kind = EventKind(event.get("kind"))
        except ValueError:
            return

        recording_id = event.get("id")

        if kind is EventKind.create_recording:
            if recording_id is None:
                return
            build_id = _optional_str(event.get("buildId"))
            recording = Recording(
                id=str(recording_id),
                create_time=timestamp_to_datetime(event.get("timestamp")),
                build_id=build_id,
                runtime=get_build_runtime(build_id),
            )
            self.recordings.append(recording)
            self._index.setdefault(recording.id, recording)
            return

        recording = self._index.get(str(recording_id))
        if recording is None:
            return

        if kind is EventKind.add_metadata:
            metadata = event.get("metadata")
            if isinstance(metadata, dict):
                recording.metadata.update(metadata)
        elif kind is EventKind.write_started:
            recording.status = RecordingStatus.started_write
            recording.path = _optional_str(event.get("path"))
        elif kind is EventKind.upload_started:
            recording.status = RecordingStatus.started_upload
            recording.server = _optional_str(event.get("server"))
            recording.recording_id = _optional_str(event.get("recordingId"))
        elif kind is EventKind.recording_unusable:
            reason = event.get("reason")
            recording.status = RecordingStatus.unusable
            recording.unusable_reason = None if reason is None else str(reason)
        else:
            recording.status = _STATUS_EVENTS[kind]


def read_recordings(event_log: "EventLog", include_hidden: bool = False) -> list[Recording]:
    """Fold the whole log and return the visible recordings in creation order."""
    machine = RecordingStateMachine()
    machine.fold(event_log.iter_events())
    return machine.visible(include_hidden)
