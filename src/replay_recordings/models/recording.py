"""Recording models derived from the event log.

Recordings are never stored directly. They are rebuilt on every read by
folding the lifecycle events in recordings.log, so these models only
describe the in-memory shape and the listing format.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Substring of unusableReason for content processes that never did anything.
NO_INTERESTING_CONTENT = "No interesting content"

_RUNTIME_PATTERN = re.compile(r".*?-(.*?)-")


class EventKind(str, Enum):
    """Kinds of lifecycle events written to recordings.log."""

    create_recording = "createRecording"
    add_metadata = "addMetadata"
    write_started = "writeStarted"
    write_finished = "writeFinished"
    upload_started = "uploadStarted"
    upload_finished = "uploadFinished"
    recording_unusable = "recordingUnusable"
    crashed = "crashed"


class RecordingStatus(str, Enum):
    """Status of a recording, derived from the last event that touched it."""

    unknown = "unknown"
    started_write = "startedWrite"
    on_disk = "onDisk"
    started_upload = "startedUpload"
    uploaded = "uploaded"
    unusable = "unusable"
    crashed = "crashed"


# Statuses from which an upload may be (re)attempted.
UPLOADABLE_STATUSES: frozenset[RecordingStatus] = frozenset(
    {
        RecordingStatus.on_disk,
        RecordingStatus.started_write,
        RecordingStatus.started_upload,
    }
)


def get_build_runtime(build_id: str | None) -> str:
    """Extract the runtime name from a build id like ``linux-gecko-20210101``."""
    if not build_id:
        return "unknown"
    match = _RUNTIME_PATTERN.match(build_id)
    return match.group(1) if match else "unknown"


def timestamp_to_datetime(timestamp: Any) -> datetime | None:
    """Convert a millisecond epoch timestamp into an aware UTC datetime."""
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class Recording(BaseModel):
    """A local recording as reconstructed from the event log.

    Attributes use snake_case in Python and camelCase when dumped with
    ``by_alias=True``, matching the field names in the log itself.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    create_time: datetime | None = None
    build_id: str | None = None
    runtime: str = "unknown"
    metadata: dict[str, Any] = Field(default_factory=dict)
    status: RecordingStatus = RecordingStatus.unknown
    path: str | None = None
    server: str | None = None
    recording_id: str | None = None
    unusable_reason: str | None = None

    @property
    def is_hidden(self) -> bool:
        """True for content-process recordings that captured nothing useful."""
        return NO_INTERESTING_CONTENT in (self.unusable_reason or "")

    def to_listing(self) -> dict[str, Any]:
        """Serialize for listing output, dropping internal-only fields."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"build_id"},
            exclude_none=True,
        )
