"""Exception types raised by the recordings core.

Upload problems are split by how callers react to them: a skipped
recording is reported and the batch moves on, while I/O, connection
and protocol failures abort the single upload they occurred in.
"""

from __future__ import annotations

import json
from typing import Any


class RecordingsError(Exception):
    """Base class for all recordings errors."""


class UnknownRecordingError(RecordingsError):
    """Raised when an operation names a recording id missing from the log."""

    def __init__(self, recording_id: str) -> None:
        self.recording_id = recording_id
        super().__init__(f"Unknown recording {recording_id}")


class UploadSkipped(RecordingsError):
    """Raised when a recording is not eligible for upload."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class RecordingReadError(RecordingsError):
    """Raised when a recording's backing file cannot be read."""


class ConnectionFailure(RecordingsError):
    """Raised when the server connection cannot be opened or is lost."""


class ProtocolError(RecordingsError):
    """Raised for a response frame that carries no result.

    The full frame is kept on ``frame`` for diagnostics.
    """

    def __init__(self, frame: dict[str, Any]) -> None:
        self.frame = frame
        super().__init__(f"Channel error: {json.dumps(frame)}")


class UnsupportedEventError(RecordingsError):
    """Raised when the server sends an unsolicited event message."""
