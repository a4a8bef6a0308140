"""Line-oriented JSON event log for recording lifecycle events.

recordings.log is the only durable state: one JSON object per line,
no length prefix or checksum. Recorder processes may be killed while
writing, so readers tolerate blank and malformed lines. Rewrites are
atomic (write to .tmp, then rename) so a crash never truncates the log.
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from replay_recordings.models.recording import EventKind

LOG_FILENAME = "recordings.log"


def parse_event(line: str) -> dict[str, Any] | None:
    """Parse one log line, returning None for anything but a JSON object."""
    try:
        obj = json.loads(line)
    except ValueError:
        return None
    if not isinstance(obj, dict):
        return None
    return obj


class EventLog:
    """Read and rewrite <directory>/recordings.log.

    Callers must serialize access: there is no file locking, and
    concurrent processes appending to the same log may lose events.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.path = self.directory / LOG_FILENAME

    def read_lines(self) -> list[str]:
        """Return the raw lines of the log, or an empty list if it does not exist."""
        if not self.path.exists():
            return []
        return self.path.read_text(encoding="utf-8").split("\n")

    def iter_events(self) -> Iterator[dict[str, Any]]:
        """Yield every parseable event in file order."""
        for line in self.read_lines():
            event = parse_event(line)
            if event is not None:
                yield event

    def append(
        self,
        kind: EventKind | str,
        recording_id: str,
        **fields: Any,
    ) -> dict[str, Any]:
        """Append an event by rewriting the log with all prior lines plus the new one.

        Args:
            kind: The event kind.
            recording_id: Local id of the recording the event describes.
            **fields: Kind-specific fields (path, server, recordingId, ...).

        Returns:
            The event dict that was written.
        """
        event: dict[str, Any] = {
            "kind": kind.value if isinstance(kind, EventKind) else kind,
            "id": recording_id,
            "timestamp": int(time.time() * 1000),
            **fields,
        }
        lines = [line for line in self.read_lines() if line.strip()]
        lines.append(json.dumps(event))
        self._write_lines(lines)
        return event

    def remove_by_id(self, recording_id: str) -> int:
        """Rewrite the log without any line for the given recording.

        Lines that fail to parse are dropped as well.

        Args:
            recording_id: Local id of the recording to forget.

        Returns:
            Number of lines dropped.
        """
        lines = self.read_lines()
        kept: list[str] = []
        for line in lines:
            event = parse_event(line)
            if event is None or event.get("id") == recording_id:
                continue
            kept.append(line)
        self._write_lines(kept)
        return len(lines) - len(kept)

    def delete(self) -> None:
        """Remove the log file entirely."""
        self.path.unlink(missing_ok=True)

    def _write_lines(self, lines: list[str]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        content = "\n".join(lines)
        if lines:
            content += "\n"

        # Atomic write
        tmp_path = self.path.with_name(f"{LOG_FILENAME}.tmp")
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(self.path)
