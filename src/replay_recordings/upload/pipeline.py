"""Chunked, all-or-nothing upload of one recording.

The remote recording is created with ``requireFinish`` so the server
never materializes it until ``Internal.finishRecording`` succeeds. All
chunk writes and the finish command are issued without waiting on each
other and then awaited together; the server places chunks by offset,
not by arrival order.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from replay_recordings.errors import (
    ConnectionFailure,
    ProtocolError,
    RecordingReadError,
    UploadSkipped,
)
from replay_recordings.models.config import DEFAULT_SERVER
from replay_recordings.models.recording import (
    UPLOADABLE_STATUSES,
    EventKind,
    Recording,
)

if TYPE_CHECKING:
    from replay_recordings.protocol.client import ProtocolClient
    from replay_recordings.storage.event_log import EventLog

# Granularity for splitting up a recording into chunks for uploading.
CHUNK_GRANULARITY = 1024 * 1024


def upload_skip_reason(recording: Recording) -> str | None:
    """Return why a recording can't be uploaded, or None if it can."""
    if recording.status not in UPLOADABLE_STATUSES:
        return f"wrong recording status {recording.status.value}"
    if not recording.path:
        return "recording not saved to disk"
    return None


def split_chunks(contents: bytes, granularity: int = CHUNK_GRANULARITY) -> list[tuple[int, bytes]]:
    """Split a buffer into (offset, chunk) pairs of at most granularity bytes."""
    if granularity <= 0:
        raise ValueError(f"Chunk granularity must be positive, got {granularity}")
    return [
        (offset, contents[offset:offset + granularity])
        for offset in range(0, len(contents), granularity)
    ]


class UploadPipeline:
    """Uploads recordings through a ProtocolClient and logs lifecycle events.

    An ``uploadStarted`` event is written as soon as the remote recording
    exists and ``uploadFinished`` only after every chunk and the finish
    command succeed, so a recording whose upload failed or was
    interrupted stays ``startedUpload`` and can be retried from scratch.
    """

    def __init__(
        self,
        event_log: "EventLog",
        server: str = DEFAULT_SERVER,
        api_key: str | None = None,
        chunk_size: int = CHUNK_GRANULARITY,
        console: Console | None = None,
        verbose: bool = False,
    ) -> None:
        self.event_log = event_log
        self.server = server
        self.api_key = api_key
        self.chunk_size = chunk_size
        self._console = console or Console(stderr=True)
        self._verbose = verbose

    async def upload(self, recording: Recording, client: "ProtocolClient") -> str:
        """Upload one recording and return its remote recording id.

        Args:
            recording: The recording to upload, as folded from the log.
            client: Connection to use; opened here if it isn't already.

        Returns:
            The remote recording id assigned by the server.

        Raises:
            UploadSkipped: If the recording is not eligible for upload.
            RecordingReadError: If the recording file cannot be read.
            ConnectionFailure: If the server connection cannot be opened.
            ProtocolError: If the server rejects any command.
        """
        self._log(f"Starting upload for {recording.id}...")

        reason = upload_skip_reason(recording)
        if reason:
            raise UploadSkipped(reason)

        try:
            contents = Path(recording.path).read_bytes()
        except OSError as exc:
            raise RecordingReadError(f"can't read recording from disk: {exc}") from exc

        if not await client.open(self.server, self.api_key):
            raise ConnectionFailure(f"can't connect to server {self.server}")

        result = await client.send_command(
            "Internal.createRecording",
            {"buildId": recording.build_id, "requireFinish": True},
        )
        recording_id = result.get("recordingId") if isinstance(result, dict) else None
        if not recording_id:
            raise ProtocolError({"method": "Internal.createRecording", "result": result})
        self._log(f"Created remote recording {recording_id}, uploading...")

        self.event_log.append(
            EventKind.upload_started,
            recording.id,
            server=self.server,
            recordingId=recording_id,
        )

        commands = [
            client.send_command(
                "Internal.addRecordingData",
                {"recordingId": recording_id, "offset": offset, "length": len(chunk)},
                chunk,
            )
            for offset, chunk in split_chunks(contents, self.chunk_size)
        ]
        commands.append(
            client.send_command("Internal.finishRecording", {"recordingId": recording_id})
        )
        results = await asyncio.gather(*commands, return_exceptions=True)
        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

        self.event_log.append(EventKind.upload_finished, recording.id)
        self._log("Upload finished.")
        return recording_id

    def _log(self, message: str) -> None:
        if self._verbose:
            self._console.print(message)
