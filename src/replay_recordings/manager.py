"""RecordingManager: list, upload, view and remove local recordings.

Every operation re-reads recordings.log, so the manager holds no state
beyond its configuration. Uploads open one ProtocolClient per operation
and close it when the operation ends.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

import typer
from rich.console import Console

from replay_recordings.errors import RecordingsError, UnknownRecordingError
from replay_recordings.models.config import DEFAULT_SERVER, RecordingsConfig
from replay_recordings.models.recording import Recording, RecordingStatus
from replay_recordings.protocol.client import ProtocolClient
from replay_recordings.recording.state import RecordingStateMachine
from replay_recordings.storage.event_log import EventLog
from replay_recordings.upload.pipeline import UploadPipeline, upload_skip_reason

VIEWER_URL = "https://app.replay.io"


def viewer_url(recording_id: str, server: str | None = None) -> str:
    """Build the viewer URL, adding dispatch only for a non-default server."""
    query: dict[str, str] = {"id": recording_id}
    if server and server != DEFAULT_SERVER:
        query["dispatch"] = server
    return f"{VIEWER_URL}?{urlencode(query, safe=':/')}"


class RecordingManager:
    """Orchestrates recording operations on one recordings directory.

    Args:
        config: Resolved directory, server, API key and verbosity.
        client_factory: Creates the ProtocolClient for an operation.
        opener: Opens a viewer URL; defaults to ``typer.launch``.
        console: Console for progress and error messages.
    """

    def __init__(
        self,
        config: RecordingsConfig,
        client_factory: Callable[[], ProtocolClient] | None = None,
        opener: Callable[[str], Any] | None = None,
        console: Console | None = None,
    ) -> None:
        self.config = config
        self.event_log = EventLog(config.directory)
        self._console = console or Console(stderr=True)
        self._client_factory = client_factory or self._default_client
        self._opener = opener or typer.launch

    def list_recordings(self, include_hidden: bool = False) -> list[Recording]:
        """Return all recordings in creation order."""
        return self._load().visible(include_hidden)

    async def upload_recording(self, recording_id: str) -> str | None:
        """Upload one recording by id.

        Returns:
            The remote recording id, or None if the upload failed.

        Raises:
            UnknownRecordingError: If no visible recording has this id.
        """
        recording = self._find(recording_id)
        client = self._client_factory()
        try:
            return await self._upload(recording, client, self.config.server)
        finally:
            await client.close()

    async def upload_all_recordings(self) -> bool:
        """Upload every eligible recording, continuing past failures.

        Recordings share one connection; if a failure leaves it closed, the
        next recording starts on a fresh one.

        Returns:
            True only if every attempted upload succeeded.
        """
        uploaded_all = True
        client = self._client_factory()
        try:
            for recording in self.list_recordings():
                if upload_skip_reason(recording):
                    continue
                if await self._upload(recording, client, self.config.server):
                    continue
                uploaded_all = False
                if client.address is not None and not client.is_open:
                    # A dropped connection cannot be reopened.
                    await client.close()
                    client = self._client_factory()
        finally:
            await client.close()
        return uploaded_all

    async def view_recording(self, recording_id: str) -> bool:
        """Open a recording in the viewer, uploading it first if needed.

        Raises:
            UnknownRecordingError: If no visible recording has this id.
        """
        return await self._view(self._find(recording_id))

    async def view_latest_recording(self) -> bool:
        """Open the most recently created recording in the viewer."""
        recordings = self.list_recordings()
        if not recordings:
            self._log("No recordings to view")
            return False
        return await self._view(recordings[-1])

    def remove_recording(self, recording_id: str) -> bool:
        """Delete a recording's file and drop its events from the log.

        Raises:
            UnknownRecordingError: If no recording has this id.
        """
        recording = self._find(recording_id, include_hidden=True)
        self._remove_recording_file(recording)
        removed = self.event_log.remove_by_id(recording_id)
        self._log(f"Removed {removed} log entries for {recording_id}")
        return True

    def remove_all_recordings(self) -> None:
        """Delete every recording file and the log itself."""
        for recording in self.list_recordings(include_hidden=True):
            self._remove_recording_file(recording)
        self.event_log.delete()

    def _load(self) -> RecordingStateMachine:
        machine = RecordingStateMachine()
        machine.fold(self.event_log.iter_events())
        return machine

    def _find(self, recording_id: str, include_hidden: bool = False) -> Recording:
        recording = self._load().find(recording_id)
        if recording is None or (recording.is_hidden and not include_hidden):
            self._log(f"Unknown recording {recording_id}")
            raise UnknownRecordingError(recording_id)
        return recording

    async def _upload(
        self,
        recording: Recording,
        client: ProtocolClient,
        server: str,
    ) -> str | None:
        pipeline = UploadPipeline(
            self.event_log,
            server=server,
            api_key=self.config.api_key,
            console=self._console,
            verbose=self.config.verbose,
        )
        try:
            return await pipeline.upload(recording, client)
        except RecordingsError as exc:
            self._log(f"Upload failed: {exc}")
            return None

    async def _view(self, recording: Recording) -> bool:
        server = self.config.server
        if recording.status is RecordingStatus.uploaded and recording.recording_id:
            remote_id = recording.recording_id
            server = recording.server or server
        else:
            client = self._client_factory()
            try:
                remote_id = await self._upload(recording, client, server)
            finally:
                await client.close()
            if not remote_id:
                return False

        url = viewer_url(remote_id, server)
        self._log(f"Opening {url}")
        self._opener(url)
        return True

    def _remove_recording_file(self, recording: Recording) -> None:
        if not recording.path:
            return
        try:
            Path(recording.path).unlink(missing_ok=True)
        except OSError as exc:
            self._console.print(
                f"[yellow]Warning: could not delete {recording.path}: {exc}[/yellow]"
            )

    def _default_client(self) -> ProtocolClient:
        return ProtocolClient(console=self._console, verbose=self.config.verbose)

    def _log(self, message: str) -> None:
        if self.config.verbose:
            self._console.print(message)
