"""Shared fixtures: an in-memory websocket and a fake recording server."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

from replay_recordings.protocol.client import ProtocolClient

# Scripted response that makes the socket drop the connection.
DROP = object()


class FakeRecordingServer:
    """Answers protocol commands the way the recording service does.

    Chunks are stored by offset so tests can reassemble the upload.
    Methods listed in ``fail_methods`` get a response without a result.
    ``scripted`` maps a method to a one-time raw reply (a string frame or
    ``DROP``) sent instead of the normal response.
    """

    DROP = DROP

    def __init__(self, remote_id: str = "remote-1", api_key: str | None = None) -> None:
        self.remote_id = remote_id
        self.api_key = api_key
        self.fail_methods: set[str] = set()
        self.fail_offsets: set[int] = set()
        self.scripted: dict[str, Any] = {}
        self.calls: list[dict[str, Any]] = []
        self.chunks: dict[int, bytes] = {}
        self.finished = False

    def __call__(self, msg: dict[str, Any], data: bytes | None) -> Any:
        self.calls.append(msg)
        method = msg["method"]
        params = msg["params"]

        if method in self.scripted:
            return self.scripted.pop(method)

        if method in self.fail_methods:
            return {"id": msg["id"], "error": {"code": 1, "message": f"{method} failed"}}

        if method == "Authentication.setAccessToken":
            if self.api_key is not None and params["accessToken"] != self.api_key:
                return {"id": msg["id"], "error": {"code": 2, "message": "bad token"}}
            return {"id": msg["id"], "result": {}}
        if method == "Internal.createRecording":
            return {"id": msg["id"], "result": {"recordingId": self.remote_id}}
        if method == "Internal.addRecordingData":
            if params["offset"] in self.fail_offsets:
                return {"id": msg["id"], "error": {"code": 3, "message": "write failed"}}
            assert data is not None
            assert len(data) == params["length"]
            self.chunks[params["offset"]] = data
            return {"id": msg["id"], "result": {}}
        if method == "Internal.finishRecording":
            self.finished = True
            return {"id": msg["id"], "result": {}}
        return {"id": msg["id"], "error": {"code": 4, "message": "unknown method"}}

    def assembled(self) -> bytes:
        return b"".join(self.chunks[offset] for offset in sorted(self.chunks))


class FakeSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, responder: Any = None) -> None:
        self.responder = responder
        self.sent: list[str | bytes] = []
        self.incoming: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False
        self.address: str | None = None
        self._awaiting_binary: dict[str, Any] | None = None

    async def send(self, data: str | bytes) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(data)
        if isinstance(data, bytes):
            header = self._awaiting_binary
            self._awaiting_binary = None
            assert header is not None, "binary frame without a preceding header"
            self._respond(header, data)
            return
        msg = json.loads(data)
        if msg.get("binary"):
            self._awaiting_binary = msg
            return
        self._respond(msg, None)

    async def recv(self) -> str:
        item = await self.incoming.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True

    def push(self, frame: dict[str, Any] | str) -> None:
        self.incoming.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def drop(self) -> None:
        """Simulate the server dropping the connection."""
        self.incoming.put_nowait(ConnectionClosedError(None, None))

    def sent_messages(self) -> list[dict[str, Any]]:
        return [json.loads(frame) for frame in self.sent if isinstance(frame, str)]

    def _respond(self, msg: dict[str, Any], data: bytes | None) -> None:
        if self.responder is None:
            return
        response = self.responder(msg, data)
        if response is DROP:
            self.drop()
        elif response is not None:
            self.push(response)


def make_connector(socket: FakeSocket):
    """Build a connect callable for ProtocolClient that returns the fake socket."""

    async def connect(address: str) -> FakeSocket:
        socket.address = address
        return socket

    return connect


@pytest.fixture
def fake_server() -> FakeRecordingServer:
    return FakeRecordingServer()


@pytest.fixture
def fake_socket(fake_server: FakeRecordingServer) -> FakeSocket:
    return FakeSocket(responder=fake_server)


@pytest.fixture
def client(fake_socket: FakeSocket) -> ProtocolClient:
    return ProtocolClient(connect=make_connector(fake_socket))


def write_log(directory: Path, events: list[dict[str, Any] | str]) -> Path:
    """Write raw events (dicts or literal lines) to recordings.log."""
    directory.mkdir(parents=True, exist_ok=True)
    lines = [e if isinstance(e, str) else json.dumps(e) for e in events]
    path = directory / "recordings.log"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def log_writer():
    return write_log


@pytest.fixture
def connector():
    return make_connector


@pytest.fixture
def socket_factory(fake_server: FakeRecordingServer):
    """Build fresh sockets that all answer through the same fake server."""

    def build() -> FakeSocket:
        return FakeSocket(responder=fake_server)

    return build
