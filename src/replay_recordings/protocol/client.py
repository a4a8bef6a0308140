"""Websocket protocol client for the Replay recording service.

Requests are JSON frames ``{id, method, params}``; a command carrying a
binary payload sets ``"binary": true`` and the payload follows as the
next frame. Responses ``{id, result}`` are matched to their requests by
id, so any number of commands can be in flight over the one socket and
answered in any order.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import Awaitable, Callable
from typing import Any

import websockets
from rich.console import Console
from websockets.exceptions import ConnectionClosed, WebSocketException

from replay_recordings.errors import (
    ConnectionFailure,
    ProtocolError,
    RecordingsError,
    UnsupportedEventError,
)

SET_ACCESS_TOKEN_METHOD = "Authentication.setAccessToken"

# Seconds to wait for the websocket handshake.
OPEN_TIMEOUT = 10.0

Connector = Callable[[str], Awaitable[Any]]


def _default_connect(address: str) -> Awaitable[Any]:
    return websockets.connect(address, open_timeout=OPEN_TIMEOUT)


def _frame_text(frame: str | bytes) -> str:
    if isinstance(frame, bytes):
        return frame.decode("utf-8", errors="replace")
    return frame


class ProtocolClient:
    """One websocket connection with request/response correlation.

    The caller owns the client's lifecycle: ``open`` establishes and
    authenticates the connection once, ``close`` tears it down. Waiters
    still pending when ``close`` is called are never resolved; if the
    server drops the connection instead, they are rejected.
    """

    def __init__(
        self,
        connect: Connector | None = None,
        console: Console | None = None,
        verbose: bool = False,
    ) -> None:
        self._connect = connect or _default_connect
        self._console = console or Console(stderr=True)
        self._verbose = verbose

        self._socket: Any = None
        self._address: str | None = None
        self._closed = False
        self._reader: asyncio.Task[None] | None = None
        self._send_lock = asyncio.Lock()

        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._next_message_id = 1

    @property
    def address(self) -> str | None:
        """The address this client connected to, for callers that reconnect."""
        return self._address

    @property
    def is_open(self) -> bool:
        if self._socket is None or self._closed:
            return False
        return self._reader is None or not self._reader.done()

    async def open(self, address: str, api_key: str | None = None) -> bool:
        """Connect and authenticate. Returns True once the connection is usable.

        Calling open on an already-open client does nothing. A closed
        client cannot be reopened.

        Args:
            address: Websocket URL of the dispatch server.
            api_key: Access token sent before any other command.

        Returns:
            True if connected (and authenticated), False otherwise.
        """
        if self.is_open:
            return True
        if self._closed or self._socket is not None:
            self._console.print("[yellow]Server connection already closed.[/yellow]")
            return False

        try:
            self._socket = await self._connect(address)
        except (OSError, TimeoutError, WebSocketException) as exc:
            self._console.print(f"[red]Error connecting to server: {exc}[/red]")
            return False

        self._address = address
        self._reader = asyncio.create_task(self._read_loop())

        if api_key:
            try:
                await self.send_command(SET_ACCESS_TOKEN_METHOD, {"accessToken": api_key})
            except RecordingsError as exc:
                self._console.print(f"[red]Authentication failed: {exc}[/red]")
                await self.close()
                return False

        if self._verbose:
            self._console.print(f"Connected to {address}")
        return True

    async def close(self) -> None:
        """Close the connection. Pending waiters are left unresolved."""
        if self._closed:
            return
        self._closed = True
        if self._reader is not None:
            if not self._reader.done():
                self._reader.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._reader
            elif not self._reader.cancelled():
                # Already reported and delivered to the pending waiters.
                self._reader.exception()
        if self._socket is not None:
            await self._socket.close()

    async def send_command(
        self,
        method: str,
        params: dict[str, Any],
        data: bytes | None = None,
    ) -> Any:
        """Send a command and wait for its correlated response.

        Args:
            method: Protocol method name, e.g. ``Internal.createRecording``.
            params: JSON-serializable parameters.
            data: Optional binary payload sent as the following frame.

        Returns:
            The ``result`` field of the response.

        Raises:
            ConnectionFailure: If the client is not open or the connection drops.
            ProtocolError: If the response carries no result.
        """
        if not self.is_open:
            raise ConnectionFailure(f"Cannot send {method}: connection is not open")

        message_id = self._next_message_id
        self._next_message_id += 1

        message: dict[str, Any] = {"id": message_id, "method": method, "params": params}
        if data is not None:
            message["binary"] = True

        # Registered before sending so a fast response always finds its waiter.
        waiter: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[message_id] = waiter

        try:
            async with self._send_lock:
                await self._socket.send(json.dumps(message))
                if data is not None:
                    await self._socket.send(data)
        except ConnectionClosed as exc:
            self._pending.pop(message_id, None)
            raise ConnectionFailure(f"Server connection closed: {exc}") from exc

        return await waiter

    def on_message(self, frame: str | bytes) -> None:
        """Route one inbound frame to the waiter registered for its id.

        Raises:
            UnsupportedEventError: For messages without an id (events).
            ProtocolError: For frames that are not JSON or carry a non-integer id.
        """
        try:
            msg = json.loads(frame)
        except ValueError as exc:
            raise ProtocolError({"malformedFrame": _frame_text(frame)}) from exc

        message_id = msg.get("id") if isinstance(msg, dict) else None
        if message_id is None:
            raise UnsupportedEventError(f"Events are not supported: {frame!r}")
        if isinstance(message_id, bool) or not isinstance(message_id, int):
            raise ProtocolError(msg)

        waiter = self._pending.pop(message_id, None)
        if waiter is None:
            self._console.print(
                f"[yellow]Warning: response for unknown message id {message_id}[/yellow]"
            )
            return
        if waiter.done():
            return

        if "result" in msg:
            waiter.set_result(msg["result"])
        else:
            waiter.set_exception(ProtocolError(msg))

    async def _read_loop(self) -> None:
        """Feed inbound frames to on_message until the connection ends."""
        try:
            while True:
                frame = await self._socket.recv()
                self.on_message(frame)
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as exc:
            if not self._closed:
                self._console.print("Server connection closed.")
            self._reject_pending(ConnectionFailure(f"Server connection closed: {exc}"))
        except Exception as exc:
            self._console.print(f"[red]Protocol error: {exc}[/red]")
            self._reject_pending(exc)
            raise

    def _reject_pending(self, exc: Exception) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for waiter in pending:
            if not waiter.done():
                waiter.set_exception(exc)
