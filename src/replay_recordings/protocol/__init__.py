"""Websocket protocol client for the recording service."""

from replay_recordings.protocol.client import ProtocolClient

__all__ = ["ProtocolClient"]
