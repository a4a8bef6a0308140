"""Durable storage for the recordings event log."""

from replay_recordings.storage.event_log import EventLog, parse_event

__all__ = ["EventLog", "parse_event"]
