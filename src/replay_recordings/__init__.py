"""Manage local Replay recordings and upload them to the recording service."""

__version__ = "0.1.0"
