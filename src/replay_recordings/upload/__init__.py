"""Chunked upload of recordings to the recording service."""

from replay_recordings.upload.pipeline import (
    CHUNK_GRANULARITY,
    UploadPipeline,
    split_chunks,
    upload_skip_reason,
)

__all__ = [
    "CHUNK_GRANULARITY",
    "UploadPipeline",
    "split_chunks",
    "upload_skip_reason",
]
