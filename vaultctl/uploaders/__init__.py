"""Upload building blocks for vaultctl.

- Chunker: fixed-size byte range views over a local file
- Staging and file collection helpers

These are internal implementation details. Use `Batcher` from
`vaultctl.services.batcher` as the public API.
"""

from vaultctl.uploaders.chunker import Chunker, ChunkReader
from vaultctl.uploaders.common import collect_files, guess_content_type, stage_stream
from vaultctl.uploaders.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_MAX_PARALLEL_CHUNKS,
    DEFAULT_MAX_PARALLEL_UPLOADS,
    DEFAULT_POLL_INTERVAL,
)

__all__ = [
    # Constants
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_MAX_PARALLEL_CHUNKS",
    "DEFAULT_MAX_PARALLEL_UPLOADS",
    "DEFAULT_POLL_INTERVAL",
    # Chunking
    "Chunker",
    "ChunkReader",
    # Common utilities
    "collect_files",
    "guess_content_type",
    "stage_stream",
]
