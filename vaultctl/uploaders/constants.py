"""Shared constants for uploader modules.

These defaults are conservative for broad compatibility. The biggest gain in
upload throughput comes from the chunk size; raising the worker counts helps
on hosts with spare cores and bandwidth (e.g. --max-parallel-chunks 4
--max-parallel-uploads 4).
"""

# =============================================================================
# Chunked Upload Defaults
# =============================================================================

# Bytes per chunk (16 MiB)
DEFAULT_CHUNK_SIZE = 1 << 24

# Parallel chunk uploads per file
DEFAULT_MAX_PARALLEL_CHUNKS = 2

# Parallel file uploads per deposit
DEFAULT_MAX_PARALLEL_UPLOADS = 2

# Seconds between deposit status polls while finalizing
DEFAULT_POLL_INTERVAL = 5.0

# Content type sent when detection is skipped or inconclusive
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Prefix for staged temporary files
STAGING_PREFIX = "vaultctl-staged-"

# Copy buffer for staging streamed input
STAGING_BUFFER_SIZE = 1 << 20
