"""Input validation helpers for vaultctl."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from vaultctl.core.exceptions import (
    InvalidChunkSizeError,
    InvalidIdentifierError,
    InvalidURLError,
    PathValidationError,
    ValidationError,
)


def validate_server_url(url: str) -> str:
    """Validate a server URL and strip trailing slashes.

    Raises:
        InvalidURLError: If the URL is empty or not http(s).
    """
    if not url or not url.strip():
        raise InvalidURLError(url, "URL is empty")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.netloc:
        raise InvalidURLError(url, "missing host")

    return url.rstrip("/")


def validate_chunk_size(chunk_size: Any) -> int:
    """Validate an upload chunk size in bytes."""
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise InvalidChunkSizeError(chunk_size)
    return chunk_size


def validate_workers(workers: Any, field: str = "workers") -> int:
    """Validate a worker pool size (1-64)."""
    if isinstance(workers, bool) or not isinstance(workers, int):
        raise ValidationError(f"{field} must be an integer", field=field, value=workers)
    if workers < 1 or workers > 64:
        raise ValidationError(f"{field} must be between 1 and 64", field=field, value=workers)
    return workers


def validate_deposit_id(deposit_id: Any) -> int:
    """Validate a deposit id; 0 means "no deposit"."""
    try:
        value = int(deposit_id)
    except (TypeError, ValueError) as e:
        raise InvalidIdentifierError("deposit id", deposit_id, "must be numeric") from e
    if value < 0:
        raise InvalidIdentifierError("deposit id", deposit_id, "must not be negative")
    return value


def is_valid_remote_path(path: str) -> bool:
    """Check whether a path is acceptable as a Vault tree path.

    Segments must be non-empty, must not be ``.`` or ``..`` and must not
    contain control characters.
    """
    if not path or not path.strip("/"):
        return False
    for segment in path.strip("/").split("/"):
        if segment in ("", ".", ".."):
            return False
        if segment != segment.strip():
            return False
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in segment):
            return False
    return True


def validate_remote_path(path: str) -> str:
    """Validate a remote path and normalize it without surrounding slashes."""
    if not is_valid_remote_path(path):
        raise PathValidationError(path, "not a valid vault path")
    return path.strip("/")
