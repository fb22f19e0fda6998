"""Common utilities for uploader modules."""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from vaultctl.uploaders.constants import (
    DEFAULT_CONTENT_TYPE,
    STAGING_BUFFER_SIZE,
    STAGING_PREFIX,
)

logger = logging.getLogger(__name__)


def collect_files(root: Path) -> list[Path]:
    """Recursively collect regular files under a root directory.

    Hidden files and broken symlinks are skipped.

    Args:
        root: Root directory to search.

    Returns:
        Sorted list of file paths.

    Raises:
        ValueError: If root is not a directory.
    """
    if not root.exists() or not root.is_dir():
        raise ValueError(f"Not a directory: {root}")

    files: list[Path] = []
    for path in root.rglob("*"):
        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue

        if path.is_symlink():
            try:
                if not path.resolve().exists():
                    continue
            except (OSError, ValueError):
                continue

        if path.is_file():
            files.append(path)

    return sorted(files)


def guess_content_type(name: str) -> str:
    """Guess a MIME type from a file name."""
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def stage_stream(stream: BinaryIO, *, suffix: str = "") -> Path:
    """Copy a binary stream into a named temporary file.

    The caller owns the returned file and must remove it.

    Args:
        stream: Source stream (read until EOF).
        suffix: Optional suffix for the temporary file name.

    Returns:
        Path of the staged file.
    """
    fd, name = tempfile.mkstemp(prefix=STAGING_PREFIX, suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(stream, out, STAGING_BUFFER_SIZE)
    except BaseException:
        Path(name).unlink(missing_ok=True)
        raise
    logger.debug("Staged stream to %s", name)
    return Path(name)
