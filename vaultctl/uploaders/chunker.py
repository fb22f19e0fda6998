"""Fixed-size byte range views over a local file.

A Chunker splits a file into chunks of ``chunk_size`` bytes (the last one may
be shorter). Each chunk is read through its own ChunkReader, which opens a
private file handle, so readers for different chunks can be consumed from
different threads at the same time.
"""

from __future__ import annotations

import io
import os
from pathlib import Path

from vaultctl.core.exceptions import InvalidChunkSizeError


class ChunkReader(io.RawIOBase):
    """Read-only, seekable stream over ``length`` bytes starting at ``offset``."""

    def __init__(self, path: str | os.PathLike[str], offset: int, length: int) -> None:
        super().__init__()
        self._file = open(path, "rb")
        self._offset = offset
        self._length = length
        self._pos = 0

    def __len__(self) -> int:
        return self._length

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._pos

    def seek(self, pos: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            new_pos = pos
        elif whence == io.SEEK_CUR:
            new_pos = self._pos + pos
        elif whence == io.SEEK_END:
            new_pos = self._length + pos
        else:
            raise ValueError(f"invalid whence: {whence}")
        if new_pos < 0:
            raise ValueError(f"negative seek position {new_pos}")
        self._pos = new_pos
        return self._pos

    def readinto(self, buffer) -> int:  # type: ignore[override]
        remaining = self._length - self._pos
        if remaining <= 0:
            return 0
        view = memoryview(buffer).cast("B")
        n = min(len(view), remaining)
        self._file.seek(self._offset + self._pos)
        data = self._file.read(n)
        view[: len(data)] = data
        self._pos += len(data)
        return len(data)

    def close(self) -> None:
        if not self.closed:
            self._file.close()
        super().close()


class Chunker:
    """Random access to the fixed-size chunks of one file.

    Args:
        path: File to split.
        chunk_size: Chunk size in bytes, must be > 0.

    Raises:
        InvalidChunkSizeError: If chunk_size <= 0.
        OSError: If the file cannot be stat'd.
    """

    def __init__(self, path: str | os.PathLike[str], chunk_size: int) -> None:
        if chunk_size <= 0:
            raise InvalidChunkSizeError(chunk_size)
        self.path = Path(path)
        self.chunk_size = chunk_size
        self.file_size = self.path.stat().st_size

    def __repr__(self) -> str:
        return (
            f"Chunker(path={str(self.path)!r}, chunk_size={self.chunk_size}, "
            f"file_size={self.file_size})"
        )

    @property
    def num_chunks(self) -> int:
        """Number of chunks; 0 for an empty file."""
        return -(-self.file_size // self.chunk_size)

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= self.num_chunks:
            raise IndexError(f"chunk index {index} out of range [0, {self.num_chunks})")

    def chunk_length(self, index: int) -> int:
        """Length in bytes of the chunk at ``index``."""
        self._check_index(index)
        if index < self.num_chunks - 1:
            return self.chunk_size
        return self.file_size - (self.num_chunks - 1) * self.chunk_size

    def chunk_reader(self, index: int) -> ChunkReader:
        """Open a fresh stream over the bytes of chunk ``index``."""
        self._check_index(index)
        return ChunkReader(self.path, index * self.chunk_size, self.chunk_length(index))
