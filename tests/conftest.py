"""Pytest configuration and fixtures for vaultctl tests."""

from __future__ import annotations

import tempfile
import threading
import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Generator, Sequence

import pytest

from vaultctl.core.exceptions import UploadError
from vaultctl.models.deposit import DepositFile, DepositStatus, FileState


class FakeDepositAPI:
    """In-memory deposit API that reassembles uploaded chunks by index."""

    def __init__(
        self,
        *,
        deposit_id: int = 42,
        acknowledged: Sequence[str] = (),
        pending: Sequence[str] = (),
        fail_paths: Sequence[str] = (),
        register_error: Exception | None = None,
        statuses: Sequence[DepositStatus] = (),
        delay: float = 0.0,
    ) -> None:
        self.deposit_id = deposit_id
        self.acknowledged = set(acknowledged)
        self.pending = set(pending)
        self.fail_paths = set(fail_paths)
        self.register_error = register_error
        self.statuses = list(statuses)
        self.delay = delay
        self.before_chunk: Callable[[Any, int], None] | None = None

        self.lock = threading.Lock()
        self.registered: list[tuple[str, list[str]]] = []
        self.resumed: list[int] = []
        self.chunks: dict[str, dict[int, bytes]] = defaultdict(dict)
        self.total_chunks: dict[str, int] = {}
        self.chunk_calls: list[tuple[str, int]] = []
        self.status_calls = 0
        self.deposit_total = len(self.acknowledged | self.pending)
        self.max_active = 0
        self.max_active_files = 0
        self.max_active_per_file: dict[str, int] = defaultdict(int)
        self._active = 0
        self._active_per_file: dict[str, int] = defaultdict(int)

    def register_deposit(self, root: str, items: Sequence[Any]) -> int:
        if self.register_error is not None:
            raise self.register_error
        self.registered.append((root, [item.remote for item in items]))
        self.deposit_total = len(items)
        return self.deposit_id

    def resume_deposit(self, deposit_id: int) -> list[DepositFile]:
        self.resumed.append(deposit_id)
        files = [
            DepositFile(
                relative_path=remote,
                state=FileState.UPLOADED if remote in self.acknowledged else FileState.REGISTERED,
            )
            for remote in sorted(self.acknowledged | self.pending)
        ]
        self.deposit_total = len(files)
        return files

    def upload_chunk(
        self,
        deposit_id: int,
        item: Any,
        index: int,
        stream: Any,
        length: int,
        *,
        total_chunks: int,
        chunk_size: int,
    ) -> None:
        with self.lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
            self._active_per_file[item.remote] += 1
            self.max_active_per_file[item.remote] = max(
                self.max_active_per_file[item.remote], self._active_per_file[item.remote]
            )
            active_files = sum(1 for n in self._active_per_file.values() if n)
            self.max_active_files = max(self.max_active_files, active_files)
            self.chunk_calls.append((item.remote, index))
        try:
            if self.before_chunk is not None:
                self.before_chunk(item, index)
            if item.remote in self.fail_paths:
                raise UploadError("server rejected chunk", file_path=str(item.filename))
            data = stream.read(length)
            assert len(data) == length
            if self.delay:
                time.sleep(self.delay)
            with self.lock:
                self.chunks[item.remote][index] = data
                self.total_chunks[item.remote] = total_chunks
        finally:
            with self.lock:
                self._active -= 1
                self._active_per_file[item.remote] -= 1

    def deposit_status(self, deposit_id: int) -> DepositStatus:
        with self.lock:
            self.status_calls += 1
            if self.statuses:
                return self.statuses.pop(0)
            done = self.acknowledged | {r for r in self.chunks if self.is_complete(r)}
            return DepositStatus(assembled=len(done), total=self.deposit_total)

    def is_complete(self, remote: str) -> bool:
        total = self.total_chunks.get(remote)
        return total is not None and len(self.chunks[remote]) == total

    def assembled(self, remote: str) -> bytes:
        parts = self.chunks[remote]
        return b"".join(parts[i] for i in sorted(parts))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_api() -> FakeDepositAPI:
    """In-memory deposit API."""
    return FakeDepositAPI()


@pytest.fixture
def make_api() -> type[FakeDepositAPI]:
    """Factory for in-memory deposit APIs with custom behavior."""
    return FakeDepositAPI


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: https://vault-test.example.org
    verify_ssl: false
    timeout: 30
    collection: /Org/Test Collection
    deposit:
      chunk_size: 1048576
      max_parallel_chunks: 4

  production:
    url: https://vault.example.org
    verify_ssl: true
    timeout: 60
"""
