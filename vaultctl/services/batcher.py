"""Batched deposit upload.

Files written to Vault are not uploaded right away. They are queued as
BatchItems and uploaded together as one deposit when the Batcher is shut
down:

1. Register a new deposit, or resume an existing one and skip the files the
   server already has
2. Upload files in parallel (``max_parallel_uploads`` workers)
3. Upload the chunks of each file in parallel (``max_parallel_chunks``
   workers per file)
4. Poll the deposit status until the server has resolved every file

A failed file does not stop the others. The deposit id is kept on failure
and on cancellation, so a later run can resume it.
"""

from __future__ import annotations

import hashlib
import io
import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, NoReturn, Protocol

from vaultctl.core.exceptions import (
    DepositCancelledError,
    DepositFinalizationError,
    DepositRegistrationError,
    DepositUploadError,
    OperationError,
)
from vaultctl.core.logging import LogContext, get_audit_logger
from vaultctl.core.validation import validate_chunk_size, validate_deposit_id, validate_workers
from vaultctl.models.deposit import DepositFile, DepositStatus
from vaultctl.models.progress import DepositSummary, OperationPhase, UploadProgress
from vaultctl.uploaders.chunker import Chunker
from vaultctl.uploaders.common import guess_content_type
from vaultctl.uploaders.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_MAX_PARALLEL_CHUNKS,
    DEFAULT_MAX_PARALLEL_UPLOADS,
    DEFAULT_POLL_INTERVAL,
)

if TYPE_CHECKING:
    from vaultctl.core.config import DepositOptions

logger = logging.getLogger(__name__)


# =============================================================================
# Remote API
# =============================================================================


class DepositAPI(Protocol):
    """Remote operations the Batcher needs (see DepositService)."""

    def register_deposit(self, root: str, items: Sequence[BatchItem]) -> int: ...

    def resume_deposit(self, deposit_id: int) -> list[DepositFile]: ...

    def upload_chunk(
        self,
        deposit_id: int,
        item: BatchItem,
        index: int,
        stream: BinaryIO,
        length: int,
        *,
        total_chunks: int,
        chunk_size: int,
    ) -> None: ...

    def deposit_status(self, deposit_id: int) -> DepositStatus: ...


# =============================================================================
# Data Classes
# =============================================================================


class DepositState(Enum):
    """Lifecycle of the deposit driven by a Batcher."""

    IDLE = "idle"
    REGISTERING = "registering"
    UPLOADING = "uploading"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (DepositState.COMPLETED, DepositState.FAILED, DepositState.CANCELLED)


@dataclass
class BatchItem:
    """A staged local file queued for upload."""

    filename: Path
    remote: str
    size: int
    skip_content_type_detection: bool = False
    delete_after_transfer: bool = False

    @classmethod
    def from_path(
        cls,
        filename: str | Path,
        remote: str,
        *,
        skip_content_type_detection: bool = False,
        delete_after_transfer: bool = False,
    ) -> BatchItem:
        """Create an item, reading the size from the file."""
        path = Path(filename)
        return cls(
            filename=path,
            remote=remote.strip("/"),
            size=path.stat().st_size,
            skip_content_type_detection=skip_content_type_detection,
            delete_after_transfer=delete_after_transfer,
        )

    @property
    def content_type(self) -> str:
        """MIME type sent with the file."""
        if self.skip_content_type_detection:
            return DEFAULT_CONTENT_TYPE
        return guess_content_type(self.remote)

    @property
    def flow_identifier(self) -> str:
        """Identifier the server uses to reassemble chunks of this file.

        Unique per remote path within a deposit.
        """
        digest = hashlib.sha1(self.remote.encode("utf-8")).hexdigest()
        return f"{self.size}-{digest}"

    def cleanup(self) -> None:
        """Remove the staged file if the batch owns it."""
        if not self.delete_after_transfer:
            return
        try:
            self.filename.unlink(missing_ok=True)
            logger.debug("Removed staged file %s", self.filename)
        except OSError as e:
            logger.warning("Could not remove staged file %s: %s", self.filename, e)


class ItemOutcome(Enum):
    """Terminal outcome of one item in a run."""

    UPLOADED = "uploaded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class _ItemResult:
    """Result of uploading a single item (internal)."""

    item: BatchItem
    outcome: ItemOutcome
    duration: float = 0.0
    chunks: int = 0
    error: str = ""


# =============================================================================
# Batcher
# =============================================================================


class Batcher:
    """Collects files and uploads them as one deposit on shutdown.

    Args:
        api: Remote deposit operations.
        root: Collection or folder path the files are deposited into.
        chunk_size: Upload chunk size in bytes.
        max_parallel_chunks: Concurrent chunk uploads per file.
        max_parallel_uploads: Concurrent file uploads.
        resume_deposit_id: Existing deposit to continue; 0 registers a new one.
        poll_interval: Seconds between status polls while finalizing.
        progress_callback: Optional callback for progress updates.
    """

    def __init__(
        self,
        api: DepositAPI,
        root: str,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_parallel_chunks: int = DEFAULT_MAX_PARALLEL_CHUNKS,
        max_parallel_uploads: int = DEFAULT_MAX_PARALLEL_UPLOADS,
        resume_deposit_id: int = 0,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        progress_callback: Callable[[UploadProgress], None] | None = None,
    ) -> None:
        self.api = api
        self.root = root
        self.chunk_size = validate_chunk_size(chunk_size)
        self.max_parallel_chunks = validate_workers(max_parallel_chunks, "max_parallel_chunks")
        self.max_parallel_uploads = validate_workers(max_parallel_uploads, "max_parallel_uploads")
        self.resume_deposit_id = validate_deposit_id(resume_deposit_id)
        self.poll_interval = max(0.0, poll_interval)
        self.progress_callback = progress_callback
        self.deposit_id: int | None = None

        self._lock = threading.Lock()
        self._items: list[BatchItem] = []
        self._state = DepositState.IDLE
        self._audit = get_audit_logger()

        # Progress counters, guarded by _lock
        self._files_total = 0
        self._files_done = 0
        self._files_failed = 0
        self._files_uploading = 0
        self._bytes_sent = 0
        self._total_bytes = 0
        self._chunks_uploaded = 0

    @classmethod
    def from_options(
        cls,
        api: DepositAPI,
        root: str,
        options: DepositOptions,
        *,
        progress_callback: Callable[[UploadProgress], None] | None = None,
    ) -> Batcher:
        """Build a Batcher from configured deposit options."""
        return cls(
            api,
            root,
            chunk_size=options.chunk_size,
            max_parallel_chunks=options.max_parallel_chunks,
            max_parallel_uploads=options.max_parallel_uploads,
            resume_deposit_id=options.resume_deposit_id,
            poll_interval=options.poll_interval,
            progress_callback=None if options.suppress_progress else progress_callback,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def state(self) -> DepositState:
        with self._lock:
            return self._state

    def _set_state(self, state: DepositState) -> None:
        with self._lock:
            self._state = state
        logger.debug("Deposit %s -> %s", self.deposit_id, state.value)

    # =========================================================================
    # Queueing
    # =========================================================================

    def add(self, item: BatchItem) -> None:
        """Queue an item for the deposit.

        Raises:
            OperationError: If the batcher has already been shut down.
        """
        with self._lock:
            if self._state is not DepositState.IDLE:
                raise OperationError(
                    "deposit",
                    f"Cannot add {item.remote}: batcher is {self._state.value}",
                )
            self._items.append(item)
        logger.debug("Queued %s (%d bytes) as %s", item.filename, item.size, item.remote)

    # =========================================================================
    # Shutdown
    # =========================================================================

    def shutdown(self, cancel_event: threading.Event | None = None) -> DepositSummary:
        """Upload all queued items as one deposit.

        Blocks until the server has resolved the deposit or ``cancel_event``
        is set.

        Returns:
            DepositSummary of the run.

        Raises:
            DepositRegistrationError: If the deposit could not be registered
                or resumed.
            DepositUploadError: If one or more files failed; the others are
                durable in the deposit.
            DepositCancelledError: If cancelled before completion.
            DepositFinalizationError: If the deposit status could not be read
                after the uploads finished.
            OperationError: If called more than once.
        """
        cancel = cancel_event or threading.Event()
        with self._lock:
            if self._state is not DepositState.IDLE:
                raise OperationError("deposit", f"Batcher is already {self._state.value}")
            items = list(self._items)
            self._state = DepositState.REGISTERING

        try:
            if not items:
                logger.info("No files queued, nothing to deposit")
                self._set_state(DepositState.COMPLETED)
                return DepositSummary(success=True, total=0, succeeded=0, failed=0, duration=0.0)

            with LogContext("deposit", logger, root=self.root, files=len(items)):
                return self._run(items, cancel)
        except BaseException:
            if not self.state.is_terminal:
                self._set_state(DepositState.FAILED)
            raise
        finally:
            for item in items:
                item.cleanup()

    def _run(self, items: list[BatchItem], cancel: threading.Event) -> DepositSummary:
        start = time.time()

        if cancel.is_set():
            self._set_state(DepositState.CANCELLED)
            raise DepositCancelledError(self.resume_deposit_id or None)

        self._report(OperationPhase.REGISTERING, "Registering deposit...")
        deposit_id, registered, acknowledged = self._open_deposit(items)

        # Files registered earlier that this run neither has nor queues can never arrive
        absent = sorted(registered - acknowledged - {item.remote for item in items})
        if absent:
            logger.warning(
                "%d file(s) of deposit %s are not queued and cannot be completed: %s",
                len(absent),
                deposit_id,
                ", ".join(absent),
            )

        pending = [item for item in items if item.remote not in acknowledged]
        skipped = len(items) - len(pending)
        if skipped:
            logger.info("Skipping %d file(s) already uploaded to deposit %s", skipped, deposit_id)
            for item in items:
                if item.remote in acknowledged:
                    item.cleanup()

        with self._lock:
            self._files_total = len(pending)
            self._total_bytes = sum(item.size for item in pending)

        self._set_state(DepositState.UPLOADING)
        self._report(OperationPhase.UPLOADING, f"Uploading {len(pending)} file(s)...")
        results = self._upload_items(deposit_id, pending, cancel)

        failures = {
            r.item.remote: r.error for r in results if r.outcome is ItemOutcome.FAILED
        }
        for remote in absent:
            failures[remote] = "registered in the deposit but not queued for upload"
        cancelled = sum(1 for r in results if r.outcome is ItemOutcome.CANCELLED)
        succeeded = sum(1 for r in results if r.outcome is ItemOutcome.UPLOADED)

        with self._lock:
            chunks_uploaded = self._chunks_uploaded
            bytes_sent = self._bytes_sent

        summary = DepositSummary(
            success=False,
            total=len(items) + len(absent),
            succeeded=succeeded,
            failed=len(failures),
            duration=time.time() - start,
            errors=[f"{remote}: {reason}" for remote, reason in failures.items()],
            deposit_id=deposit_id,
            resumed=bool(self.resume_deposit_id),
            skipped=skipped,
            cancelled=cancelled,
            chunks_uploaded=chunks_uploaded,
            bytes_sent=bytes_sent,
        )

        if cancel.is_set():
            self._cancelled(summary)

        self._set_state(DepositState.FINALIZING)
        self._report(OperationPhase.FINALIZING, "Waiting for the deposit to be assembled...")
        missing = sum(1 for remote in failures if remote in registered)
        try:
            status = self._await_deposit(deposit_id, missing, cancel)
        except Exception as e:
            summary.duration = time.time() - start
            self._set_state(DepositState.FAILED)
            self._report(OperationPhase.ERROR, f"Deposit status unavailable: {e}", success=False)
            self._audit_outcome(summary, success=False)
            raise DepositFinalizationError(deposit_id, str(e), summary=summary) from e
        summary.duration = time.time() - start
        if status is None:
            self._cancelled(summary)
        summary.status = status

        if failures or status.errored:
            self._set_state(DepositState.FAILED)
            self._report(
                OperationPhase.ERROR,
                f"Deposit {deposit_id} completed with {len(failures) + status.errored} failures",
                success=False,
                errors=summary.errors,
                status=status,
            )
            self._audit_outcome(summary, success=False)
            raise DepositUploadError(
                deposit_id,
                succeeded + skipped,
                failures,
                remote_errored=status.errored,
                summary=summary,
            )

        summary.success = True
        self._set_state(DepositState.COMPLETED)
        self._report(OperationPhase.COMPLETE, f"Deposit {deposit_id} complete", status=status)
        self._audit_outcome(summary, success=True)
        return summary

    def _cancelled(self, summary: DepositSummary) -> NoReturn:
        self._set_state(DepositState.CANCELLED)
        self._report(OperationPhase.CANCELLED, f"Deposit {summary.deposit_id} cancelled", success=False)
        self._audit_outcome(summary, success=False)
        raise DepositCancelledError(summary.deposit_id, summary=summary)

    def _open_deposit(self, items: list[BatchItem]) -> tuple[int, set[str], set[str]]:
        """Register or resume the deposit.

        Returns:
            Tuple of (deposit_id, remote paths registered in the deposit,
            remote paths already uploaded).
        """
        try:
            if self.resume_deposit_id:
                deposit_id = self.resume_deposit_id
                files = self.api.resume_deposit(deposit_id)
                registered = {f.relative_path for f in files}
                acknowledged = {f.relative_path for f in files if f.state.is_acknowledged}
            else:
                deposit_id = self.api.register_deposit(self.root, items)
                registered = {item.remote for item in items}
                acknowledged = set()
        except Exception as e:
            self._set_state(DepositState.FAILED)
            self._report(OperationPhase.ERROR, f"Deposit could not start: {e}", success=False)
            raise DepositRegistrationError(str(e), self.resume_deposit_id or None) from e

        with self._lock:
            self.deposit_id = deposit_id
        return deposit_id, registered, acknowledged

    # =========================================================================
    # Upload
    # =========================================================================

    def _upload_items(
        self,
        deposit_id: int,
        items: list[BatchItem],
        cancel: threading.Event,
    ) -> list[_ItemResult]:
        """Upload items with the outer (per file) worker pool."""
        if not items:
            return []

        results: list[_ItemResult] = []
        workers = min(self.max_parallel_uploads, len(items))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vault-file") as executor:
            futures: dict[Future[_ItemResult], BatchItem] = {
                executor.submit(self._upload_item, deposit_id, item, cancel): item
                for item in items
            }
            for done in as_completed(futures):
                result = done.result()
                results.append(result)
                if result.outcome is ItemOutcome.FAILED:
                    logger.warning("Upload of %s failed: %s", result.item.remote, result.error)
                else:
                    logger.debug(
                        "%s %s (%d chunks, %.2fs)",
                        result.outcome.value.capitalize(),
                        result.item.remote,
                        result.chunks,
                        result.duration,
                    )

        return results

    def _upload_item(
        self,
        deposit_id: int,
        item: BatchItem,
        cancel: threading.Event,
    ) -> _ItemResult:
        """Upload all chunks of one item with the inner (per chunk) pool."""
        if cancel.is_set():
            return _ItemResult(item, ItemOutcome.CANCELLED)

        start_time = time.time()
        with self._lock:
            self._files_uploading += 1

        try:
            result = self._upload_chunks(deposit_id, item, cancel)
        except Exception as e:
            result = _ItemResult(item, ItemOutcome.FAILED, error=str(e))
        finally:
            item.cleanup()

        result.duration = time.time() - start_time
        with self._lock:
            self._files_uploading -= 1
            if result.outcome is ItemOutcome.UPLOADED:
                self._files_done += 1
            elif result.outcome is ItemOutcome.FAILED:
                self._files_failed += 1

        self._report(
            OperationPhase.UPLOADING,
            f"{result.outcome.value.capitalize()} {item.remote}",
            file_path=item.remote,
            success=result.outcome is not ItemOutcome.FAILED,
        )
        return result

    def _upload_chunks(
        self,
        deposit_id: int,
        item: BatchItem,
        cancel: threading.Event,
    ) -> _ItemResult:
        try:
            chunker = Chunker(item.filename, self.chunk_size)
        except OSError as e:
            return _ItemResult(item, ItemOutcome.FAILED, error=f"Cannot read {item.filename}: {e}")

        # Empty files still need one (empty) chunk so the server records them
        total_chunks = max(chunker.num_chunks, 1)
        abort = threading.Event()
        errors: dict[int, str] = {}
        sent = 0

        workers = min(self.max_parallel_chunks, total_chunks)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vault-chunk") as executor:
            futures: dict[Future[bool], int] = {
                executor.submit(
                    self._upload_chunk,
                    deposit_id,
                    item,
                    chunker,
                    index,
                    total_chunks,
                    cancel,
                    abort,
                ): index
                for index in range(total_chunks)
            }
            for done in as_completed(futures):
                index = futures[done]
                try:
                    if done.result():
                        sent += 1
                except Exception as e:
                    abort.set()
                    errors[index] = str(e)

        if errors:
            first = min(errors)
            error = f"chunk {first + 1}/{total_chunks}: {errors[first]}"
            if len(errors) > 1:
                error = f"{error} (and {len(errors) - 1} more failed chunks)"
            return _ItemResult(item, ItemOutcome.FAILED, chunks=sent, error=error)
        if sent < total_chunks:
            return _ItemResult(item, ItemOutcome.CANCELLED, chunks=sent)
        return _ItemResult(item, ItemOutcome.UPLOADED, chunks=sent)

    def _upload_chunk(
        self,
        deposit_id: int,
        item: BatchItem,
        chunker: Chunker,
        index: int,
        total_chunks: int,
        cancel: threading.Event,
        abort: threading.Event,
    ) -> bool:
        """Upload one chunk.

        Returns:
            False if the chunk was not sent because of cancellation or a
            failed sibling chunk.
        """
        if cancel.is_set() or abort.is_set():
            return False

        if chunker.num_chunks == 0:
            length = 0
            stream: BinaryIO = io.BytesIO(b"")
        else:
            length = chunker.chunk_length(index)
            stream = chunker.chunk_reader(index)  # type: ignore[assignment]

        try:
            with stream:
                self.api.upload_chunk(
                    deposit_id,
                    item,
                    index,
                    stream,
                    length,
                    total_chunks=total_chunks,
                    chunk_size=self.chunk_size,
                )
        except Exception:
            abort.set()
            raise

        with self._lock:
            self._chunks_uploaded += 1
            self._bytes_sent += length
        self._report(OperationPhase.UPLOADING, f"Uploaded {item.remote}", file_path=item.remote)
        return True

    # =========================================================================
    # Finalization
    # =========================================================================

    def _await_deposit(
        self,
        deposit_id: int,
        missing: int,
        cancel: threading.Event,
    ) -> DepositStatus | None:
        """Poll deposit status until every file has been resolved.

        Args:
            deposit_id: Deposit to poll.
            missing: Registered files that will not arrive in this run.
            cancel: Cancellation signal.

        Returns:
            Final status, or None if cancelled while waiting.
        """
        while True:
            if cancel.is_set():
                return None

            status = self.api.deposit_status(deposit_id)
            self._report(
                OperationPhase.FINALIZING,
                f"{status.resolved}/{status.total} files resolved",
                status=status,
            )
            logger.debug("Deposit %s status: %s", deposit_id, status.to_counts())

            if status.is_resolved(missing):
                return status

            if cancel.wait(self.poll_interval):
                return None

    # =========================================================================
    # Reporting
    # =========================================================================

    def _report(self, phase: OperationPhase, message: str = "", **kwargs: object) -> None:
        """Invoke the progress callback if provided."""
        if self.progress_callback is None:
            return

        with self._lock:
            progress = UploadProgress(
                phase=phase,
                current=self._files_done + self._files_failed,
                total=self._files_total,
                message=message,
                deposit_id=self.deposit_id or 0,
                files_uploading=self._files_uploading,
                files_failed=self._files_failed,
                bytes_sent=self._bytes_sent,
                total_bytes=self._total_bytes,
                **kwargs,  # type: ignore[arg-type]
            )

        try:
            self.progress_callback(progress)
        except Exception:
            logger.warning("Progress callback failed", exc_info=True)

    def _audit_outcome(self, summary: DepositSummary, *, success: bool) -> None:
        self._audit.log_operation(
            "deposit",
            deposit_id=summary.deposit_id,
            collection=self.root,
            success=success,
            details={
                "succeeded": summary.succeeded,
                "failed": summary.failed,
                "skipped": summary.skipped,
                "cancelled": summary.cancelled,
                "bytes_sent": summary.bytes_sent,
            },
        )
