"""Progress models for tracking deposit status.

Provides dataclasses for upload progress events and deposit summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .deposit import DepositStatus


class OperationPhase(Enum):
    """Operation phases for progress tracking."""

    PREPARING = "preparing"
    REGISTERING = "registering"
    UPLOADING = "uploading"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass
class Progress:
    """Base progress information."""

    phase: OperationPhase
    current: int = 0
    total: int = 0
    message: str = ""
    success: bool = True
    errors: List[str] = field(default_factory=list)


@dataclass
class UploadProgress(Progress):
    """Deposit upload progress.

    ``current``/``total`` count files; byte counters track chunk data.
    """

    deposit_id: int = 0
    files_uploading: int = 0
    files_failed: int = 0
    bytes_sent: int = 0
    total_bytes: int = 0
    file_path: str = ""
    status: Optional[DepositStatus] = None

    @property
    def files_queued(self) -> int:
        """Files not yet picked up by an upload worker."""
        return max(self.total - self.current - self.files_uploading, 0)


@dataclass
class OperationResult:
    """Generic operation result."""

    success: bool
    total: int
    succeeded: int
    failed: int
    duration: float
    errors: List[str] = field(default_factory=list)


@dataclass
class DepositSummary(OperationResult):
    """Deposit upload summary."""

    deposit_id: int = 0
    resumed: bool = False
    skipped: int = 0
    cancelled: int = 0
    chunks_uploaded: int = 0
    bytes_sent: int = 0
    status: Optional[DepositStatus] = None

    @property
    def total_size_mb(self) -> float:
        """Return megabytes sent in this run."""
        return self.bytes_sent / (1024 * 1024)

    @property
    def throughput_mbps(self) -> float:
        """Calculate upload throughput in MB/s."""
        if self.duration == 0:
            return 0.0
        return self.total_size_mb / self.duration

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "deposit_id": self.deposit_id,
            "success": self.success,
            "resumed": self.resumed,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "cancelled": self.cancelled,
            "chunks_uploaded": self.chunks_uploaded,
            "size_mb": round(self.total_size_mb, 2),
            "duration": round(self.duration, 2),
            "throughput_mbps": round(self.throughput_mbps, 2),
            "status": self.status.to_counts() if self.status else None,
            "errors": self.errors,
        }
