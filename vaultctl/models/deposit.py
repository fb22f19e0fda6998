"""Deposit and tree node models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from .base import BaseModel


class NodeType(str, Enum):
    """Kinds of nodes in the Vault tree."""

    ORGANIZATION = "ORGANIZATION"
    COLLECTION = "COLLECTION"
    FOLDER = "FOLDER"
    FILE = "FILE"

    @property
    def is_container(self) -> bool:
        """Whether files can be deposited below a node of this kind."""
        return self in (NodeType.COLLECTION, NodeType.FOLDER)


class TreeNode(BaseModel):
    """A node in the Vault tree (collection, folder or file)."""

    id: int
    name: str
    node_type: NodeType
    path: str | None = None
    parent: int | None = None
    size: int | None = None


class FileState(str, Enum):
    """Server-side state of one file within a deposit."""

    REGISTERED = "REGISTERED"
    UPLOADING = "UPLOADING"
    UPLOADED = "UPLOADED"
    ASSEMBLED = "ASSEMBLED"
    IN_STORAGE = "IN_STORAGE"
    ERRORED = "ERRORED"

    @property
    def is_acknowledged(self) -> bool:
        """All chunks of the file have been received by the server."""
        return self in (FileState.UPLOADED, FileState.ASSEMBLED, FileState.IN_STORAGE)


class DepositFile(BaseModel):
    """A file registered in a deposit."""

    relative_path: str
    flow_identifier: str | None = None
    state: FileState = FileState.REGISTERED


class DepositStatus(BaseModel):
    """Aggregate file counts of a deposit as reported by the server.

    Counts are disjoint: a file is in exactly one state at a time.
    """

    queued: int = Field(0, alias="file_queue", description="Registered, not yet uploading")
    uploading: int = Field(0, alias="uploaded_files", description="Received, awaiting assembly")
    assembled: int = Field(0, alias="assembled_files")
    errored: int = Field(0, alias="errored_files")
    in_storage: int = Field(0, alias="in_storage_files")
    total: int = Field(0, alias="total_files")

    @property
    def resolved(self) -> int:
        """Files that reached a final state on the server."""
        return self.assembled + self.in_storage + self.errored

    def is_resolved(self, missing: int = 0) -> bool:
        """Check whether every file that can arrive has been resolved.

        Args:
            missing: Registered files that will never be uploaded in this run.
        """
        if self.total == 0:
            return True
        return self.resolved >= self.total - missing

    def to_counts(self) -> dict[str, int]:
        """Counts keyed by the server's field names."""
        return self.model_dump(by_alias=True)
