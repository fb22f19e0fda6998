"""Deposit service for Vault deposit operations.

Implements the remote side of the deposit pipeline over HTTP: registering
and resuming deposits, uploading chunks with the flow.js chunk protocol and
reading deposit status.
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING, Any, BinaryIO, Sequence

from vaultctl.core.exceptions import (
    PathValidationError,
    ResourceNotFoundError,
    UploadError,
)
from vaultctl.models.deposit import DepositFile, DepositStatus, TreeNode

from .base import BaseService

if TYPE_CHECKING:
    from .batcher import BatchItem

logger = logging.getLogger(__name__)


class DepositService(BaseService):
    """Service for Vault deposit operations."""

    # =========================================================================
    # Tree
    # =========================================================================

    def resolve_path(self, path: str) -> TreeNode:
        """Resolve an absolute tree path to its node.

        Raises:
            ResourceNotFoundError: If nothing exists at path.
        """
        normalized = "/" + path.strip("/")
        data = self._get("/api/treenodes/", params={"path": normalized})
        results = self._extract_results(data)
        if not results:
            raise ResourceNotFoundError("tree node", normalized)
        return TreeNode.model_validate(results[0])

    # =========================================================================
    # Deposits
    # =========================================================================

    def register_deposit(self, root: str, items: Sequence[BatchItem]) -> int:
        """Register a new deposit for items below the container at root.

        Returns:
            The deposit id assigned by the server.

        Raises:
            PathValidationError: If root is not a collection or folder.
            ResourceNotFoundError: If root does not exist.
        """
        parent = self.resolve_path(root)
        if not parent.node_type.is_container:
            raise PathValidationError(root, f"cannot deposit into a {parent.node_type.value.lower()}")

        payload = {
            "parent_node_id": parent.id,
            "total_size": sum(item.size for item in items),
            "files": [
                {
                    "flow_identifier": item.flow_identifier,
                    "name": posixpath.basename(item.remote),
                    "relative_path": item.remote,
                    "size": item.size,
                    "type": item.content_type,
                }
                for item in items
            ],
        }
        data = self._post("/api/register_deposit", json=payload)
        deposit_id = data.get("deposit_id") if isinstance(data, dict) else None
        if not deposit_id:
            raise UploadError("Server did not return a deposit id", details={"response": data})
        logger.info("Registered deposit %s with %d files", deposit_id, len(items))
        return int(deposit_id)

    def list_files(self, deposit_id: int) -> list[DepositFile]:
        """List the files registered in a deposit.

        Raises:
            ResourceNotFoundError: If the deposit does not exist.
        """
        data = self._get(self._build_path("api", "deposits", str(deposit_id), "files"))
        return [DepositFile.model_validate(f) for f in self._extract_results(data, "files")]

    def resume_deposit(self, deposit_id: int) -> list[DepositFile]:
        """Look up an existing deposit for resumption.

        Returns:
            Every file registered in the deposit with its server-side state.
        """
        files = self.list_files(deposit_id)
        done = sum(1 for f in files if f.state.is_acknowledged)
        logger.info(
            "Resuming deposit %s: %d of %d files already uploaded",
            deposit_id,
            done,
            len(files),
        )
        return files

    def deposit_status(self, deposit_id: int) -> DepositStatus:
        """Get aggregate file counts of a deposit."""
        data = self._get("/api/get_deposit_status", params={"deposit_id": deposit_id})
        return DepositStatus.model_validate(data)

    # =========================================================================
    # Chunks
    # =========================================================================

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
    ) -> None:
        """Upload one chunk of a file.

        Transient failures are retried by the client; anything raised from
        here is final for this chunk.

        Args:
            deposit_id: Deposit the file belongs to.
            item: File being uploaded.
            index: Zero-based chunk index.
            stream: Bytes of the chunk.
            length: Number of bytes in the chunk.
            total_chunks: Number of chunks of the file.
            chunk_size: Nominal chunk size used to split the file.
        """
        payload = stream.read(length)
        if len(payload) != length:
            raise UploadError(
                f"Short read on chunk {index}: got {len(payload)} of {length} bytes",
                file_path=str(item.filename),
            )

        fields: dict[str, Any] = {
            "depositId": str(deposit_id),
            "flowChunkNumber": str(index + 1),
            "flowChunkSize": str(chunk_size),
            "flowCurrentChunkSize": str(length),
            "flowTotalSize": str(item.size),
            "flowTotalChunks": str(total_chunks),
            "flowIdentifier": item.flow_identifier,
            "flowFilename": posixpath.basename(item.remote),
            "flowRelativePath": item.remote,
            "flowMimetype": item.content_type,
        }
        self.client.post(
            "/api/flow_chunk",
            data=fields,
            files={"file": (posixpath.basename(item.remote), payload, item.content_type)},
        )
