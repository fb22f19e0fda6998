"""Data models for vaultctl.

Provides Pydantic models for Vault API payloads and progress tracking.
"""

from __future__ import annotations

from .base import BaseModel
from .deposit import DepositFile, DepositStatus, FileState, NodeType, TreeNode
from .progress import (
    DepositSummary,
    OperationPhase,
    OperationResult,
    Progress,
    UploadProgress,
)

__all__ = [
    # Base
    "BaseModel",
    # Vault payloads
    "NodeType",
    "TreeNode",
    "FileState",
    "DepositFile",
    "DepositStatus",
    # Progress
    "OperationPhase",
    "Progress",
    "UploadProgress",
    "OperationResult",
    "DepositSummary",
]
