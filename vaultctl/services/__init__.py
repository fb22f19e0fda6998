"""Service layer for Vault operations.

Provides the deposit service (remote API) and the batcher that drives a
deposit upload.
"""

from __future__ import annotations

from .base import BaseService
from .batcher import Batcher, BatchItem, DepositAPI, DepositState
from .deposits import DepositService

__all__ = [
    "BaseService",
    "DepositService",
    "DepositAPI",
    "DepositState",
    "BatchItem",
    "Batcher",
]
