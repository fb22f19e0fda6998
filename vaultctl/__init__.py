"""vaultctl - Chunked, resumable uploads to a Vault preservation repository.

Files are split into fixed-size chunks and uploaded in parallel as one
deposit. Interrupted or partially failed deposits can be resumed by id,
skipping every file the server has already received.
"""

__version__ = "0.1.0"

from vaultctl.core.client import VaultClient
from vaultctl.core.config import Config, DepositOptions, Profile
from vaultctl.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    DepositCancelledError,
    DepositFinalizationError,
    DepositRegistrationError,
    DepositUploadError,
    NetworkError,
    ResourceNotFoundError,
    ValidationError,
    VaultCtlError,
)
from vaultctl.services.batcher import Batcher, BatchItem, DepositState
from vaultctl.uploaders.chunker import Chunker

__all__ = [
    "__version__",
    "VaultClient",
    "Config",
    "Profile",
    "DepositOptions",
    "Batcher",
    "BatchItem",
    "DepositState",
    "Chunker",
    "VaultCtlError",
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "ResourceNotFoundError",
    "ValidationError",
    "DepositRegistrationError",
    "DepositUploadError",
    "DepositCancelledError",
    "DepositFinalizationError",
]
