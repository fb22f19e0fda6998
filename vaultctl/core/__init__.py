"""Core modules for vaultctl."""

from vaultctl.core.client import VaultClient
from vaultctl.core.config import CONFIG_DIR, CONFIG_FILE, Config, DepositOptions, Profile
from vaultctl.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    DepositCancelledError,
    DepositFinalizationError,
    DepositRegistrationError,
    DepositUploadError,
    NetworkError,
    OperationError,
    ResourceNotFoundError,
    RetryExhaustedError,
    UploadError,
    ValidationError,
    VaultCtlError,
)
from vaultctl.core.logging import LogContext, get_audit_logger, get_logger, setup_logging
from vaultctl.core.output import (
    DepositProgressDisplay,
    OutputFormat,
    console,
    print_error,
    print_json,
    print_output,
    print_success,
    print_table,
    print_warning,
)
from vaultctl.core.validation import (
    is_valid_remote_path,
    validate_chunk_size,
    validate_deposit_id,
    validate_remote_path,
    validate_server_url,
    validate_workers,
)

__all__ = [
    # Exceptions
    "VaultCtlError",
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "ResourceNotFoundError",
    "ValidationError",
    "OperationError",
    "UploadError",
    "RetryExhaustedError",
    "DepositRegistrationError",
    "DepositUploadError",
    "DepositCancelledError",
    "DepositFinalizationError",
    # Validation
    "validate_server_url",
    "validate_chunk_size",
    "validate_workers",
    "validate_deposit_id",
    "validate_remote_path",
    "is_valid_remote_path",
    # Config
    "Config",
    "Profile",
    "DepositOptions",
    "CONFIG_DIR",
    "CONFIG_FILE",
    # Client
    "VaultClient",
    # Output
    "OutputFormat",
    "DepositProgressDisplay",
    "print_output",
    "print_table",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "console",
    # Logging
    "get_logger",
    "get_audit_logger",
    "setup_logging",
    "LogContext",
]
