"""Exception hierarchy for vaultctl.

Provides typed exceptions for different failure modes with clear error messages.
"""

from __future__ import annotations

from typing import Any


class VaultCtlError(Exception):
    """Base exception for all vaultctl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(VaultCtlError):
    """Error in configuration (missing, invalid, or malformed)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


class VersionMismatchError(ConfigurationError):
    """Server speaks an API version this client does not support."""

    def __init__(self, server_version: str, supported: str):
        super().__init__(
            f"API version mismatch: server has {server_version}, client supports {supported}",
            field="version",
            value=server_version,
        )
        self.server_version = server_version
        self.supported = supported


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(VaultCtlError):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidURLError(ValidationError):
    """Invalid URL format."""

    def __init__(self, url: str, reason: str = ""):
        msg = f"Invalid URL: {url}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="url", value=url)
        self.url = url
        self.reason = reason


class InvalidChunkSizeError(ValidationError):
    """Chunk size is not a positive number of bytes."""

    def __init__(self, chunk_size: Any):
        super().__init__(
            f"Invalid chunk size: {chunk_size} (must be > 0)",
            field="chunk_size",
            value=chunk_size,
        )
        self.chunk_size = chunk_size


class InvalidIdentifierError(ValidationError):
    """Invalid Vault identifier (deposit, tree node)."""

    def __init__(self, identifier_type: str, value: Any, reason: str = ""):
        msg = f"Invalid {identifier_type}: {value}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field=identifier_type, value=value)
        self.identifier_type = identifier_type
        self.reason = reason


class PathValidationError(ValidationError):
    """Path validation failed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path: {path} - {reason}", field="path", value=path)
        self.path = path
        self.reason = reason


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(VaultCtlError):
    """Base class for connection-related errors."""

    def __init__(self, message: str, url: str | None = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)
        self.url = url


class NetworkError(ConnectionError):
    """Network-level error (DNS, TCP, TLS) or transient server error."""

    def __init__(self, url: str, cause: str | None = None):
        msg = f"Network error connecting to {url}"
        if cause:
            msg = f"{msg}: {cause}"
        super().__init__(msg, url)
        self.cause = cause


class ServerUnreachableError(ConnectionError):
    """Server is not reachable."""

    def __init__(self, url: str):
        super().__init__(f"Server unreachable: {url}", url)


class RetryExhaustedError(ConnectionError):
    """All retry attempts failed."""

    def __init__(self, operation: str, attempts: int, last_error: Exception | None = None):
        msg = f"Operation '{operation}' failed after {attempts} attempts"
        if last_error:
            msg = f"{msg}: {last_error}"
        super().__init__(msg)
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthenticationError(VaultCtlError):
    """Authentication failed."""

    def __init__(self, url: str | None = None, reason: str = ""):
        msg = "Authentication failed"
        if url:
            msg = f"{msg} for {url}"
        if reason:
            msg = f"{msg}: {reason}"
        details = {"url": url} if url else {}
        super().__init__(msg, details)
        self.url = url
        self.reason = reason


# =============================================================================
# Resource Errors
# =============================================================================


class ResourceError(VaultCtlError):
    """Error related to Vault resources."""

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        resource_id: str | None = None,
    ):
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ResourceNotFoundError(ResourceError):
    """Requested resource does not exist."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            resource_type,
            resource_id,
        )


# =============================================================================
# Operation Errors
# =============================================================================


class OperationError(VaultCtlError):
    """Error during an operation."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        full_details = {"operation": operation}
        if details:
            full_details.update(details)
        super().__init__(message, full_details)
        self.operation = operation


class UploadError(OperationError):
    """Error during upload of a single file."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        full_details = details or {}
        if file_path:
            full_details["file"] = file_path
        super().__init__("upload", message, full_details)
        self.file_path = file_path


class BatchOperationError(OperationError):
    """Error in batch operation with partial success."""

    def __init__(
        self,
        operation: str,
        succeeded: int,
        failed: int,
        errors: list[str],
    ):
        super().__init__(
            operation,
            f"Batch {operation} partially failed: {succeeded} succeeded, {failed} failed",
            {"succeeded": succeeded, "failed": failed},
        )
        self.succeeded = succeeded
        self.failed = failed
        self.errors = errors


# =============================================================================
# Deposit Errors
# =============================================================================


class DepositRegistrationError(OperationError):
    """Deposit could not be registered or resumed; nothing was uploaded."""

    def __init__(self, reason: str, deposit_id: int | None = None):
        details: dict[str, Any] = {}
        if deposit_id:
            details["deposit_id"] = deposit_id
        super().__init__("deposit", f"Deposit could not start: {reason}", details)
        self.reason = reason
        self.deposit_id = deposit_id


class DepositCancelledError(OperationError):
    """Deposit upload was cancelled before completion.

    The deposit stays on the server and can be resumed by its id.
    """

    def __init__(self, deposit_id: int | None = None, summary: Any = None):
        details: dict[str, Any] = {}
        if deposit_id:
            details["deposit_id"] = deposit_id
        msg = "Deposit cancelled"
        if deposit_id:
            msg = f"{msg}, resume with deposit id {deposit_id}"
        super().__init__("deposit", msg, details)
        self.deposit_id = deposit_id
        self.summary = summary


class DepositUploadError(BatchOperationError):
    """Some files of a deposit failed; the others are durable on the server."""

    def __init__(
        self,
        deposit_id: int,
        succeeded: int,
        failures: dict[str, str],
        remote_errored: int = 0,
        summary: Any = None,
    ):
        errors = [f"{remote}: {reason}" for remote, reason in failures.items()]
        if remote_errored:
            errors.append(f"{remote_errored} file(s) errored on the server during assembly")
        super().__init__("deposit", succeeded, len(failures) + remote_errored, errors)
        self.details["deposit_id"] = deposit_id
        self.deposit_id = deposit_id
        self.failures = failures
        self.remote_errored = remote_errored
        self.summary = summary

    def __str__(self) -> str:
        lines = [super().__str__()]
        lines.extend(f"  - {err}" for err in self.errors)
        return "\n".join(lines)


class DepositFinalizationError(OperationError):
    """Deposit status could not be read after the uploads finished.

    Uploaded files are durable; the deposit can be checked or resumed by id.
    """

    def __init__(self, deposit_id: int, reason: str, summary: Any = None):
        super().__init__(
            "deposit",
            f"Could not read status of deposit {deposit_id}: {reason}",
            {"deposit_id": deposit_id},
        )
        self.deposit_id = deposit_id
        self.reason = reason
        self.summary = summary
