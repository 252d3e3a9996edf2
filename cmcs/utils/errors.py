"""Error handling utilities for the claim data layer."""

from dataclasses import dataclass
from typing import Optional, Dict, Any
from enum import Enum


class ErrorType(Enum):
    """Enumeration of error types in the claim data layer."""

    # Record Store Errors
    RECORD_LOAD_FAILED = "RECORD_LOAD_FAILED"
    RECORD_SAVE_FAILED = "RECORD_SAVE_FAILED"

    # File Registry Errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_TYPE_NOT_ALLOWED = "FILE_TYPE_NOT_ALLOWED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_SAVE_FAILED = "FILE_SAVE_FAILED"
    FILE_DELETE_FAILED = "FILE_DELETE_FAILED"

    # Claim Workflow Errors
    CLAIM_VALIDATION_FAILED = "CLAIM_VALIDATION_FAILED"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Configuration Errors
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # General Errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass
class ErrorContext:
    """
    Context information for errors in the claim data layer.

    Attributes:
        error_type: Type of error from ErrorType enum
        message: Human-readable error message
        recoverable: Whether the error can be recovered from
        fallback_action: Optional description of fallback action taken
        details: Optional additional error details
        original_exception: Optional original exception that caused this error
    """

    error_type: ErrorType
    message: str
    recoverable: bool
    fallback_action: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    original_exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error context to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error context
        """
        return {
            "error_type": self.error_type.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "fallback_action": self.fallback_action,
            "details": self.details or {},
            "original_exception": str(self.original_exception) if self.original_exception else None
        }


class ClaimsDataError(Exception):
    """
    Base exception for all claim data errors.

    Wraps errors with additional context so callers (dashboards, the
    maintenance command) can show a user-facing message and decide
    whether to carry on.

    Attributes:
        context: ErrorContext with detailed error information
    """

    def __init__(self, context: ErrorContext):
        """
        Initialize claim data error.

        Args:
            context: ErrorContext with error details
        """
        self.context = context
        super().__init__(context.message)

    def __str__(self) -> str:
        """String representation of the error."""
        base = f"{self.context.error_type.value}: {self.context.message}"
        if self.context.fallback_action:
            base += f" (Fallback: {self.context.fallback_action})"
        return base

    @property
    def error_type(self) -> ErrorType:
        return self.context.error_type

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the person who triggered the error."""
        return self.context.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error
        """
        return self.context.to_dict()


class RecordStoreError(ClaimsDataError):
    """Exception for JSON record container read/write failures."""

    @classmethod
    def load_failed(
        cls,
        store_name: str,
        path: str,
        error: Exception
    ) -> "RecordStoreError":
        """
        Create error for a container that exists but cannot be read or parsed.

        Args:
            store_name: Logical name of the store (e.g. "claims")
            path: Path of the container file
            error: Original exception

        Returns:
            RecordStoreError instance
        """
        context = ErrorContext(
            error_type=ErrorType.RECORD_LOAD_FAILED,
            message=f"Failed to load {store_name} from '{path}': {str(error)}",
            recoverable=True,
            fallback_action="Continue with empty collection",
            details={"store": store_name, "path": path},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def save_failed(
        cls,
        store_name: str,
        path: str,
        error: Exception,
        critical: bool = True
    ) -> "RecordStoreError":
        """
        Create error for a container that could not be written.

        Args:
            store_name: Logical name of the store
            path: Path of the container file
            error: Original exception
            critical: Whether callers depend on the write succeeding

        Returns:
            RecordStoreError instance
        """
        context = ErrorContext(
            error_type=ErrorType.RECORD_SAVE_FAILED,
            message=f"Failed to save {store_name} to '{path}': {str(error)}",
            recoverable=not critical,
            fallback_action=None if critical else "Changes kept in memory only",
            details={"store": store_name, "path": path, "critical": critical},
            original_exception=error
        )
        return cls(context)


class FileValidationError(ClaimsDataError):
    """Exception for files rejected by the storage policy."""

    @classmethod
    def not_found(cls, path: str) -> "FileValidationError":
        """
        Create error for a source or stored file that does not exist.

        Args:
            path: Path that was looked up

        Returns:
            FileValidationError instance
        """
        context = ErrorContext(
            error_type=ErrorType.FILE_NOT_FOUND,
            message=f"File '{path}' does not exist.",
            recoverable=True,
            details={"path": path}
        )
        return cls(context)

    @classmethod
    def type_not_allowed(
        cls,
        filename: str,
        extension: str,
        allowed: list
    ) -> "FileValidationError":
        """
        Create error for a file whose extension is outside the allowed sets.

        Args:
            filename: Name of the offending file
            extension: Lower-cased extension (with leading dot)
            allowed: All allowed extensions, in display order

        Returns:
            FileValidationError instance
        """
        shown = extension or "(none)"
        context = ErrorContext(
            error_type=ErrorType.FILE_TYPE_NOT_ALLOWED,
            message=(
                f"File '{filename}': file type {shown} is not allowed. "
                f"Allowed types: {', '.join(allowed)}"
            ),
            recoverable=True,
            details={"filename": filename, "extension": extension}
        )
        return cls(context)

    @classmethod
    def size_exceeded(
        cls,
        filename: str,
        category: str,
        size_bytes: int,
        limit_mb: int
    ) -> "FileValidationError":
        """
        Create error for a file above its category's size cap.

        Args:
            filename: Name of the offending file
            category: File category ("Document" or "Image")
            size_bytes: Actual file size
            limit_mb: Cap for the category in MB

        Returns:
            FileValidationError instance
        """
        context = ErrorContext(
            error_type=ErrorType.FILE_TOO_LARGE,
            message=(
                f"File '{filename}': {category} file size exceeds maximum allowed size "
                f"of {limit_mb} MB. File size: {size_bytes / 1048576:.2f} MB"
            ),
            recoverable=True,
            details={
                "filename": filename,
                "category": category,
                "size_bytes": size_bytes,
                "limit_mb": limit_mb
            }
        )
        return cls(context)


class FileStorageError(ClaimsDataError):
    """Exception for I/O failures while copying or removing stored documents."""

    @classmethod
    def save_failed(
        cls,
        filename: str,
        claim_id: str,
        error: Exception
    ) -> "FileStorageError":
        """
        Create error for a document that could not be stored.

        Args:
            filename: Name of the source file
            claim_id: Claim the file was being attached to
            error: Original exception

        Returns:
            FileStorageError instance
        """
        context = ErrorContext(
            error_type=ErrorType.FILE_SAVE_FAILED,
            message=f"Error saving file '{filename}' for claim {claim_id}: {str(error)}",
            recoverable=True,
            fallback_action="Continue with remaining files",
            details={"filename": filename, "claim_id": claim_id},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def delete_failed(
        cls,
        file_id: str,
        path: str,
        error: Exception
    ) -> "FileStorageError":
        """
        Create error for a stored document that could not be removed.

        Args:
            file_id: Registry id of the file
            path: Storage path of the file
            error: Original exception

        Returns:
            FileStorageError instance
        """
        context = ErrorContext(
            error_type=ErrorType.FILE_DELETE_FAILED,
            message=f"Error deleting file {file_id} at '{path}': {str(error)}",
            recoverable=True,
            details={"file_id": file_id, "path": path},
            original_exception=error
        )
        return cls(context)


class ClaimValidationError(ClaimsDataError):
    """Exception for claim data that violates the claim invariants."""

    @classmethod
    def invalid_field(cls, field_name: str, reason: str) -> "ClaimValidationError":
        context = ErrorContext(
            error_type=ErrorType.CLAIM_VALIDATION_FAILED,
            message=f"Invalid claim {field_name}: {reason}",
            recoverable=True,
            details={"field": field_name}
        )
        return cls(context)


class InvalidTransitionError(ClaimsDataError):
    """Exception for workflow actions not allowed from a claim's current status."""

    @classmethod
    def from_status(
        cls,
        claim_id: str,
        current_status: str,
        action: str
    ) -> "InvalidTransitionError":
        """
        Create error for an action refused by the status state machine.

        Args:
            claim_id: Claim the action targeted
            current_status: Status the claim is in
            action: Name of the refused action (e.g. "approve")

        Returns:
            InvalidTransitionError instance
        """
        context = ErrorContext(
            error_type=ErrorType.INVALID_STATUS_TRANSITION,
            message=f"Cannot {action} claim {claim_id} while it is '{current_status}'",
            recoverable=True,
            details={
                "claim_id": claim_id,
                "status": current_status,
                "action": action
            }
        )
        return cls(context)


class ConfigurationError(ClaimsDataError):
    """Exception for missing or malformed configuration files."""

    @classmethod
    def missing(cls, config_path: str) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_MISSING,
            message=f"Configuration file not found: '{config_path}'",
            recoverable=False,
            details={"path": config_path}
        )
        return cls(context)

    @classmethod
    def invalid(cls, config_path: str, reason: str) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_INVALID,
            message=f"Invalid configuration in '{config_path}': {reason}",
            recoverable=False,
            details={"path": config_path}
        )
        return cls(context)


def handle_record_store_error(
    error: Exception,
    store_name: str,
    path: str,
    logger,
    critical: bool = True
) -> None:
    """
    Handle a failed container write with logging and optional propagation.

    Critical stores (claims, file registry) re-raise so the calling write
    path sees the failure; the remaining stores only log it.

    Args:
        error: Original exception from the write
        store_name: Logical name of the store
        path: Path of the container file
        logger: Logger instance for error logging
        critical: Whether to raise after logging

    Raises:
        RecordStoreError: Wrapped error with context, when critical
    """
    store_error = RecordStoreError.save_failed(
        store_name=store_name,
        path=path,
        error=error,
        critical=critical
    )

    logger.error(f"Record store error: {store_error}")

    if critical:
        raise store_error from error
