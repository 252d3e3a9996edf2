"""Utility modules for configuration, logging, errors, and formatting."""

from .config import Config
from .errors import (
    ClaimsDataError,
    ClaimValidationError,
    ConfigurationError,
    ErrorType,
    FileStorageError,
    FileValidationError,
    InvalidTransitionError,
    RecordStoreError,
)
from .formatting import format_file_size

__all__ = [
    'Config',
    'ClaimsDataError',
    'ClaimValidationError',
    'ConfigurationError',
    'ErrorType',
    'FileStorageError',
    'FileValidationError',
    'InvalidTransitionError',
    'RecordStoreError',
    'format_file_size'
]
