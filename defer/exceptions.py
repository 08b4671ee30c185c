"""
Custom exceptions for the Defer CLI application.

The domain models never raise these; they are used by the storage layer,
DeferCore and the CLI commands.
"""


class DeferError(Exception):
    """Base exception for all Defer-related errors."""
    pass


class ValidationError(DeferError):
    """Raised when a draft or input value fails validation."""
    pass


class NotFoundError(DeferError):
    """Raised when a requested item is not found."""
    pass


class InvalidOperationError(DeferError):
    """Raised when an operation is not allowed in the current state."""
    pass


class StorageError(DeferError):
    """Raised when reading or writing the .defer/ directory fails."""
    pass


class ConfigurationError(DeferError):
    """Raised when there's a configuration or setup issue."""
    pass
