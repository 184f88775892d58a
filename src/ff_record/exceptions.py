"""
Exception hierarchy for ff-record.

Usage errors are raised before any statement reaches the store.
Store-reported errors (driver exceptions) are never wrapped; they
propagate to the caller unchanged.
"""


class FFRecordError(Exception):
    """Base exception for all ff-record errors."""


class UsageError(FFRecordError, ValueError):
    """The caller used the API incorrectly. No store call was made."""


class EmptyPayloadError(UsageError):
    """A create or update payload contained no columns."""

    def __init__(self, operation: str, table: str):
        self.operation = operation
        self.table = table
        super().__init__(f"Cannot {operation} {table}: payload has no fields")


class InvalidIdentifierError(UsageError):
    """A table or column name is not a plain SQL identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Invalid SQL identifier: {identifier!r}")


class PayloadValidationError(UsageError):
    """A payload mapping failed validation against its payload type."""

    def __init__(self, message: str, errors=None):
        self.errors = errors or []
        super().__init__(message)


class QueryError(FFRecordError):
    """The store accepted a statement but did not report the expected result."""


class ConfigurationError(FFRecordError):
    """Invalid configuration, such as an unsupported driver connection."""


__all__ = [
    "FFRecordError",
    "UsageError",
    "EmptyPayloadError",
    "InvalidIdentifierError",
    "PayloadValidationError",
    "QueryError",
    "ConfigurationError",
]
