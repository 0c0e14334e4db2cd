"""
BingoBook Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the three failure kinds the API
       reports: bad input, missing records/files, and storage failures.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    BingoBookError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    └── StorageError             → 500 Internal Server Error
        ├── DatabaseError        → 500 (SQLAlchemy / engine failures)
        └── FileStorageError     → 500 (image store I/O failures)
"""

from typing import Any, Dict, Optional


class BingoBookError(Exception):
    """
    Base exception for all BingoBook application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BingoBookError):
    """
    Raised when client input is missing or malformed.

    When:    Missing entry id, too many/too few images, unsupported file type.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(BingoBookError):
    """
    Raised when an operation targets a record or file that doesn't exist.

    SQLAlchemy reports a missed UPDATE/DELETE as rowcount 0 and a missed
    SELECT as None; services convert both into this exception.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource


class StorageError(BingoBookError):
    """
    Raised when the database or the image store fails.

    The engine/OS message is kept in `context` for the server log; the
    response body only carries `message`.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StorageError):
    """A query, insert, update or delete failed in the database engine."""

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(StorageError):
    """
    Could not write or delete a file on the storage volume.

    When:    Disk full, permission denied, directory not writable, I/O error.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
