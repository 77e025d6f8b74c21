"""Database and hierarchy exceptions.

Custom exceptions for repository and tree operations that provide better
error messages and typing than raw SQLAlchemy exceptions.
"""
from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base exception for repository operations.

    Raised when a repository operation fails due to programming
    errors, configuration issues, or unexpected states.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize repository error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidFilterError(RepositoryError):
    """Invalid filter or query parameters.

    Raised when filter parameters are malformed, reference non-existent
    fields, or contain invalid values.
    """

    def __init__(self, message: str, filter_name: str | None = None):
        """Initialize invalid filter error.

        Args:
            message: Error description
            filter_name: Name of the problematic filter (if applicable)
        """
        details = {"filter": filter_name} if filter_name else {}
        super().__init__(message, details=details)


class HierarchyError(RepositoryError):
    """Base exception for materialized path operations."""


class InvalidPathError(HierarchyError, ValueError):
    """A path would be built with no segments or with a malformed segment.

    Attributes:
        value: The offending path value or segment
    """

    def __init__(self, message: str, value: Any = None):
        """Initialize invalid path error.

        Args:
            message: Error description
            value: The rejected path value or segment
        """
        self.value = value
        super().__init__(message, details={"value": value})


class UnsupportedBackendError(HierarchyError):
    """Tree queries were requested for a backend that has no translator.

    This is a configuration fault. Retrying will not help.
    """

    def __init__(self, backend: Any):
        """Initialize unsupported backend error.

        Args:
            backend: The backend variant or dialect name that was requested
        """
        self.backend = backend
        super().__init__(
            f"Database backend [{backend}] is not supported",
            details={"backend": str(backend)},
        )


class CircularReferenceError(HierarchyError):
    """Reparenting would place a node inside its own subtree.

    Attributes:
        path: Path of the node being moved
        parent_path: Path of the proposed new parent
    """

    def __init__(self, path: Any, parent_path: Any):
        """Initialize circular reference error.

        Args:
            path: Path of the node being moved
            parent_path: Path of the proposed new parent
        """
        self.path = path
        self.parent_path = parent_path
        super().__init__(
            "Cannot move a node under itself or one of its descendants",
            details={"path": str(path), "parent_path": str(parent_path)},
        )


__all__ = [
    "CircularReferenceError",
    "HierarchyError",
    "InvalidFilterError",
    "InvalidPathError",
    "RepositoryError",
    "UnsupportedBackendError",
]
