"""Database layer: declarative base, path column types, tree support.

Example:
    >>> from mptree.core.database import Base, IntegerPKMixin, PathType
    >>> from mptree.core.database.hierarchy import HierarchicalMixin, Path
"""

from mptree.core.database.base import NAMING_CONVENTION, Base, IntegerPKMixin
from mptree.core.database.exceptions import (
    CircularReferenceError,
    HierarchyError,
    InvalidFilterError,
    InvalidPathError,
    RepositoryError,
    UnsupportedBackendError,
)
from mptree.core.database.types import LtreeType, PathType

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "CircularReferenceError",
    "HierarchyError",
    "IntegerPKMixin",
    "InvalidFilterError",
    "InvalidPathError",
    "LtreeType",
    "PathType",
    "RepositoryError",
    "UnsupportedBackendError",
]
