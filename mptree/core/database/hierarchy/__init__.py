"""Hierarchical data support using materialized paths.

Each row stores its full ancestor chain as a separator-joined path like
"1.4.9", so subtree and ancestor lookups become simple predicates instead
of recursive queries.

Components:
    - Path: immutable path value with segment algebra
    - HierarchyDialect: lowers ancestor/descendant/depth/rebuild to SQL for
      PostgreSQL ltree (native) or plain string columns (emulated)
    - TreeQuery: chainable tree filters for select statements
    - PathRebuilder: rewrites a moved subtree's paths in one UPDATE
    - validate_reparent: in-memory cycle check run before any rebuild
    - HierarchicalMixin: model mixin tying the pieces together

Example:
    >>> from mptree.core.database.hierarchy import Path, TreeQuery, resolve_dialect
    >>>
    >>> dialect = await resolve_dialect(session)
    >>> stmt = TreeQuery(dialect).where_descendant(Category.path, Path("1.4")).apply(
    ...     select(Category)
    ... )

Note:
    - Native mode requires PostgreSQL with the ltree extension
      (CREATE EXTENSION IF NOT EXISTS ltree) and a GiST index on the column
"""

from mptree.core.database.hierarchy.dialects import (
    Backend,
    HierarchyDialect,
    LtreeDialect,
    StringDialect,
    detect_backend,
    get_dialect,
    resolve_dialect,
)
from mptree.core.database.hierarchy.filters import TreeQuery
from mptree.core.database.hierarchy.guard import validate_reparent
from mptree.core.database.hierarchy.mixins import HierarchicalMixin
from mptree.core.database.hierarchy.path import SEPARATOR, Path
from mptree.core.database.hierarchy.rebuild import PathRebuilder

__all__ = [
    "SEPARATOR",
    "Backend",
    "HierarchicalMixin",
    "HierarchyDialect",
    "LtreeDialect",
    "Path",
    "PathRebuilder",
    "StringDialect",
    "TreeQuery",
    "detect_backend",
    "get_dialect",
    "resolve_dialect",
    "validate_reparent",
]
