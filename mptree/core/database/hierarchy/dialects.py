"""Backend translation of tree predicates.

Tree queries are expressed once in semantic terms (ancestor, descendant,
depth, rebuild) and lowered to SQL per backend variant:

- Backend.NATIVE: PostgreSQL ltree column with containment operators
  (``@>``, ``<@``), ``nlevel`` and ``subpath``.
- Backend.EMULATED: plain string column. Containment becomes IN lists and
  separator-anchored prefix matches, depth is counted from separators.

The variant is resolved once per session (``resolve_dialect``) and the
returned translator is passed explicitly to filters and the rebuilder.

Example:
    >>> dialect = get_dialect(Backend.EMULATED)
    >>> stmt = select(Category).where(
    ...     dialect.descendant_predicate(Category.path, Path("1.2"))
    ... )
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import Integer, String, and_, cast, func, literal, or_, text
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from mptree.core.database.exceptions import UnsupportedBackendError
from mptree.core.database.hierarchy.path import SEPARATOR
from mptree.core.database.types import LtreeType

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.compiler import SQLCompiler
    from sqlalchemy.sql.expression import ColumnElement

    from mptree.core.database.hierarchy.path import Path
    from mptree.core.settings.hierarchy import HierarchySettings

logger = logging.getLogger(__name__)

# Dialects whose path column is always a plain string
EMULATED_DIALECTS = frozenset({"sqlite", "mysql", "mariadb"})

# session.info key holding the backend resolved for that session
SESSION_BACKEND_KEY = "mptree.backend"


class Backend(StrEnum):
    """Storage variants for the path column."""

    NATIVE = "native"
    EMULATED = "emulated"


# =============================================================================
# Emulated helpers
# =============================================================================


class path_length(FunctionElement[int]):
    """Length of a path value in characters.

    MySQL and MariaDB ``length()`` counts bytes, which disagrees with
    ``substr()`` positions once a segment holds non-ASCII text.
    """

    type = Integer()
    name = "path_length"
    inherit_cache = True


@compiles(path_length)
def _compile_path_length(element: path_length, compiler: SQLCompiler, **kw: Any) -> str:
    return f"length({compiler.process(element.clauses, **kw)})"


@compiles(path_length, "mysql")
@compiles(path_length, "mariadb")
def _compile_path_length_mysql(element: path_length, compiler: SQLCompiler, **kw: Any) -> str:
    return f"char_length({compiler.process(element.clauses, **kw)})"


# =============================================================================
# Translators
# =============================================================================


class HierarchyDialect(ABC):
    """Translate semantic tree queries into SQL expressions.

    Column arguments accept mapped attributes (``Category.path``) or Core
    columns. Path arguments are Path values.
    """

    backend: ClassVar[Backend]

    @abstractmethod
    def ancestor_predicate(
        self,
        column: Any,
        path: Path,
        *,
        include_self: bool = True,
    ) -> ColumnElement[bool]:
        """Match rows whose path is an ancestor of ``path``.

        Args:
            column: Path column
            path: Reference path
            include_self: Also match the row whose path equals ``path``
        """

    @abstractmethod
    def descendant_predicate(
        self,
        column: Any,
        path: Path,
        *,
        include_self: bool = True,
    ) -> ColumnElement[bool]:
        """Match rows whose path is a descendant of ``path``.

        Args:
            column: Path column
            path: Reference path
            include_self: Also match the row whose path equals ``path``
        """

    @abstractmethod
    def ancestor_column_predicate(
        self,
        first: Any,
        second: Any,
        *,
        include_self: bool = True,
    ) -> ColumnElement[bool]:
        """Match when ``first`` is an ancestor of ``second`` (both columns)."""

    def descendant_column_predicate(
        self,
        first: Any,
        second: Any,
        *,
        include_self: bool = True,
    ) -> ColumnElement[bool]:
        """Match when ``first`` is a descendant of ``second`` (both columns)."""
        return self.ancestor_column_predicate(second, first, include_self=include_self)

    @abstractmethod
    def depth_expression(self, column: Any) -> ColumnElement[int]:
        """Number of segments stored in ``column``."""

    @abstractmethod
    def subpath_expression(self, column: Any, path: Path) -> ColumnElement[Any]:
        """Segments of ``column`` from the level of ``path`` onwards.

        Only meaningful for rows inside the subtree of ``path`` (``path``
        itself or its descendants), which all share its ancestor prefix.
        """

    @abstractmethod
    def concat_expression(self, prefix: Path, suffix: ColumnElement[Any]) -> ColumnElement[Any]:
        """Join a literal path and a path expression with the separator."""

    def rebuild_expression(
        self,
        column: Any,
        path: Path,
        parent_path: Path | None,
    ) -> ColumnElement[Any]:
        """New path value for a row in a moved subtree.

        Keeps each row's segments from the moved node's level onwards and
        prefixes them with the new parent's path.

        Args:
            column: Path column
            path: Path of the moved node before the move
            parent_path: Path of the new parent, None when promoting to root

        Returns:
            Expression computed from the row's old value only
        """
        # A moved root keeps its whole value
        suffix = column if path.depth == 1 else self.subpath_expression(column, path)

        if parent_path is None:
            return suffix
        return self.concat_expression(parent_path, suffix)


class LtreeDialect(HierarchyDialect):
    """Native PostgreSQL ltree translation."""

    backend = Backend.NATIVE

    @staticmethod
    def _ltree(path: Path) -> ColumnElement[Any]:
        return cast(str(path), LtreeType())

    def ancestor_predicate(
        self, column: Any, path: Path, *, include_self: bool = True
    ) -> ColumnElement[bool]:
        predicate = column.op("@>", is_comparison=True)(self._ltree(path))
        if include_self:
            return predicate
        return and_(predicate, column != self._ltree(path))

    def descendant_predicate(
        self, column: Any, path: Path, *, include_self: bool = True
    ) -> ColumnElement[bool]:
        predicate = column.op("<@", is_comparison=True)(self._ltree(path))
        if include_self:
            return predicate
        return and_(predicate, column != self._ltree(path))

    def ancestor_column_predicate(
        self, first: Any, second: Any, *, include_self: bool = True
    ) -> ColumnElement[bool]:
        predicate = first.op("@>", is_comparison=True)(second)
        if include_self:
            return predicate
        return and_(predicate, first != second)

    def depth_expression(self, column: Any) -> ColumnElement[int]:
        return func.nlevel(column, type_=Integer())

    def subpath_expression(self, column: Any, path: Path) -> ColumnElement[Any]:
        # subpath() offsets are 0-based
        return func.subpath(column, path.depth - 1, type_=LtreeType())

    def concat_expression(self, prefix: Path, suffix: ColumnElement[Any]) -> ColumnElement[Any]:
        return self._ltree(prefix).op("||", return_type=LtreeType())(suffix)


class StringDialect(HierarchyDialect):
    """String-function emulation for plain text path columns."""

    backend = Backend.EMULATED

    def ancestor_predicate(
        self, column: Any, path: Path, *, include_self: bool = True
    ) -> ColumnElement[bool]:
        paths = path.path_set() if include_self else path.ancestor_set()
        return column.in_([str(p) for p in paths])

    def descendant_predicate(
        self, column: Any, path: Path, *, include_self: bool = True
    ) -> ColumnElement[bool]:
        # Anchor on the separator so "1.2" never matches "1.23". LIKE may fold
        # case, the substr comparison is exact.
        prefix = f"{path}{SEPARATOR}"
        predicate = and_(
            column.startswith(prefix, autoescape=True),
            func.substr(column, 1, len(prefix)) == prefix,
        )
        if include_self:
            return or_(column == str(path), predicate)
        return predicate

    def ancestor_column_predicate(
        self, first: Any, second: Any, *, include_self: bool = True
    ) -> ColumnElement[bool]:
        predicate = (
            func.substr(second, 1, path_length(first) + 1)
            == first.concat(SEPARATOR)
        )
        if include_self:
            return or_(first == second, predicate)
        return predicate

    def depth_expression(self, column: Any) -> ColumnElement[int]:
        separators = path_length(column) - path_length(func.replace(column, SEPARATOR, ""))
        return separators + 1

    def subpath_expression(self, column: Any, path: Path) -> ColumnElement[Any]:
        # Every row in the subtree starts with the parent prefix and a separator
        start = len(path.value) - len(path.leaf) + 1
        return func.substr(column, start, type_=String())

    def concat_expression(self, prefix: Path, suffix: ColumnElement[Any]) -> ColumnElement[Any]:
        return literal(f"{prefix}{SEPARATOR}", String()).concat(suffix)


_DIALECTS: dict[Backend, HierarchyDialect] = {
    Backend.NATIVE: LtreeDialect(),
    Backend.EMULATED: StringDialect(),
}


def get_dialect(backend: Backend | str) -> HierarchyDialect:
    """Return the translator for a backend variant.

    Raises:
        UnsupportedBackendError: If the variant is not native or emulated
    """
    try:
        return _DIALECTS[Backend(backend)]
    except (KeyError, ValueError):
        raise UnsupportedBackendError(backend) from None


async def detect_backend(
    session: AsyncSession,
    settings: HierarchySettings | None = None,
) -> Backend:
    """Determine how the session's database stores paths.

    An explicit ``TREE_BACKEND`` setting wins. Otherwise PostgreSQL is native
    when the ltree extension is installed (one scalar query) and SQLite,
    MySQL and MariaDB are emulated. The result is cached in ``session.info``.

    Raises:
        UnsupportedBackendError: For any other database
    """
    cached = session.info.get(SESSION_BACKEND_KEY)
    if cached is not None:
        return cached

    if settings is None:
        from mptree.core.settings import get_hierarchy_settings

        settings = get_hierarchy_settings()

    dialect_name = session.get_bind().dialect.name

    if settings.backend != "auto":
        backend = Backend(settings.backend)
    elif dialect_name == "postgresql":
        installed = await session.scalar(
            text("SELECT EXISTS (SELECT 1 FROM pg_extension WHERE extname = :name)"),
            {"name": settings.native_extension},
        )
        backend = Backend.NATIVE if installed else Backend.EMULATED
    elif dialect_name in EMULATED_DIALECTS:
        backend = Backend.EMULATED
    else:
        raise UnsupportedBackendError(dialect_name)

    logger.debug(
        "Resolved hierarchy backend",
        extra={"backend": backend, "dialect": dialect_name},
    )
    session.info[SESSION_BACKEND_KEY] = backend
    return backend


async def resolve_dialect(
    session: AsyncSession,
    settings: HierarchySettings | None = None,
) -> HierarchyDialect:
    """Translator for the session's backend."""
    return get_dialect(await detect_backend(session, settings))


__all__ = [
    "EMULATED_DIALECTS",
    "SESSION_BACKEND_KEY",
    "Backend",
    "HierarchyDialect",
    "LtreeDialect",
    "StringDialect",
    "detect_backend",
    "get_dialect",
    "path_length",
    "resolve_dialect",
]
