"""Custom SQLAlchemy types for materialized path columns.

Types included:
- LtreeType: PostgreSQL ltree type for hierarchical data
- PathType: Path column that uses ltree on PostgreSQL and a string elsewhere
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Integer, String, TypeDecorator, func, types
from sqlalchemy.types import TypeEngine

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Dialect
    from sqlalchemy.sql.expression import ColumnElement

# Segment comparisons on MySQL/MariaDB must not fold case
BINARY_COLLATION = "utf8mb4_bin"


def _to_path(value: Any) -> Any:
    # Import here to avoid circular imports
    from mptree.core.database.hierarchy.path import Path

    return Path(value)


class LtreeType(types.UserDefinedType[str]):
    """Native PostgreSQL ``ltree`` column.

    Binds Path or str values and loads Path values. Comparisons are exposed
    on the column itself for code that targets PostgreSQL only; portable code
    goes through HierarchyDialect instead.

    Example:
        >>> class Category(Base, IntegerPKMixin):
        ...     path: Mapped[Path] = mapped_column(LtreeType())
        >>>
        >>> select(Category).where(Category.path.descendant_of("1.4"))
        >>> select(Category.path.depth())

    Note:
        - Requires CREATE EXTENSION ltree on the target database
        - Containment queries need a GiST index on the column
    """

    cache_ok = True

    def get_col_spec(self, **kw: Any) -> str:
        _ = kw
        return "LTREE"

    def bind_processor(self, dialect: Any) -> Callable[[Any], Any] | None:
        _ = dialect

        def process(value: Any) -> str | None:
            return None if value is None else str(value)

        return process

    def result_processor(
        self, dialect: Any, coltype: Any
    ) -> Callable[[Any], Any] | None:
        _ = dialect, coltype

        def process(value: Any) -> Any:
            return None if value is None else _to_path(value)

        return process

    class comparator_factory(TypeEngine.Comparator[str]):
        """ltree operators available on LtreeType columns."""

        def ancestor_of(self, other: Any) -> ColumnElement[bool]:
            """``column @> other``: column equals other or contains it."""
            return self.op("@>", is_comparison=True)(other)  # type: ignore[return-value]

        def descendant_of(self, other: Any) -> ColumnElement[bool]:
            """``column <@ other``: column equals other or lies under it."""
            return self.op("<@", is_comparison=True)(other)  # type: ignore[return-value]

        def depth(self) -> ColumnElement[int]:
            """``nlevel(column)``, 1 for roots."""
            return func.nlevel(self.expr, type_=Integer())


class PathType(TypeDecorator):
    """Materialized path column portable across backends.

    Stores a native ltree on PostgreSQL and a plain string on every other
    database (e.g. SQLite in tests, MySQL). Values are always returned as
    Path objects and may be bound as Path or str.

    Usage:
        class Category(Base, IntegerPKMixin, HierarchicalMixin):
            path: Mapped[Path | None] = mapped_column(PathType(), index=True)

    Args:
        length: Maximum length of the string column on emulated backends
        native: Use ltree on PostgreSQL. Set to False when the ltree
            extension is unavailable and the column must stay a string.
    """

    impl = String
    cache_ok = True

    def __init__(self, length: int = 1024, *, native: bool = True, **kwargs: Any):
        super().__init__(length, **kwargs)
        self.length = length
        self.native = native

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        """Load ltree on PostgreSQL, a bounded string elsewhere.

        MySQL and MariaDB get a binary collation so path comparisons are
        case-sensitive like on every other backend.
        """
        if dialect.name == "postgresql" and self.native:
            return dialect.type_descriptor(LtreeType())
        if dialect.name in ("mysql", "mariadb"):
            return dialect.type_descriptor(String(self.length, collation=BINARY_COLLATION))
        return dialect.type_descriptor(String(self.length))

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        _ = dialect
        if value is None:
            return None
        return _to_path(value)


__all__ = [
    "LtreeType",
    "PathType",
]
