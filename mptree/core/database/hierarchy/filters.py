"""Tree filters for SQLAlchemy select statements.

These filters work directly with SQLAlchemy statements without hiding the
query. Conditions are collected with an "and"/"or" boolean, the same way
chained WHERE clauses read in SQL, and lowered through the session's
HierarchyDialect.

Usage:
    from sqlalchemy import select
    from mptree.core.database.hierarchy import TreeQuery, resolve_dialect

    dialect = await resolve_dialect(session)
    stmt = (
        TreeQuery(dialect)
        .where_self_or_descendant(Category.path, Path("1.2"))
        .or_where_root(Category.path)
        .order_by_depth(Category.path, "desc")
        .apply(select(Category))
    )

    result = await session.execute(stmt)
"""

from __future__ import annotations

import operator
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Literal, Protocol

from sqlalchemy import Select, and_, or_

from mptree.core.database.exceptions import InvalidFilterError

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Self

    from sqlalchemy.sql.expression import ColumnElement

    from mptree.core.database.hierarchy.dialects import HierarchyDialect
    from mptree.core.database.hierarchy.path import Path

Boolean = Literal["and", "or"]

DEPTH_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class TreeNode(Protocol):
    """Anything that can be used as a reference node in tree filters."""

    def get_path(self) -> Path: ...

    @classmethod
    def path_attribute(cls) -> Any: ...


def _node_column(node: TreeNode, column: Any) -> Any:
    return node.path_attribute() if column is None else column


class StatementFilter(ABC):
    """Base class for statement filters.

    All filters implement `apply()` which modifies a SQLAlchemy statement.
    """

    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply filter to statement.

        Args:
            statement: SQLAlchemy select statement

        Returns:
            Modified select statement
        """
        ...


class TreeQuery(StatementFilter):
    """Chainable ancestor/descendant/depth conditions.

    "and" conditions bind tighter than "or" conditions, so
    ``where(a).where(b).or_where(c)`` filters on ``(a AND b) OR c``.

    Example:
            # Everything under node 7, plus the roots
        stmt = (
            TreeQuery(dialect)
            .where_descendant_of(node)
            .or_where_root(Category.path)
            .apply(select(Category))
        )
    """

    def __init__(self, dialect: HierarchyDialect):
        """Initialize tree query.

        Args:
            dialect: Translator for the session's backend
        """
        self.dialect = dialect
        self._groups: list[list[ColumnElement[bool]]] = [[]]
        self._order_by: list[ColumnElement[Any]] = []

    # -------------------------------------------------------------------------
    # Generic conditions
    # -------------------------------------------------------------------------

    def where(self, clause: ColumnElement[bool], boolean: Boolean = "and") -> Self:
        """Add a condition joined with ``boolean``."""
        if boolean == "or":
            if self._groups[-1]:
                self._groups.append([])
        elif boolean != "and":
            raise InvalidFilterError(
                f"Boolean must be 'and' or 'or', got '{boolean}'", filter_name="boolean"
            )
        self._groups[-1].append(clause)
        return self

    def or_where(self, clause: ColumnElement[bool]) -> Self:
        """Add a condition joined with OR."""
        return self.where(clause, "or")

    # -------------------------------------------------------------------------
    # Ancestors by literal path
    # -------------------------------------------------------------------------

    def where_ancestor(self, column: Any, path: Path, boolean: Boolean = "and") -> Self:
        """Rows that are strict ancestors of ``path``."""
        return self.where(self.dialect.ancestor_predicate(column, path, include_self=False), boolean)

    def or_where_ancestor(self, column: Any, path: Path) -> Self:
        return self.where_ancestor(column, path, "or")

    def where_self_or_ancestor(self, column: Any, path: Path, boolean: Boolean = "and") -> Self:
        """Rows that are ``path`` itself or one of its ancestors."""
        return self.where(self.dialect.ancestor_predicate(column, path), boolean)

    def or_where_self_or_ancestor(self, column: Any, path: Path) -> Self:
        return self.where_self_or_ancestor(column, path, "or")

    # -------------------------------------------------------------------------
    # Descendants by literal path
    # -------------------------------------------------------------------------

    def where_descendant(self, column: Any, path: Path, boolean: Boolean = "and") -> Self:
        """Rows that are strict descendants of ``path``."""
        return self.where(
            self.dialect.descendant_predicate(column, path, include_self=False), boolean
        )

    def or_where_descendant(self, column: Any, path: Path) -> Self:
        return self.where_descendant(column, path, "or")

    def where_self_or_descendant(self, column: Any, path: Path, boolean: Boolean = "and") -> Self:
        """Rows that are ``path`` itself or one of its descendants."""
        return self.where(self.dialect.descendant_predicate(column, path), boolean)

    def or_where_self_or_descendant(self, column: Any, path: Path) -> Self:
        return self.where_self_or_descendant(column, path, "or")

    # -------------------------------------------------------------------------
    # By reference node
    # -------------------------------------------------------------------------

    def where_ancestor_of(
        self, node: TreeNode, column: Any = None, boolean: Boolean = "and"
    ) -> Self:
        """Rows that are strict ancestors of ``node``.

        Args:
            node: Reference node
            column: Path column to filter, defaults to the node's own
            boolean: How to join the condition
        """
        return self.where_ancestor(_node_column(node, column), node.get_path(), boolean)

    def or_where_ancestor_of(self, node: TreeNode, column: Any = None) -> Self:
        return self.where_ancestor_of(node, column, "or")

    def where_self_or_ancestor_of(
        self, node: TreeNode, column: Any = None, boolean: Boolean = "and"
    ) -> Self:
        return self.where_self_or_ancestor(
            _node_column(node, column), node.get_path(), boolean
        )

    def or_where_self_or_ancestor_of(self, node: TreeNode, column: Any = None) -> Self:
        return self.where_self_or_ancestor_of(node, column, "or")

    def where_descendant_of(
        self, node: TreeNode, column: Any = None, boolean: Boolean = "and"
    ) -> Self:
        return self.where_descendant(_node_column(node, column), node.get_path(), boolean)

    def or_where_descendant_of(self, node: TreeNode, column: Any = None) -> Self:
        return self.where_descendant_of(node, column, "or")

    def where_self_or_descendant_of(
        self, node: TreeNode, column: Any = None, boolean: Boolean = "and"
    ) -> Self:
        return self.where_self_or_descendant(
            _node_column(node, column), node.get_path(), boolean
        )

    def or_where_self_or_descendant_of(self, node: TreeNode, column: Any = None) -> Self:
        return self.where_self_or_descendant_of(node, column, "or")

    # -------------------------------------------------------------------------
    # Column to column
    # -------------------------------------------------------------------------

    def where_column_self_or_ancestor(
        self, first: Any, second: Any, boolean: Boolean = "and"
    ) -> Self:
        """``first`` equals ``second`` or is one of its ancestors.

        Useful for joins and correlated EXISTS subqueries between two
        aliases of the same tree table.
        """
        return self.where(self.dialect.ancestor_column_predicate(first, second), boolean)

    def or_where_column_self_or_ancestor(self, first: Any, second: Any) -> Self:
        return self.where_column_self_or_ancestor(first, second, "or")

    def where_column_self_or_descendant(
        self, first: Any, second: Any, boolean: Boolean = "and"
    ) -> Self:
        """``first`` equals ``second`` or is one of its descendants."""
        return self.where(self.dialect.descendant_column_predicate(first, second), boolean)

    def or_where_column_self_or_descendant(self, first: Any, second: Any) -> Self:
        return self.where_column_self_or_descendant(first, second, "or")

    # -------------------------------------------------------------------------
    # Depth
    # -------------------------------------------------------------------------

    def where_depth(
        self,
        column: Any,
        depth: int,
        operator: str = "=",
        boolean: Boolean = "and",
    ) -> Self:
        """Filter by depth level.

        Args:
            column: Path column
            depth: Depth to compare with (1 for roots)
            operator: One of =, !=, <>, <, <=, >, >=
            boolean: How to join the condition

        Raises:
            InvalidFilterError: If the operator is not supported
        """
        compare = DEPTH_OPERATORS.get(operator)
        if compare is None:
            raise InvalidFilterError(
                f"Unsupported depth operator '{operator}'", filter_name="depth"
            )
        return self.where(compare(self.dialect.depth_expression(column), depth), boolean)

    def or_where_depth(self, column: Any, depth: int, operator: str = "=") -> Self:
        return self.where_depth(column, depth, operator, "or")

    def where_root(self, column: Any, boolean: Boolean = "and") -> Self:
        """Only root nodes (depth 1)."""
        return self.where_depth(column, 1, "=", boolean)

    def or_where_root(self, column: Any) -> Self:
        return self.where_root(column, "or")

    def order_by_depth(self, column: Any, direction: Literal["asc", "desc"] = "asc") -> Self:
        """Order rows by depth level.

        Raises:
            InvalidFilterError: If direction is not 'asc' or 'desc'
        """
        depth = self.dialect.depth_expression(column)
        if direction == "asc":
            self._order_by.append(depth.asc())
        elif direction == "desc":
            self._order_by.append(depth.desc())
        else:
            raise InvalidFilterError(
                f"Order direction must be 'asc' or 'desc', got '{direction}'",
                filter_name="order_by_depth",
            )
        return self

    def order_by_depth_desc(self, column: Any) -> Self:
        return self.order_by_depth(column, "desc")

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    @property
    def clause(self) -> ColumnElement[bool] | None:
        """Combined WHERE condition, or None when nothing was added."""
        groups = [and_(*group) for group in self._groups if group]
        if not groups:
            return None
        if len(groups) == 1:
            return groups[0]
        return or_(*groups)

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply conditions and ordering to statement."""
        clause = self.clause
        if clause is not None:
            statement = statement.where(clause)
        if self._order_by:
            statement = statement.order_by(*self._order_by)
        return statement


__all__ = [
    "DEPTH_OPERATORS",
    "StatementFilter",
    "TreeNode",
    "TreeQuery",
]
