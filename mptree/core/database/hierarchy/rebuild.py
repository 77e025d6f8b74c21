"""Bulk rebuild of a subtree's paths after reparenting.

A moved node and all of its descendants get new paths from a single UPDATE.
Every row keeps its segments from the moved node's level onwards and swaps
the old ancestor prefix for the new parent's path:

    old path of moved node: 1.2.3      new parent: 5.6
    1.2.3      -> 5.6.3
    1.2.3.4    -> 5.6.3.4
    1.2.3.4.7  -> 5.6.3.4.7

Rows are never loaded into memory. Since the rewrite is one statement it is
applied to the whole subtree or not at all.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import update
from sqlalchemy.orm import QueryableAttribute

from mptree.core.database.hierarchy.guard import validate_reparent

if TYPE_CHECKING:
    from sqlalchemy import Update
    from sqlalchemy.ext.asyncio import AsyncSession

    from mptree.core.database.hierarchy.dialects import HierarchyDialect
    from mptree.core.database.hierarchy.path import Path

logger = logging.getLogger(__name__)


class PathRebuilder:
    """Rewrite the paths of a subtree with one UPDATE statement.

    Example:
        >>> dialect = await resolve_dialect(session)
        >>> rebuilder = PathRebuilder(dialect)
        >>> await rebuilder.rebuild(session, Category.path, Path("1.2.3"), Path("5.6"))

    Note:
        - The caller updates the node's parent reference in the same
          transaction, before or alongside the rebuild
        - ORM objects already loaded for the subtree are not refreshed
    """

    def __init__(self, dialect: HierarchyDialect):
        """Initialize rebuilder.

        Args:
            dialect: Translator for the session's backend
        """
        self.dialect = dialect

    def statement(
        self,
        column: Any,
        path: Path,
        parent_path: Path | None,
    ) -> Update:
        """Build the UPDATE for the subtree rooted at ``path``.

        Args:
            column: Mapped path attribute or Core path column
            path: Current path of the moved node
            parent_path: Path of the new parent, None to promote to root

        Returns:
            Update statement filtered to the node and its descendants
        """
        target = column.class_ if isinstance(column, QueryableAttribute) else column.table

        return (
            update(target)
            .where(self.dialect.descendant_predicate(column, path, include_self=True))
            .values({column: self.dialect.rebuild_expression(column, path, parent_path)})
            .execution_options(synchronize_session=False)
        )

    async def rebuild(
        self,
        session: AsyncSession,
        column: Any,
        path: Path,
        parent_path: Path | None,
    ) -> None:
        """Validate the move and rewrite the subtree's paths.

        Args:
            session: Async database session
            column: Mapped path attribute or Core path column
            path: Current path of the moved node
            parent_path: Path of the new parent, None to promote to root

        Raises:
            CircularReferenceError: If ``parent_path`` is inside the subtree
        """
        validate_reparent(path, parent_path)

        result = await session.execute(self.statement(column, path, parent_path))
        logger.debug(
            "Rebuilt subtree paths",
            extra={"path": path, "parent_path": parent_path, "rows": result.rowcount},
        )


__all__ = [
    "PathRebuilder",
]
