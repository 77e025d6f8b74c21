"""Mixins for models with materialized paths.

Provides tree navigation and reparenting for models that store a path
column (PathType or LtreeType) next to a self-referencing parent key. Every
query is lowered through the HierarchyDialect resolved for the session, so
the same model works against PostgreSQL ltree and plain string columns.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import func, inspect, select
from sqlalchemy.orm.attributes import set_committed_value

from mptree.core.database.exceptions import InvalidPathError
from mptree.core.database.hierarchy.dialects import resolve_dialect
from mptree.core.database.hierarchy.filters import TreeQuery
from mptree.core.database.hierarchy.guard import validate_reparent
from mptree.core.database.hierarchy.path import Path
from mptree.core.database.hierarchy.rebuild import PathRebuilder

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Self

    from sqlalchemy.ext.asyncio import AsyncSession


class HierarchicalMixin:
    """Mixin for models with a materialized path column.

    The model must have a path column (``path`` by default, configurable via
    ``__path_column__``) and a nullable parent key (``parent_id`` by default,
    via ``__parent_column__``). Each node contributes one path segment taken
    from ``__path_source__`` (the primary key by default).

    Example:
        >>> class Category(Base, IntegerPKMixin, HierarchicalMixin):
        ...     __tablename__ = "categories"
        ...     name: Mapped[str] = mapped_column(String(255))
        ...     parent_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"))
        ...     path: Mapped[Path | None] = mapped_column(PathType(), index=True)
        >>>
        >>> root = await Category(name="Clothing").attach(session)
        >>> belts = await Category(name="Belts").attach(session, root)
        >>> belts.get_path()
        Path('1.2')
        >>> await belts.move_to(session, None)
        >>> belts.get_path()
        Path('2')

    Note:
        - The path column must be nullable when the path source is an
          autoincrement key, since the key only exists after the first flush
        - All query methods are async and require a session parameter
    """

    __allow_unmapped__ = True

    # Override in subclass to use different column names
    __path_column__: ClassVar[str] = "path"
    __parent_column__: ClassVar[str] = "parent_id"
    __parent_key__: ClassVar[str] = "id"
    __path_source__: ClassVar[str] = "id"

    @classmethod
    def path_attribute(cls) -> Any:
        """Mapped attribute holding the path."""
        return getattr(cls, cls.__path_column__)

    @property
    def path_source(self) -> Any:
        """Value used as this node's own path segment."""
        return getattr(self, self.__path_source__)

    def get_path(self) -> Path:
        """Current path of this node.

        Raises:
            InvalidPathError: If the node has no path yet
        """
        value = getattr(self, self.__path_column__)
        if value is None:
            raise InvalidPathError(
                f"{type(self).__name__} has no path yet, attach it to the tree first", value
            )
        return Path(value)

    @property
    def hierarchy_depth(self) -> int:
        """Return depth of this node in hierarchy.

        This property does NOT query the database.

        Returns:
            Integer depth (1 for root nodes, 0 while no path is assigned)
        """
        if getattr(self, self.__path_column__) is None:
            return 0
        return self.get_path().depth

    @property
    def is_root(self) -> bool:
        """Check if this is a root node (depth 1)."""
        return self.hierarchy_depth == 1

    @property
    def path_labels(self) -> list[str]:
        """Path segments from root to this node. Does NOT query the database."""
        if getattr(self, self.__path_column__) is None:
            return []
        return self.get_path().segments

    def build_path(self, parent: HierarchicalMixin | None = None) -> Path:
        """Compute this node's path under ``parent`` (root when None).

        Raises:
            InvalidPathError: If the path source has no value yet
        """
        source = self.path_source
        if source is None:
            raise InvalidPathError(
                f"Path source '{self.__path_source__}' of {type(self).__name__} is not set",
                source,
            )
        if parent is None:
            return Path.compose(source)
        return Path.compose(parent.get_path(), source)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def attach(self, session: AsyncSession, parent: Self | None = None) -> Self:
        """Insert this node under ``parent`` and assign its path.

        Args:
            session: Async database session
            parent: Parent node, None for a new root

        Returns:
            This node, flushed with its path set

        Raises:
            InvalidPathError: If ``parent`` has no path yet, checked before
                this node is added to the session
        """
        if parent is not None:
            parent.get_path()

        setattr(
            self,
            self.__parent_column__,
            None if parent is None else getattr(parent, self.__parent_key__),
        )
        session.add(self)
        if self.path_source is None:
            await session.flush()

        setattr(self, self.__path_column__, self.build_path(parent))
        await session.flush()
        return self

    async def move_to(self, session: AsyncSession, parent: Self | None) -> None:
        """Reparent this node and rebuild the paths of its whole subtree.

        The cycle check runs in memory before anything is written. The parent
        key update and the bulk path rebuild are issued in the session's
        current transaction, so committing (or rolling back) applies both
        together.

        Args:
            session: Async database session
            parent: New parent node, None to promote this node to root

        Raises:
            CircularReferenceError: If ``parent`` is this node or one of its
                descendants
        """
        path = self.get_path()
        parent_path = None if parent is None else parent.get_path()
        validate_reparent(path, parent_path)

        setattr(
            self,
            self.__parent_column__,
            None if parent is None else getattr(parent, self.__parent_key__),
        )
        await session.flush()

        dialect = await resolve_dialect(session)
        await PathRebuilder(dialect).rebuild(session, self.path_attribute(), path, parent_path)
        self._sync_loaded_paths(session, path, parent_path)

    def _sync_loaded_paths(
        self, session: AsyncSession, path: Path, parent_path: Path | None
    ) -> None:
        # Mirror the bulk rebuild on objects already in the identity map
        offset = path.depth - 1
        for obj in list(session.identity_map.values()):
            if not isinstance(obj, type(self)):
                continue
            # Unloaded or expired attributes are left for the next load
            value = inspect(obj).dict.get(self.__path_column__)
            if value is None:
                continue
            old = Path(value)
            if old != path and not old.is_descendant_of(path):
                continue
            suffix = old.segments[offset:]
            head = () if parent_path is None else (parent_path,)
            new = Path.compose(*head, *suffix)
            set_committed_value(obj, self.__path_column__, new)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    async def get_parent(self, session: AsyncSession) -> Self | None:
        """Get parent node, or None if this is a root node."""
        parent_path = self.get_path().parent
        if parent_path is None:
            return None

        stmt = select(self.__class__).where(self.path_attribute() == str(parent_path))
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_children(self, session: AsyncSession) -> list[Self]:
        """Get immediate children (exactly one level down), ordered by path."""
        path = self.get_path()
        column = self.path_attribute()
        dialect = await resolve_dialect(session)

        stmt = (
            TreeQuery(dialect)
            .where_descendant(column, path)
            .where_depth(column, path.depth + 1)
            .apply(select(self.__class__).order_by(column))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_ancestors(
        self,
        session: AsyncSession,
        *,
        include_self: bool = False,
    ) -> list[Self]:
        """Get all ancestor nodes.

        Args:
            session: Async database session
            include_self: Include this node at end of list (default: False)

        Returns:
            List of ancestors ordered from root to parent (optionally self)
        """
        path = self.get_path()
        column = self.path_attribute()
        query = TreeQuery(await resolve_dialect(session))

        if include_self:
            query.where_self_or_ancestor(column, path)
        else:
            query.where_ancestor(column, path)

        stmt = query.order_by_depth(column).apply(select(self.__class__))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_descendants(
        self,
        session: AsyncSession,
        *,
        include_self: bool = False,
        max_depth: int | None = None,
    ) -> list[Self]:
        """Get all descendant nodes.

        Args:
            session: Async database session
            include_self: Include this node at start of list (default: False)
            max_depth: Maximum depth of descendants relative to this node
                      (None for unlimited)

        Returns:
            List of descendants ordered by depth, then path
        """
        path = self.get_path()
        column = self.path_attribute()
        query = TreeQuery(await resolve_dialect(session))

        if include_self:
            query.where_self_or_descendant(column, path)
        else:
            query.where_descendant(column, path)

        if max_depth is not None:
            query.where_depth(column, path.depth + max_depth, "<=")

        stmt = query.order_by_depth(column).apply(select(self.__class__)).order_by(column)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_subtree_count(self, session: AsyncSession, *, include_self: bool = False) -> int:
        """Count descendants with COUNT instead of loading them."""
        path = self.get_path()
        column = self.path_attribute()
        query = TreeQuery(await resolve_dialect(session))

        if include_self:
            query.where_self_or_descendant(column, path)
        else:
            query.where_descendant(column, path)

        stmt = query.apply(select(func.count()).select_from(self.__class__))
        result = await session.execute(stmt)
        return result.scalar() or 0

    @classmethod
    async def get_roots(
        cls,
        session: AsyncSession,
        *,
        exclude_id: Any = None,
    ) -> list[Self]:
        """Get all root nodes (depth 1), ordered by path.

        Args:
            session: Async database session
            exclude_id: Optional ID to exclude from results
        """
        column = cls.path_attribute()
        stmt = TreeQuery(await resolve_dialect(session)).where_root(column).apply(select(cls))

        if exclude_id is not None:
            stmt = stmt.where(getattr(cls, cls.__parent_key__) != exclude_id)

        result = await session.execute(stmt.order_by(column))
        return list(result.scalars().all())

    @classmethod
    async def get_by_path(cls, session: AsyncSession, path: str | Path) -> Self | None:
        """Get node by exact path."""
        stmt = select(cls).where(cls.path_attribute() == str(path))
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def filter_roots(nodes: Iterable[HierarchicalMixin]) -> list[Any]:
        """Keep only root nodes from an already loaded collection."""
        return [node for node in nodes if node.is_root]


__all__ = [
    "HierarchicalMixin",
]
