"""Declarative base and primary key mixin.

Tree models combine the base, a primary key mixin and HierarchicalMixin:

    class Category(Base, IntegerPKMixin, HierarchicalMixin):
        name: Mapped[str] = mapped_column(String(255))
        parent_id: Mapped[int | None] = mapped_column(ForeignKey("category.id"))
        path: Mapped[Path | None] = mapped_column(PathType(), index=True)
"""

from __future__ import annotations

import re

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

# Constraint and index names, stable across databases for migrations
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class Base(DeclarativeBase):
    """Declarative base deriving snake_case table names from class names.

    ``ProductCategory`` maps to ``product_category`` unless the model sets
    ``__tablename__`` itself.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return _CAMEL_BOUNDARY.sub("_", cls.__name__).lower()


class IntegerPKMixin:
    """Auto-incrementing integer ``id``.

    The default path source of HierarchicalMixin, so a node's own segment is
    its id and the key must be flushed before the path can be assigned.
    """

    __allow_unmapped__ = True

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "IntegerPKMixin",
]
