"""Tests for TreeQuery condition grouping and validation."""

from __future__ import annotations

import pytest
from sqlalchemy import Column, Integer, MetaData, Table, select
from sqlalchemy.dialects import sqlite

from mptree.core.database.exceptions import InvalidFilterError
from mptree.core.database.hierarchy.dialects import StringDialect
from mptree.core.database.hierarchy.filters import DEPTH_OPERATORS, TreeQuery
from mptree.core.database.hierarchy.path import Path
from mptree.core.database.types import PathType

nodes = Table(
    "tree_nodes",
    MetaData(),
    Column("id", Integer, primary_key=True),
    Column("path", PathType()),
)


class FakeNode:
    """Reference node exposing the TreeNode protocol."""

    def __init__(self, path: str):
        self.path = Path(path)

    def get_path(self) -> Path:
        return self.path

    @classmethod
    def path_attribute(cls):
        return nodes.c.path


@pytest.fixture
def query() -> TreeQuery:
    return TreeQuery(StringDialect())


def render(statement) -> str:
    return str(statement.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))


@pytest.mark.unit
class TestTreeQueryGrouping:
    """AND binds tighter than OR."""

    def test_empty_query_has_no_clause(self, query):
        statement = select(nodes)

        assert query.clause is None
        assert render(query.apply(statement)) == render(statement)

    def test_and_conditions(self, query):
        query.where(nodes.c.id == 1).where(nodes.c.id == 2)
        assert render(query.clause) == "tree_nodes.id = 1 AND tree_nodes.id = 2"

    def test_or_starts_new_group(self, query):
        query.where(nodes.c.id == 1).where(nodes.c.id == 2).or_where(nodes.c.id == 3)
        assert render(query.clause) == (
            "tree_nodes.id = 1 AND tree_nodes.id = 2 OR tree_nodes.id = 3"
        )

    def test_and_after_or_joins_last_group(self, query):
        query.where(nodes.c.id == 1).or_where(nodes.c.id == 2).where(nodes.c.id == 3)
        assert render(query.clause) == (
            "tree_nodes.id = 1 OR tree_nodes.id = 2 AND tree_nodes.id = 3"
        )

    def test_leading_or_behaves_like_and(self, query):
        query.or_where(nodes.c.id == 1)
        assert render(query.clause) == "tree_nodes.id = 1"

    def test_invalid_boolean_raises(self, query):
        with pytest.raises(InvalidFilterError) as exc_info:
            query.where(nodes.c.id == 1, "xor")
        assert exc_info.value.details == {"filter": "boolean"}


@pytest.mark.unit
class TestTreeQueryConditions:
    """Tree-specific helpers lowered through the dialect."""

    def test_where_ancestor(self, query):
        query.where_ancestor(nodes.c.path, Path("1.2.3"))
        assert render(query.clause) == "tree_nodes.path IN ('1', '1.2')"

    def test_where_self_or_ancestor(self, query):
        query.where_self_or_ancestor(nodes.c.path, Path("1.2"))
        assert render(query.clause) == "tree_nodes.path IN ('1', '1.2')"

    def test_where_descendant_of_node(self, query):
        query.where_descendant_of(FakeNode("4.5"))
        assert "LIKE '4.5.' || '%'" in render(query.clause)

    def test_where_self_or_descendant_of_node_with_column(self, query):
        other = nodes.alias("other")
        query.where_self_or_descendant_of(FakeNode("4.5"), other.c.path)
        sql = render(query.clause)

        assert "other.path = '4.5'" in sql
        assert "tree_nodes" not in sql

    def test_or_where_root(self, query):
        query.where_descendant(nodes.c.path, Path("7")).or_where_root(nodes.c.path)
        sql = render(query.clause)

        assert " OR " in sql
        assert sql.endswith("+ 1 = 1")

    def test_column_conditions(self, query):
        other = nodes.alias("other")
        query.where_column_self_or_descendant(other.c.path, nodes.c.path)
        sql = render(query.clause)

        assert "tree_nodes.path = other.path" in sql
        assert "substr(other.path, 1, length(tree_nodes.path) + 1)" in sql

    @pytest.mark.parametrize("operator", sorted(DEPTH_OPERATORS))
    def test_where_depth_operators(self, query, operator):
        query.where_depth(nodes.c.path, 2, operator)
        assert render(query.clause).endswith(f"{'!=' if operator == '<>' else operator} 2")

    def test_where_depth_rejects_unknown_operator(self, query):
        with pytest.raises(InvalidFilterError) as exc_info:
            query.where_depth(nodes.c.path, 2, "LIKE")
        assert exc_info.value.details == {"filter": "depth"}


@pytest.mark.unit
class TestTreeQueryOrdering:
    """Depth ordering."""

    def test_order_by_depth_desc(self, query):
        statement = query.order_by_depth_desc(nodes.c.path).apply(select(nodes.c.id))
        assert render(statement).endswith("DESC")

    def test_order_by_depth_asc(self, query):
        statement = query.order_by_depth(nodes.c.path).apply(select(nodes.c.id))
        assert render(statement).endswith("ASC")

    def test_order_by_depth_rejects_unknown_direction(self, query):
        with pytest.raises(InvalidFilterError):
            query.order_by_depth(nodes.c.path, "sideways")
