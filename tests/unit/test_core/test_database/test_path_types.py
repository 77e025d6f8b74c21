"""Tests for path column types."""

from __future__ import annotations

import pytest
from sqlalchemy import Column, Integer, MetaData, Table
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.schema import CreateTable

from mptree.core.database.hierarchy.path import Path
from mptree.core.database.types import LtreeType, PathType


def ddl(column_type, dialect) -> str:
    table = Table(
        "items",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("path", column_type),
    )
    return str(CreateTable(table).compile(dialect=dialect))


@pytest.mark.unit
class TestPathTypeDDL:
    """Column type chosen per database."""

    def test_ltree_on_postgresql(self):
        assert "path LTREE" in ddl(PathType(), postgresql.dialect())

    def test_string_on_postgresql_when_not_native(self):
        assert "path VARCHAR(255)" in ddl(PathType(255, native=False), postgresql.dialect())

    def test_string_on_sqlite(self):
        assert "path VARCHAR(1024)" in ddl(PathType(), sqlite.dialect())

    def test_string_on_mysql_is_case_sensitive(self):
        assert "path VARCHAR(1024) COLLATE utf8mb4_bin" in ddl(PathType(), mysql.dialect())

    def test_sqlite_keeps_default_collation(self):
        assert "COLLATE" not in ddl(PathType(), sqlite.dialect())

    def test_ltree_type_col_spec(self):
        assert "path LTREE" in ddl(LtreeType(), postgresql.dialect())


@pytest.mark.unit
class TestPathTypeProcessing:
    """Values bound as strings and loaded as Path."""

    def test_bind_accepts_path_and_str(self):
        column_type = PathType()
        dialect = sqlite.dialect()

        assert column_type.process_bind_param(Path("1.2"), dialect) == "1.2"
        assert column_type.process_bind_param("1.2", dialect) == "1.2"
        assert column_type.process_bind_param(None, dialect) is None

    def test_result_is_path(self):
        value = PathType().process_result_value("1.2", sqlite.dialect())

        assert isinstance(value, Path)
        assert value.segments == ["1", "2"]

    def test_ltree_processors(self):
        column_type = LtreeType()
        bind = column_type.bind_processor(postgresql.dialect())
        result = column_type.result_processor(postgresql.dialect(), None)

        assert bind(Path("1.2")) == "1.2"
        assert result("1.2") == Path("1.2")
        assert result(None) is None


@pytest.mark.unit
class TestLtreeComparator:
    """Operators exposed on LtreeType columns."""

    table = Table("t", MetaData(), Column("path", LtreeType()))
    pg = postgresql.dialect()

    def test_descendant_of(self):
        sql = str(self.table.c.path.descendant_of("1.4").compile(dialect=self.pg))
        assert sql == "t.path <@ %(path_1)s"

    def test_ancestor_of(self):
        sql = str(self.table.c.path.ancestor_of("1.4.9").compile(dialect=self.pg))
        assert sql == "t.path @> %(path_1)s"

    def test_depth(self):
        assert str(self.table.c.path.depth().compile(dialect=self.pg)) == "nlevel(t.path)"
