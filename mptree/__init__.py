"""Materialized path hierarchies for SQLAlchemy.

Stores tree-shaped data in a relational table by keeping each node's full
ancestor chain in one path column, with ltree support on PostgreSQL and
string emulation everywhere else.
"""

__version__ = "0.1.0"
