"""SQL statement construction on top of SQLAlchemy Core."""

import re
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import Column, MetaData, Table, column, insert, literal_column, select, table, text
from sqlalchemy.schema import CreateTable
from sqlalchemy.sql.expression import Insert, Select, TextClause
from sqlalchemy.types import UserDefinedType

from ..models.record import ColumnDescriptor

# A colon starting a name, not part of "::" or already escaped
BIND_LIKE = re.compile(r"(?<![:\\]):(?=\w)")


def raw_sql(sql: str) -> TextClause:
    """Wrap caller SQL in a text clause with no bind parameters."""
    stripped = sql.strip().rstrip(";").rstrip()
    return text(BIND_LIKE.sub(r"\\:", stripped))


class VerbatimType(UserDefinedType):
    """A column type rendered exactly as the source database named it."""

    cache_ok = True

    def __init__(self, type_name: str):
        self.type_name = type_name

    def get_col_spec(self, **kw: Any) -> str:
        return self.type_name


class QueryBuilder:
    """
    Builds SELECT, INSERT and CREATE TABLE statements.

    Statements are plain SQLAlchemy constructs, compiled by whichever
    connection executes them. A new statement is built on every call, so
    nothing is shared between batches.
    """

    def probe_table(self, name: str, schema: Optional[str] = None) -> Select:
        """SELECT * FROM <table> LIMIT 1"""
        return select(literal_column("*")).select_from(table(name, schema=schema)).limit(1)

    def probe_query(self, sql: str, limit: int = 1) -> TextClause:
        """Append a row limit to a caller-supplied query."""
        stripped = sql.strip().rstrip(";").rstrip()
        return raw_sql(f"{stripped} LIMIT {int(limit)}")

    def select_columns(
        self,
        name: str,
        columns: Sequence[str],
        schema: Optional[str] = None
    ) -> Select:
        """SELECT <columns> FROM <table>"""
        return select(*[column(c) for c in columns]).select_from(table(name, schema=schema))

    def select_from_query(self, sql: str, columns: Sequence[str]) -> Select:
        """Select an explicit column list out of a raw query."""
        source = raw_sql(sql).columns(*[column(c) for c in columns]).subquery("source_query")
        return select(*[source.c[c] for c in columns])

    def insert_rows(
        self,
        name: str,
        columns: Sequence[str],
        rows: List[Dict[str, Any]],
        schema: Optional[str] = None
    ) -> Insert:
        """INSERT INTO <table> (<columns>) VALUES (<row>), (<row>), ..."""
        target = table(name, *[column(c) for c in columns], schema=schema)
        return insert(target).values(rows)

    def create_table(
        self,
        name: str,
        descriptors: Sequence[ColumnDescriptor],
        schema: Optional[str] = None
    ) -> CreateTable:
        """CREATE TABLE <name> (<column> <type>, ...)"""
        target = Table(
            name,
            MetaData(),
            *[Column(d.name, VerbatimType(d.type_name)) for d in descriptors],
            schema=schema,
        )
        return CreateTable(target)
