"""Column discovery for migration sources."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import bindparam, inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import CompileError, SQLAlchemyError

from ..exceptions import DiscoveryError
from ..extractors.csv_extractor import read_delimited_header
from ..extractors.xml_extractor import discover_xml_columns
from ..models.migration import DatabaseEndpoint, Endpoint, FileEndpoint, FileFormat
from ..models.record import ColumnDescriptor
from .query_builder import QueryBuilder

logger = logging.getLogger(__name__)

FALLBACK_TYPE = "TEXT"

PG_TYPE_NAMES = text(
    "SELECT oid, format_type(oid, NULL) FROM pg_catalog.pg_type WHERE oid IN :oids"
).bindparams(bindparam("oids", expanding=True))


class ColumnDiscoverer:
    """
    Determines the ordered column names of a source.

    Database sources are probed with a one-row query and their column names
    sorted. Delimited files use their header line as-is. XML sources use
    explicit columns, or the child tags of the first record in document order.
    """

    def __init__(
        self,
        source: Endpoint,
        connection: Optional[Connection] = None,
        query_builder: Optional[QueryBuilder] = None
    ):
        """
        Initialize the discoverer.

        Args:
            source: Source endpoint
            connection: Open source connection, required for database sources
            query_builder: Statement builder for probe queries
        """
        self.source = source
        self.connection = connection
        self.query_builder = query_builder or QueryBuilder()

    def discover(self) -> List[str]:
        """
        Discover the source columns.

        Returns:
            Ordered column names

        Raises:
            DiscoveryError: If no usable columns can be determined
        """
        if isinstance(self.source, FileEndpoint):
            if self.source.format == FileFormat.XML:
                columns = discover_xml_columns(self.source)
            else:
                columns = read_delimited_header(self.source)
        else:
            columns = sorted(self._probe_database())

        self._check_columns(columns)
        logger.info(f"Discovered {len(columns)} columns: {', '.join(columns)}")
        return columns

    def describe(self, columns: Sequence[str]) -> List[ColumnDescriptor]:
        """
        Get the source type name of each column.

        File columns are reported as TEXT.

        Args:
            columns: Discovered column names, in order

        Returns:
            One ColumnDescriptor per column, same order
        """
        if isinstance(self.source, FileEndpoint):
            return [ColumnDescriptor(name, FALLBACK_TYPE) for name in columns]

        try:
            if self.source.sql:
                type_names = self._query_type_names()
            else:
                type_names = self._reflected_type_names()
        except SQLAlchemyError as e:
            raise DiscoveryError(f"Cannot read source column types: {e}") from e

        descriptors = []
        for name in columns:
            type_name = type_names.get(name)
            if not type_name:
                logger.warning(f"No type reported for column {name}, using {FALLBACK_TYPE}")
                type_name = FALLBACK_TYPE
            descriptors.append(ColumnDescriptor(name, type_name))
        return descriptors

    def _connection(self) -> Connection:
        if self.connection is None:
            raise DiscoveryError("Database discovery needs an open source connection")
        return self.connection

    def _probe_statement(self):
        source: DatabaseEndpoint = self.source
        if source.sql:
            return self.query_builder.probe_query(source.sql)
        return self.query_builder.probe_table(source.table_name, schema=source.schema)

    def _probe_database(self) -> List[str]:
        try:
            result = self._connection().execute(self._probe_statement())
            columns = list(result.keys())
            row = result.first()
        except SQLAlchemyError as e:
            raise DiscoveryError(f"Probe query on {self.source.describe()} failed: {e}") from e

        if row is None:
            raise DiscoveryError(
                f"Probe query on {self.source.describe()} returned no rows; "
                "cannot infer columns"
            )
        return columns

    def _reflected_type_names(self) -> Dict[str, str]:
        connection = self._connection()
        reflected = inspect(connection).get_columns(
            self.source.table_name, schema=self.source.schema
        )
        return {col["name"]: _compile_type(col["type"], connection) for col in reflected}

    def _query_type_names(self) -> Dict[str, str]:
        connection = self._connection()
        result = connection.execute(self._probe_statement())
        try:
            names = list(result.keys())
            type_codes = [entry[1] for entry in result.cursor.description]
        finally:
            result.close()

        resolved = self._resolve_type_codes(connection, type_codes)
        return {name: resolved.get(code) for name, code in zip(names, type_codes)}

    def _resolve_type_codes(self, connection: Connection, type_codes: List[Any]) -> Dict[Any, str]:
        # psycopg2 reports type OIDs; resolve them through the catalog
        if connection.dialect.name == "postgresql":
            oids = sorted({code for code in type_codes if isinstance(code, int)})
            if not oids:
                return {}
            rows = connection.execute(PG_TYPE_NAMES, {"oids": oids})
            return {oid: type_name for oid, type_name in rows}

        return {code: code for code in type_codes if isinstance(code, str) and code}

    @staticmethod
    def _check_columns(columns: List[str]) -> None:
        if not columns:
            raise DiscoveryError("Source has no columns")
        blank = [i for i, name in enumerate(columns) if not name]
        if blank:
            raise DiscoveryError(f"Blank column name at position {blank[0] + 1}")
        seen = set()
        for name in columns:
            if name in seen:
                raise DiscoveryError(f"Duplicate column name: {name}")
            seen.add(name)


def _compile_type(type_: Any, connection: Connection) -> Optional[str]:
    try:
        return type_.compile(dialect=connection.dialect)
    except (CompileError, NotImplementedError) as e:
        logger.debug(f"Cannot compile reflected type {type_!r}: {e}")
        return None
