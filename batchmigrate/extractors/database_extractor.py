"""Relational table or query extractor."""

import logging
from typing import Iterator, Optional, Sequence

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseExtractor
from ..exceptions import RowError, SourceError
from ..models.record import Record
from ..models.migration import DatabaseEndpoint
from ..services.coercer import ValueCoercer
from ..services.connections import create_db_engine
from ..services.query_builder import QueryBuilder

logger = logging.getLogger(__name__)


class DatabaseExtractor(BaseExtractor):
    """
    Extractor for a database table or raw query.

    The main scan always selects the discovered columns explicitly, in
    order, and reads them through a forward-only streaming cursor.
    """

    def __init__(
        self,
        endpoint: DatabaseEndpoint,
        coercer: Optional[ValueCoercer] = None,
        query_builder: Optional[QueryBuilder] = None
    ):
        super().__init__(endpoint, coercer)
        self.query_builder = query_builder or QueryBuilder()
        self.engine: Optional[Engine] = None
        self.connection: Optional[Connection] = None

    def open(self) -> None:
        self.engine = create_db_engine(self.endpoint.url)
        try:
            self.connection = self.engine.connect()
        except SQLAlchemyError as e:
            raise SourceError(
                f"Cannot connect to source {self.endpoint.safe_url()}: {e}"
            ) from e
        logger.info(f"Connected to source database {self.endpoint.safe_url()}")

    def build_select(self, columns: Sequence[str]):
        """Build the main scan statement for the discovered columns."""
        if self.endpoint.sql:
            return self.query_builder.select_from_query(self.endpoint.sql, columns)
        return self.query_builder.select_columns(
            self.endpoint.table_name, columns, schema=self.endpoint.schema
        )

    def read(self, columns: Sequence[str]) -> Iterator[Record]:
        if self.connection is None:
            raise SourceError("Source database is not connected")

        columns = tuple(columns)
        statement = self.build_select(columns)
        try:
            result = self.connection.execution_options(stream_results=True).execute(statement)
        except SQLAlchemyError as e:
            raise SourceError(f"Source query failed: {e}") from e

        row_number = 0
        try:
            while True:
                try:
                    row = result.fetchone()
                except SQLAlchemyError as e:
                    raise RowError(f"Cannot fetch row: {e}", row_number=row_number + 1) from e
                if row is None:
                    break
                row_number += 1
                yield self.coercer.coerce_row(columns, tuple(row), row_number=row_number)
                self.records_read += 1
        finally:
            result.close()

    def _close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
