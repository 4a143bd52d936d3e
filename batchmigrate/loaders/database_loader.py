"""Relational table loader."""

import logging
from typing import Optional, Sequence

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseLoader
from ..exceptions import MigrationError, WriteError
from ..models.migration import DatabaseEndpoint
from ..models.record import Batch, ColumnDescriptor
from ..services.connections import create_db_engine
from ..services.query_builder import QueryBuilder

logger = logging.getLogger(__name__)


class DatabaseLoader(BaseLoader):
    """
    Loader for a database table.

    Each batch becomes one multi-row INSERT, built fresh for that batch and
    committed on its own. A failed batch is rolled back; batches committed
    before it stay in the table.
    """

    def __init__(self, endpoint: DatabaseEndpoint, query_builder: Optional[QueryBuilder] = None):
        super().__init__(endpoint)
        self.query_builder = query_builder or QueryBuilder()
        self.engine: Optional[Engine] = None
        self.connection: Optional[Connection] = None

    def open(self, columns: Sequence[str]) -> None:
        self.columns = tuple(columns)
        self.engine = create_db_engine(self.endpoint.url)
        try:
            self.connection = self.engine.connect()
        except SQLAlchemyError as e:
            raise WriteError(
                f"Cannot connect to target {self.endpoint.safe_url()}: {e}"
            ) from e
        logger.info(f"Connected to target database {self.endpoint.safe_url()}")

    def table_exists(self) -> bool:
        """Check the target catalog for the destination table."""
        self._check_open(self.connection)
        try:
            exists = inspect(self.connection).has_table(
                self.endpoint.table_name, schema=self.endpoint.schema
            )
        except SQLAlchemyError as e:
            raise MigrationError(
                f"Cannot check whether table {self.endpoint.table} exists: {e}", stage="prepare"
            ) from e
        logger.debug(f"Table {self.endpoint.table} exists: {exists}")
        return exists

    def require_table(self) -> None:
        """
        Fail unless the destination table already exists.

        Raises:
            MigrationError: If the table is absent
        """
        if not self.table_exists():
            raise MigrationError(
                f"Target table {self.endpoint.table} does not exist; "
                "create it before loading from a file",
                stage="prepare",
            )

    def create_table(self, descriptors: Sequence[ColumnDescriptor]) -> None:
        """
        Issue CREATE TABLE with the source's type names, verbatim.

        Raises:
            MigrationError: If the statement fails
        """
        self._check_open(self.connection)
        statement = self.query_builder.create_table(
            self.endpoint.table_name, descriptors, schema=self.endpoint.schema
        )
        try:
            self.connection.execute(statement)
            self.connection.commit()
        except SQLAlchemyError as e:
            self.connection.rollback()
            raise MigrationError(
                f"Cannot create table {self.endpoint.table}: {e}", stage="prepare"
            ) from e

        columns = ", ".join(f"{d.name} {d.type_name}" for d in descriptors)
        logger.info(f"Created table {self.endpoint.table} ({columns})")

    def ensure_table(self, descriptors: Sequence[ColumnDescriptor]) -> bool:
        """
        Create the destination table if it is absent.

        Returns:
            True if the table was created
        """
        if self.table_exists():
            return False
        logger.info(f"Table {self.endpoint.table} does not exist")
        self.create_table(descriptors)
        return True

    def _write_batch(self, batch: Batch) -> None:
        self._check_open(self.connection)
        statement = self.query_builder.insert_rows(
            self.endpoint.table_name,
            self.columns,
            [record.to_native_dict() for record in batch],
            schema=self.endpoint.schema,
        )
        try:
            self.connection.execute(statement)
            self.connection.commit()
        except SQLAlchemyError as e:
            self.connection.rollback()
            raise WriteError(
                f"Insert into {self.endpoint.table} failed: {e}", batch.index
            ) from e

    def _close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
