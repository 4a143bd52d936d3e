"""Migration engine - coordinates a single source-to-target transfer."""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .exceptions import CoercionContractError, MigrationError, WriteError
from .models.migration import (
    DatabaseEndpoint,
    FileFormat,
    MigrationDescriptor,
    MigrationKind,
    MigrationRun,
    MigrationStatus,
)
from .models.record import Batch, ColumnDescriptor
from .services.batcher import BatchBuffer
from .services.coercer import ValueCoercer
from .services.discovery import ColumnDiscoverer
from .services.query_builder import QueryBuilder
from .extractors.base import BaseExtractor
from .extractors.csv_extractor import DelimitedExtractor
from .extractors.xml_extractor import XMLExtractor
from .extractors.database_extractor import DatabaseExtractor
from .loaders.base import BaseLoader
from .loaders.csv_loader import DelimitedLoader
from .loaders.xml_loader import XMLLoader
from .loaders.database_loader import DatabaseLoader

logger = logging.getLogger(__name__)


class MigrationEngine:
    """
    Runs one migration described by an immutable descriptor.

    Handles:
    - Column discovery on the source
    - Target preparation (file creation, table checks, CREATE TABLE)
    - Streaming records through a batch buffer into the target
    - Unconditional cleanup of every opened source and target
    """

    def __init__(
        self,
        descriptor: MigrationDescriptor,
        coercer: Optional[ValueCoercer] = None,
        query_builder: Optional[QueryBuilder] = None
    ):
        """
        Initialize the engine.

        Args:
            descriptor: Resolved migration descriptor
            coercer: Value coercer shared by the source reader
            query_builder: Statement builder for database endpoints
        """
        self.descriptor = descriptor
        encoding = getattr(descriptor.source, "encoding", "utf-8")
        self.coercer = coercer or ValueCoercer(encoding)
        self.query_builder = query_builder or QueryBuilder()

        self.migration_run: Optional[MigrationRun] = None
        self.extractor: Optional[BaseExtractor] = None
        self.loader: Optional[BaseLoader] = None
        self.discoverer: Optional[ColumnDiscoverer] = None

        self._prepare: Dict[MigrationKind, Callable[[List[str]], None]] = {
            MigrationKind.FILE_TO_FILE: self._prepare_file_target,
            MigrationKind.FILE_TO_DB: self._require_target_table,
            MigrationKind.DB_TO_FILE: self._prepare_file_target,
            MigrationKind.DB_TO_DB: self._create_target_table,
        }

    def run(self) -> MigrationRun:
        """
        Run the migration to completion or first unrecoverable error.

        Returns:
            MigrationRun with status, counters and errors

        Raises:
            CoercionContractError: If a driver returned a value of an
                unsupported type; cleanup still runs first
        """
        kind = self.descriptor.kind
        self.migration_run = MigrationRun(name=self.descriptor.name, kind=kind)
        self.migration_run.started_at = datetime.utcnow()
        logger.info(
            f"Starting {kind.value} migration: "
            f"{self.descriptor.source.describe()} -> {self.descriptor.target.describe()}"
        )

        try:
            logger.info("=== DISCOVERY ===")
            self.migration_run.status = MigrationStatus.DISCOVERING
            columns = self._discover()
            self.migration_run.columns = list(columns)

            logger.info("=== PREPARE TARGET ===")
            self.migration_run.status = MigrationStatus.PREPARING
            self.loader = self._create_loader()
            self.loader.open(columns)
            self._prepare[kind](columns)

            logger.info("=== TRANSFER ===")
            self.migration_run.status = MigrationStatus.TRANSFERRING
            self._transfer(columns)
            self.loader.finish()

            self.migration_run.status = MigrationStatus.COMPLETED
            logger.info("=== MIGRATION COMPLETED ===")

        except MigrationError as e:
            logger.error(f"Migration failed: {e}")
            self.migration_run.status = MigrationStatus.FAILED
            self.migration_run.error = e
            self.migration_run.add_error(e.stage or "migration", e)

        except CoercionContractError:
            self.migration_run.status = MigrationStatus.FAILED
            raise

        finally:
            self._cleanup()
            self.migration_run.completed_at = datetime.utcnow()

        logger.info(
            f"Migrated {self.migration_run.records_migrated} records in "
            f"{self.migration_run.batches_flushed} batches ({self.migration_run.batches_failed} failed)"
        )
        return self.migration_run

    def discover(self) -> List[ColumnDescriptor]:
        """
        Discover and describe the source columns without touching the target.

        Returns:
            One ColumnDescriptor per discovered column, in migration order
        """
        try:
            columns = self._discover()
            return self.discoverer.describe(columns)
        finally:
            self._cleanup()

    def _discover(self) -> List[str]:
        self.extractor = self._create_extractor()
        self.extractor.open()
        self.discoverer = ColumnDiscoverer(
            self.descriptor.source,
            connection=getattr(self.extractor, "connection", None),
            query_builder=self.query_builder,
        )
        return self.discoverer.discover()

    def _prepare_file_target(self, columns: List[str]) -> None:
        logger.info(f"Writing {len(columns)} columns to {self.descriptor.target.describe()}")

    def _require_target_table(self, columns: List[str]) -> None:
        self.loader.require_table()

    def _create_target_table(self, columns: List[str]) -> None:
        created = self.loader.ensure_table(self.discoverer.describe(columns))
        if not created:
            logger.info(f"Target table {self.descriptor.target.table} exists, appending")
        self.migration_run.table_created = created

    def _transfer(self, columns: List[str]) -> None:
        buffer = BatchBuffer(self.descriptor.batch_size)
        for record in self.extractor.read(columns):
            batch = buffer.add(record)
            if batch is not None:
                self._flush(batch)
        self._flush(buffer.flush_remaining())

    def _flush(self, batch: Batch) -> None:
        if batch.is_empty:
            return

        try:
            written = self.loader.write(batch)
        except WriteError as e:
            self.migration_run.batches_failed += 1
            if not self.descriptor.continue_on_error:
                raise

            logger.error(f"Batch {batch.index} failed, continuing: {e}")
            self.migration_run.add_error("write", e, batch_index=batch.index, records=len(batch))
            if self.migration_run.batches_failed >= self.descriptor.max_errors:
                raise WriteError(
                    f"Max errors ({self.descriptor.max_errors}) exceeded", batch.index
                ) from e
            return

        self.migration_run.batches_flushed += 1
        self.migration_run.records_migrated += written

    def _cleanup(self) -> None:
        for name, resource in (("source", self.extractor), ("target", self.loader)):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")

    def _create_extractor(self) -> BaseExtractor:
        """Create an appropriate extractor for the source."""
        source = self.descriptor.source
        if isinstance(source, DatabaseEndpoint):
            return DatabaseExtractor(source, self.coercer, self.query_builder)
        elif source.format == FileFormat.XML:
            return XMLExtractor(source, self.coercer)
        else:
            return DelimitedExtractor(source, self.coercer)

    def _create_loader(self) -> BaseLoader:
        """Create an appropriate loader for the target."""
        target = self.descriptor.target
        if isinstance(target, DatabaseEndpoint):
            return DatabaseLoader(target, self.query_builder)
        elif target.format == FileFormat.XML:
            return XMLLoader(target)
        else:
            return DelimitedLoader(target)


def run_migration(descriptor: MigrationDescriptor) -> MigrationRun:
    """Build an engine for the descriptor and run it."""
    return MigrationEngine(descriptor).run()
