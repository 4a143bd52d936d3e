"""Data models for the migration engine."""

from .record import (
    NULL,
    ValueKind,
    RecordValue,
    ColumnDescriptor,
    Record,
    Batch,
)
from .migration import (
    DEFAULT_BATCH_SIZE,
    MigrationStatus,
    EndpointKind,
    FileFormat,
    MigrationKind,
    FileEndpoint,
    DatabaseEndpoint,
    Endpoint,
    MigrationDescriptor,
    MigrationRun,
)
from .config import (
    FileConfig,
    DatabaseConfig,
    SourceConfig,
    TargetConfig,
    MigrationConfig,
)

__all__ = [
    "NULL",
    "ValueKind",
    "RecordValue",
    "ColumnDescriptor",
    "Record",
    "Batch",
    "DEFAULT_BATCH_SIZE",
    "MigrationStatus",
    "EndpointKind",
    "FileFormat",
    "MigrationKind",
    "FileEndpoint",
    "DatabaseEndpoint",
    "Endpoint",
    "MigrationDescriptor",
    "MigrationRun",
    "FileConfig",
    "DatabaseConfig",
    "SourceConfig",
    "TargetConfig",
    "MigrationConfig",
]
