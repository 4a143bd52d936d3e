"""Migration execution models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from enum import Enum
from datetime import datetime
import uuid

from sqlalchemy.engine import make_url

DEFAULT_BATCH_SIZE = 1000


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    DISCOVERING = "discovering"
    PREPARING = "preparing"
    TRANSFERRING = "transferring"
    COMPLETED = "completed"
    FAILED = "failed"


class EndpointKind(str, Enum):
    """Whether an endpoint is a file or a database."""
    FILE = "file"
    DATABASE = "database"


class FileFormat(str, Enum):
    """Supported file formats."""
    CSV = "csv"  # Delimited text, first line is the header
    XML = "xml"  # One root element, one child element per record


class MigrationKind(str, Enum):
    """Transfer topology, keyed by (source kind, target kind)."""
    FILE_TO_FILE = "file_to_file"
    FILE_TO_DB = "file_to_db"
    DB_TO_FILE = "db_to_file"
    DB_TO_DB = "db_to_db"

    @classmethod
    def resolve(cls, source: EndpointKind, target: EndpointKind) -> "MigrationKind":
        return _KIND_TABLE[(source, target)]


_KIND_TABLE = {
    (EndpointKind.FILE, EndpointKind.FILE): MigrationKind.FILE_TO_FILE,
    (EndpointKind.FILE, EndpointKind.DATABASE): MigrationKind.FILE_TO_DB,
    (EndpointKind.DATABASE, EndpointKind.FILE): MigrationKind.DB_TO_FILE,
    (EndpointKind.DATABASE, EndpointKind.DATABASE): MigrationKind.DB_TO_DB,
}


@dataclass(frozen=True)
class FileEndpoint:
    """A delimited-text or XML file."""
    path: str
    format: FileFormat = FileFormat.CSV
    delimiter: str = ","
    encoding: str = "utf-8"

    # Projection for XML sources; discovered from the first record when empty
    columns: Tuple[str, ...] = ()
    root_tag: str = "records"
    record_tag: str = "record"

    @property
    def kind(self) -> EndpointKind:
        return EndpointKind.FILE

    def describe(self) -> str:
        return f"{self.format.value} file {self.path}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "path": self.path,
            "format": self.format.value,
            "delimiter": self.delimiter,
            "encoding": self.encoding,
            "columns": list(self.columns),
            "root_tag": self.root_tag,
            "record_tag": self.record_tag,
        }


@dataclass(frozen=True)
class DatabaseEndpoint:
    """A relational table, or a raw query for sources."""
    url: str  # SQLAlchemy URL
    table: Optional[str] = None
    sql: Optional[str] = None

    @property
    def kind(self) -> EndpointKind:
        return EndpointKind.DATABASE

    @property
    def table_name(self) -> Optional[str]:
        """Table name without a schema qualifier."""
        if not self.table:
            return None
        return self.table.rsplit(".", 1)[-1]

    @property
    def schema(self) -> Optional[str]:
        """Schema qualifier of a dotted table name, if any."""
        if self.table and "." in self.table:
            return self.table.rsplit(".", 1)[0]
        return None

    def describe(self) -> str:
        if self.sql:
            return "database query"
        return f"database table {self.table}"

    def safe_url(self) -> str:
        """URL with the password masked, for logs and reports."""
        return make_url(self.url).render_as_string(hide_password=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "url": self.safe_url(),
            "table": self.table,
            "sql": self.sql,
        }


Endpoint = Union[FileEndpoint, DatabaseEndpoint]


@dataclass(frozen=True)
class MigrationDescriptor:
    """
    Immutable configuration for one migration.

    Built once from validated configuration and never mutated mid-run.
    """
    source: Endpoint
    target: Endpoint
    batch_size: int = DEFAULT_BATCH_SIZE
    continue_on_error: bool = False  # Keep going after a failed batch write
    max_errors: int = 10  # Failed batches tolerated when continue_on_error
    name: str = ""

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")
        if isinstance(self.target, DatabaseEndpoint) and self.target.sql:
            raise ValueError("A database target needs a table, not a query")

    @property
    def kind(self) -> MigrationKind:
        return MigrationKind.resolve(self.source.kind, self.target.kind)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "source": self.source.to_dict(),
            "target": self.target.to_dict(),
            "batch_size": self.batch_size,
            "continue_on_error": self.continue_on_error,
            "max_errors": self.max_errors,
        }


@dataclass
class MigrationRun:
    """A migration run and its outcome."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    kind: Optional[MigrationKind] = None
    status: MigrationStatus = MigrationStatus.PENDING

    # Timing
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Progress
    columns: List[str] = field(default_factory=list)
    records_migrated: int = 0
    batches_flushed: int = 0
    batches_failed: int = 0
    table_created: bool = False

    # Errors
    error: Optional[BaseException] = None  # First fatal error
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success(self) -> bool:
        return self.status == MigrationStatus.COMPLETED and self.error is None

    def add_error(self, stage: str, error: BaseException, **details: Any) -> None:
        """Record an error against the run."""
        entry = {
            "stage": stage,
            "error": str(error),
            "timestamp": datetime.utcnow().isoformat(),
        }
        entry.update(details)
        self.errors.append(entry)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value if self.kind else None,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "columns": self.columns,
            "records_migrated": self.records_migrated,
            "batches_flushed": self.batches_flushed,
            "batches_failed": self.batches_failed,
            "table_created": self.table_created,
            "error": str(self.error) if self.error else None,
            "errors": self.errors,
        }
