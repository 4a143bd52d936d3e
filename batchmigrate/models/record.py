"""Record models for migration data."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class ValueKind(str, Enum):
    """Kinds of values a record can carry."""
    NULL = "null"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    RAW = "raw"  # Any other driver scalar, kept native


@dataclass(frozen=True)
class RecordValue:
    """A single coerced column value tagged with its kind."""
    kind: ValueKind
    value: Any = None

    @classmethod
    def null(cls) -> "RecordValue":
        return NULL

    @classmethod
    def text(cls, value: str) -> "RecordValue":
        return cls(ValueKind.TEXT, value)

    @classmethod
    def integer(cls, value: int) -> "RecordValue":
        return cls(ValueKind.INTEGER, value)

    @classmethod
    def floating(cls, value: float) -> "RecordValue":
        return cls(ValueKind.FLOAT, value)

    @classmethod
    def raw(cls, value: Any) -> "RecordValue":
        return cls(ValueKind.RAW, value)

    @property
    def is_null(self) -> bool:
        return self.kind == ValueKind.NULL

    def to_text(self) -> str:
        """Serialize the value for a text file field. NULL becomes ''."""
        if self.kind == ValueKind.NULL:
            return ""
        if self.kind == ValueKind.TEXT:
            return self.value
        if self.kind in (ValueKind.INTEGER, ValueKind.FLOAT):
            return str(self.value)

        value = self.value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).hex()
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()
        return str(value)

    def to_native(self) -> Any:
        """Get the value for binding as a database parameter."""
        return self.value


NULL = RecordValue(ValueKind.NULL)


@dataclass(frozen=True)
class ColumnDescriptor:
    """A source column name with its database type name."""
    name: str
    type_name: str = "TEXT"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type_name": self.type_name}


@dataclass(frozen=True)
class Record(Mapping):
    """
    One row or element of data flowing through the pipeline.

    Behaves as a read-only ordered mapping of column name to RecordValue.
    All records of one migration share the same column tuple.
    """
    columns: Tuple[str, ...]
    cells: Tuple[RecordValue, ...]

    def __post_init__(self):
        if len(self.columns) != len(self.cells):
            raise ValueError(
                f"Record has {len(self.cells)} values for {len(self.columns)} columns"
            )

    @classmethod
    def from_values(cls, columns: Tuple[str, ...], values: List[RecordValue]) -> "Record":
        """Create a record from a column tuple and matching values."""
        return cls(columns=tuple(columns), cells=tuple(values))

    @classmethod
    def from_texts(cls, columns: Tuple[str, ...], texts: List[Optional[str]]) -> "Record":
        """Create a record from file fields; None becomes NULL."""
        return cls(
            columns=tuple(columns),
            cells=tuple(NULL if t is None else RecordValue.text(t) for t in texts),
        )

    def __getitem__(self, column: str) -> RecordValue:
        try:
            return self.cells[self.columns.index(column)]
        except ValueError:
            raise KeyError(column) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def to_text_row(self) -> List[str]:
        """Get field strings in column order for a delimited writer."""
        return [v.to_text() for v in self.cells]

    def to_native_dict(self) -> Dict[str, Any]:
        """Get column -> native value for database insertion."""
        return {c: v.to_native() for c, v in zip(self.columns, self.cells)}


@dataclass(frozen=True)
class Batch:
    """A bounded, ordered group of records flushed together."""
    index: int
    records: Tuple[Record, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records
