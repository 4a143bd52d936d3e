"""Coercion of driver values into record values."""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Sequence, Tuple
from uuid import UUID

from ..exceptions import CoercionContractError, RowError
from ..models.record import NULL, Record, RecordValue

logger = logging.getLogger(__name__)

# Scalars the drivers may return that are kept as native RAW values
RAW_SCALAR_TYPES = (bool, Decimal, datetime, date, time, timedelta, UUID)


class ValueCoercer:
    """
    Normalizes driver values into the pipeline's RecordValue variant.

    Byte sequences are read as text. Other known scalars keep their native
    value. Any other kind is a contract violation and raises
    CoercionContractError.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def coerce(self, value: Any) -> RecordValue:
        """
        Coerce a single driver value.

        Args:
            value: Value as returned by the driver or file reader

        Returns:
            Tagged RecordValue

        Raises:
            CoercionContractError: If the value kind is not recognized
        """
        if value is None:
            return NULL
        if isinstance(value, str):
            return RecordValue.text(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self._coerce_bytes(bytes(value))
        # bool is an int subclass, check it first
        if isinstance(value, RAW_SCALAR_TYPES):
            return RecordValue.raw(value)
        if isinstance(value, int):
            return RecordValue.integer(value)
        if isinstance(value, float):
            return RecordValue.floating(value)
        raise CoercionContractError(value)

    def coerce_row(
        self,
        columns: Tuple[str, ...],
        row: Sequence[Any],
        row_number: int = 0
    ) -> Record:
        """
        Coerce one driver row into a Record.

        Raises:
            RowError: If the row width does not match the columns
        """
        if len(row) != len(columns):
            raise RowError(
                f"expected {len(columns)} values, got {len(row)}",
                row_number=row_number,
            )
        return Record.from_values(columns, [self.coerce(v) for v in row])

    def _coerce_bytes(self, value: bytes) -> RecordValue:
        try:
            return RecordValue.text(value.decode(self.encoding))
        except UnicodeDecodeError:
            logger.debug(f"Keeping {len(value)} undecodable bytes as raw value")
            return RecordValue.raw(value)
