"""Base extractor interface."""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Sequence
import logging

from ..models.record import Record
from ..models.migration import Endpoint
from ..services.coercer import ValueCoercer

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Base class for all source readers.

    An extractor exclusively owns its source handle (file or database
    connection) from ``open`` until ``close``. ``close`` is idempotent and
    safe to call when ``open`` failed or was never called.
    """

    def __init__(self, endpoint: Endpoint, coercer: Optional[ValueCoercer] = None):
        """
        Initialize the extractor.

        Args:
            endpoint: Source endpoint
            coercer: Value coercer for driver values
        """
        self.endpoint = endpoint
        self.coercer = coercer or ValueCoercer()
        self.records_read = 0
        self._closed = False

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the source handle.

        Raises:
            SourceError: If the source cannot be opened
        """
        pass

    @abstractmethod
    def read(self, columns: Sequence[str]) -> Iterator[Record]:
        """
        Stream records in source order.

        Args:
            columns: Discovered column names; every record uses this order

        Yields:
            One Record per source row or element
        """
        pass

    def close(self) -> None:
        """Release the source handle."""
        if self._closed:
            return
        self._closed = True
        self._close()
        logger.debug(f"Closed {self.endpoint.describe()} after {self.records_read} records")

    def _close(self) -> None:
        pass
