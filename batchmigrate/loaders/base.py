"""Base loader interface for migration targets."""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple
import logging

from ..models.migration import Endpoint
from ..models.record import Batch

logger = logging.getLogger(__name__)


class BaseLoader(ABC):
    """
    Base class for target writers.

    A loader exclusively owns its target handle from ``open`` until
    ``close``. Batches are written in order with ``write``; ``finish`` is
    called once after the last batch of a successful run.
    """

    def __init__(self, endpoint: Endpoint):
        """
        Initialize the loader.

        Args:
            endpoint: Target endpoint
        """
        self.endpoint = endpoint
        self.columns: Tuple[str, ...] = ()
        self.batches_written = 0
        self.records_written = 0
        self._closed = False

    @abstractmethod
    def open(self, columns: Sequence[str]) -> None:
        """
        Acquire the target handle and prepare for writing.

        Args:
            columns: Column names, in the order every record uses
        """
        pass

    def write(self, batch: Batch) -> int:
        """
        Write one flushed batch. An empty batch is a no-op.

        Returns:
            Number of records written

        Raises:
            WriteError: If the batch could not be written
        """
        if batch.is_empty:
            return 0

        self._write_batch(batch)
        self.batches_written += 1
        self.records_written += len(batch)
        logger.info(f"Wrote batch {batch.index} ({len(batch)} records) to {self.endpoint.describe()}")
        return len(batch)

    @abstractmethod
    def _write_batch(self, batch: Batch) -> None:
        pass

    def finish(self) -> None:
        """Flush and finalize the target after the last batch."""
        pass

    def close(self) -> None:
        """Release the target handle."""
        if self._closed:
            return
        self._closed = True
        self._close()
        logger.debug(f"Closed {self.endpoint.describe()} after {self.records_written} records")

    def _close(self) -> None:
        pass

    def _check_open(self, handle: object) -> None:
        if handle is None:
            raise RuntimeError(f"{type(self).__name__} is not open")

    @staticmethod
    def _rows(batch: Batch) -> List[List[str]]:
        return [record.to_text_row() for record in batch]
