"""Fixed-size batching of records."""

import logging
from typing import Iterable, Iterator, List, Optional

from ..models.record import Batch, Record

logger = logging.getLogger(__name__)


class BatchBuffer:
    """
    Accumulates records and releases them in batches of ``threshold``.

    ``add`` returns a full batch as soon as the threshold is reached.
    ``flush_remaining`` releases whatever is left exactly once, possibly as
    an empty batch, and closes the buffer.
    """

    def __init__(self, threshold: int):
        if threshold < 1:
            raise ValueError(f"Batch threshold must be at least 1, got {threshold}")
        self.threshold = threshold
        self.total_added = 0
        self.batches_emitted = 0
        self._pending: List[Record] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, record: Record) -> Optional[Batch]:
        """
        Add a record.

        Returns:
            The full batch if this record reached the threshold, else None
        """
        if self._closed:
            raise RuntimeError("Cannot add to a batch buffer after flush_remaining")

        self._pending.append(record)
        self.total_added += 1
        if len(self._pending) >= self.threshold:
            return self._release()
        return None

    def flush_remaining(self) -> Batch:
        """Release the partially filled buffer and close it."""
        if self._closed:
            raise RuntimeError("Batch buffer already flushed")
        batch = self._release()
        self._closed = True
        return batch

    def _release(self) -> Batch:
        batch = Batch(index=self.batches_emitted, records=tuple(self._pending))
        self._pending = []
        self.batches_emitted += 1
        logger.debug(f"Released batch {batch.index} with {len(batch)} records")
        return batch


def iter_batches(records: Iterable[Record], size: int) -> Iterator[Batch]:
    """Drive a BatchBuffer over records, yielding every non-empty batch."""
    buffer = BatchBuffer(size)
    for record in records:
        batch = buffer.add(record)
        if batch is not None:
            yield batch

    remaining = buffer.flush_remaining()
    if not remaining.is_empty:
        yield remaining
