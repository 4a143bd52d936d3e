"""Delimited-text file loader."""

import csv
import logging
import os
from typing import IO, Optional, Sequence

from .base import BaseLoader
from ..exceptions import WriteError
from ..models.migration import FileEndpoint
from ..models.record import Batch

logger = logging.getLogger(__name__)


class DelimitedLoader(BaseLoader):
    """Writes a header line, then each batch as rows, flushing after each."""

    def __init__(self, endpoint: FileEndpoint):
        super().__init__(endpoint)
        self._file: Optional[IO[str]] = None
        self._writer = None

    def open(self, columns: Sequence[str]) -> None:
        self.columns = tuple(columns)
        try:
            self._file = open(self.endpoint.path, "w", encoding=self.endpoint.encoding, newline="")
            self._writer = csv.writer(
                self._file, delimiter=self.endpoint.delimiter, lineterminator="\n"
            )
            self._writer.writerow(self.columns)
            self._file.flush()
        except OSError as e:
            raise WriteError(f"Cannot open target file {self.endpoint.path}: {e}") from e
        logger.info(f"Opened target file: {self.endpoint.path}")

    def _write_batch(self, batch: Batch) -> None:
        self._check_open(self._writer)
        try:
            self._writer.writerows(self._rows(batch))
            self._file.flush()
        except (OSError, csv.Error, UnicodeEncodeError) as e:
            raise WriteError(f"Cannot write to {self.endpoint.path}: {e}", batch.index) from e

    def finish(self) -> None:
        self._check_open(self._file)
        try:
            self._file.flush()
            os.fsync(self._file.fileno())
        except OSError as e:
            raise WriteError(f"Cannot sync {self.endpoint.path}: {e}") from e

    def _close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None
