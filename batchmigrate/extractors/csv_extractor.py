"""Delimited-text file extractor."""

import csv
import logging
from typing import IO, Iterator, List, Optional, Sequence

from .base import BaseExtractor
from ..exceptions import DiscoveryError, RowError, SourceError
from ..models.record import Record
from ..models.migration import FileEndpoint
from ..services.coercer import ValueCoercer

logger = logging.getLogger(__name__)


def read_delimited_header(endpoint: FileEndpoint) -> List[str]:
    """
    Read the header line of a delimited file.

    Raises:
        DiscoveryError: If the file cannot be read or has no header
    """
    try:
        with open(endpoint.path, "r", encoding=endpoint.encoding, newline="") as f:
            header = next(csv.reader(f, delimiter=endpoint.delimiter), None)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise DiscoveryError(f"Cannot read header from {endpoint.path}: {e}") from e

    if not header:
        raise DiscoveryError(f"No header line in {endpoint.path}")
    return [name.strip() for name in header]


class DelimitedExtractor(BaseExtractor):
    """
    Extractor for delimited text files.

    The first line is the header. Every following non-blank line must have
    exactly as many fields as the header.
    """

    def __init__(self, endpoint: FileEndpoint, coercer: Optional[ValueCoercer] = None):
        super().__init__(endpoint, coercer or ValueCoercer(endpoint.encoding))
        self._file: Optional[IO[str]] = None

    def open(self) -> None:
        try:
            self._file = open(self.endpoint.path, "r", encoding=self.endpoint.encoding, newline="")
        except OSError as e:
            raise SourceError(f"Cannot open {self.endpoint.path}: {e}") from e
        logger.info(f"Opened source file: {self.endpoint.path}")

    def read(self, columns: Sequence[str]) -> Iterator[Record]:
        if self._file is None:
            raise SourceError("Source file is not open")

        columns = tuple(columns)
        reader = csv.reader(self._file, delimiter=self.endpoint.delimiter)
        try:
            header = next(reader, None)
            if header is None or tuple(h.strip() for h in header) != columns:
                raise DiscoveryError(
                    f"Header of {self.endpoint.path} changed since discovery: {header}"
                )

            for row in reader:
                if not row:
                    continue  # blank line
                yield self.coercer.coerce_row(columns, row, row_number=reader.line_num)
                self.records_read += 1

        except csv.Error as e:
            raise RowError(str(e), row_number=reader.line_num) from e
        except UnicodeDecodeError as e:
            raise RowError(f"cannot decode as {self.endpoint.encoding}: {e}",
                           row_number=reader.line_num) from e

    def _close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
