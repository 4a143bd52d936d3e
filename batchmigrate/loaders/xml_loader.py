"""XML element-tree file loader."""

import logging
import os
import re
import xml.etree.ElementTree as ET
from typing import IO, Optional, Sequence

from .base import BaseLoader
from ..exceptions import WriteError
from ..models.migration import FileEndpoint
from ..models.record import Batch, Record

logger = logging.getLogger(__name__)

XML_NAME = re.compile(r"^[A-Za-z_][\w.\-]*$")
INDENT = "  "


class XMLLoader(BaseLoader):
    """
    Streams records into an XML document.

    The root element is opened on ``open`` and closed on ``finish``; each
    record is serialized as one child element as its batch is written, so
    the whole document is never held in memory.
    """

    def __init__(self, endpoint: FileEndpoint):
        super().__init__(endpoint)
        self._file: Optional[IO[str]] = None

    def open(self, columns: Sequence[str]) -> None:
        for name in (self.endpoint.root_tag, self.endpoint.record_tag, *columns):
            if not XML_NAME.match(name):
                raise WriteError(f"{name!r} is not a valid XML element name")

        self.columns = tuple(columns)
        try:
            self._file = open(self.endpoint.path, "w", encoding=self.endpoint.encoding)
            self._file.write(f'<?xml version="1.0" encoding="{self.endpoint.encoding}"?>\n')
            self._file.write(f"<{self.endpoint.root_tag}>\n")
            self._file.flush()
        except OSError as e:
            raise WriteError(f"Cannot open target file {self.endpoint.path}: {e}") from e
        logger.info(f"Opened target file: {self.endpoint.path}")

    def _write_batch(self, batch: Batch) -> None:
        self._check_open(self._file)
        try:
            for record in batch:
                self._file.write(INDENT + self._serialize(record) + "\n")
            self._file.flush()
        except (OSError, UnicodeEncodeError) as e:
            raise WriteError(f"Cannot write to {self.endpoint.path}: {e}", batch.index) from e

    def _serialize(self, record: Record) -> str:
        elem = ET.Element(self.endpoint.record_tag)
        for name, value in record.items():
            child = ET.SubElement(elem, name)
            if not value.is_null:
                child.text = value.to_text()
        ET.indent(elem, space=INDENT, level=1)
        return ET.tostring(elem, encoding="unicode")

    def finish(self) -> None:
        self._check_open(self._file)
        try:
            self._file.write(f"</{self.endpoint.root_tag}>\n")
            self._file.flush()
            os.fsync(self._file.fileno())
        except OSError as e:
            raise WriteError(f"Cannot finish {self.endpoint.path}: {e}") from e

    def _close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
