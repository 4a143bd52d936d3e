"""XML element-tree file extractor."""

import logging
import xml.etree.ElementTree as ET
from typing import IO, Dict, Iterator, List, Optional, Sequence, Tuple

from .base import BaseExtractor
from ..exceptions import DiscoveryError, SourceError
from ..models.record import NULL, Record, RecordValue
from ..models.migration import FileEndpoint

logger = logging.getLogger(__name__)


def _iter_record_elements(source, record_tag: str) -> Iterator[ET.Element]:
    """Yield each direct child of the root with ``record_tag``, then drop it."""
    depth = 0
    root = None
    for event, elem in ET.iterparse(source, events=("start", "end")):
        if event == "start":
            depth += 1
            if depth == 1:
                root = elem
            continue

        depth -= 1
        if depth == 1:
            if elem.tag == record_tag:
                yield elem
            else:
                logger.debug(f"Skipping <{elem.tag}> element under the root")
            root.clear()


def _fields(elem: ET.Element) -> Dict[str, Optional[str]]:
    fields: Dict[str, Optional[str]] = {}
    for child in elem:
        fields.setdefault(child.tag, child.text)
    return fields


def discover_xml_columns(endpoint: FileEndpoint) -> List[str]:
    """
    Determine the projection for an XML source.

    Explicit endpoint columns are used as given. Otherwise the child tags of
    the first record element are used, in document order.

    Raises:
        DiscoveryError: If no columns can be determined
    """
    if endpoint.columns:
        return list(endpoint.columns)

    try:
        with open(endpoint.path, "rb") as f:
            for elem in _iter_record_elements(f, endpoint.record_tag):
                columns = list(_fields(elem))
                if columns:
                    return columns
                break
    except (OSError, ET.ParseError) as e:
        raise DiscoveryError(f"Cannot read {endpoint.path}: {e}") from e

    raise DiscoveryError(
        f"No <{endpoint.record_tag}> element with fields in {endpoint.path}; "
        "list the columns explicitly"
    )


class XMLExtractor(BaseExtractor):
    """
    Extractor for XML documents of the form::

        <records>
          <record><id>1</id><name>a</name></record>
          ...
        </records>

    Each record element is projected onto the column list in document
    order. Missing or empty sub-elements become NULL; extra ones are ignored.
    """

    def __init__(self, endpoint: FileEndpoint, coercer=None):
        super().__init__(endpoint, coercer)
        self._file: Optional[IO[bytes]] = None

    def open(self) -> None:
        try:
            self._file = open(self.endpoint.path, "rb")
        except OSError as e:
            raise SourceError(f"Cannot open {self.endpoint.path}: {e}") from e
        logger.info(f"Opened source file: {self.endpoint.path}")

    def read(self, columns: Sequence[str]) -> Iterator[Record]:
        if self._file is None:
            raise SourceError("Source file is not open")

        columns = tuple(columns)
        try:
            for elem in _iter_record_elements(self._file, self.endpoint.record_tag):
                yield Record.from_values(columns, self._project(columns, _fields(elem)))
                self.records_read += 1
        except ET.ParseError as e:
            raise SourceError(f"Malformed XML in {self.endpoint.path}: {e}") from e

    def _project(
        self,
        columns: Tuple[str, ...],
        fields: Dict[str, Optional[str]]
    ) -> List[RecordValue]:
        values = []
        for name in columns:
            text = fields.get(name)
            values.append(self.coercer.coerce(text) if text else NULL)
        return values

    def _close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
