"""Source readers for files and databases."""

from .base import BaseExtractor
from .csv_extractor import DelimitedExtractor, read_delimited_header
from .xml_extractor import XMLExtractor, discover_xml_columns
from .database_extractor import DatabaseExtractor

__all__ = [
    "BaseExtractor",
    "DelimitedExtractor",
    "XMLExtractor",
    "DatabaseExtractor",
    "read_delimited_header",
    "discover_xml_columns",
]
