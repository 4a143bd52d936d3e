"""Target writers for files and databases."""

from .base import BaseLoader
from .csv_loader import DelimitedLoader
from .xml_loader import XMLLoader
from .database_loader import DatabaseLoader

__all__ = [
    "BaseLoader",
    "DelimitedLoader",
    "XMLLoader",
    "DatabaseLoader",
]
