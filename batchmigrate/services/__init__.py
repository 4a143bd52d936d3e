"""Service layer for the migration engine."""

from .batcher import BatchBuffer, iter_batches
from .coercer import ValueCoercer
from .connections import build_url, create_db_engine
from .query_builder import QueryBuilder
from .validator import ConfigValidator

__all__ = [
    "BatchBuffer",
    "iter_batches",
    "ValueCoercer",
    "build_url",
    "create_db_engine",
    "QueryBuilder",
    "ConfigValidator",
]
