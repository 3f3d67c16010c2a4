"""
odata package

Normalization, $filter parsing, the query pipeline and the $metadata
document for the exposed Transaction entity.
"""

from .filter import FilterKind, FilterPredicate, parse_filter
from .normalize import normalize_record, normalize_records
from .query import QueryOptions, QueryResult, run_query
from .metadata import build_metadata_document
from .router import router

__all__ = [
    "FilterKind",
    "FilterPredicate",
    "parse_filter",
    "normalize_record",
    "normalize_records",
    "QueryOptions",
    "QueryResult",
    "run_query",
    "build_metadata_document",
    "router",
]
