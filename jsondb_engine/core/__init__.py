"""
Core document store machinery.

Filter matching, the update operator pipeline, the schema gate and the
persistence policy that the collection store is built on.
"""

from .matching import check_filter, match, select, values_equal
from .operators import apply_update, is_operator
from .persistence import (JsonFilePersistence, backing_file_path,
                          load_or_initialize, serialize)
from .schema import SchemaGate
from .types import (CollectionState, Document, DocumentRecord, Filter, PopEnd,
                    UpdateSpec)

__all__ = [
    # Matching
    "check_filter",
    "match",
    "select",
    "values_equal",
    # Update operators
    "apply_update",
    "is_operator",
    # Persistence
    "JsonFilePersistence",
    "backing_file_path",
    "load_or_initialize",
    "serialize",
    # Schema
    "SchemaGate",
    # Types
    "CollectionState",
    "Document",
    "DocumentRecord",
    "Filter",
    "PopEnd",
    "UpdateSpec",
]
