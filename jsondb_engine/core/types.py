"""
Type definitions for JSONDB_ENGINE core structures.

This module is part of JSONDB_ENGINE.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, TypedDict, Union

# ============================================================================
# Document Types
# ============================================================================

Document = Dict[str, Any]
"""One stored record: field name -> JSON-compatible value."""

Filter = Dict[str, Any]
"""Equality filter: every key must be present and equal in a matching document."""

UpdateSpec = Dict[str, Any]
"""Literal field assignments and/or $inc, $dec, $push, $pop directives."""


class CollectionState(str, Enum):
    """Connection state of a collection. The only transition is DISCONNECTED -> CONNECTED."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class PopEnd(str, Enum):
    """End of an array a ``$pop`` directive removes from."""

    FIRST = "first"
    LAST = "last"


@dataclass(frozen=True)
class DocumentRecord:
    """
    A stored document together with its handle.

    The handle is a surrogate key assigned when the document entered the
    in-memory collection. It is stable for the lifetime of the store instance
    and is never written to disk.
    """

    handle: str
    document: Document


# ============================================================================
# Option / Error Shapes
# ============================================================================


class ConnectOptionsDict(TypedDict, total=False):
    """Mapping form of connect options."""

    writeSync: bool
    indentSpace: int


class InvalidSchemaParamsDict(TypedDict, total=False):
    """Detail attached to InvalidSchema errors."""

    path: List[Union[str, int]]
    schema_path: List[Union[str, int]]
    validator_value: Any


NumericOperator = Literal["$inc", "$dec"]
ArrayOperator = Literal["$push", "$pop"]
