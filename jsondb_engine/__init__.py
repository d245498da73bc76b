"""
JSONDB_ENGINE - embedded JSON document store

Schema-validated collections kept in memory and mirrored to one JSON file
each, with a MongoDB-style API (find/update/delete and the $inc, $dec,
$push, $pop update operators).
"""

from .config import ConnectOptions, EngineConfig
from .core import CollectionState, DocumentRecord, PopEnd, SchemaGate
from .database import (CollectionStore, clear_registry, open_collection,
                       release_collection)
from .exceptions import (BadRequest, CollectionConnectionError,
                         ConfigurationError, InvalidDataType, InvalidSchema,
                         JSONDBError, NoConnection, NotFound, PersistenceError)

__version__ = "0.1.0"

__all__ = [
    # Store
    "CollectionStore",
    "open_collection",
    "release_collection",
    "clear_registry",
    # Core
    "CollectionState",
    "DocumentRecord",
    "PopEnd",
    "SchemaGate",
    # Config
    "ConnectOptions",
    "EngineConfig",
    # Errors
    "JSONDBError",
    "InvalidDataType",
    "NotFound",
    "CollectionConnectionError",
    "InvalidSchema",
    "BadRequest",
    "NoConnection",
    "PersistenceError",
    "ConfigurationError",
]
