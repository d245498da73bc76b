"""
Collection store layer.

Provides the MongoDB-style ``CollectionStore`` and the ``open_collection``
entry point that guarantees one store per backing file.
"""

from .collection import CollectionStore, validate_collection_name
from .registry import clear_registry, open_collection, release_collection

__all__ = [
    "CollectionStore",
    "validate_collection_name",
    "open_collection",
    "release_collection",
    "clear_registry",
]
