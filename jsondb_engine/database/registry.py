"""
Process-wide registry of open collections.

Two stores over the same backing file would race on it with no
coordination, so ``open_collection`` hands out one ``CollectionStore`` per
resolved file path and reuses it on later calls.
"""

import logging
import os
import threading

from ..config import EngineConfig
from ..core.persistence import backing_file_path
from .collection import CollectionStore, validate_collection_name

logger = logging.getLogger(__name__)

_collections: dict[str, CollectionStore] = {}
_registry_lock = threading.Lock()


def _registry_key(name: str, data_dir: str | os.PathLike) -> str:
    return str(backing_file_path(data_dir, name).resolve())


def open_collection(
    name: str,
    data_dir: str | os.PathLike | None = None,
    config: EngineConfig | None = None,
) -> CollectionStore:
    """
    Open (load or initialize) a collection, reusing an already open store.

    Args:
        name: Collection name; the backing file is ``<data_dir>/<name>.json``
        data_dir: Directory override (defaults to ``config.data_dir``)
        config: Engine configuration (defaults to environment based config)

    Returns:
        The CollectionStore for that backing file

    Raises:
        ConfigurationError: If the name or configuration is invalid
        PersistenceError: If the backing file cannot be read or created
    """
    config = config or EngineConfig()
    config.validate()
    validate_collection_name(name)
    directory = data_dir or config.data_dir
    key = _registry_key(name, directory)

    with _registry_lock:
        store = _collections.get(key)
        if store is None:
            store = CollectionStore.load(name, data_dir=directory, config=config)
            _collections[key] = store
            logger.debug(f"Opened collection '{name}' at {store.path}")
        return store


def release_collection(
    name: str,
    data_dir: str | os.PathLike | None = None,
    config: EngineConfig | None = None,
) -> bool:
    """
    Forget the open store for a collection so the next open reloads it from disk.

    Returns:
        True if a store was registered for that collection
    """
    config = config or EngineConfig()
    key = _registry_key(name, data_dir or config.data_dir)
    with _registry_lock:
        return _collections.pop(key, None) is not None


def clear_registry() -> None:
    """Forget every open store."""
    with _registry_lock:
        _collections.clear()
