"""
Persistence policy for JSONDB Engine.

Each collection is mirrored to one JSON file, ``<data_dir>/<name>.json``,
holding a single object whose only key is the collection name::

    {
      "users": [
        {"name": "Ann", "age": 30}
      ]
    }

Every flush rewrites the whole file with the configured indentation. With
``write_sync`` the write happens in the calling task; otherwise it is handed
to a worker thread and awaited, with no batching in between.
"""

import asyncio
import json
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from ..constants import (BACKING_FILE_SUFFIX, DEFAULT_INDENT_SPACE,
                         DEFAULT_WRITE_SYNC, FILE_ENCODING)
from ..exceptions import PersistenceError
from ..observability.logging import get_logger
from .types import Document

logger = get_logger(__name__)


def backing_file_path(data_dir: str | os.PathLike, name: str) -> Path:
    """Return the backing file path for collection ``name``."""
    return Path(data_dir) / f"{name}{BACKING_FILE_SUFFIX}"


def serialize(name: str, documents: Iterable[Mapping[str, Any]], indent: int) -> str:
    """Render the full collection snapshot as JSON text."""
    snapshot = {name: list(documents)}
    return json.dumps(snapshot, indent=indent or None, ensure_ascii=False, allow_nan=False)


def encode_snapshot(
    name: str, documents: Iterable[Mapping[str, Any]], indent: int, path: Path
) -> bytes:
    """
    Render the snapshot and encode it for writing.

    Encoding happens before the file is opened, so text that cannot be
    written never truncates the existing file.

    Raises:
        PersistenceError: If the snapshot cannot be encoded
    """
    try:
        return serialize(name, documents, indent).encode(FILE_ENCODING)
    except UnicodeEncodeError as e:
        raise PersistenceError(
            f"Collection '{name}' holds text that cannot be encoded as {FILE_ENCODING}: {e.reason}",
            path=str(path),
        ) from e
    except ValueError as e:
        # json.dumps refuses NaN and Infinity
        raise PersistenceError(
            f"Collection '{name}' cannot be written as JSON: {e}", path=str(path)
        ) from e


def _write_file(path: Path, payload: bytes) -> None:
    # "wb" truncates: a flush always replaces the previous snapshot.
    with open(path, "wb") as handle:
        handle.write(payload)


def _parse_snapshot(name: str, path: Path, raw: str) -> list[Document]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceError(
            f"Backing file is not valid JSON: {e.msg}", path=str(path)
        ) from e

    if not isinstance(data, dict):
        raise PersistenceError(
            f"Backing file must hold a JSON object, got {type(data).__name__}",
            path=str(path),
        )

    documents = data.get(name, [])
    if not isinstance(documents, list):
        raise PersistenceError(
            f"Collection '{name}' must be an array, got {type(documents).__name__}",
            path=str(path),
        )
    for index, document in enumerate(documents):
        if not isinstance(document, dict):
            raise PersistenceError(
                f"Document {index} of collection '{name}' is not an object",
                path=str(path),
                context={"index": index},
            )
    return documents


def load_or_initialize(name: str, path: Path) -> list[Document]:
    """
    Load a collection from ``path``, creating an empty backing file if missing.

    Runs synchronously: it is called once, when the collection is opened.

    Returns:
        The stored documents, in file order

    Raises:
        PersistenceError: If the file cannot be read, created or parsed
    """
    try:
        raw = path.read_text(encoding=FILE_ENCODING)
    except FileNotFoundError:
        logger.info(f"Initializing empty collection '{name}' at {path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _write_file(path, encode_snapshot(name, [], DEFAULT_INDENT_SPACE, path))
        except OSError as e:
            raise PersistenceError(
                f"Could not create backing file: {e.strerror or e}", path=str(path)
            ) from e
        return []
    except OSError as e:
        raise PersistenceError(
            f"Could not read backing file: {e.strerror or e}", path=str(path)
        ) from e
    except UnicodeDecodeError as e:
        raise PersistenceError(
            f"Backing file is not valid {FILE_ENCODING}: {e.reason}", path=str(path)
        ) from e

    documents = _parse_snapshot(name, path, raw)
    logger.debug(f"Loaded {len(documents)} document(s) for collection '{name}' from {path}")
    return documents


class JsonFilePersistence:
    """
    Writes full collection snapshots to a backing file.

    Attributes:
        name: Collection name (the top-level key in the file)
        path: Backing file path
        write_sync: Block the calling task on the write when True
        indent: JSON indentation
    """

    def __init__(
        self,
        name: str,
        path: Path,
        write_sync: bool = DEFAULT_WRITE_SYNC,
        indent: int = DEFAULT_INDENT_SPACE,
    ):
        self.name = name
        self.path = path
        self.write_sync = write_sync
        self.indent = indent

    def configure(self, write_sync: bool, indent: int) -> None:
        """Apply the write mode and indentation fixed at connect time."""
        self.write_sync = write_sync
        self.indent = indent

    async def flush(self, documents: Iterable[Mapping[str, Any]]) -> None:
        """
        Write the entire collection to disk.

        Raises:
            PersistenceError: If the write fails
        """
        payload = encode_snapshot(self.name, documents, self.indent, self.path)
        try:
            if self.write_sync:
                _write_file(self.path, payload)
            else:
                await asyncio.to_thread(_write_file, self.path, payload)
        except OSError as e:
            logger.error(f"Flush of collection '{self.name}' to {self.path} failed: {e}")
            raise PersistenceError(
                f"Could not write backing file: {e.strerror or e}", path=str(self.path)
            ) from e
