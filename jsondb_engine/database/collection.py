"""
Collection store for JSONDB Engine.

A ``CollectionStore`` owns the ordered documents of one named collection and
the backing file that mirrors them. It follows MongoDB API conventions
(``find_one``, ``find_one_and_update``, ``delete_many``, ...) so the API is
familiar, but runs entirely in-process.

This module is part of JSONDB_ENGINE.

Usage:
    from jsondb_engine import open_collection

    users = open_collection("users")
    await users.connect(
        {
            "type": "object",
            "required": ["name", "age"],
            "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        },
        {"writeSync": True, "indentSpace": 2},
    )

    await users.create({"name": "Ann", "age": 30})
    ann = await users.find_one({"name": "Ann"})
    await users.find_one_and_update({"name": "Ann"}, {"$inc": {"age": 1}})
    await users.delete_many({}, delete_all=True)

Consistency rules:
    - A collection accepts data operations only after ``connect``; the schema
      and options given to ``connect`` are fixed for the instance's lifetime.
    - Every created document and every update candidate is validated before
      it is committed. A failed validation leaves the collection untouched.
    - Mutations run one at a time through a per-collection lock, so the
      find -> validate -> mutate -> flush sequence cannot interleave with
      another task's mutation of the same collection.
    - Every mutation writes the full snapshot to disk before returning. If
      the write fails, the in-memory collection is left unchanged and
      PersistenceError is raised.
    - Documents are located for mutation by handle (a surrogate key assigned
      on insertion), never by object identity.
"""

import asyncio
import contextlib
import copy
import logging
import os
import re
from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path
from typing import Any

from bson import ObjectId

from ..config import ConnectOptions, EngineConfig
from ..constants import (COLLECTION_NAME_PATTERN, MAX_COLLECTION_NAME_LENGTH,
                         MIN_COLLECTION_NAME_LENGTH)
from ..core.matching import select
from ..core.operators import apply_update
from ..core.persistence import (JsonFilePersistence, backing_file_path,
                                load_or_initialize)
from ..core.schema import SchemaGate
from ..core.types import (CollectionState, ConnectOptionsDict, Document,
                          DocumentRecord)
from ..exceptions import (BadRequest, CollectionConnectionError,
                          ConfigurationError, JSONDBError, NoConnection,
                          NotFound, PersistenceError)
from ..observability.logging import (collection_context, get_logger,
                                     log_operation)
from ..observability.metrics import timed_operation
from ..utils.documents import clean_document, require_mapping

logger = get_logger(__name__)

_NAME_RE = re.compile(COLLECTION_NAME_PATTERN)


def validate_collection_name(name: Any) -> str:
    """
    Check that ``name`` can be used as a collection (and file) name.

    Raises:
        ConfigurationError: If the name is not a string, has the wrong length,
            or contains characters outside ``[A-Za-z0-9_.-]``
    """
    if not isinstance(name, str):
        raise ConfigurationError(
            f"Collection name must be a string, got {type(name).__name__}",
            config_key="name",
        )
    if not MIN_COLLECTION_NAME_LENGTH <= len(name) <= MAX_COLLECTION_NAME_LENGTH:
        raise ConfigurationError(
            f"Collection name must be {MIN_COLLECTION_NAME_LENGTH}-"
            f"{MAX_COLLECTION_NAME_LENGTH} characters, got {len(name)}",
            config_key="name",
            config_value=name,
        )
    if not _NAME_RE.match(name):
        raise ConfigurationError(
            f"Invalid collection name '{name}': use letters, digits, '_', '-' or '.'"
            " and do not start with '.'",
            config_key="name",
            config_value=name,
        )
    return name


def _new_handle() -> str:
    return str(ObjectId())


def _copy(document: Mapping[str, Any]) -> Document:
    return copy.deepcopy(dict(document))


class CollectionStore:
    """
    One named collection of schema-validated documents mirrored to a JSON file.

    Construct with ``CollectionStore.load`` (or ``open_collection``, which also
    prevents two stores over the same file), then call ``connect`` once.
    """

    def __init__(
        self,
        name: str,
        path: Path,
        documents: Sequence[Mapping[str, Any]] = (),
        default_options: ConnectOptions | None = None,
    ):
        """
        Initialize a store around already loaded documents.

        Args:
            name: Collection name
            path: Backing file path
            documents: Documents loaded from the backing file, in order
            default_options: Options used when ``connect`` is given none
        """
        self._name = validate_collection_name(name)
        self._path = Path(path)
        self._records: list[DocumentRecord] = [
            DocumentRecord(_new_handle(), _copy(doc)) for doc in documents
        ]
        self._state = CollectionState.DISCONNECTED
        self._gate: SchemaGate | None = None
        self._default_options = default_options or ConnectOptions()
        self._options: ConnectOptions | None = None
        self._persistence = JsonFilePersistence(
            self._name,
            self._path,
            write_sync=self._default_options.write_sync,
            indent=self._default_options.indent_space,
        )
        # Serializes mutations: one find/validate/mutate/flush at a time
        self._lock = asyncio.Lock()

    @classmethod
    def load(
        cls,
        name: str,
        data_dir: str | os.PathLike | None = None,
        config: EngineConfig | None = None,
    ) -> "CollectionStore":
        """
        Load a collection from its backing file, creating the file if missing.

        Args:
            name: Collection name; the file is ``<data_dir>/<name>.json``
            data_dir: Directory override (defaults to ``config.data_dir``)
            config: Engine configuration (defaults to environment based config)

        Raises:
            ConfigurationError: If the name or configuration is invalid
            PersistenceError: If the backing file cannot be read or created
        """
        config = config or EngineConfig()
        config.validate()
        validate_collection_name(name)
        path = backing_file_path(data_dir or config.data_dir, name)
        documents = load_or_initialize(name, path)
        return cls(name, path, documents, default_options=config.default_connect_options())

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        """Backing file path."""
        return self._path

    @property
    def state(self) -> CollectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is CollectionState.CONNECTED

    @property
    def options(self) -> ConnectOptions | None:
        """Options fixed at connect time, or None before ``connect``."""
        return self._options

    def __repr__(self) -> str:
        return (
            f"CollectionStore(name={self._name!r}, path='{self._path}', "
            f"state={self._state.value}, documents={len(self._records)})"
        )

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(
        self,
        schema: Mapping[str, Any],
        options: ConnectOptions | ConnectOptionsDict | Mapping[str, Any] | None = None,
    ) -> "CollectionStore":
        """
        Bind a JSON Schema and persistence options to this collection.

        Can be called exactly once per instance. Documents already loaded from
        disk must conform to the schema.

        Args:
            schema: JSON Schema every document must satisfy
            options: ``{"writeSync": bool, "indentSpace": int}``; missing values
                come from the engine configuration

        Returns:
            This collection, now connected

        Raises:
            CollectionConnectionError: If the collection is already connected
            ConfigurationError: If the schema or options are invalid
            InvalidSchema: If a stored document does not satisfy the schema
        """
        if self._state is CollectionState.CONNECTED:
            raise CollectionConnectionError(
                "Can only connect and create a schema once for every instance/collection",
                context={"collection": self._name},
            )

        parsed_options = ConnectOptions.parse(options, self._default_options)
        gate = SchemaGate.compile(schema)
        with collection_context(self._name, operation="collection.connect"):
            for index, record in enumerate(self._records):
                try:
                    gate.validate(record.document)
                except JSONDBError as e:
                    e.context.update({"collection": self._name, "index": index})
                    logger.error(f"Stored document {index} does not satisfy the schema")
                    raise

            self._gate = gate
            self._options = parsed_options
            self._persistence.configure(parsed_options.write_sync, parsed_options.indent_space)
            self._state = CollectionState.CONNECTED
            log_operation(
                logger,
                "collection.connect",
                write_sync=parsed_options.write_sync,
                indent_space=parsed_options.indent_space,
                documents=len(self._records),
            )
        return self

    def _require_connection(self) -> SchemaGate:
        if self._state is not CollectionState.CONNECTED or self._gate is None:
            raise NoConnection(
                "Collection is not connected; call connect(schema) first",
                context={"collection": self._name},
            )
        return self._gate

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _mutation(self, operation: str) -> AsyncIterator[SchemaGate]:
        """Hold the collection lock for one mutation and log its failures."""
        gate = self._require_connection()
        with collection_context(self._name, operation=operation):
            async with self._lock:
                try:
                    yield gate
                except JSONDBError as e:
                    log_operation(
                        logger,
                        operation,
                        level=logging.WARNING,
                        success=False,
                        error=e.error,
                    )
                    raise

    async def _commit(
        self, records: list[DocumentRecord], operation: str, count: int
    ) -> None:
        """
        Flush ``records`` and only then make them the collection's contents.

        Readers do not take the lock, so the in-memory list is replaced only
        after the snapshot is on disk. A failed flush leaves it untouched.
        """
        try:
            await self._persistence.flush([record.document for record in records])
        except PersistenceError:
            logger.error(f"Discarded change to '{self._name}' after failed flush in {operation}")
            raise
        self._records = records
        log_operation(logger, operation, count=count)

    def _position(self, handle: str) -> int:
        for index, record in enumerate(self._records):
            if record.handle == handle:
                return index
        raise NotFound(
            "No document exists for this handle",
            context={"collection": self._name, "handle": handle},
        )

    async def _update_records(
        self,
        gate: SchemaGate,
        targets: Sequence[DocumentRecord],
        update_spec: Mapping[str, Any],
        operation: str,
    ) -> list[Document]:
        # Every candidate is validated before any of them is committed
        candidates = []
        for record in targets:
            candidate = apply_update(record.document, update_spec)
            gate.validate(candidate)
            candidates.append(DocumentRecord(record.handle, candidate))

        records = list(self._records)
        for candidate in candidates:
            records[self._position(candidate.handle)] = candidate
        await self._commit(records, operation, count=len(candidates))
        return [_copy(candidate.document) for candidate in candidates]

    async def _delete_records(
        self, targets: Sequence[DocumentRecord], operation: str
    ) -> list[Document]:
        handles = {record.handle for record in targets}
        records = [record for record in self._records if record.handle not in handles]
        await self._commit(records, operation, count=len(targets))
        return [_copy(record.document) for record in targets]

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @timed_operation("collection.create")
    async def create(self, document: Mapping[str, Any]) -> Document:
        """
        Validate and append a document, then persist the collection.

        Args:
            document: A plain mapping of field/value pairs

        Returns:
            A copy of the stored document

        Raises:
            NoConnection: If ``connect`` has not been called
            InvalidDataType: If document is not a mapping
            InvalidSchema: If document does not satisfy the schema
            PersistenceError: If the flush fails (nothing is stored)
        """
        async with self._mutation("collection.create") as gate:
            stored = clean_document(document)
            gate.validate(stored)
            record = DocumentRecord(_new_handle(), stored)
            await self._commit([*self._records, record], "collection.create", count=1)
            return _copy(stored)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @timed_operation("collection.find_one")
    async def find_one(self, filter: Mapping[str, Any]) -> Document | None:
        """
        Find the first document matching ``filter``, in collection order.

        Returns:
            A copy of the document, or None when nothing matches

        Raises:
            NoConnection: If ``connect`` has not been called
            BadRequest: If filter has no keys
            InvalidDataType: If filter is not a mapping
        """
        record = await self.find_one_record(filter)
        return record.document if record else None

    @timed_operation("collection.find_many")
    async def find_many(self, filter: Mapping[str, Any]) -> list[Document]:
        """
        Find every document matching ``filter``, in collection order.

        Returns:
            Copies of the matching documents; empty when nothing matches

        Raises:
            NoConnection: If ``connect`` has not been called
            BadRequest: If filter has no keys
            InvalidDataType: If filter is not a mapping
        """
        return [record.document for record in await self.find_many_records(filter)]

    async def find_one_record(self, filter: Mapping[str, Any]) -> DocumentRecord | None:
        """Like ``find_one`` but returns the document together with its handle."""
        self._require_connection()
        matches = select(self._records, filter)
        if not matches:
            return None
        return DocumentRecord(matches[0].handle, _copy(matches[0].document))

    async def find_many_records(self, filter: Mapping[str, Any]) -> list[DocumentRecord]:
        """Like ``find_many`` but returns documents together with their handles."""
        self._require_connection()
        return [
            DocumentRecord(record.handle, _copy(record.document))
            for record in select(self._records, filter)
        ]

    async def get(self, handle: str) -> Document | None:
        """Return the document stored under ``handle``, or None."""
        self._require_connection()
        for record in self._records:
            if record.handle == handle:
                return _copy(record.document)
        return None

    async def all_documents(self) -> list[Document]:
        """Return copies of every document, in collection order."""
        self._require_connection()
        return [_copy(record.document) for record in self._records]

    async def count(self) -> int:
        """Return the number of stored documents."""
        self._require_connection()
        return len(self._records)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @timed_operation("collection.find_one_and_update")
    async def find_one_and_update(
        self, filter: Mapping[str, Any], update_spec: Mapping[str, Any]
    ) -> Document:
        """
        Update the first document matching ``filter``.

        Args:
            filter: Non-empty equality filter
            update_spec: Literal assignments and/or $inc, $dec, $push, $pop

        Returns:
            A copy of the updated document

        Raises:
            NoConnection: If ``connect`` has not been called
            BadRequest: If filter has no keys
            NotFound: If no document matches
            InvalidDataType: If filter or update_spec is malformed
            InvalidSchema: If the updated document does not satisfy the schema
        """
        async with self._mutation("collection.find_one_and_update") as gate:
            require_mapping(update_spec, "Update data")
            matches = select(self._records, filter)
            if not matches:
                raise NotFound(
                    "No data was found to be updated",
                    context={"collection": self._name},
                )
            updated = await self._update_records(
                gate, matches[:1], update_spec, "collection.find_one_and_update"
            )
            return updated[0]

    @timed_operation("collection.update_many")
    async def update_many(
        self,
        filter: Mapping[str, Any],
        update_spec: Mapping[str, Any],
        update_all: bool = False,
    ) -> list[Document]:
        """
        Update every document matching ``filter``, or every document at all.

        All candidates are validated before any is committed: if one fails,
        nothing changes.

        Args:
            filter: Non-empty equality filter (ignored when ``update_all``)
            update_spec: Literal assignments and/or $inc, $dec, $push, $pop
            update_all: Update the entire collection, bypassing the filter

        Returns:
            Copies of the updated documents, in collection order

        Raises:
            NoConnection: If ``connect`` has not been called
            NotFound: If nothing matches and ``update_all`` is False; an empty
                filter is reported the same way (chained from BadRequest)
            InvalidDataType: If filter or update_spec is malformed
            InvalidSchema: If any updated document does not satisfy the schema
        """
        async with self._mutation("collection.update_many") as gate:
            require_mapping(update_spec, "Update data")
            if update_all:
                targets = list(self._records)
                if not targets:
                    return []
            else:
                try:
                    targets = select(self._records, filter)
                except BadRequest as e:
                    raise NotFound(
                        "No data was found to be updated",
                        context={"collection": self._name, "reason": e.error},
                    ) from e
                if not targets:
                    raise NotFound(
                        "No data was found to be updated",
                        context={"collection": self._name},
                    )
            return await self._update_records(
                gate, targets, update_spec, "collection.update_many"
            )

    @timed_operation("collection.update_record")
    async def update_record(self, handle: str, update_spec: Mapping[str, Any]) -> Document:
        """
        Update the document stored under ``handle``.

        Raises:
            NotFound: If the handle no longer refers to a document
        """
        async with self._mutation("collection.update_record") as gate:
            require_mapping(update_spec, "Update data")
            target = self._records[self._position(handle)]
            updated = await self._update_records(
                gate, [target], update_spec, "collection.update_record"
            )
            return updated[0]

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @timed_operation("collection.find_one_and_delete")
    async def find_one_and_delete(self, filter: Mapping[str, Any]) -> Document:
        """
        Delete the first document matching ``filter``.

        Returns:
            A copy of the deleted document, or an empty dict when nothing matched

        Raises:
            NoConnection: If ``connect`` has not been called
            BadRequest: If filter has no keys
            InvalidDataType: If filter is not a mapping
        """
        async with self._mutation("collection.find_one_and_delete"):
            matches = select(self._records, filter)
            if not matches:
                return {}
            deleted = await self._delete_records(
                matches[:1], "collection.find_one_and_delete"
            )
            return deleted[0]

    @timed_operation("collection.delete_many")
    async def delete_many(
        self, filter: Mapping[str, Any], delete_all: bool = False
    ) -> list[Document]:
        """
        Delete every document matching ``filter``, or the entire collection.

        Args:
            filter: Non-empty equality filter (ignored when ``delete_all``)
            delete_all: Remove every document, bypassing the filter

        Returns:
            Copies of the removed documents; empty when nothing matched

        Raises:
            NoConnection: If ``connect`` has not been called
            BadRequest: If filter has no keys and ``delete_all`` is False
            InvalidDataType: If filter is not a mapping
        """
        async with self._mutation("collection.delete_many"):
            if delete_all:
                targets = list(self._records)
            else:
                targets = select(self._records, filter)
                if not targets:
                    return []
            return await self._delete_records(targets, "collection.delete_many")

    @timed_operation("collection.delete_record")
    async def delete_record(self, handle: str) -> Document:
        """
        Delete the document stored under ``handle``.

        Raises:
            NotFound: If the handle no longer refers to a document
        """
        async with self._mutation("collection.delete_record"):
            target = self._records[self._position(handle)]
            deleted = await self._delete_records([target], "collection.delete_record")
            return deleted[0]
