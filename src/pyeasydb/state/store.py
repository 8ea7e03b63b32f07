"""Deterministic in-memory document store.

This is the only component allowed to change document state. Writes are
turned into :class:`ChangeEvent` objects (with timestamp markers already
resolved) and merged by :meth:`DocumentStore.apply`, so replaying the same
event sequence into an empty store reproduces the same state.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pyeasydb._redact import redact_for_log
from pyeasydb.config import StoreOptions
from pyeasydb.exceptions import EasyDbInputError
from pyeasydb.models.values import SERVER_TIMESTAMP, normalize_document, normalize_value
from pyeasydb.state.events import ChangeEvent, ChangeKind
from pyeasydb.state.matching import matches, normalize_where

_logger = logging.getLogger(__name__)

Document = dict[str, Any]


def validate_name(value: Any, field: str) -> str:
    """Return *value* if it is a usable collection name or document id."""
    if not isinstance(value, str):
        raise EasyDbInputError(f"{field} must be a string, got {type(value).__name__}", field=field)
    if not value:
        raise EasyDbInputError(f"{field} must be non-empty", field=field)
    return value


class DocumentStore:
    """Collections of schema-less documents, held in memory.

    Collections are created on first write and read as empty when missing.
    Every value handed out is a copy; callers never share state with the
    store.
    """

    def __init__(self, options: StoreOptions | None = None, *, name: str = "store") -> None:
        self._options = options or StoreOptions()
        self._name = name
        self._collections: dict[str, dict[str, Document]] = {}

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _build_event(self, kind: ChangeKind, collection: str, doc_id: str, data: Any) -> ChangeEvent:
        validate_name(collection, "collection")
        validate_name(doc_id, "doc_id")
        now = self._options.clock()
        resolved: Document = {}
        if kind is not ChangeKind.DELETE:
            document = normalize_document(data, accept_wire=self._options.accept_wire_sentinel)
            # One clock reading per write: all markers in a write share it.
            resolved = {key: now if value is SERVER_TIMESTAMP else value for key, value in document.items()}
        return ChangeEvent(kind=kind, collection=collection, doc_id=doc_id, data=resolved, observed_at=now)

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> ChangeEvent:
        """Replace the document at (collection, doc_id) wholesale."""
        event = self._build_event(ChangeKind.SET, collection, doc_id, data)
        self.apply(event)
        return event

    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> ChangeEvent:
        """Shallow-merge *data* onto the document, creating it if absent."""
        event = self._build_event(ChangeKind.UPDATE, collection, doc_id, data)
        self.apply(event)
        return event

    def delete(self, collection: str, doc_id: str) -> ChangeEvent:
        """Remove the document if present. Deleting a missing document is a no-op."""
        event = self._build_event(ChangeKind.DELETE, collection, doc_id, None)
        self.apply(event)
        return event

    def apply(self, event: ChangeEvent) -> None:
        """Merge a resolved change event."""
        # Events may come from outside (replay); re-validate the payload.
        data = {key: normalize_value(value, path=key) for key, value in event.data.items()}

        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "%s %s collection=%s id=%s data=%s",
                self._name,
                event.kind,
                event.collection,
                event.doc_id,
                redact_for_log(data, mask_all=self._options.redact_values),
            )

        if event.kind is ChangeKind.DELETE:
            documents = self._collections.get(event.collection)
            if documents is not None:
                documents.pop(event.doc_id, None)
            return

        documents = self._collections.setdefault(event.collection, {})
        if event.kind is ChangeKind.SET:
            documents[event.doc_id] = data
        else:
            existing = documents.get(event.doc_id, {})
            documents[event.doc_id] = {**existing, **data}

    def replay(self, events: Iterable[ChangeEvent]) -> None:
        """Apply a recorded event sequence in order."""
        for event in events:
            self.apply(event)

    def clear(self) -> None:
        """Drop every collection."""
        self._collections.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, collection: str, doc_id: str, default: Any = None) -> Any:
        """Return a copy of the document, or *default* when it does not exist."""
        validate_name(collection, "collection")
        validate_name(doc_id, "doc_id")
        document = self._collections.get(collection, {}).get(doc_id)
        if document is None:
            return default
        return copy.deepcopy(document)

    def get_all(self, collection: str) -> dict[str, Document] | None:
        """Return ``{doc_id: document}`` for the collection, or ``None`` when empty."""
        validate_name(collection, "collection")
        documents = self._collections.get(collection)
        if not documents:
            return None
        return copy.deepcopy(documents)

    def exists(self, collection: str, doc_id: str) -> bool:
        validate_name(collection, "collection")
        validate_name(doc_id, "doc_id")
        return doc_id in self._collections.get(collection, {})

    def exists_where(self, collection: str, where: Mapping[str, Any] | None) -> bool:
        """Whether at least one document in the collection matches *where*."""
        validate_name(collection, "collection")
        criteria = normalize_where(where)
        return any(matches(document, criteria) for document in self._collections.get(collection, {}).values())

    def query(self, collection: str, where: Mapping[str, Any] | None = None) -> list[Document]:
        """Return matching documents, each annotated with its id.

        Results follow the collection's insertion order. The id is written
        under ``options.id_field`` and wins over a stored field of the same
        name.
        """
        validate_name(collection, "collection")
        criteria = normalize_where(where)
        id_field = self._options.id_field
        results: list[Document] = []
        for doc_id, document in self._collections.get(collection, {}).items():
            if matches(document, criteria):
                item = copy.deepcopy(document)
                item[id_field] = doc_id
                results.append(item)
        return results

    def collections(self) -> list[str]:
        """Names of collections that currently hold at least one document."""
        return [name for name, documents in self._collections.items() if documents]

    def __len__(self) -> int:
        return sum(len(documents) for documents in self._collections.values())
