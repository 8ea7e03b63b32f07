"""In-memory backend for the prefs, secure and storage roles."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pyeasydb.config import StoreOptions
from pyeasydb.repositories import DatabaseRepository
from pyeasydb.state.events import ChangeEvent
from pyeasydb.state.store import Document, DocumentStore

_logger = logging.getLogger(__name__)


class MemoryDatabase(DatabaseRepository):
    """:class:`DatabaseRepository` backed by a :class:`DocumentStore`.

    Nothing is persisted. Suitable for tests, development and as a
    stand-in for any role whose real backend is unavailable.
    """

    def __init__(self, options: StoreOptions | None = None, *, name: str = "memory") -> None:
        self.name = name
        self._store = DocumentStore(options, name=name)

    @property
    def store(self) -> DocumentStore:
        return self._store

    async def init(self) -> None:
        _logger.debug("Backend %s initialized", self.name)

    async def close(self) -> None:
        _logger.debug("Backend %s closed", self.name)

    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        self._written(self._store.set(collection, doc_id, data))

    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        self._written(self._store.update(collection, doc_id, data))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._written(self._store.delete(collection, doc_id))

    def _written(self, event: ChangeEvent) -> None:
        """Hook run after every write; the streaming backend fans out here."""

    async def get(self, collection: str, doc_id: str, default: Any = None) -> Any:
        return self._store.get(collection, doc_id, default)

    async def get_all(self, collection: str) -> dict[str, Document] | None:
        return self._store.get_all(collection)

    async def exists(self, collection: str, doc_id: str) -> bool:
        return self._store.exists(collection, doc_id)

    async def exists_where(self, collection: str, where: Mapping[str, Any]) -> bool:
        return self._store.exists_where(collection, where)

    async def query(self, collection: str, where: Mapping[str, Any] | None = None) -> list[Document]:
        return self._store.query(collection, where)
