"""Backend contracts.

Every storage adapter implements :class:`DatabaseRepository`; adapters
that can push live updates implement :class:`DatabaseStreamRepository`.
Consumers program against these so backends can be swapped without code
changes. The in-memory backends in :mod:`pyeasydb.backends` are the
reference behaviour.

Contract notes for adapter authors:

* not-found is ``None`` (or the caller's default), never an exception;
* empty or non-string collection names / ids raise
  :class:`~pyeasydb.exceptions.EasyDbInputError` before anything is sent;
* any field equal to :attr:`DatabaseRepository.SERVER_TIMESTAMP` (or its
  wire string) is replaced by the backend's notion of "now" on ``set`` and
  ``update``;
* backend failures raise :class:`~pyeasydb.exceptions.EasyDbBackendError`
  rather than returning defaults.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pyeasydb.models.values import SERVER_TIMESTAMP, SERVER_TIMESTAMP_WIRE
from pyeasydb.state.hub import Subscription
from pyeasydb.state.store import Document


class DatabaseRepository(ABC):
    """Async CRUD contract shared by every backend."""

    SERVER_TIMESTAMP = SERVER_TIMESTAMP
    SERVER_TIMESTAMP_WIRE = SERVER_TIMESTAMP_WIRE

    #: Registry name of the backend, used in logs and errors.
    name: str = "backend"

    @abstractmethod
    async def init(self) -> None:
        """Open connections and acquire resources."""

    async def close(self) -> None:
        """Release resources. The default has nothing to release."""
        return None

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Create or overwrite a document."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Merge fields into a document, creating it if absent."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str, default: Any = None) -> Any:
        """Return the document, or *default* if it does not exist."""

    @abstractmethod
    async def get_all(self, collection: str) -> dict[str, Document] | None:
        """Return ``{doc_id: document}``, or ``None`` for an empty collection."""

    @abstractmethod
    async def exists(self, collection: str, doc_id: str) -> bool:
        """Whether the document exists."""

    @abstractmethod
    async def exists_where(self, collection: str, where: Mapping[str, Any]) -> bool:
        """Whether any document matches every field/value pair in *where*."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""

    @abstractmethod
    async def query(self, collection: str, where: Mapping[str, Any] | None = None) -> list[Document]:
        """Return documents matching *where*, each annotated with its id."""


class DatabaseStreamRepository(DatabaseRepository):
    """CRUD plus live watches."""

    @abstractmethod
    def watch(self, collection: str, doc_id: str) -> Subscription[Document | None]:
        """Live value of one document (``None`` while absent)."""

    @abstractmethod
    def watch_all(self, collection: str) -> Subscription[dict[str, Document] | None]:
        """Live ``{doc_id: document}`` of a collection (``None`` while empty)."""

    @abstractmethod
    def watch_query(self, collection: str, where: Mapping[str, Any] | None = None) -> Subscription[list[Document]]:
        """Live list of documents matching *where*."""
