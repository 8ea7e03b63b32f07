"""In-memory realtime backend: document store plus live watches.

This is the reference implementation for streaming adapters. Writes are
applied to the store first and then fanned out through the
:class:`SubscriptionHub`, so a listener never observes a value the store
does not hold.

Example::

    db = MemoryStreamDatabase()
    async with db.watch("tasks", "t1") as updates:
        assert await updates.next() is None
        await db.set("tasks", "t1", {"status": "active"})
        assert await updates.next() == {"status": "active"}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pyeasydb.backends.memory import MemoryDatabase
from pyeasydb.config import StoreOptions
from pyeasydb.repositories import DatabaseStreamRepository
from pyeasydb.state.events import ChangeEvent
from pyeasydb.state.hub import Subscription, SubscriptionHub
from pyeasydb.state.store import Document

_logger = logging.getLogger(__name__)


class MemoryStreamDatabase(MemoryDatabase, DatabaseStreamRepository):
    """:class:`DatabaseStreamRepository` held entirely in memory."""

    def __init__(
        self,
        options: StoreOptions | None = None,
        *,
        name: str = "memory-stream",
        max_pending: int = 0,
    ) -> None:
        super().__init__(options, name=name)
        # 0 leaves each subscription buffer unbounded.
        self._hub = SubscriptionHub(self._store, max_pending=max_pending)

    @property
    def hub(self) -> SubscriptionHub:
        return self._hub

    def _written(self, event: ChangeEvent) -> None:
        self._hub.notify(event)

    def watch(self, collection: str, doc_id: str) -> Subscription[Document | None]:
        return self._hub.watch(collection, doc_id)

    def watch_all(self, collection: str) -> Subscription[dict[str, Document] | None]:
        return self._hub.watch_all(collection)

    def watch_query(self, collection: str, where: Mapping[str, Any] | None = None) -> Subscription[list[Document]]:
        return self._hub.watch_query(collection, where)

    def dispose(self) -> None:
        """Close every live subscription. Watching afterwards is an error."""
        self._hub.dispose()

    async def close(self) -> None:
        self.dispose()
        await super().close()
