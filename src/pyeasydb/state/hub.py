"""Subscription hub: keyed broadcast channels over a :class:`DocumentStore`.

One channel exists per distinct :class:`SubscriptionKey`; any number of
:class:`Subscription` listeners share it. Each listener owns a buffer
(an :class:`asyncio.Queue`), so:

* a new listener is handed the current snapshot on its own buffer and
  never causes a duplicate emission to listeners already attached;
* :meth:`SubscriptionHub.notify` only enqueues; consumer code runs on a
  later scheduling turn, never inside the mutation that triggered it;
* every listener sees emissions in mutation order from the point it
  attached.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pyeasydb.exceptions import EasyDbClosedError
from pyeasydb.state.events import ChangeEvent
from pyeasydb.state.keys import SubscriptionKey, WatchMode
from pyeasydb.state.matching import normalize_where
from pyeasydb.state.store import Document, DocumentStore, validate_name

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED: Any = object()


class Subscription(Generic[T]):
    """A live listener on one hub channel.

    Iterate with ``async for``; the loop ends when the subscription (or
    the hub) is closed. Closing is immediate: values still buffered are
    discarded, and every coroutine waiting on the subscription wakes.

    Each emission is buffered as its own copy until consumed. With
    ``max_pending=0`` the buffer is unbounded, so a subscription that is
    neither read nor closed grows with every mutation; a positive
    ``max_pending`` keeps only the newest values and drops the oldest.
    """

    def __init__(
        self,
        key: SubscriptionKey,
        on_close: Callable[[Subscription[Any]], None],
        *,
        max_pending: int = 0,
    ) -> None:
        self._key = key
        self._on_close = on_close
        self._max_pending = max(max_pending, 0)
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._dropped = 0

    @property
    def key(self) -> SubscriptionKey:
        return self._key

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of emissions buffered but not yet consumed."""
        return 0 if self._closed else self._queue.qsize()

    @property
    def dropped(self) -> int:
        """Number of emissions discarded because the buffer was full."""
        return self._dropped

    def _push(self, value: Any) -> None:
        if self._closed:
            return
        if self._max_pending and self._queue.qsize() >= self._max_pending:
            self._queue.get_nowait()
            self._dropped += 1
        self._queue.put_nowait(value)

    def _shutdown(self) -> None:
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        # Every reader that takes the marker puts it back for the next one.
        self._queue.put_nowait(_CLOSED)

    def _take(self, item: Any) -> bool:
        """Return ``True`` if *item* means the subscription is closed."""
        if item is _CLOSED or self._closed:
            self._queue.put_nowait(_CLOSED)
            return True
        return False

    def close(self) -> None:
        """Detach from the channel. Safe to call more than once."""
        if self._closed:
            return
        self._shutdown()
        self._on_close(self)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if self._take(item):
            raise StopAsyncIteration
        value: T = item
        return value

    async def next(self, timeout: float | None = None) -> T:
        """Wait for the next emission.

        Raises :class:`TimeoutError` when *timeout* elapses and
        :class:`EasyDbClosedError` when the subscription is closed.
        """
        if self._closed:
            raise EasyDbClosedError(f"Subscription {self._key} is closed")
        item = await asyncio.wait_for(self._queue.get(), timeout)
        if self._take(item):
            raise EasyDbClosedError(f"Subscription {self._key} is closed")
        value: T = item
        return value

    async def __aenter__(self) -> Subscription[T]:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription {self._key} {state}>"


@dataclass(slots=True)
class _Channel:
    key: SubscriptionKey
    where: dict[str, Any]
    listeners: list[Subscription[Any]] = field(default_factory=list)


class SubscriptionHub:
    """Multiplexes watch requests onto per-key channels and re-emits on change.

    Query channels are re-evaluated with a full scan of their collection on
    every mutation to that collection, so the cost of one write grows with
    (active query filters on the collection) x (collection size).
    """

    def __init__(self, store: DocumentStore, *, max_pending: int = 0) -> None:
        self._store = store
        self._max_pending = max_pending
        self._channels: dict[SubscriptionKey, _Channel] = {}
        self._queries: dict[str, set[SubscriptionKey]] = {}
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Watch
    # ------------------------------------------------------------------

    def watch(self, collection: str, doc_id: str) -> Subscription[Document | None]:
        """Watch one document. Emits ``None`` while it does not exist."""
        validate_name(collection, "collection")
        validate_name(doc_id, "doc_id")
        return self._subscribe(SubscriptionKey.for_doc(collection, doc_id), {})

    def watch_all(self, collection: str) -> Subscription[dict[str, Document] | None]:
        """Watch a whole collection. Emits ``None`` while it is empty."""
        validate_name(collection, "collection")
        return self._subscribe(SubscriptionKey.for_collection(collection), {})

    def watch_query(self, collection: str, where: Mapping[str, Any] | None = None) -> Subscription[list[Document]]:
        """Watch the list of documents in *collection* matching *where*."""
        validate_name(collection, "collection")
        criteria = normalize_where(where)
        return self._subscribe(SubscriptionKey.for_query(collection, criteria), criteria)

    def _subscribe(self, key: SubscriptionKey, where: dict[str, Any]) -> Subscription[Any]:
        if self._disposed:
            raise EasyDbClosedError("Subscription hub has been disposed")

        channel = self._channels.get(key)
        if channel is None:
            channel = _Channel(key=key, where=where)
            self._channels[key] = channel
            if key.mode is WatchMode.QUERY:
                self._queries.setdefault(key.collection, set()).add(key)
            _logger.debug("Channel opened key=%s", key)

        subscription: Subscription[Any] = Subscription(key, self._detach, max_pending=self._max_pending)
        channel.listeners.append(subscription)
        subscription._push(self._snapshot(channel))
        _logger.debug("Listener attached key=%s listeners=%d", key, len(channel.listeners))
        return subscription

    def _snapshot(self, channel: _Channel) -> Any:
        key = channel.key
        if key.mode is WatchMode.DOC:
            return self._store.get(key.collection, key.doc_id)
        if key.mode is WatchMode.COLLECTION:
            return self._store.get_all(key.collection)
        return self._store.query(key.collection, channel.where)

    def _detach(self, subscription: Subscription[Any]) -> None:
        channel = self._channels.get(subscription.key)
        if channel is None:
            return
        try:
            channel.listeners.remove(subscription)
        except ValueError:
            return
        if channel.listeners:
            return

        # Last listener gone: retire the channel.
        del self._channels[channel.key]
        if channel.key.mode is WatchMode.QUERY:
            keys = self._queries.get(channel.key.collection)
            if keys is not None:
                keys.discard(channel.key)
                if not keys:
                    del self._queries[channel.key.collection]
        _logger.debug("Channel retired key=%s", channel.key)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def notify(self, event: ChangeEvent) -> None:
        """Push fresh values to every channel whose scope includes the mutated document."""
        if self._disposed:
            return

        affected: list[SubscriptionKey] = [
            SubscriptionKey.for_doc(event.collection, event.doc_id),
            SubscriptionKey.for_collection(event.collection),
        ]
        affected.extend(self._queries.get(event.collection, ()))

        for key in affected:
            channel = self._channels.get(key)
            if channel is None:
                continue
            value = self._snapshot(channel)
            listeners = list(channel.listeners)
            for listener in listeners:
                listener._push(copy.deepcopy(value))
            _logger.debug("Emitted key=%s listeners=%d kind=%s", key, len(listeners), event.kind)

    # ------------------------------------------------------------------
    # Lifecycle / introspection
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Close every subscription and retire every channel."""
        channels = list(self._channels.values())
        self._disposed = True
        self._channels.clear()
        self._queries.clear()
        for channel in channels:
            for listener in channel.listeners:
                listener._shutdown()
            channel.listeners.clear()
        if channels:
            _logger.debug("Hub disposed channels=%d", len(channels))

    def active_keys(self) -> list[SubscriptionKey]:
        return list(self._channels)

    def listener_count(self, key: SubscriptionKey) -> int:
        channel = self._channels.get(key)
        return len(channel.listeners) if channel is not None else 0
