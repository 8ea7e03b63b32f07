"""State layer.

The document store is the single source of truth for collection state;
the subscription hub derives every live emission from it.
"""

from pyeasydb.state.events import ChangeEvent, ChangeKind
from pyeasydb.state.hub import Subscription, SubscriptionHub
from pyeasydb.state.keys import SubscriptionKey, WatchMode
from pyeasydb.state.matching import matches
from pyeasydb.state.store import Document, DocumentStore

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "Document",
    "DocumentStore",
    "Subscription",
    "SubscriptionHub",
    "SubscriptionKey",
    "WatchMode",
    "matches",
]
