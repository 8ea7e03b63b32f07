"""pyeasydb - uniform async CRUD and live-watch facade over storage backends."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyeasydb")
except PackageNotFoundError:
    __version__ = "0+local"
from pyeasydb.backends import (
    MemoryDatabase,
    MemoryStreamDatabase,
    available_backends,
    create_backend,
    register_backend,
)
from pyeasydb.client import EasyDb
from pyeasydb.config import EasyDbConfig, StoreOptions
from pyeasydb.exceptions import (
    EasyDbBackendError,
    EasyDbClosedError,
    EasyDbConfigError,
    EasyDbError,
    EasyDbInputError,
)
from pyeasydb.models import SERVER_TIMESTAMP, SERVER_TIMESTAMP_WIRE, ValueKind
from pyeasydb.repositories import DatabaseRepository, DatabaseStreamRepository
from pyeasydb.state import (
    ChangeEvent,
    ChangeKind,
    DocumentStore,
    Subscription,
    SubscriptionHub,
    SubscriptionKey,
    WatchMode,
)

__all__ = [
    "__version__",
    "SERVER_TIMESTAMP",
    "SERVER_TIMESTAMP_WIRE",
    "ChangeEvent",
    "ChangeKind",
    "DatabaseRepository",
    "DatabaseStreamRepository",
    "DocumentStore",
    "EasyDb",
    "EasyDbBackendError",
    "EasyDbClosedError",
    "EasyDbConfig",
    "EasyDbConfigError",
    "EasyDbError",
    "EasyDbInputError",
    "MemoryDatabase",
    "MemoryStreamDatabase",
    "StoreOptions",
    "Subscription",
    "SubscriptionHub",
    "SubscriptionKey",
    "ValueKind",
    "WatchMode",
    "available_backends",
    "create_backend",
    "register_backend",
]
