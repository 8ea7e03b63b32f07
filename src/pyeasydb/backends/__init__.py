"""Backend registry.

Maps the backend names used in :class:`~pyeasydb.config.EasyDbConfig` to
factories. Adapters for real storage SDKs register themselves here with
:func:`register_backend`.
"""

from __future__ import annotations

from collections.abc import Callable

from pyeasydb.backends.memory import MemoryDatabase
from pyeasydb.backends.stream import MemoryStreamDatabase
from pyeasydb.config import StoreOptions
from pyeasydb.exceptions import EasyDbConfigError
from pyeasydb.repositories import DatabaseRepository

BackendFactory = Callable[[StoreOptions], DatabaseRepository]

_REGISTRY: dict[str, BackendFactory] = {
    "memory": lambda options: MemoryDatabase(options),
    "memory-stream": lambda options: MemoryStreamDatabase(options),
}


def register_backend(name: str, factory: BackendFactory, *, replace: bool = False) -> None:
    """Make *factory* available under *name*."""
    key = name.strip().lower()
    if not key:
        raise EasyDbConfigError("Backend name must be non-empty")
    if key in _REGISTRY and not replace:
        raise EasyDbConfigError(f"Backend {key!r} is already registered")
    _REGISTRY[key] = factory


def available_backends() -> list[str]:
    return sorted(_REGISTRY)


def create_backend(name: str, options: StoreOptions | None = None) -> DatabaseRepository:
    """Instantiate the backend registered as *name*."""
    key = name.strip().lower()
    factory = _REGISTRY.get(key)
    if factory is None:
        raise EasyDbConfigError(f"Unknown backend {name!r} (available: {', '.join(available_backends())})")
    return factory(options or StoreOptions())


__all__ = [
    "BackendFactory",
    "MemoryDatabase",
    "MemoryStreamDatabase",
    "available_backends",
    "create_backend",
    "register_backend",
]
