"""The :class:`EasyDb` facade: one context object, four storage roles."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from pyeasydb.backends import create_backend
from pyeasydb.config import EasyDbConfig
from pyeasydb.exceptions import EasyDbClosedError, EasyDbConfigError
from pyeasydb.repositories import DatabaseRepository, DatabaseStreamRepository

_logger = logging.getLogger(__name__)

_ROLES: tuple[str, ...] = ("prefs", "secure", "storage", "stream")


class EasyDb:
    """Binds a backend to each role and manages their lifecycle.

    Roles
    -----
    prefs
        App settings, user preferences, cached data.
    secure
        Tokens, passwords, API keys.
    storage
        Primary application data.
    stream
        Realtime data; must be a :class:`DatabaseStreamRepository`.

    Construct one instance at startup and pass it to the code that needs
    it. Backends are bound once, either in the constructor or with
    :meth:`configure`, and cannot be rebound after :meth:`init`::

        db = EasyDb.from_config(EasyDbConfig.from_env())
        async with db:
            await db.storage.set("users", "u1", {"name": "Ada"})
    """

    def __init__(
        self,
        *,
        prefs: DatabaseRepository | None = None,
        secure: DatabaseRepository | None = None,
        storage: DatabaseRepository | None = None,
        stream: DatabaseStreamRepository | None = None,
    ) -> None:
        self._backends: dict[str, DatabaseRepository] = {}
        self._initialized = False
        self._closed = False
        supplied = {"prefs": prefs, "secure": secure, "storage": storage, "stream": stream}
        if any(backend is not None for backend in supplied.values()):
            if any(backend is None for backend in supplied.values()):
                missing = [role for role, backend in supplied.items() if backend is None]
                raise EasyDbConfigError(f"Missing backend for role(s): {', '.join(missing)}")
            self.configure(prefs=prefs, secure=secure, storage=storage, stream=stream)  # type: ignore[arg-type]

    @classmethod
    def from_config(cls, config: EasyDbConfig) -> EasyDb:
        """Build every role's backend through the backend registry.

        The secure role always masks document values in logs.
        """
        secure_options = dataclasses.replace(config.store, redact_values=True)
        stream = create_backend(config.stream_backend, config.store)
        if not isinstance(stream, DatabaseStreamRepository):
            raise EasyDbConfigError(f"Backend {config.stream_backend!r} cannot serve the stream role")
        return cls(
            prefs=create_backend(config.prefs_backend, config.store),
            secure=create_backend(config.secure_backend, secure_options),
            storage=create_backend(config.storage_backend, config.store),
            stream=stream,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(
        self,
        *,
        prefs: DatabaseRepository,
        secure: DatabaseRepository,
        storage: DatabaseRepository,
        stream: DatabaseStreamRepository,
    ) -> None:
        """Bind a backend to each role. Must happen before :meth:`init`."""
        if self._initialized:
            raise EasyDbConfigError("Backends cannot be rebound after init()")
        for role, backend in (("prefs", prefs), ("secure", secure), ("storage", storage)):
            if not isinstance(backend, DatabaseRepository):
                raise EasyDbConfigError(f"{role} backend must be a DatabaseRepository, got {type(backend).__name__}")
        if not isinstance(stream, DatabaseStreamRepository):
            raise EasyDbConfigError(f"stream backend must be a DatabaseStreamRepository, got {type(stream).__name__}")
        self._backends = {"prefs": prefs, "secure": secure, "storage": storage, "stream": stream}
        if _logger.isEnabledFor(logging.DEBUG):
            bound = ", ".join(f"{role}={backend.name}" for role, backend in self._backends.items())
            _logger.debug("Configured roles %s", bound)

    @property
    def is_configured(self) -> bool:
        return bool(self._backends)

    def _require(self, role: str) -> DatabaseRepository:
        backend = self._backends.get(role)
        if backend is None:
            raise EasyDbConfigError(f"No backend bound to role {role!r}. Call configure() first.")
        return backend

    @property
    def prefs(self) -> DatabaseRepository:
        return self._require("prefs")

    @property
    def secure(self) -> DatabaseRepository:
        return self._require("secure")

    @property
    def storage(self) -> DatabaseRepository:
        return self._require("storage")

    @property
    def stream(self) -> DatabaseStreamRepository:
        backend = self._require("stream")
        assert isinstance(backend, DatabaseStreamRepository)  # noqa: S101
        return backend

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _distinct_backends(self) -> list[DatabaseRepository]:
        # One backend instance may serve several roles; touch it once.
        seen: list[DatabaseRepository] = []
        for role in _ROLES:
            backend = self._require(role)
            if not any(backend is other for other in seen):
                seen.append(backend)
        return seen

    async def init(self) -> None:
        """Initialize every bound backend, in role order.

        A closed instance cannot be initialized again; build a new one.
        """
        if self._closed:
            raise EasyDbClosedError("EasyDb was closed; create a new instance")
        if self._initialized:
            return
        for backend in self._distinct_backends():
            await backend.init()
        self._initialized = True

    async def close(self) -> None:
        """Close every bound backend. Safe to call more than once."""
        if self._closed or not self._backends:
            return
        self._closed = True
        for backend in self._distinct_backends():
            await backend.close()

    async def __aenter__(self) -> EasyDb:
        await self.init()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
