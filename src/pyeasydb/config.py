"""Configuration for pyeasydb stores and the facade."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclasses.dataclass(frozen=True)
class StoreOptions:
    """Behaviour knobs shared by the in-memory backends.

    Parameters
    ----------
    id_field : str
        Key under which query results carry their document id.
    accept_wire_sentinel : bool
        Also treat the string ``"__TS__"`` as the server timestamp marker.
        The :data:`~pyeasydb.models.SERVER_TIMESTAMP` object is always
        recognized.
    redact_values : bool
        Mask every document value in DEBUG logs, not only sensitive keys.
    clock : callable
        Returns the "current moment" substituted for timestamp sentinels.
        Must return a timezone-aware datetime.
    """

    id_field: str = "id"
    accept_wire_sentinel: bool = True
    redact_values: bool = False
    clock: Callable[[], datetime] = _utcnow

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreOptions:
        """Create store options from ``EASYDB_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        kwargs: dict[str, Any] = {}

        id_field = env.get("EASYDB_ID_FIELD")
        if id_field is not None and id_field.strip():
            kwargs["id_field"] = id_field.strip()

        if "accept_wire_sentinel" not in overrides:
            kwargs["accept_wire_sentinel"] = _env_bool(env.get("EASYDB_ACCEPT_WIRE_SENTINEL"), True)
        if "redact_values" not in overrides:
            kwargs["redact_values"] = _env_bool(env.get("EASYDB_REDACT_VALUES"), False)

        kwargs.update(overrides)
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class EasyDbConfig:
    """Which backend satisfies each facade role.

    Backend names are resolved through :func:`pyeasydb.backends.create_backend`.

    Parameters
    ----------
    prefs_backend : str
        Backend for app settings and cached preferences.
    secure_backend : str
        Backend for tokens and other sensitive values.
    storage_backend : str
        Backend for primary application data.
    stream_backend : str
        Backend for realtime data. Must provide the watch operations.
    store : StoreOptions
        Options passed to every backend that is created.
    """

    prefs_backend: str = "memory"
    secure_backend: str = "memory"
    storage_backend: str = "memory"
    stream_backend: str = "memory-stream"
    store: StoreOptions = dataclasses.field(default_factory=StoreOptions)

    @classmethod
    def from_env(cls, **overrides: Any) -> EasyDbConfig:
        """Create configuration from environment variables.

        Reads ``EASYDB_PREFS_BACKEND``, ``EASYDB_SECURE_BACKEND``,
        ``EASYDB_STORAGE_BACKEND``, ``EASYDB_STREAM_BACKEND`` and the
        :class:`StoreOptions` variables. Explicit keyword arguments override
        environment values; ``store`` may be given as a dict of option
        overrides or as a :class:`StoreOptions`.
        """
        env = os.environ

        store_overrides = overrides.pop("store", None)
        if isinstance(store_overrides, StoreOptions):
            store = store_overrides
        elif isinstance(store_overrides, dict):
            store = StoreOptions.from_env(**store_overrides)
        else:
            store = StoreOptions.from_env()

        _ENV_ROLE_MAP = {
            "EASYDB_PREFS_BACKEND": "prefs_backend",
            "EASYDB_SECURE_BACKEND": "secure_backend",
            "EASYDB_STORAGE_BACKEND": "storage_backend",
            "EASYDB_STREAM_BACKEND": "stream_backend",
        }
        config_kwargs: dict[str, Any] = {"store": store}
        for env_key, field_name in _ENV_ROLE_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip().lower()

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
