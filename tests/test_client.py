from __future__ import annotations

import logging

import pytest

from pyeasydb.backends import MemoryDatabase, MemoryStreamDatabase, create_backend, register_backend
from pyeasydb.client import EasyDb
from pyeasydb.config import EasyDbConfig
from pyeasydb.exceptions import EasyDbClosedError, EasyDbConfigError


class _RecordingBackend(MemoryDatabase):
    def __init__(self, name: str, log: list[str]) -> None:
        super().__init__(name=name)
        self._log = log

    async def init(self) -> None:
        self._log.append(f"init:{self.name}")

    async def close(self) -> None:
        self._log.append(f"close:{self.name}")


def _memory_roles() -> dict:
    return {
        "prefs": MemoryDatabase(name="prefs"),
        "secure": MemoryDatabase(name="secure"),
        "storage": MemoryDatabase(name="storage"),
        "stream": MemoryStreamDatabase(),
    }


def test_roles_raise_before_configure() -> None:
    db = EasyDb()

    assert db.is_configured is False
    with pytest.raises(EasyDbConfigError):
        _ = db.storage


def test_partial_constructor_roles_are_rejected() -> None:
    with pytest.raises(EasyDbConfigError):
        EasyDb(prefs=MemoryDatabase())


def test_stream_role_requires_stream_repository() -> None:
    db = EasyDb()
    roles = _memory_roles()
    roles["stream"] = MemoryDatabase()

    with pytest.raises(EasyDbConfigError):
        db.configure(**roles)


@pytest.mark.asyncio
async def test_configure_init_and_use_roles() -> None:
    db = EasyDb()
    roles = _memory_roles()
    db.configure(**roles)

    async with db:
        await db.storage.set("users", "u1", {"name": "Ada"})
        updates = db.stream.watch("users", "u1")
        await db.stream.set("users", "u1", {"name": "Ada"})

        assert await db.storage.get("users", "u1") == {"name": "Ada"}
        assert await updates.next(timeout=1.0) is None
        assert await updates.next(timeout=1.0) == {"name": "Ada"}
        assert db.prefs is roles["prefs"]
        assert db.secure is roles["secure"]

    assert updates.closed


@pytest.mark.asyncio
async def test_rebinding_after_init_is_rejected() -> None:
    db = EasyDb(**_memory_roles())
    await db.init()

    with pytest.raises(EasyDbConfigError):
        db.configure(**_memory_roles())
    await db.close()


@pytest.mark.asyncio
async def test_shared_backend_is_initialized_and_closed_once() -> None:
    log: list[str] = []
    shared = _RecordingBackend("shared", log)
    db = EasyDb(prefs=shared, secure=shared, storage=_RecordingBackend("storage", log), stream=MemoryStreamDatabase())

    await db.init()
    await db.init()
    await db.close()
    await db.close()

    assert log == ["init:shared", "init:storage", "close:shared", "close:storage"]


@pytest.mark.asyncio
async def test_reentering_after_close_is_rejected() -> None:
    log: list[str] = []
    db = EasyDb(
        prefs=_RecordingBackend("prefs", log),
        secure=_RecordingBackend("secure", log),
        storage=_RecordingBackend("storage", log),
        stream=MemoryStreamDatabase(),
    )
    async with db:
        pass

    with pytest.raises(EasyDbClosedError):
        async with db:
            pass
    with pytest.raises(EasyDbClosedError):
        await db.init()

    assert log == ["init:prefs", "init:secure", "init:storage", "close:prefs", "close:secure", "close:storage"]


@pytest.mark.asyncio
async def test_from_config_builds_memory_roles() -> None:
    db = EasyDb.from_config(EasyDbConfig())

    async with db:
        assert isinstance(db.prefs, MemoryDatabase)
        assert isinstance(db.stream, MemoryStreamDatabase)
        assert db.secure is not db.prefs
        assert db.secure.store.options.redact_values is True  # type: ignore[attr-defined]
        assert db.prefs.store.options.redact_values is False  # type: ignore[attr-defined]


def test_from_config_rejects_non_stream_backend_for_stream_role() -> None:
    with pytest.raises(EasyDbConfigError):
        EasyDb.from_config(EasyDbConfig(stream_backend="memory"))


def test_unknown_backend_name_is_a_config_error() -> None:
    with pytest.raises(EasyDbConfigError):
        EasyDb.from_config(EasyDbConfig(storage_backend="firestore"))


def test_register_backend_makes_name_available() -> None:
    register_backend("test-recording", lambda options: MemoryDatabase(options, name="recording"), replace=True)

    backend = create_backend("Test-Recording")

    assert backend.name == "recording"
    with pytest.raises(EasyDbConfigError):
        register_backend("memory", lambda options: MemoryDatabase(options))


@pytest.mark.asyncio
async def test_secure_role_masks_values_in_debug_logs(caplog: pytest.LogCaptureFixture) -> None:
    db = EasyDb.from_config(EasyDbConfig())

    with caplog.at_level(logging.DEBUG, logger="pyeasydb.state.store"):
        await db.secure.set("auth", "session", {"refresh": "abc123", "user": "ada-lovelace"})
        await db.prefs.set("ui", "theme", {"mode": "dark", "api_key": "k-999"})

    assert "abc123" not in caplog.text
    assert "lovelace" not in caplog.text
    assert "dark" in caplog.text
    assert "k-999" not in caplog.text
