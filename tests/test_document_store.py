from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pyeasydb.config import StoreOptions
from pyeasydb.exceptions import EasyDbInputError
from pyeasydb.models.values import SERVER_TIMESTAMP
from pyeasydb.state.events import ChangeEvent, ChangeKind
from pyeasydb.state.store import DocumentStore


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def _store(**kwargs) -> DocumentStore:
    return DocumentStore(StoreOptions(clock=_dt, **kwargs))


def test_set_then_get_round_trips() -> None:
    store = _store()
    store.set("c", "1", {"a": 1})

    assert store.get("c", "1") == {"a": 1}


def test_set_replaces_whole_document() -> None:
    store = _store()
    store.set("c", "1", {"a": 1, "b": 2})
    store.set("c", "1", {"c": 3})

    assert store.get("c", "1") == {"c": 3}


def test_update_is_a_shallow_merge() -> None:
    store = _store()
    store.set("c", "1", {"a": 1, "b": 2, "nested": {"x": 1, "y": 2}})
    store.update("c", "1", {"b": 3, "nested": {"x": 9}})

    assert store.get("c", "1") == {"a": 1, "b": 3, "nested": {"x": 9}}


def test_update_creates_missing_document() -> None:
    store = _store()
    store.update("c", "new", {"a": 1})

    assert store.get("c", "new") == {"a": 1}


def test_delete_then_get_returns_default() -> None:
    store = _store()
    store.set("c", "1", {"a": 1})
    store.delete("c", "1")

    assert store.get("c", "1", {}) == {}
    assert store.get("c", "1") is None
    assert store.exists("c", "1") is False


def test_delete_missing_document_is_a_noop() -> None:
    store = _store()
    store.set("c", "keep", {"a": 1})

    event = store.delete("c", "missing")
    store.delete("other", "missing")

    assert event.kind is ChangeKind.DELETE
    assert store.get("c", "keep") == {"a": 1}
    assert len(store) == 1


def test_missing_collection_reads_as_empty() -> None:
    store = _store()

    assert store.get_all("nothing") is None
    assert store.query("nothing", {"a": 1}) == []
    assert store.exists_where("nothing", {}) is False
    assert store.exists("nothing", "x") is False


def test_get_all_returns_none_once_collection_is_emptied() -> None:
    store = _store()
    store.set("c", "1", {"a": 1})
    assert store.get_all("c") == {"1": {"a": 1}}

    store.delete("c", "1")

    assert store.get_all("c") is None
    assert store.collections() == []


def test_query_filters_and_annotates_ids() -> None:
    store = _store()
    store.set("tasks", "t1", {"status": "active"})
    store.set("tasks", "t2", {"status": "done"})

    assert store.query("tasks", {"status": "active"}) == [{"status": "active", "id": "t1"}]
    assert len(store.query("tasks", {})) == 2
    assert store.exists_where("tasks", {"status": "done"}) is True
    assert store.exists_where("tasks", {"status": "archived"}) is False


def test_query_uses_configured_id_field() -> None:
    store = _store(id_field="_key")
    store.set("tasks", "t1", {"id": "user-supplied"})

    assert store.query("tasks") == [{"id": "user-supplied", "_key": "t1"}]


def test_exists_where_empty_filter_matches_any_document() -> None:
    store = _store()
    store.set("c", "1", {"a": 1})

    assert store.exists_where("c", {}) is True


def test_server_timestamp_is_resolved_at_top_level() -> None:
    store = _store()
    store.set("c", "1", {"created": SERVER_TIMESTAMP, "legacy": "__TS__"})
    store.update("c", "1", {"updated": SERVER_TIMESTAMP})

    assert store.get("c", "1") == {"created": _dt(), "legacy": _dt(), "updated": _dt()}


def test_wire_sentinel_is_plain_data_when_disabled() -> None:
    store = _store(accept_wire_sentinel=False)
    store.set("c", "1", {"legacy": "__TS__"})

    assert store.get("c", "1") == {"legacy": "__TS__"}


def test_nested_wire_sentinel_is_not_substituted() -> None:
    store = _store()
    store.set("c", "1", {"meta": {"at": "__TS__"}})

    assert store.get("c", "1") == {"meta": {"at": "__TS__"}}


@pytest.mark.parametrize(
    ("collection", "doc_id"),
    [("", "1"), ("c", ""), (None, "1"), ("c", 5)],
)
def test_invalid_identifiers_are_rejected_before_mutation(collection, doc_id) -> None:
    store = _store()

    with pytest.raises(EasyDbInputError):
        store.set(collection, doc_id, {"a": 1})
    with pytest.raises(EasyDbInputError):
        store.delete(collection, doc_id)

    assert len(store) == 0


def test_invalid_data_leaves_state_untouched() -> None:
    store = _store()
    store.set("c", "1", {"a": 1})

    with pytest.raises(EasyDbInputError):
        store.update("c", "1", {"a": 2, "bad": object()})

    assert store.get("c", "1") == {"a": 1}


def test_returned_documents_are_copies() -> None:
    store = _store()
    data = {"tags": ["x"]}
    store.set("c", "1", data)
    data["tags"].append("mutated-input")

    fetched = store.get("c", "1")
    fetched["tags"].append("mutated-output")
    store.query("c")[0]["tags"].append("mutated-query")

    assert store.get("c", "1") == {"tags": ["x"]}


def test_replaying_events_reproduces_state() -> None:
    store = _store()
    events: list[ChangeEvent] = [
        store.set("users", "u1", {"name": "Ada", "created": SERVER_TIMESTAMP}),
        store.set("users", "u2", {"name": "Bob"}),
        store.update("users", "u1", {"role": "admin"}),
        store.delete("users", "u2"),
        store.update("teams", "t1", {"members": ["u1"]}),
    ]

    replica = DocumentStore()
    replica.replay(events)

    assert replica.get_all("users") == store.get_all("users")
    assert replica.get_all("teams") == store.get_all("teams")
    assert replica.get("users", "u1")["created"] == _dt()


def test_apply_rejects_unresolved_marker() -> None:
    store = _store()
    event = ChangeEvent(kind=ChangeKind.SET, collection="c", doc_id="1", data={"at": SERVER_TIMESTAMP})

    with pytest.raises(EasyDbInputError):
        store.apply(event)


def test_clear_drops_everything() -> None:
    store = _store()
    store.set("a", "1", {"x": 1})
    store.set("b", "1", {"x": 1})
    store.clear()

    assert len(store) == 0
    assert store.collections() == []
