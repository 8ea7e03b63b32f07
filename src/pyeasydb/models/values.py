"""Document values as an explicit tagged union.

Documents are schema-less, but the values they may hold are not arbitrary
Python objects. Every value belongs to exactly one :class:`ValueKind`:

* ``NULL`` - ``None``
* ``BOOL`` - ``True`` / ``False`` (never treated as a number)
* ``NUMBER`` - ``int`` or finite ``float``; ``1 == 1.0``
* ``STRING`` - ``str``
* ``TIMESTAMP`` - timezone-aware ``datetime`` (naive values are taken as UTC)
* ``SEQUENCE`` - ``list`` (tuples are stored as lists)
* ``MAPPING`` - ``dict`` with ``str`` keys

Equality (:func:`values_equal`) compares the tag first and the payload
second, recursively, so ``True`` never equals ``1`` and ``0`` never equals
``False`` even though Python's ``==`` says otherwise.

The server timestamp marker is a dedicated :class:`ServerTimestamp` member,
not a string, so it can never collide with stored data. The write path
optionally also honours the wire string ``"__TS__"``.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pyeasydb.exceptions import EasyDbInputError

#: Wire representation of the server timestamp marker.
SERVER_TIMESTAMP_WIRE = "__TS__"


class ServerTimestamp(enum.Enum):
    """Placeholder replaced by the backend's notion of "now" at write time."""

    SERVER_TIMESTAMP = SERVER_TIMESTAMP_WIRE

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp.SERVER_TIMESTAMP


class ValueKind(enum.StrEnum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    TIMESTAMP = "timestamp"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def kind_of(value: Any) -> ValueKind:
    """Return the tag of *value*, raising :class:`EasyDbInputError` if it has none."""
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int; it must be checked first.
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, datetime):
        return ValueKind.TIMESTAMP
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    raise EasyDbInputError(f"Unsupported document value of type {type(value).__name__}")


def is_server_timestamp(value: Any, *, accept_wire: bool = True) -> bool:
    """Whether *value* is the timestamp marker (object, or wire string if accepted)."""
    if value is SERVER_TIMESTAMP:
        return True
    return accept_wire and isinstance(value, str) and value == SERVER_TIMESTAMP_WIRE


def normalize_value(value: Any, *, path: str = "") -> Any:
    """Validate *value* and return a detached, canonical copy of it.

    Tuples become lists, naive datetimes become UTC. The server timestamp
    object is rejected here: it is only meaningful as a top-level field.
    """
    if value is SERVER_TIMESTAMP:
        raise EasyDbInputError(
            f"SERVER_TIMESTAMP is only allowed as a top-level field value (at {path or '<root>'})",
            field=path,
        )
    try:
        kind = kind_of(value)
    except EasyDbInputError as exc:
        raise EasyDbInputError(f"{exc} (at {path or '<root>'})", field=path) from None

    if kind is ValueKind.NUMBER:
        if isinstance(value, float) and not math.isfinite(value):
            raise EasyDbInputError(f"Non-finite number at {path or '<root>'}", field=path)
        return value
    if kind is ValueKind.TIMESTAMP:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
    if kind is ValueKind.SEQUENCE:
        return [normalize_value(item, path=f"{path}[{i}]") for i, item in enumerate(value)]
    if kind is ValueKind.MAPPING:
        result: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise EasyDbInputError(
                    f"Mapping keys must be strings, got {type(key).__name__} at {path or '<root>'}",
                    field=path,
                )
            child = f"{path}.{key}" if path else key
            result[key] = normalize_value(item, path=child)
        return result
    return value


def normalize_document(data: Any, *, accept_wire: bool = True) -> dict[str, Any]:
    """Validate incoming write data.

    Top-level timestamp markers are kept (as :data:`SERVER_TIMESTAMP`) for the
    resolver; every other value is normalized via :func:`normalize_value`.
    """
    if not isinstance(data, Mapping):
        raise EasyDbInputError(f"Document data must be a mapping, got {type(data).__name__}")
    document: dict[str, Any] = {}
    for key, value in data.items():
        if not isinstance(key, str) or not key:
            raise EasyDbInputError(f"Field names must be non-empty strings, got {key!r}", field=str(key))
        if is_server_timestamp(value, accept_wire=accept_wire):
            document[key] = SERVER_TIMESTAMP
        else:
            document[key] = normalize_value(value, path=key)
    return document


def values_equal(left: Any, right: Any) -> bool:
    """Tagged deep equality between two normalized values."""
    left_kind = kind_of(left)
    if left_kind is not kind_of(right):
        return False
    if left_kind is ValueKind.SEQUENCE:
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right, strict=True))
    if left_kind is ValueKind.MAPPING:
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    return bool(left == right)
