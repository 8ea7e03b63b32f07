"""Query predicate shared by ``exists_where``, ``query`` and ``watch_query``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyeasydb.exceptions import EasyDbInputError
from pyeasydb.models.values import normalize_value, values_equal


def normalize_where(where: Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate a field/value filter and return a detached copy."""
    if where is None:
        return {}
    if not isinstance(where, Mapping):
        raise EasyDbInputError(f"Filter must be a mapping, got {type(where).__name__}", field="where")
    normalized: dict[str, Any] = {}
    for field, expected in where.items():
        if not isinstance(field, str) or not field:
            raise EasyDbInputError(f"Filter fields must be non-empty strings, got {field!r}", field="where")
        normalized[field] = normalize_value(expected, path=field)
    return normalized


def matches(document: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    """Return ``True`` when *document* satisfies every pair in *where*.

    A missing field reads as ``None``, so it only matches a null
    expectation. An empty filter matches every document.
    """
    if not where:
        return True
    for field, expected in where.items():
        if not values_equal(document.get(field), expected):
            return False
    return True
