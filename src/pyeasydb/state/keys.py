"""Subscription key derivation.

A key identifies one broadcast channel in the hub. Keys for query watches
embed a canonical encoding of the filter: every value is written as a
``[kind, payload]`` pair and mappings are serialized with sorted keys, so
the same pairs given in a different insertion order derive an equal key,
and values that only look alike (``1`` and ``True``, a datetime and its ISO
string) never do.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from pyeasydb.models.values import ValueKind, kind_of


class WatchMode(StrEnum):
    DOC = "doc"
    COLLECTION = "collection"
    QUERY = "query"


def _tagged(value: Any) -> list[Any]:
    kind = kind_of(value)
    if kind is ValueKind.NUMBER:
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return [kind.value, value]
    if kind is ValueKind.TIMESTAMP:
        return [kind.value, value.astimezone(UTC).isoformat()]
    if kind is ValueKind.SEQUENCE:
        return [kind.value, [_tagged(item) for item in value]]
    if kind is ValueKind.MAPPING:
        return [kind.value, {key: _tagged(item) for key, item in value.items()}]
    return [kind.value, value]


def canonical_filter(where: Mapping[str, Any] | None) -> str:
    """Serialize a normalized filter independently of its insertion order."""
    if not where:
        return ""
    encoded = {field: _tagged(expected) for field, expected in where.items()}
    return json.dumps(encoded, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class SubscriptionKey(BaseModel):
    """Hashable identity of a watch: ``doc``, ``collection`` or ``query``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: WatchMode
    collection: str
    doc_id: str = ""
    filter: str = ""

    @classmethod
    def for_doc(cls, collection: str, doc_id: str) -> SubscriptionKey:
        return cls(mode=WatchMode.DOC, collection=collection, doc_id=doc_id)

    @classmethod
    def for_collection(cls, collection: str) -> SubscriptionKey:
        return cls(mode=WatchMode.COLLECTION, collection=collection)

    @classmethod
    def for_query(cls, collection: str, where: Mapping[str, Any] | None) -> SubscriptionKey:
        return cls(mode=WatchMode.QUERY, collection=collection, filter=canonical_filter(where))

    def __str__(self) -> str:
        if self.mode is WatchMode.DOC:
            return f"{self.collection}:{self.doc_id}"
        if self.mode is WatchMode.COLLECTION:
            return f"{self.collection}:*"
        return f"{self.collection}?{self.filter}"
