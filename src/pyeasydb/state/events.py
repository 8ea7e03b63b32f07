"""Normalized change events.

Every write operation is turned into a :class:`ChangeEvent` before it
touches the store. Only :meth:`pyeasydb.state.store.DocumentStore.apply`
is allowed to merge them, and the subscription hub derives its
notifications from the same events.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChangeKind(StrEnum):
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    """A single resolved mutation of one document.

    ``data`` never contains timestamp markers: they are resolved to
    concrete datetimes when the event is built, which is what makes a
    recorded event sequence replayable.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    collection: str = Field(..., description="Collection name")
    doc_id: str = Field(..., description="Document identifier")
    data: dict[str, Any] = Field(default_factory=dict, description="Resolved document data or patch")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("collection", "doc_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def key(self) -> tuple[str, str]:
        """Document identity ``(collection, doc_id)``."""
        return (self.collection, self.doc_id)
