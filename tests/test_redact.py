from __future__ import annotations

from datetime import UTC, datetime

from pyeasydb._redact import redact_for_log
from pyeasydb.models.values import SERVER_TIMESTAMP


def test_redact_for_log_masks_sensitive_keys() -> None:
    payload = {
        "user": "ada",
        "password": "pw",
        "refresh_token": "tok",
        "API-Key": "k",
        "pin": "1234",
        "shipping": "express",
        "nested": {"clientSecret": "s", "count": 2},
    }

    redacted = redact_for_log(payload)

    assert redacted["user"] == "ada"
    assert redacted["password"] == "<redacted>"
    assert redacted["refresh_token"] == "<redacted>"
    assert redacted["API-Key"] == "<redacted>"
    assert redacted["pin"] == "<redacted>"
    assert redacted["shipping"] == "express"
    assert redacted["nested"] == {"clientSecret": "<redacted>", "count": 2}


def test_redact_for_log_mask_all_keeps_structure_only() -> None:
    redacted = redact_for_log({"user": "ada", "tags": ["a", None], "n": 1}, mask_all=True)

    assert redacted == {"user": "<redacted>", "tags": ["<redacted>", None], "n": "<redacted>"}


def test_redact_for_log_truncates_long_strings_and_lists() -> None:
    redacted = redact_for_log({"value": "x" * 600, "items": list(range(60))}, max_string=10, max_items=5)

    assert redacted["value"].startswith("x" * 10)
    assert "<600 chars>" in redacted["value"]
    assert redacted["items"] == [0, 1, 2, 3, 4, "<55 more>"]


def test_redact_for_log_renders_timestamps() -> None:
    moment = datetime(2026, 1, 1, tzinfo=UTC)

    assert redact_for_log({"at": moment, "pending": SERVER_TIMESTAMP}) == {
        "at": moment.isoformat(),
        "pending": "SERVER_TIMESTAMP",
    }
