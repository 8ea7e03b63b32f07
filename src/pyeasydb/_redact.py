"""Log-safe rendering of document payloads.

Documents routinely carry credentials (the secure role exists for exactly
that). Nothing in pyeasydb logs a payload without passing it through
:func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pyeasydb.models.values import SERVER_TIMESTAMP

_MASK = "<redacted>"

# Compared after lowercasing and stripping "_" / "-".
_SENSITIVE_FRAGMENTS: tuple[str, ...] = (
    "password",
    "passwd",
    "secret",
    "token",
    "apikey",
    "authorization",
    "cookie",
    "credential",
    "privatekey",
)

# Too short to match as fragments ("pin" is inside "shipping").
_SENSITIVE_EXACT: frozenset[str] = frozenset({"pin", "otp", "pwd"})


def _is_sensitive(key: str) -> bool:
    folded = key.lower().replace("_", "").replace("-", "")
    if folded in _SENSITIVE_EXACT:
        return True
    return any(fragment in folded for fragment in _SENSITIVE_FRAGMENTS)


def redact_for_log(
    value: Any,
    *,
    mask_all: bool = False,
    max_string: int = 256,
    max_items: int = 50,
    _depth: int = 0,
) -> Any:
    """Return a copy of *value* that is safe to put in a DEBUG log line.

    Values under sensitive keys are masked. With ``mask_all`` every leaf
    value is masked and only the structure (field names, lengths) remains.
    """
    if _depth > 16:
        return "<max-depth>"

    if value is SERVER_TIMESTAMP:
        return "SERVER_TIMESTAMP"

    if isinstance(value, Mapping):
        rendered: dict[str, Any] = {}
        for index, (key, item) in enumerate(value.items()):
            if index >= max_items:
                rendered["…"] = f"<{len(value) - max_items} more>"
                break
            name = str(key)
            if _is_sensitive(name):
                rendered[name] = _MASK
            else:
                rendered[name] = redact_for_log(
                    item, mask_all=mask_all, max_string=max_string, max_items=max_items, _depth=_depth + 1
                )
        return rendered

    if isinstance(value, (list, tuple)):
        items = [
            redact_for_log(item, mask_all=mask_all, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for item in value[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    if mask_all:
        return _MASK if value is not None else None

    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<{len(value)} chars>"
    if isinstance(value, datetime):
        return value.isoformat()
    return value
