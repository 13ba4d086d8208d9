"""Helpers for safe debug logging of fragment values.

Persisted fragments may hold tokens or other credentials and can be large.
``preview`` renders a bounded, redacted representation for DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "secret",
        "token",
        "accesstoken",
        "refreshtoken",
        "apikey",
        "authorization",
        "cookie",
    }
)

_MAX_DEPTH = 8


def preview(value: Any, *, max_string: int = 200, max_items: int = 20, _depth: int = 0) -> Any:
    """Return a redacted, size-bounded copy of *value* suitable for logs."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<{len(value)} chars>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index >= max_items:
                out["…"] = f"<{len(value) - max_items} more>"
                break
            key = str(k)
            normalized = key.lower().replace("_", "").replace("-", "")
            if normalized in _SENSITIVE_KEYS:
                out[key] = "<redacted>"
            else:
                out[key] = preview(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
        return out

    if isinstance(value, Sequence):
        items = [preview(v, max_string=max_string, max_items=max_items, _depth=_depth + 1) for v in value[:max_items]]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    return repr(value)
