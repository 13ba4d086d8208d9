"""Dotted-path access into the state tree.

Paths such as ``"counter.version"`` address nested mappings. Writes never
mutate the input: every mapping along the path is shallow-copied.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def get_value(obj: Any, path: str) -> Any:
    """Return the value at *path*, or ``None`` if any segment is missing."""
    current = obj
    for segment in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current


def set_value(obj: Mapping[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Return a copy of *obj* with *value* stored at *path*.

    Missing intermediate mappings are created. Siblings are shared with the
    input, not deep-copied.
    """
    head, _, rest = path.partition(".")
    result = dict(obj)
    if not rest:
        result[head] = value
        return result

    child = result.get(head)
    if not isinstance(child, Mapping):
        child = {}
    result[head] = set_value(child, rest, value)
    return result
