"""Serialization codecs for persisted fragments.

A codec is a pair of plain callables. The only law the synchronizer relies
on is the round trip: ``deserialize(serialize(x)) == x`` for every value it
stores. Key order of the representation is irrelevant.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

Serializer = Callable[[Any], Any]
Deserializer = Callable[[Any], Any]


def json_serialize(value: Any) -> str:
    """Encode *value* as compact JSON text."""
    return json.dumps(value, separators=(",", ":"))


def json_deserialize(raw: Any) -> Any:
    """Decode JSON text (``str``/``bytes``) produced by :func:`json_serialize`."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return json.loads(raw)


def passthrough(value: Any) -> Any:
    """Identity codec for engines that store native Python objects."""
    return value
