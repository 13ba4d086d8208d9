"""Storage engine capability protocols and adapters.

Two engine shapes are supported:

* :class:`StorageEngine`: synchronous ``get``/``set``/``remove``/``clear``/
  ``key_at`` methods plus a ``count`` property.
* :class:`AsyncStorageEngine`: the same operations as coroutines, with
  ``count()`` invocable.

The kind of an engine is declared explicitly with :class:`EngineKind` when it
is bound; nothing here inspects the engine's shape at runtime.
:func:`bind_engine` returns an engine that always speaks the async protocol,
so the synchronizer never branches on engine kind.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import Any, Protocol, cast

from pystatesync.exceptions import StateSyncConfigError

_logger = logging.getLogger(__name__)


class EngineKind(StrEnum):
    SYNC = "sync"
    ASYNC = "async"


class StorageEngine(Protocol):
    """Synchronous key-value storage capability set."""

    @property
    def count(self) -> int: ...

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def key_at(self, index: int) -> str | None: ...


class AsyncStorageEngine(Protocol):
    """Asynchronous key-value storage capability set."""

    async def count(self) -> int: ...

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def key_at(self, index: int) -> str | None: ...


class AsyncEngineAdapter:
    """Expose a synchronous engine through the async capability set.

    Every coroutine completes on its first step with the wrapped call's
    result, or raises whatever the wrapped call raised. There is no retry
    and no buffering.
    """

    def __init__(self, engine: StorageEngine) -> None:
        self._engine = engine

    @property
    def wrapped(self) -> StorageEngine:
        return self._engine

    async def count(self) -> int:
        return self._engine.count

    async def get(self, key: str) -> Any:
        return self._engine.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._engine.set(key, value)

    async def remove(self, key: str) -> None:
        self._engine.remove(key)

    async def clear(self) -> None:
        self._engine.clear()

    async def key_at(self, index: int) -> str | None:
        return self._engine.key_at(index)


def bind_engine(engine: StorageEngine | AsyncStorageEngine, kind: EngineKind | str) -> AsyncStorageEngine:
    """Return *engine* as an :class:`AsyncStorageEngine` according to *kind*."""
    try:
        resolved = EngineKind(kind)
    except ValueError as exc:
        raise StateSyncConfigError(f"Unknown storage engine kind: {kind!r}") from exc

    if resolved is EngineKind.ASYNC:
        return cast(AsyncStorageEngine, engine)
    _logger.debug("Wrapping synchronous engine %s in AsyncEngineAdapter", type(engine).__name__)
    return AsyncEngineAdapter(cast(StorageEngine, engine))


class MemoryStorageEngine:
    """Synchronous engine backed by an insertion-ordered dict.

    Values are stored as given; pair it with the JSON codec to persist text
    or with :func:`pystatesync.codec.passthrough` to persist objects.
    """

    def __init__(self, initial: Iterable[tuple[str, Any]] | dict[str, Any] | None = None) -> None:
        self._items: dict[str, Any] = dict(initial or {})

    @property
    def count(self) -> int:
        return len(self._items)

    def get(self, key: str) -> Any:
        return self._items.get(key)

    def set(self, key: str, value: Any) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def key_at(self, index: int) -> str | None:
        if 0 <= index < len(self._items):
            return list(self._items)[index]
        return None

    def snapshot(self) -> dict[str, Any]:
        """Shallow copy of the stored items."""
        return dict(self._items)
