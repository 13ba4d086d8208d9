"""Fragment synchronizer: hydrate on lifecycle actions, write back after each action.

One :meth:`FragmentSynchronizer.handle` call moves through
``Idle -> Hydrating -> AwaitingContinuation -> WritingBack -> Idle``.
Hydration only runs for lifecycle actions; every other action goes
straight to the continuation.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pystatesync import migrations
from pystatesync._paths import get_value, set_value
from pystatesync._redact import preview
from pystatesync.actions import is_lifecycle_action
from pystatesync.config import SyncConfig
from pystatesync.engines import AsyncStorageEngine, StorageEngine, bind_engine
from pystatesync.events import SyncEvent, SyncEventKind, SyncObserver
from pystatesync.exceptions import (
    StateSyncDeserializationError,
    StateSyncStorageError,
    StateSyncWriteError,
)
from pystatesync.migrations import MigrationStrategy

_logger = logging.getLogger(__name__)

State = Mapping[str, Any]
NextFn = Callable[[State, Any], Awaitable[State]]

# Deserialized placeholder some engines persist for "no value".
_UNDEFINED_TOKEN = "undefined"


def _is_empty(value: Any) -> bool:
    return value is None or value == _UNDEFINED_TOKEN


@dataclass(slots=True, frozen=True)
class HydrationResult:
    """Outcome of loading one fragment.

    ``value`` is None when the record was absent or invalid. ``strategy`` is
    the migration that was applied, if any.
    """

    key: str
    value: Any = None
    strategy: MigrationStrategy | None = None

    @property
    def migrated(self) -> bool:
        return self.strategy is not None

    @property
    def is_empty(self) -> bool:
        return _is_empty(self.value)


@dataclass(slots=True)
class _Hydration:
    state: State
    results: dict[str, HydrationResult]
    whole_tree_strategy: MigrationStrategy | None = None


class FragmentSynchronizer:
    """Keep state fragments in sync with a key-value storage engine.

    Usage::

        sync = FragmentSynchronizer(MemoryStorageEngine(), SyncConfig(key="counter"))
        next_state = await sync.handle(state, InitState(), reducer)

    The synchronizer has the same call shape as the continuation it wraps,
    so it can be chained as another pipeline stage.
    """

    def __init__(
        self,
        engine: StorageEngine | AsyncStorageEngine,
        config: SyncConfig | None = None,
        *,
        is_lifecycle: Callable[[Any], bool] = is_lifecycle_action,
        on_event: SyncObserver | None = None,
    ) -> None:
        self._config = config or SyncConfig()
        self._engine = bind_engine(engine, self._config.storage)
        self._is_lifecycle = is_lifecycle
        self._on_event = on_event

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def engine(self) -> AsyncStorageEngine:
        return self._engine

    async def __call__(self, state: State, action: Any, next_: NextFn) -> State:
        return await self.handle(state, action, next_)

    async def handle(self, state: State, action: Any, next_: NextFn) -> State:
        """Run one action through hydrate, the continuation, and write-back."""
        lifecycle = self._is_lifecycle(action)
        keys = self._config.fragment_keys(state)

        hydration: _Hydration | None = None
        if lifecycle:
            hydration = await self._hydrate(state, keys)
            state = hydration.state

        next_state = await next_(state, action)

        await self._write_back(next_state, self._keys_to_write(keys, hydration))
        return next_state

    # ------------------------------------------------------------------
    # Hydrating
    # ------------------------------------------------------------------

    async def _hydrate(self, state: State, keys: Sequence[str]) -> _Hydration:
        results: dict[str, HydrationResult] = {}
        # Sequential on purpose: the fold order must not depend on engine latency.
        for key in keys:
            results[key] = await self._load_fragment(key)

        folded: State = state
        for key, result in results.items():
            if not result.is_empty:
                folded = set_value(folded, key, result.value)

        whole_tree_strategy = migrations.resolve(
            folded,
            None,
            whole_tree=self._config.is_whole_tree,
            strategies=self._config.migrations,
        )
        if whole_tree_strategy is not None:
            _logger.info("Applying whole-tree migration from version %r", whole_tree_strategy.version)
            folded = migrations.apply(whole_tree_strategy, copy.deepcopy(dict(folded)))
            self._emit(
                SyncEventKind.WHOLE_TREE_MIGRATED,
                detail=f"from version {whole_tree_strategy.version!r}",
            )

        return _Hydration(state=folded, results=results, whole_tree_strategy=whole_tree_strategy)

    async def _load_fragment(self, key: str) -> HydrationResult:
        try:
            raw = await self._engine.get(key)
        except Exception as exc:
            raise StateSyncStorageError(f"Failed to read fragment {key!r}: {exc}", key=key, operation="get") from exc

        if raw is None or raw == "":
            _logger.debug("No persisted record for fragment %r", key)
            return HydrationResult(key=key)

        try:
            value = self._deserialize(key, raw)
        except StateSyncDeserializationError as exc:
            _logger.warning("%s; falling back to the default value", exc)
            self._emit(SyncEventKind.DESERIALIZE_FAILED, key=key, error=exc.__cause__ or exc)
            return HydrationResult(key=key)

        if _is_empty(value):
            _logger.debug("Persisted record for fragment %r is empty", key)
            return HydrationResult(key=key)

        _logger.debug("Loaded fragment %r: %s", key, preview(value))
        self._emit(SyncEventKind.HYDRATED, key=key)

        strategy = migrations.resolve(value, key, whole_tree=False, strategies=self._config.migrations)
        if strategy is None:
            return HydrationResult(key=key, value=value)

        _logger.info("Migrating fragment %r from version %r", key, strategy.version)
        migrated = migrations.apply(strategy, value)
        self._emit(SyncEventKind.MIGRATED, key=key, detail=f"from version {strategy.version!r}")
        return HydrationResult(key=key, value=migrated, strategy=strategy)

    def _deserialize(self, key: str, raw: Any) -> Any:
        try:
            return self._config.deserialize(raw)
        except Exception as exc:
            raise StateSyncDeserializationError(
                f"Could not deserialize persisted value for fragment {key!r}: {exc}",
                key=key,
            ) from exc

    # ------------------------------------------------------------------
    # WritingBack
    # ------------------------------------------------------------------

    @staticmethod
    def _keys_to_write(keys: Sequence[str], hydration: _Hydration | None) -> list[str]:
        """Write policy.

        Ordinary actions persist every fragment. Lifecycle actions persist
        only migrated fragments, or all of them after a whole-tree migration.
        """
        if hydration is None:
            return list(keys)
        if hydration.whole_tree_strategy is not None:
            return list(keys)
        return [key for key in keys if key in hydration.results and hydration.results[key].migrated]

    async def _write_back(self, state: State, keys: Sequence[str]) -> None:
        if not keys:
            return

        outcomes = await asyncio.gather(
            *(self._write_fragment(state, key) for key in keys),
            return_exceptions=True,
        )

        failures: dict[str, BaseException] = {}
        for key, outcome in zip(keys, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                _logger.error("Failed to write fragment %r: %s", key, outcome)
                self._emit(SyncEventKind.WRITE_FAILED, key=key, error=outcome)
                failures[key] = outcome
        if failures:
            raise StateSyncWriteError(failures)

    async def _write_fragment(self, state: State, key: str) -> None:
        value = get_value(state, key)
        await self._engine.set(key, self._config.serialize(value))
        _logger.debug("Wrote fragment %r: %s", key, preview(value))
        self._emit(SyncEventKind.WRITTEN, key=key)

    # ------------------------------------------------------------------
    # Observer
    # ------------------------------------------------------------------

    def _emit(
        self,
        kind: SyncEventKind,
        *,
        key: str | None = None,
        detail: str = "",
        error: BaseException | None = None,
    ) -> None:
        if self._on_event is None:
            return
        event = SyncEvent(kind=kind, key=key, detail=detail, error=repr(error) if error is not None else None)
        try:
            self._on_event(event)
        except Exception:
            _logger.exception("Sync observer raised while handling %s", kind)
