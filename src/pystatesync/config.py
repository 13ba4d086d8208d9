"""Synchronizer configuration for pystatesync."""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping, Sequence
from typing import Any

from pystatesync.codec import Deserializer, Serializer, json_deserialize, json_serialize
from pystatesync.engines import EngineKind
from pystatesync.exceptions import StateSyncConfigError
from pystatesync.migrations import MigrationStrategy, find_ambiguous

_logger = logging.getLogger(__name__)

#: Sentinel ``key`` value selecting whole-tree mode: every top-level name of
#: the state is a fragment.
WHOLE_TREE = "@@STATE"


def _normalize_keys(key: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(key, str):
        keys: tuple[Any, ...] = (key,)
    else:
        keys = tuple(key)
    if not keys:
        raise StateSyncConfigError("key must name at least one fragment")
    for item in keys:
        if not isinstance(item, str) or not item.strip():
            raise StateSyncConfigError(f"Fragment keys must be non-empty strings, got {item!r}")
    if len(set(keys)) != len(keys):
        raise StateSyncConfigError(f"Duplicate fragment keys: {keys!r}")
    if WHOLE_TREE in keys and len(keys) > 1:
        raise StateSyncConfigError(f"{WHOLE_TREE!r} cannot be combined with explicit fragment keys")
    return keys


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Synchronizer configuration.

    Parameters
    ----------
    key : str or sequence of str
        Fragment key(s) to hydrate and persist. :data:`WHOLE_TREE` (the
        default) means every top-level name of the current state.
    storage : EngineKind
        Whether the engine handed to the synchronizer is synchronous (wrapped
        in an adapter) or already asynchronous.
    serialize : callable
        Converts a fragment value to its stored representation.
        Defaults to compact JSON.
    deserialize : callable
        Inverse of ``serialize``. Failures degrade the fragment to its
        default value.
    migrations : sequence of MigrationStrategy
        Version-matched transforms applied to persisted data on hydrate.
    """

    key: str | Sequence[str] = WHOLE_TREE
    storage: EngineKind = EngineKind.SYNC
    serialize: Serializer = json_serialize
    deserialize: Deserializer = json_deserialize
    migrations: Sequence[MigrationStrategy] = ()

    def __post_init__(self) -> None:
        keys = _normalize_keys(self.key)
        object.__setattr__(self, "key", keys[0] if len(keys) == 1 else keys)

        try:
            object.__setattr__(self, "storage", EngineKind(self.storage))
        except ValueError as exc:
            raise StateSyncConfigError(f"Unknown storage engine kind: {self.storage!r}") from exc

        if not callable(self.serialize) or not callable(self.deserialize):
            raise StateSyncConfigError("serialize and deserialize must be callables")

        migrations = tuple(self.migrations or ())
        for strategy in migrations:
            if not isinstance(strategy, MigrationStrategy):
                raise StateSyncConfigError(f"migrations must be MigrationStrategy instances, got {strategy!r}")
        object.__setattr__(self, "migrations", migrations)

        for group in find_ambiguous(migrations):
            first = group[0]
            _logger.warning(
                "%d migrations share version=%r version_key=%r key=%r; only the first will ever apply",
                len(group),
                first.version,
                first.version_key,
                first.key,
            )

    @property
    def is_whole_tree(self) -> bool:
        return self.key == WHOLE_TREE

    def fragment_keys(self, state: Mapping[str, Any] | None) -> tuple[str, ...]:
        """Fragment key set for one invocation, in stable order."""
        if self.is_whole_tree:
            return tuple(state or ())
        if isinstance(self.key, str):
            return (self.key,)
        return tuple(self.key)

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads ``STATESYNC_KEY`` (comma separated fragment names, or
        ``@@STATE``) and ``STATESYNC_STORAGE`` (``sync`` or ``async``).
        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        key_env = env.get("STATESYNC_KEY")
        if key_env is not None and "key" not in overrides:
            parts = [part.strip() for part in key_env.split(",") if part.strip()]
            config_kwargs["key"] = parts[0] if len(parts) == 1 else parts

        storage_env = env.get("STATESYNC_STORAGE")
        if storage_env is not None and "storage" not in overrides:
            config_kwargs["storage"] = storage_env.strip().lower()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
