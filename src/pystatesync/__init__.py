"""pystatesync - persist and rehydrate state-tree fragments through pluggable key-value engines."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pystatesync")
except PackageNotFoundError:
    __version__ = "0+local"
from pystatesync.actions import InitState, UpdateState, is_lifecycle_action
from pystatesync.codec import json_deserialize, json_serialize, passthrough
from pystatesync.config import WHOLE_TREE, SyncConfig
from pystatesync.engines import (
    AsyncEngineAdapter,
    AsyncStorageEngine,
    EngineKind,
    MemoryStorageEngine,
    StorageEngine,
    bind_engine,
)
from pystatesync.events import SyncEvent, SyncEventKind
from pystatesync.exceptions import (
    StateSyncConfigError,
    StateSyncDeserializationError,
    StateSyncError,
    StateSyncMigrationError,
    StateSyncStorageError,
    StateSyncWriteError,
)
from pystatesync.migrations import MigrationStrategy
from pystatesync.synchronizer import FragmentSynchronizer, HydrationResult

__all__ = [
    "__version__",
    "AsyncEngineAdapter",
    "AsyncStorageEngine",
    "EngineKind",
    "FragmentSynchronizer",
    "HydrationResult",
    "InitState",
    "MemoryStorageEngine",
    "MigrationStrategy",
    "StateSyncConfigError",
    "StateSyncDeserializationError",
    "StateSyncError",
    "StateSyncMigrationError",
    "StateSyncStorageError",
    "StateSyncWriteError",
    "StorageEngine",
    "SyncConfig",
    "SyncEvent",
    "SyncEventKind",
    "UpdateState",
    "WHOLE_TREE",
    "bind_engine",
    "is_lifecycle_action",
    "json_deserialize",
    "json_serialize",
    "passthrough",
]
