from __future__ import annotations

import logging

import pytest

from pystatesync.codec import json_deserialize, json_serialize
from pystatesync.config import WHOLE_TREE, SyncConfig
from pystatesync.engines import EngineKind
from pystatesync.exceptions import StateSyncConfigError
from pystatesync.migrations import MigrationStrategy


def test_defaults() -> None:
    config = SyncConfig()

    assert config.key == WHOLE_TREE
    assert config.is_whole_tree
    assert config.storage is EngineKind.SYNC
    assert config.serialize is json_serialize
    assert config.deserialize is json_deserialize
    assert config.migrations == ()


def test_fragment_keys_whole_tree_follows_state_order() -> None:
    config = SyncConfig()
    assert config.fragment_keys({"b": 1, "a": 2}) == ("b", "a")
    assert config.fragment_keys({}) == ()


def test_fragment_keys_scoped() -> None:
    assert SyncConfig(key="counter").fragment_keys({"other": 1}) == ("counter",)
    assert SyncConfig(key=["a", "b"]).fragment_keys({}) == ("a", "b")
    assert SyncConfig(key=["solo"]).key == "solo"


@pytest.mark.parametrize("key", ["", [], ["a", "a"], ["a", ""], [WHOLE_TREE, "a"], [1]])
def test_invalid_keys_rejected(key: object) -> None:
    with pytest.raises(StateSyncConfigError):
        SyncConfig(key=key)  # type: ignore[arg-type]


def test_invalid_storage_and_codec_rejected() -> None:
    with pytest.raises(StateSyncConfigError):
        SyncConfig(storage="tape")  # type: ignore[arg-type]
    with pytest.raises(StateSyncConfigError):
        SyncConfig(serialize="json")  # type: ignore[arg-type]
    with pytest.raises(StateSyncConfigError):
        SyncConfig(migrations=[{"version": 1}])  # type: ignore[list-item]


def test_ambiguous_migrations_logged(caplog: pytest.LogCaptureFixture) -> None:
    strategies = [
        MigrationStrategy(version=1, key="counter", migrate=lambda v: v),
        MigrationStrategy(version=1, key="counter", migrate=lambda v: v),
    ]

    with caplog.at_level(logging.WARNING, logger="pystatesync.config"):
        config = SyncConfig(migrations=strategies)

    assert len(config.migrations) == 2
    assert "only the first will ever apply" in caplog.text


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATESYNC_KEY", "counter, todos")
    monkeypatch.setenv("STATESYNC_STORAGE", "ASYNC")

    config = SyncConfig.from_env()

    assert config.key == ("counter", "todos")
    assert config.storage is EngineKind.ASYNC


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATESYNC_KEY", "counter")
    monkeypatch.delenv("STATESYNC_STORAGE", raising=False)

    config = SyncConfig.from_env(key=WHOLE_TREE)

    assert config.is_whole_tree
    assert config.storage is EngineKind.SYNC


def test_unhashable_migration_version_accepted() -> None:
    strategy = MigrationStrategy(version=(1, [2]), key="counter", migrate=lambda v: v)

    config = SyncConfig(migrations=[strategy])

    assert config.migrations == (strategy,)
