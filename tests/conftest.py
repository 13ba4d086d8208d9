"""Minimal host pipeline used to drive the synchronizer in tests."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import pytest

from pystatesync import FragmentSynchronizer, InitState, UpdateState


@dataclass(frozen=True)
class Increment:
    type = "INCREMENT"
    fragment: str = "counter"


@dataclass(frozen=True)
class Decrement:
    type = "DECREMENT"
    fragment: str = "counter"


class HostStore:
    """Tiny dispatch loop: state defaults, one plugin, one reducer."""

    def __init__(self, plugin: FragmentSynchronizer, defaults: Mapping[str, Any]) -> None:
        self._plugin = plugin
        self.state: dict[str, Any] = copy.deepcopy(dict(defaults))
        self.reduced: list[Any] = []

    async def _reduce(self, state: Mapping[str, Any], action: Any) -> dict[str, Any]:
        self.reduced.append(action)
        if isinstance(action, (Increment, Decrement)):
            step = 1 if isinstance(action, Increment) else -1
            fragment = state[action.fragment]
            return {**state, action.fragment: {**fragment, "count": int(fragment["count"]) + step}}
        return dict(state)

    async def dispatch(self, action: Any) -> dict[str, Any]:
        self.state = dict(await self._plugin.handle(self.state, action, self._reduce))
        return self.state

    async def init(self) -> dict[str, Any]:
        return await self.dispatch(InitState())

    async def add_feature(self, name: str, defaults: Any) -> dict[str, Any]:
        self.state = {**self.state, name: copy.deepcopy(defaults)}
        return await self.dispatch(UpdateState(added_states={name: defaults}))


@pytest.fixture
def make_store() -> Callable[..., HostStore]:
    def _factory(plugin: FragmentSynchronizer, defaults: Mapping[str, Any]) -> HostStore:
        return HostStore(plugin, defaults)

    return _factory


@pytest.fixture
def increment() -> Callable[..., Increment]:
    return Increment


@pytest.fixture
def decrement() -> Callable[..., Decrement]:
    return Decrement
