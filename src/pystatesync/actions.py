"""Lifecycle actions recognised by the synchronizer.

The host dispatch system owns its action types; these are the two lifecycle
events that trigger hydration. Hosts with their own action classes can either
reuse the ``type`` strings below or pass a custom matcher to
:class:`pystatesync.synchronizer.FragmentSynchronizer`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

INIT_ACTION_TYPE = "@@INIT"
UPDATE_STATE_ACTION_TYPE = "@@UPDATE_STATE"

_LIFECYCLE_TYPES = frozenset({INIT_ACTION_TYPE, UPDATE_STATE_ACTION_TYPE})


@dataclass(frozen=True)
class InitState:
    """Dispatched once when the state tree is first built."""

    type: ClassVar[str] = INIT_ACTION_TYPE


@dataclass(frozen=True)
class UpdateState:
    """Dispatched when the state tree is replaced or extended (e.g. lazy features)."""

    type: ClassVar[str] = UPDATE_STATE_ACTION_TYPE
    added_states: Mapping[str, Any] = field(default_factory=dict)


def action_type(action: Any) -> str | None:
    """Return the ``type`` string of *action* (instance or mapping), if any."""
    if isinstance(action, Mapping):
        value = action.get("type")
    else:
        value = getattr(action, "type", None)
    return value if isinstance(value, str) else None


def is_lifecycle_action(action: Any) -> bool:
    """Default matcher: True for init and replace/update-state actions."""
    if isinstance(action, (InitState, UpdateState)):
        return True
    return action_type(action) in _LIFECYCLE_TYPES
