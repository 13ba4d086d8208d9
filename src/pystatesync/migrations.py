"""Version-matched migration strategies.

A strategy applies to a persisted value when the value found at its
``version_key`` path equals its ``version`` and its ``key`` scope matches:

* ``key`` set: only the fragment with that name;
* ``key`` unset: only the whole tree, and only in whole-tree mode.

At most one strategy applies per fragment per invocation; the first match in
list order wins. Overlapping strategies are a configuration mistake, which
:func:`find_ambiguous` reports.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pystatesync._paths import get_value
from pystatesync.exceptions import StateSyncMigrationError

DEFAULT_VERSION_KEY = "version"


def same_version(stored: Any, expected: Any) -> bool:
    """Version equality that keeps booleans apart from numbers (``True != 1``)."""
    if isinstance(stored, bool) != isinstance(expected, bool):
        return False
    return bool(stored == expected)


class MigrationStrategy(BaseModel):
    """Transform applied to persisted data stamped with ``version``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Any = Field(..., description="Version the persisted value must carry")
    migrate: Callable[[Any], Any]
    version_key: str = Field(default=DEFAULT_VERSION_KEY, min_length=1)
    key: str | None = Field(default=None, description="Fragment scope; None targets the whole tree")

    def matches(self, value: Any, fragment_key: str | None, *, whole_tree: bool) -> bool:
        if not same_version(get_value(value, self.version_key), self.version):
            return False
        if self.key is None:
            return fragment_key is None and whole_tree
        return self.key == fragment_key


def resolve(
    value: Any,
    fragment_key: str | None,
    *,
    whole_tree: bool,
    strategies: Sequence[MigrationStrategy] | None,
) -> MigrationStrategy | None:
    """Return the first strategy applicable to *value*, or None.

    Pass ``fragment_key=None`` to resolve against the whole folded tree.
    """
    if not strategies:
        return None
    for strategy in strategies:
        if strategy.matches(value, fragment_key, whole_tree=whole_tree):
            return strategy
    return None


def apply(strategy: MigrationStrategy, value: Any) -> Any:
    """Run the strategy's transform. The result is trusted as-is."""
    try:
        return strategy.migrate(value)
    except Exception as exc:
        scope = strategy.key or "<whole tree>"
        raise StateSyncMigrationError(
            f"Migration from version {strategy.version!r} failed for {scope}: {exc}",
            key=strategy.key,
        ) from exc


def _version_token(version: Any) -> Hashable:
    try:
        hash(version)
    except TypeError:
        return (isinstance(version, bool), repr(version))
    return (isinstance(version, bool), version)


def find_ambiguous(strategies: Iterable[MigrationStrategy]) -> list[list[MigrationStrategy]]:
    """Group strategies that can match the same persisted value.

    Only exact overlaps (same version, version key and fragment scope) are
    detected; the later members of each group can never be selected.
    """
    groups: dict[tuple[Hashable, str, str | None], list[MigrationStrategy]] = {}
    for strategy in strategies:
        token = (_version_token(strategy.version), strategy.version_key, strategy.key)
        groups.setdefault(token, []).append(strategy)
    return [group for group in groups.values() if len(group) > 1]
