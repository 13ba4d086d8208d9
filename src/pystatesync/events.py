"""Structured observer events.

Recoverable failures and notable steps of a synchronizer invocation are
reported as :class:`SyncEvent` instances to an optional observer callback,
in addition to the module loggers.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SyncEventKind(StrEnum):
    HYDRATED = "hydrated"
    DESERIALIZE_FAILED = "deserialize_failed"
    MIGRATED = "migrated"
    WHOLE_TREE_MIGRATED = "whole_tree_migrated"
    WRITTEN = "written"
    WRITE_FAILED = "write_failed"


class SyncEvent(BaseModel):
    """A single observation emitted by the synchronizer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: SyncEventKind
    key: str | None = Field(default=None, description="Fragment key, None for whole-tree events")
    detail: str = ""
    error: str | None = Field(default=None, description="repr() of the exception, if any")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


SyncObserver = Callable[[SyncEvent], None]
