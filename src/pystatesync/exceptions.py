"""Custom exception hierarchy for pystatesync."""

from __future__ import annotations

from collections.abc import Mapping


class StateSyncError(Exception):
    """Base exception for all pystatesync errors."""


class StateSyncConfigError(StateSyncError):
    """Invalid or missing configuration."""


class StateSyncDeserializationError(StateSyncError):
    """A persisted record could not be decoded.

    The synchronizer recovers from this locally: the fragment is treated
    as absent and keeps its default value.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class StateSyncMigrationError(StateSyncError):
    """A migration transform raised.

    Migrations are developer-authored, so this is fatal for the hydrate
    pass. The original exception is available as ``__cause__``.
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class StateSyncStorageError(StateSyncError):
    """Storage engine call failed (read, write)."""

    def __init__(
        self,
        message: str,
        *,
        key: str = "",
        operation: str = "",
    ) -> None:
        self.key = key
        self.operation = operation
        super().__init__(message)


class StateSyncWriteError(StateSyncStorageError):
    """One or more fragment writes failed.

    Raised only after every write of the invocation has been attempted.
    ``failures`` maps each failed fragment key to the exception its write
    raised.
    """

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures: dict[str, BaseException] = dict(failures)
        keys = ", ".join(sorted(self.failures))
        super().__init__(
            f"Failed to write {len(self.failures)} fragment(s): {keys}",
            key=next(iter(self.failures), ""),
            operation="set",
        )
