"""Per-key pending-operation mutex used by the toggle engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

__all__ = ["PendingOperation", "PendingOperations"]

SnapshotT = TypeVar("SnapshotT")


@dataclass(frozen=True)
class PendingOperation(Generic[SnapshotT]):
    """Lock record: the owning flow and the rollback point it captured."""

    flow_id: str
    snapshot: SnapshotT


class PendingOperations(Generic[SnapshotT]):
    """Acquire-if-absent / release mutex keyed by logical identity.

    Presence of a key is the only notion of "busy"; there is no queueing and
    no waiting. The structure is not thread-safe and relies on running inside
    a single event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PendingOperation[SnapshotT]] = {}

    def try_acquire(self, key: str, *, flow_id: str, snapshot: SnapshotT) -> bool:
        if key in self._entries:
            return False
        self._entries[key] = PendingOperation(flow_id=flow_id, snapshot=snapshot)
        return True

    def release(self, key: str, *, flow_id: str | None = None) -> None:
        """Drop the lock for ``key``; a mismatching ``flow_id`` leaves it held."""

        current = self._entries.get(key)
        if current is None:
            return
        if flow_id is not None and current.flow_id != flow_id:
            return
        del self._entries[key]

    def is_held(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> PendingOperation[SnapshotT] | None:
        return self._entries.get(key)
