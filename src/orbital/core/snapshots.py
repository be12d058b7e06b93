"""Bounded, append-only history of roster snapshots.

Writers build a new tuple and swap the reference under a lock; readers
grab the current tuple once and work from it, so a reader always sees a
complete history (old or new), never a half-appended one.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable

from .models import Node, Snapshot

DEFAULT_SNAPSHOT_CAPACITY = 500


class SnapshotStore:
    """
    FIFO history of the most recent roster snapshots.

    Holds at most ``capacity`` snapshots; appending past capacity evicts
    the oldest. Safe for one writer and many concurrent readers.
    """

    def __init__(self, capacity: int = DEFAULT_SNAPSHOT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._snapshots: tuple[Snapshot, ...] = ()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._snapshots)

    def append(self, roster: Iterable[Node], timestamp: float | None = None) -> Snapshot:
        """Record a real (observed) roster snapshot."""
        snapshot = Snapshot(
            timestamp=time.time() if timestamp is None else timestamp,
            nodes=tuple(roster),
            synthetic=False,
        )
        with self._lock:
            self._snapshots = (self._snapshots + (snapshot,))[-self._capacity :]
        return snapshot

    def all(self) -> tuple[Snapshot, ...]:
        """Every retained snapshot, oldest first."""
        return self._snapshots

    def latest(self, n: int) -> tuple[Snapshot, ...]:
        """The ``n`` most recent snapshots, most recent last."""
        if n <= 0:
            return ()
        return self._snapshots[-n:]

    def latest_pair(self) -> tuple[Snapshot | None, Snapshot | None]:
        """(previous, current) taken from a single consistent read."""
        snapshots = self._snapshots
        current = snapshots[-1] if snapshots else None
        previous = snapshots[-2] if len(snapshots) >= 2 else None
        return previous, current

    def clear(self) -> None:
        with self._lock:
            self._snapshots = ()
