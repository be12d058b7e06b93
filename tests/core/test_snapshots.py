"""Tests for orbital.core.snapshots.SnapshotStore."""

from __future__ import annotations

import threading

import pytest

from orbital.core.models import Node
from orbital.core.snapshots import DEFAULT_SNAPSHOT_CAPACITY, SnapshotStore


def _roster(*ids: str) -> list[Node]:
    return [Node(pnode_id=i) for i in ids]


class TestSnapshotStore:
    """Tests for SnapshotStore."""

    def test_default_capacity(self):
        assert SnapshotStore().capacity == DEFAULT_SNAPSHOT_CAPACITY == 500

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            SnapshotStore(capacity=0)

    def test_append_returns_real_snapshot(self):
        store = SnapshotStore()
        snapshot = store.append(_roster("a", "b"), timestamp=100.0)
        assert snapshot.timestamp == 100.0
        assert snapshot.synthetic is False
        assert [n.pnode_id for n in snapshot.nodes] == ["a", "b"]
        assert len(store) == 1

    def test_append_defaults_timestamp_to_now(self):
        snapshot = SnapshotStore().append([])
        assert snapshot.timestamp > 1_600_000_000

    def test_evicts_oldest_past_capacity(self):
        store = SnapshotStore(capacity=3)
        for t in range(5):
            store.append(_roster(f"n{t}"), timestamp=float(t))
        assert len(store) == 3
        assert [s.timestamp for s in store.all()] == [2.0, 3.0, 4.0]

    def test_latest(self):
        store = SnapshotStore()
        for t in range(4):
            store.append([], timestamp=float(t))
        assert [s.timestamp for s in store.latest(2)] == [2.0, 3.0]
        assert len(store.latest(10)) == 4
        assert store.latest(0) == ()
        assert store.latest(-1) == ()

    def test_latest_pair(self):
        store = SnapshotStore()
        assert store.latest_pair() == (None, None)

        store.append([], timestamp=1.0)
        previous, current = store.latest_pair()
        assert previous is None
        assert current.timestamp == 1.0

        store.append([], timestamp=2.0)
        previous, current = store.latest_pair()
        assert (previous.timestamp, current.timestamp) == (1.0, 2.0)

    def test_snapshot_is_a_copy_of_the_roster(self):
        roster = _roster("a")
        snapshot = SnapshotStore().append(roster)
        roster.append(Node(pnode_id="b"))
        assert len(snapshot.nodes) == 1

    def test_readers_keep_their_view(self):
        store = SnapshotStore(capacity=2)
        store.append([], timestamp=1.0)
        view = store.all()
        store.append([], timestamp=2.0)
        store.append([], timestamp=3.0)
        assert [s.timestamp for s in view] == [1.0]

    def test_clear(self):
        store = SnapshotStore()
        store.append([])
        store.clear()
        assert len(store) == 0

    def test_concurrent_readers_see_complete_history(self):
        store = SnapshotStore(capacity=50)
        errors: list[str] = []
        done = threading.Event()

        def reader():
            while not done.is_set():
                timestamps = [s.timestamp for s in store.all()]
                if timestamps != sorted(timestamps) or len(timestamps) > 50:
                    errors.append(f"inconsistent read: {timestamps}")

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for i in range(200):
            store.append([], timestamp=float(i))
        done.set()
        for t in threads:
            t.join()

        assert errors == []
        assert len(store) == 50

    def test_five_hundred_first_append_evicts_oldest(self):
        store = SnapshotStore()
        for t in range(501):
            store.append([], timestamp=float(t))
        assert len(store) == 500
        assert store.all()[0].timestamp == 1.0
