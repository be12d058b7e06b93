"""
Time-travel queries over the snapshot history.

When the requested window holds real snapshots they are replayed as-is.
When it holds none (the usual case right after startup) a fixed number
of synthetic snapshots is generated from the current roster with a
deterministic jitter. Synthetic history is a visualization aid only and
is always flagged as such.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .health import HealthDetails
from .models import Node, NodeStatus, Snapshot

SYNTHETIC_STEPS = 12
JITTER_NODE_PRIME = 7919
JITTER_STEP_PRIME = 104729
LAST_SEEN_SPREAD = 0.4  # +/-20% of the window


class TimeWindow(str, Enum):
    ONE_HOUR = "1h"
    ONE_DAY = "24h"
    ONE_WEEK = "7d"

    @property
    def seconds(self) -> int:
        return {"1h": 3600, "24h": 86400, "7d": 7 * 86400}[self.value]


@dataclass(frozen=True)
class TimeTravelView:
    """One frame of history, ready for rendering."""

    nodes: tuple[Node, ...]
    health_by_id: Mapping[str, HealthDetails]
    synthetic: bool
    index: int
    snapshots: tuple[Snapshot, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "synthetic": self.synthetic,
            "index": self.index,
            "available": len(self.snapshots),
            "timestamp": self.snapshots[self.index].timestamp if self.snapshots else None,
            "nodes": [n.to_dict() for n in self.nodes],
            "health": {k: v.to_dict() for k, v in self.health_by_id.items()},
        }


def jitter(node_index: int, step: int) -> float:
    """Deterministic pseudo-random value in [0, 1)."""
    return ((node_index * JITTER_NODE_PRIME + step * JITTER_STEP_PRIME) % 1000) / 1000


def _jittered(node: Node, node_index: int, step: int, window_seconds: int, now: float) -> Node:
    j = jitter(node_index, step)

    status = node.status
    if status == NodeStatus.ONLINE and j > 0.9:
        status = NodeStatus.UNKNOWN
    elif status == NodeStatus.UNKNOWN and j > 0.8:
        status = NodeStatus.OFFLINE

    offset = (j - 0.5) * window_seconds * LAST_SEEN_SPREAD
    base = node.last_seen if node.last_seen is not None else now
    return replace(node, status=status, last_seen=base - offset)


def synthesize_history(
    nodes: Sequence[Node],
    window: TimeWindow,
    now: float | None = None,
    steps: int = SYNTHETIC_STEPS,
) -> tuple[Snapshot, ...]:
    """Evenly spaced synthetic snapshots spanning the window, ending at ``now``."""
    now = time.time() if now is None else now
    window_seconds = window.seconds
    oldest = now - window_seconds
    history = []
    for step in range(steps):
        timestamp = oldest + ((step + 1) / steps) * window_seconds
        mutated = tuple(
            _jittered(node, idx, step, window_seconds, now) for idx, node in enumerate(nodes)
        )
        history.append(Snapshot(timestamp=timestamp, nodes=mutated, synthetic=True))
    return tuple(history)


def snapshots_in_window(
    snapshots: Sequence[Snapshot], window: TimeWindow, now: float
) -> tuple[Snapshot, ...]:
    return tuple(s for s in snapshots if now - s.timestamp <= window.seconds)


def resolve_time_travel(
    snapshots: Sequence[Snapshot],
    current_nodes: Sequence[Node],
    health_by_id: Mapping[str, HealthDetails],
    window: TimeWindow | str,
    index: int = 0,
    now: float | None = None,
) -> TimeTravelView:
    """
    Pick the roster to show for a window and slider position.

    Args:
        snapshots: Stored history (oldest first)
        current_nodes: The live roster, used to seed synthetic history
        health_by_id: Live health map, reused for the historical view
        window: "1h", "24h" or "7d"
        index: Slider position; clamped into the available range
        now: Reference time in epoch seconds (defaults to time.time())
    """
    window = TimeWindow(window)
    now = time.time() if now is None else now

    history = snapshots_in_window(snapshots, window, now)
    synthetic = not history
    if synthetic:
        history = synthesize_history(current_nodes, window, now)

    clamped = max(0, min(index, len(history) - 1))
    frame = history[clamped]
    frame_health = {
        n.pnode_id: health_by_id[n.pnode_id] for n in frame.nodes if n.pnode_id in health_by_id
    }

    return TimeTravelView(
        nodes=frame.nodes,
        health_by_id=frame_health or dict(health_by_id),
        synthetic=synthetic,
        index=clamped,
        snapshots=history,
    )
