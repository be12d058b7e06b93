# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""
Analytics engine: one synchronous "roster in, derived state out" step.

Each ingest appends a snapshot, rescoring every node and rerunning
detection against the (previous, current) pair read from the store in a
single step. The resulting AnalyticsState is immutable and published by
reference swap, so readers (API handlers, the CLI) never observe a
half-computed cycle.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .exceptions import NotFoundError
from .explain import TREND_WINDOW_SNAPSHOTS, Explainability, build_node_explainability
from .health import (
    HealthDetails,
    ReputationDetails,
    compute_network_health,
    compute_node_health,
    compute_reputation,
)
from .models import Node, NodeStatus, normalize_roster
from .partitions import FailureAnalysis, analyze_failures
from .regions import RegionStats, compute_region_stats
from .snapshots import DEFAULT_SNAPSHOT_CAPACITY, SnapshotStore
from .time_travel import TimeTravelView, TimeWindow, resolve_time_travel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterStats:
    total: int = 0
    online: int = 0
    offline: int = 0
    unknown: int = 0
    total_storage: float = 0.0

    @classmethod
    def from_nodes(cls, nodes: Iterable[Node]) -> RosterStats:
        nodes = list(nodes)
        online = sum(1 for n in nodes if n.status == NodeStatus.ONLINE)
        offline = sum(1 for n in nodes if n.status == NodeStatus.OFFLINE)
        return cls(
            total=len(nodes),
            online=online,
            offline=offline,
            unknown=len(nodes) - online - offline,
            total_storage=sum(n.storage_used for n in nodes),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "online": self.online,
            "offline": self.offline,
            "unknown": self.unknown,
            "total_storage": self.total_storage,
        }


@dataclass(frozen=True)
class AnalyticsState:
    """Everything derived from one roster update."""

    updated_at: float | None = None
    nodes: tuple[Node, ...] = field(default_factory=tuple)
    health_by_id: dict[str, HealthDetails] = field(default_factory=dict)
    reputation_by_id: dict[str, ReputationDetails] = field(default_factory=dict)
    network_health: float = 0.0
    stats: RosterStats = field(default_factory=RosterStats)
    region_stats: dict[str, RegionStats] = field(default_factory=dict)
    failures: FailureAnalysis = field(default_factory=FailureAnalysis)

    def find(self, pnode_id: str) -> Node | None:
        for node in self.nodes:
            if node.pnode_id == pnode_id:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated_at": self.updated_at,
            "network_health": round(self.network_health, 4),
            "stats": self.stats.to_dict(),
            "health": {k: v.to_dict() for k, v in self.health_by_id.items()},
            "reputation": {k: v.to_dict() for k, v in self.reputation_by_id.items()},
            "regions": {k: v.to_dict() for k, v in self.region_stats.items()},
            "failures": self.failures.to_dict(),
        }


class GossipAnalytics:
    """
    Owns the snapshot history and the latest derived state.

    Safe for one writer (the update loop) and many concurrent readers.
    """

    def __init__(self, capacity: int = DEFAULT_SNAPSHOT_CAPACITY):
        self.store = SnapshotStore(capacity=capacity)
        self._state = AnalyticsState()

    @property
    def state(self) -> AnalyticsState:
        return self._state

    def ingest(self, roster: Iterable[Any], timestamp: float | None = None) -> AnalyticsState:
        """
        Ingest one roster fetch and recompute every derived signal.

        Args:
            roster: Raw upstream records (mappings) and/or Node instances
            timestamp: Fetch time in epoch seconds (defaults to time.time())

        Returns:
            The newly published AnalyticsState
        """
        now = time.time() if timestamp is None else timestamp
        nodes = normalize_roster(roster)

        self.store.append(nodes, timestamp=now)
        previous, current = self.store.latest_pair()
        current_nodes = current.nodes if current is not None else tuple(nodes)

        health_by_id: dict[str, HealthDetails] = {}
        reputation_by_id: dict[str, ReputationDetails] = {}
        for node in current_nodes:
            health = compute_node_health(node, now)
            health_by_id[node.pnode_id] = health
            reputation_by_id[node.pnode_id] = compute_reputation(node, health)

        failures = analyze_failures(previous, current_nodes, now)

        state = AnalyticsState(
            updated_at=now,
            nodes=current_nodes,
            health_by_id=health_by_id,
            reputation_by_id=reputation_by_id,
            network_health=compute_network_health(current_nodes, now),
            stats=RosterStats.from_nodes(current_nodes),
            region_stats=compute_region_stats(current_nodes),
            failures=failures,
        )

        was_suspected = self._state.failures.partition_suspected
        self._state = state

        if failures.partition_suspected and not was_suspected:
            logger.info(f"Partition suspected: {failures.partition_reason}")
        elif was_suspected and not failures.partition_suspected:
            logger.info("Partition suspicion cleared")

        logger.debug(
            f"Ingested roster: {state.stats.total} nodes "
            f"({state.stats.online} online, {state.stats.offline} offline), "
            f"network health {state.network_health:.2f}, history {len(self.store)}"
        )
        return state

    def explain(self, pnode_id: str, now: float | None = None) -> Explainability:
        """Why-strings and predictions for one node of the current roster."""
        state = self._state
        node = state.find(pnode_id)
        if node is None:
            raise NotFoundError("pNode", pnode_id)
        return build_node_explainability(
            node,
            state.health_by_id.get(pnode_id),
            state.reputation_by_id.get(pnode_id),
            state.failures,
            self.store.latest(TREND_WINDOW_SNAPSHOTS),
            state.nodes,
            now=now,
        )

    def time_travel(
        self,
        window: TimeWindow | str,
        index: int = 0,
        now: float | None = None,
    ) -> TimeTravelView:
        """Historical (or synthetic) roster plus health view for a window."""
        state = self._state
        return resolve_time_travel(
            self.store.all(),
            state.nodes,
            state.health_by_id,
            window,
            index=index,
            now=now,
        )
