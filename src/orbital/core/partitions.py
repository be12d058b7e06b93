# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""
Failure, anomaly and partition detection.

Works on a consistent (previous, current) snapshot pair:

- sudden_drop: online in the previous snapshot, now offline or missing
- isolated:    the node's region bucket has >= 5 nodes and >= 60% offline
- black_hole:  stale last-seen, fewer than 2 peers, or availability < 0.5

The network-wide partition verdict is evaluated once, first matching rule
wins: isolated region, then mass sudden drop, then offline majority.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .models import Node, NodeStatus, Snapshot
from .regions import compute_region_stats, region_key

logger = logging.getLogger(__name__)

BLACK_HOLE_MAX_AGE_SECONDS = 10 * 60
BLACK_HOLE_MIN_PEERS = 2
BLACK_HOLE_MIN_AVAILABILITY = 0.5

ISOLATION_MIN_NODES = 5
ISOLATION_OFFLINE_RATIO = 0.6

SUDDEN_DROP_FRACTION = 0.2
VERSION_SKEW_FRACTION = 0.5

REASON_MASS_DROP = "Large set of peers dropped from gossip abruptly"
REASON_OFFLINE_MAJORITY = "Majority of pNodes appear offline or unreachable"
REASON_INSTABILITY = "Latency spike or upstream network instability suspected"


class NodeAnomaly(str, Enum):
    SUDDEN_DROP = "sudden_drop"
    ISOLATED = "isolated"
    BLACK_HOLE = "black_hole"


@dataclass(frozen=True)
class FailureAnalysis:
    """Per-node anomaly tags plus the network-wide partition verdict."""

    anomalies_by_id: dict[str, frozenset[NodeAnomaly]] = field(default_factory=dict)
    partition_suspected: bool = False
    partition_reason: str | None = None
    isolated_regions: tuple[str, ...] = ()

    def anomalies_for(self, pnode_id: str) -> frozenset[NodeAnomaly]:
        return self.anomalies_by_id.get(pnode_id, frozenset())

    def count(self, anomaly: NodeAnomaly) -> int:
        return sum(1 for tags in self.anomalies_by_id.values() if anomaly in tags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "anomalies": {
                pnode_id: sorted(tag.value for tag in tags)
                for pnode_id, tags in self.anomalies_by_id.items()
            },
            "partition_suspected": self.partition_suspected,
            "partition_reason": self.partition_reason,
            "isolated_regions": list(self.isolated_regions),
        }


def is_black_hole(node: Node, now: float) -> bool:
    """Present in the roster but effectively not participating."""
    too_old = node.age_seconds(now) > BLACK_HOLE_MAX_AGE_SECONDS
    peers = node.peers_seen if node.peers_seen is not None else 0.0
    too_few_peers = peers < BLACK_HOLE_MIN_PEERS
    poor_availability = (
        node.data_availability is not None
        and node.data_availability < BLACK_HOLE_MIN_AVAILABILITY
    )
    return too_old or too_few_peers or poor_availability


def find_isolated_regions(nodes: Sequence[Node]) -> list[str]:
    """Region keys that look like a regional outage."""
    return [
        key
        for key, stats in compute_region_stats(nodes).items()
        if stats.total >= ISOLATION_MIN_NODES and stats.offline_ratio >= ISOLATION_OFFLINE_RATIO
    ]


def probable_cause(nodes: Sequence[Node]) -> str:
    """
    Fallback explanation when a partition is suspected without a reason.

    None of the current rules reach this (each one sets its own reason);
    it is the catch-all for any future rule that only sets the flag.
    """
    versions = Counter(n.version or "unknown" for n in nodes)
    if versions:
        version, count = versions.most_common(1)[0]
        if version != "unknown" and count / len(nodes) > VERSION_SKEW_FRACTION:
            return f"Version skew risk: most nodes report version {version}"
    return REASON_INSTABILITY


def analyze_failures(
    previous: Snapshot | None,
    current_nodes: Sequence[Node],
    now: float | None = None,
) -> FailureAnalysis:
    """
    Tag per-node anomalies and decide whether a partition is suspected.

    Args:
        previous: The snapshot before the current roster, or None when
            there is no history yet (disables sudden_drop only)
        current_nodes: The current roster
        now: Reference time in epoch seconds (defaults to time.time())

    Returns:
        FailureAnalysis; empty and unsuspected for an empty roster
    """
    if not current_nodes:
        return FailureAnalysis()

    now = time.time() if now is None else now
    anomalies: dict[str, set[NodeAnomaly]] = {}

    def tag(pnode_id: str, anomaly: NodeAnomaly) -> None:
        anomalies.setdefault(pnode_id, set()).add(anomaly)

    current_by_id = {n.pnode_id: n for n in current_nodes}

    if previous is not None:
        for prev in previous.nodes:
            if prev.status != NodeStatus.ONLINE:
                continue
            now_node = current_by_id.get(prev.pnode_id)
            if now_node is None or now_node.status == NodeStatus.OFFLINE:
                tag(prev.pnode_id, NodeAnomaly.SUDDEN_DROP)

    isolated_regions = find_isolated_regions(current_nodes)
    if isolated_regions:
        isolated = set(isolated_regions)
        for node in current_nodes:
            if region_key(node) in isolated:
                tag(node.pnode_id, NodeAnomaly.ISOLATED)

    for node in current_nodes:
        if is_black_hole(node, now):
            tag(node.pnode_id, NodeAnomaly.BLACK_HOLE)

    total = len(current_nodes)
    offline_count = sum(1 for n in current_nodes if n.status == NodeStatus.OFFLINE)
    online_count = sum(1 for n in current_nodes if n.status == NodeStatus.ONLINE)
    sudden_drops = sum(1 for tags in anomalies.values() if NodeAnomaly.SUDDEN_DROP in tags)

    suspected = False
    reason: str | None = None
    if isolated_regions:
        suspected = True
        reason = "Region outage or isolation in " + ", ".join(isolated_regions)
    elif sudden_drops > 0 and sudden_drops / total > SUDDEN_DROP_FRACTION:
        suspected = True
        reason = REASON_MASS_DROP
    elif offline_count > online_count:
        suspected = True
        reason = REASON_OFFLINE_MAJORITY

    if suspected and not reason:
        reason = probable_cause(current_nodes)

    logger.debug(
        f"Failure analysis: {total} nodes, {sudden_drops} sudden drops, "
        f"{len(isolated_regions)} isolated regions, partition={suspected}"
    )

    return FailureAnalysis(
        anomalies_by_id={pnode_id: frozenset(tags) for pnode_id, tags in anomalies.items()},
        partition_suspected=suspected,
        partition_reason=reason,
        isolated_regions=tuple(isolated_regions),
    )
