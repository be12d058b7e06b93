# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""
Per-node health and reputation scoring.

Health is a short-horizon view of how well a node participates in gossip
right now. Reputation is the slower signal: it leans on uptime and
storage reliability and only uses health as a small guardrail.

Both are pure functions of one Node (plus ``now`` for freshness) and are
safe to evaluate concurrently across a roster.
"""

from __future__ import annotations

import math
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .models import Node, NodeStatus

# Freshness horizon: nodes unseen for this long score 0 on freshness.
FRESHNESS_HORIZON_SECONDS = 10 * 60

# Latency normalization: 50ms scores 1.0, 500ms scores 0.0.
LATENCY_BEST_MS = 50.0
LATENCY_SPAN_MS = 450.0

STATUS_PRIOR = {
    NodeStatus.ONLINE: 0.9,
    NodeStatus.UNKNOWN: 0.6,
    NodeStatus.OFFLINE: 0.2,
}

# Health blend
HEALTH_WEIGHTS = {
    "status": 0.25,
    "peers": 0.15,
    "diversity": 0.15,
    "latency": 0.15,
    "uptime": 0.15,
    "data": 0.10,
    "freshness": 0.05,
}

# Reputation blend
REPUTATION_WEIGHTS = {
    "uptime": 0.35,
    "data": 0.35,
    "latency": 0.12,
    "version": 0.12,
    "health": 0.06,
}

# Telemetry defaults when a node does not report the field
DEFAULT_PEERS_SEEN = 0.0
DEFAULT_PEER_DIVERSITY = 0.5
DEFAULT_LATENCY_SCORE = 0.7
DEFAULT_UPTIME = 0.8
DEFAULT_DATA_AVAILABILITY = 0.9
DEFAULT_VERSION_FRESHNESS = 0.7

REASON_LOW_PEERS = "Low peer count in gossip"
REASON_LOW_DIVERSITY = "Peers lack geographic / ASN diversity"
REASON_HIGH_LATENCY = "High gossip response latency"
REASON_LOW_UPTIME = "Uptime below target SLA"
REASON_LOW_AVAILABILITY = "Data availability below network baseline"
REASON_STALE = "Not seen in recent gossip window"
REASON_HEALTHY = "Healthy gossip connectivity and recent activity"


class HealthTier(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    BAD = "bad"


class ReputationTier(str, Enum):
    GOLD = "gold"
    SILVER = "silver"
    RISKY = "risky"


@dataclass(frozen=True)
class HealthDetails:
    """Health score in [0, 1], its tier, and ordered distinct reasons."""

    score: float
    tier: HealthTier
    reasons: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": round(self.score, 4),
            "tier": self.tier.value,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class ReputationDetails:
    """Reputation score in [0, 1] and its tier."""

    score: float
    tier: ReputationTier

    def to_dict(self) -> dict[str, Any]:
        return {"score": round(self.score, 4), "tier": self.tier.value}


def clamp01(x: float) -> float:
    """Clamp to [0, 1]; NaN maps to 0."""
    if math.isnan(x):
        return 0.0
    return max(0.0, min(1.0, x))


def latency_score(latency_ms: float | None) -> float:
    """Normalized latency score; the neutral default when unreported."""
    if latency_ms is None:
        return DEFAULT_LATENCY_SCORE
    return clamp01(1 - (latency_ms - LATENCY_BEST_MS) / LATENCY_SPAN_MS)


def health_tier(score: float) -> HealthTier:
    if score < 0.4:
        return HealthTier.BAD
    if score < 0.7:
        return HealthTier.WARNING
    return HealthTier.GOOD


def reputation_tier(score: float) -> ReputationTier:
    if score >= 0.8:
        return ReputationTier.GOLD
    if score < 0.5:
        return ReputationTier.RISKY
    return ReputationTier.SILVER


def compute_node_health(node: Node, now: float | None = None) -> HealthDetails:
    """
    Blend seven independent signals into a health score.

    Reasons are rule-based and independent of the weighting: each signal
    that crosses its threshold contributes one reason, in evaluation
    order. A good node with no reasons gets a single positive reason.

    Args:
        node: The node to score
        now: Reference time in epoch seconds (defaults to time.time())

    Returns:
        HealthDetails with score, tier and reasons
    """
    now = time.time() if now is None else now
    reasons: list[str] = []

    def add_reason(reason: str) -> None:
        if reason not in reasons:
            reasons.append(reason)

    # Peer count: more is better, with diminishing returns
    peers = node.peers_seen if node.peers_seen is not None else DEFAULT_PEERS_SEEN
    peers_score = clamp01(math.log10(1 + max(peers, 0.0)) / 2)
    if peers < 3:
        add_reason(REASON_LOW_PEERS)

    # Peer diversity. Departs from the upstream dashboard, which maps a
    # missing or zero ratio to 0.5: here only a missing ratio defaults, and
    # an explicit zero peer count scores 0 so that node lands in tier bad.
    if node.peer_diversity is not None:
        diversity_score = clamp01(node.peer_diversity)
    elif node.peers_seen == 0:
        diversity_score = 0.0
    else:
        diversity_score = DEFAULT_PEER_DIVERSITY
    if diversity_score < 0.4:
        add_reason(REASON_LOW_DIVERSITY)

    lat_score = latency_score(node.response_latency_ms)
    if node.response_latency_ms is not None and node.response_latency_ms > 350:
        add_reason(REASON_HIGH_LATENCY)

    uptime_score = clamp01(node.uptime if node.uptime is not None else DEFAULT_UPTIME)
    if uptime_score < 0.8:
        add_reason(REASON_LOW_UPTIME)

    data_score = clamp01(
        node.data_availability if node.data_availability is not None else DEFAULT_DATA_AVAILABILITY
    )
    if data_score < 0.8:
        add_reason(REASON_LOW_AVAILABILITY)

    age = node.age_seconds(now)
    freshness_score = clamp01(1 - age / FRESHNESS_HORIZON_SECONDS)
    if age > FRESHNESS_HORIZON_SECONDS:
        add_reason(REASON_STALE)

    status_score = STATUS_PRIOR.get(node.status, STATUS_PRIOR[NodeStatus.OFFLINE])

    score = clamp01(
        status_score * HEALTH_WEIGHTS["status"]
        + peers_score * HEALTH_WEIGHTS["peers"]
        + diversity_score * HEALTH_WEIGHTS["diversity"]
        + lat_score * HEALTH_WEIGHTS["latency"]
        + uptime_score * HEALTH_WEIGHTS["uptime"]
        + data_score * HEALTH_WEIGHTS["data"]
        + freshness_score * HEALTH_WEIGHTS["freshness"]
    )

    tier = health_tier(score)
    if not reasons and tier == HealthTier.GOOD:
        reasons.append(REASON_HEALTHY)

    return HealthDetails(score=score, tier=tier, reasons=tuple(reasons))


def compute_reputation(node: Node, health: HealthDetails) -> ReputationDetails:
    """
    Long-horizon reputation: uptime and storage reliability dominate,
    responsiveness and version freshness are secondary, and the current
    health score only nudges the result.
    """
    uptime_score = clamp01(node.uptime if node.uptime is not None else DEFAULT_UPTIME)
    storage_score = clamp01(
        node.data_availability if node.data_availability is not None else DEFAULT_DATA_AVAILABILITY
    )
    version_score = clamp01(
        node.version_freshness if node.version_freshness is not None else DEFAULT_VERSION_FRESHNESS
    )

    score = clamp01(
        uptime_score * REPUTATION_WEIGHTS["uptime"]
        + storage_score * REPUTATION_WEIGHTS["data"]
        + latency_score(node.response_latency_ms) * REPUTATION_WEIGHTS["latency"]
        + version_score * REPUTATION_WEIGHTS["version"]
        + clamp01(health.score) * REPUTATION_WEIGHTS["health"]
    )
    return ReputationDetails(score=score, tier=reputation_tier(score))


def compute_network_health(nodes: Sequence[Node], now: float | None = None) -> float:
    """Mean node health score across the roster (0 for an empty roster)."""
    if not nodes:
        return 0.0
    now = time.time() if now is None else now
    return sum(compute_node_health(n, now).score for n in nodes) / len(nodes)
