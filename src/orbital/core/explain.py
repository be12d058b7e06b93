"""Human-readable justifications and short-horizon predictions for one node."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .health import HealthDetails, ReputationDetails, ReputationTier
from .models import Node, NodeStatus, Snapshot
from .partitions import FailureAnalysis, NodeAnomaly

TREND_WINDOW_SNAPSHOTS = 20
TREND_POINTS = 3
TREND_DRIFT_FACTOR = 1.4
LOW_UPTIME = 0.7
LOW_AVAILABILITY = 0.6
STORAGE_OUTLIER_FACTOR = 1.5

STATUS_NARRATIVE = {
    NodeStatus.OFFLINE: "This node is currently marked offline in gossip.",
    NodeStatus.UNKNOWN: "This node has an unknown status and may not be consistently reachable.",
    NodeStatus.ONLINE: "This node is currently online and participating in gossip.",
}

ANOMALY_NARRATIVE = (
    (
        NodeAnomaly.SUDDEN_DROP,
        "It recently dropped from gossip after being online (sudden peer drop).",
    ),
    (
        NodeAnomaly.ISOLATED,
        "Low gossip reach due to regional clustering or isolation.",
    ),
    (
        NodeAnomaly.BLACK_HOLE,
        "Behaves like a gossip black hole: stale last seen, low peers, or low data availability.",
    ),
)

REPUTATION_NARRATIVE = {
    ReputationTier.GOLD: "Long-lived uptime and storage reliability give this node a Gold reputation.",
    ReputationTier.SILVER: "Solid but imperfect track record, classified as Silver reputation.",
    ReputationTier.RISKY: "Risky reputation: uptime, responsiveness, or storage reliability trail peers.",
}

STORAGE_OUTLIER_NOTE = "Storage usage is significantly higher than peer average."

PREDICTION_DRIFT = (
    "Node is drifting out of recent gossip; likely to go offline within ~2h if trend continues."
)
PREDICTION_LOW_UPTIME = "Low historical uptime; expect intermittent availability or further drops."
PREDICTION_LOW_AVAILABILITY = (
    "Storage underperforming compared to peers; saturation or reliability risk."
)


class PredictionConfidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Prediction:
    message: str
    confidence: PredictionConfidence

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "confidence": self.confidence.value}


@dataclass(frozen=True)
class Explainability:
    why: tuple[str, ...] = field(default_factory=tuple)
    predictions: tuple[Prediction, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "why": list(self.why),
            "predictions": [p.to_dict() for p in self.predictions],
        }


def _recent_ages(node_id: str, snapshots: Sequence[Snapshot], now: float) -> list[float]:
    """Last-seen ages of this node across the trailing window, oldest first."""
    ages: list[float] = []
    for snapshot in snapshots[-TREND_WINDOW_SNAPSHOTS:]:
        appearance = snapshot.find(node_id)
        if appearance is not None:
            ages.append(appearance.age_seconds(now))
    return ages


def build_node_explainability(
    node: Node,
    health: HealthDetails | None,
    reputation: ReputationDetails | None,
    failures: FailureAnalysis,
    snapshots: Sequence[Snapshot],
    all_nodes: Sequence[Node],
    now: float | None = None,
) -> Explainability:
    """
    Explain why a node looks the way it does and what is likely next.

    Why-strings are emitted in a fixed order (status, anomalies, health
    reasons, reputation tier, storage outlier) with exact duplicates
    suppressed. Predictions are independent checks.
    """
    now = time.time() if now is None else now
    why: list[str] = []

    def add(text: str) -> None:
        if text not in why:
            why.append(text)

    add(STATUS_NARRATIVE.get(node.status, STATUS_NARRATIVE[NodeStatus.ONLINE]))

    anomalies = failures.anomalies_for(node.pnode_id)
    for anomaly, sentence in ANOMALY_NARRATIVE:
        if anomaly in anomalies:
            add(sentence)

    if health is not None:
        for reason in health.reasons:
            add(reason)

    if reputation is not None:
        add(REPUTATION_NARRATIVE[reputation.tier])

    if all_nodes:
        avg_storage = sum(n.storage_used for n in all_nodes) / len(all_nodes)
        if avg_storage > 0 and node.storage_used > avg_storage * STORAGE_OUTLIER_FACTOR:
            add(STORAGE_OUTLIER_NOTE)

    predictions: list[Prediction] = []

    ages = _recent_ages(node.pnode_id, snapshots, now)
    if len(ages) >= TREND_POINTS:
        recent = ages[-TREND_POINTS:]
        if recent[-1] > recent[0] * TREND_DRIFT_FACTOR:
            predictions.append(Prediction(PREDICTION_DRIFT, PredictionConfidence.MEDIUM))

    if node.uptime is not None and node.uptime < LOW_UPTIME:
        predictions.append(Prediction(PREDICTION_LOW_UPTIME, PredictionConfidence.HIGH))

    if node.data_availability is not None and node.data_availability < LOW_AVAILABILITY:
        predictions.append(Prediction(PREDICTION_LOW_AVAILABILITY, PredictionConfidence.MEDIUM))

    return Explainability(why=tuple(why), predictions=tuple(predictions))
