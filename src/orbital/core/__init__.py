"""Gossip analytics core: scoring, detection, explanation and history."""

from .engine import AnalyticsState, GossipAnalytics, RosterStats
from .explain import Explainability, Prediction, PredictionConfidence, build_node_explainability
from .health import (
    HealthDetails,
    HealthTier,
    ReputationDetails,
    ReputationTier,
    compute_network_health,
    compute_node_health,
    compute_reputation,
)
from .models import Node, NodeStatus, Snapshot, normalize_node, normalize_roster
from .partitions import FailureAnalysis, NodeAnomaly, analyze_failures
from .regions import RegionStats, compute_region_stats, region_key
from .snapshots import SnapshotStore
from .time_travel import TimeTravelView, TimeWindow, resolve_time_travel

__all__ = [
    # Engine
    "AnalyticsState",
    "GossipAnalytics",
    "RosterStats",
    # Records
    "Node",
    "NodeStatus",
    "Snapshot",
    "normalize_node",
    "normalize_roster",
    "SnapshotStore",
    # Scoring
    "HealthDetails",
    "HealthTier",
    "ReputationDetails",
    "ReputationTier",
    "compute_node_health",
    "compute_reputation",
    "compute_network_health",
    # Regions and failures
    "RegionStats",
    "compute_region_stats",
    "region_key",
    "FailureAnalysis",
    "NodeAnomaly",
    "analyze_failures",
    # Explainability and history
    "Explainability",
    "Prediction",
    "PredictionConfidence",
    "build_node_explainability",
    "TimeTravelView",
    "TimeWindow",
    "resolve_time_travel",
]
