# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""
pNode roster records and ingestion-time normalization.

Upstream rosters are loosely shaped JSON: telemetry keys show up under
several spellings, numbers arrive as strings, timestamps arrive either as
epoch milliseconds or ISO-8601 text. All of that is resolved here, once,
so the scorers only ever see canonical, typed fields.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Epoch values above this are milliseconds (year ~5138 in seconds).
_MILLISECONDS_THRESHOLD = 1e11


class NodeStatus(str, Enum):
    """Lifecycle status reported by gossip."""

    ONLINE = "online"
    UNKNOWN = "unknown"
    OFFLINE = "offline"


@dataclass(frozen=True)
class Node:
    """
    One pNode as reported by a single roster fetch.

    Telemetry fields are None when the upstream record did not carry
    them (or carried something unusable); the scorers substitute their
    documented defaults.
    """

    pnode_id: str
    latitude: float = 0.0
    longitude: float = 0.0
    status: NodeStatus = NodeStatus.UNKNOWN
    storage_used: float = 0.0
    version: str = "unknown"
    last_seen: float | None = None  # epoch seconds, None if unparseable
    peers_seen: float | None = None
    peer_diversity: float | None = None
    response_latency_ms: float | None = None
    uptime: float | None = None
    data_availability: float | None = None
    version_freshness: float | None = None

    def age_seconds(self, now: float) -> float:
        """Seconds since last seen; infinite when last-seen is unknown."""
        if self.last_seen is None:
            return math.inf
        return now - self.last_seen

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the upstream (camelCase) field names."""
        data: dict[str, Any] = {
            "pnodeId": self.pnode_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status.value,
            "storageUsed": self.storage_used,
            "version": self.version,
            "lastSeen": format_timestamp(self.last_seen),
        }
        optional = {
            "peersSeen": self.peers_seen,
            "peerDiversity": self.peer_diversity,
            "responseLatency": self.response_latency_ms,
            "uptime": self.uptime,
            "dataAvailability": self.data_availability,
            "versionFreshness": self.version_freshness,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass(frozen=True)
class Snapshot:
    """A timestamped, immutable copy of a roster."""

    timestamp: float
    nodes: tuple[Node, ...] = field(default_factory=tuple)
    synthetic: bool = False

    def find(self, pnode_id: str) -> Node | None:
        for node in self.nodes:
            if node.pnode_id == pnode_id:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "synthetic": self.synthetic,
            "nodes": [n.to_dict() for n in self.nodes],
        }


# =============================================================================
# NORMALIZATION
# =============================================================================

# Canonical field -> accepted upstream spellings, in precedence order.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "pnode_id": ("pnodeId", "pnode_id", "id", "identity"),
    "latitude": ("latitude", "lat", "geoLat"),
    "longitude": ("longitude", "lon", "lng", "geoLon"),
    "status": ("status",),
    "storage_used": ("storageUsed", "storage_used"),
    "version": ("version",),
    "last_seen": ("lastSeen", "last_seen"),
    "peers_seen": ("peers_seen", "peersSeen"),
    "peer_diversity": ("peer_diversity", "peerDiversity"),
    "response_latency_ms": ("response_latency", "responseLatency"),
    "uptime": ("uptime", "uptime_ratio", "uptimeRatio"),
    "data_availability": ("data_availability", "dataAvailability", "dataAvailabilityRatio"),
    "version_freshness": ("version_freshness", "versionFreshness"),
}

_TELEMETRY_FIELDS = (
    "peers_seen",
    "peer_diversity",
    "response_latency_ms",
    "uptime",
    "data_availability",
    "version_freshness",
)


def _lookup(raw: Mapping[str, Any], canonical: str) -> Any:
    """First present, non-null value among the accepted spellings."""
    for key in FIELD_ALIASES[canonical]:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def coerce_float(value: Any) -> float | None:
    """Coerce to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def format_timestamp(seconds: float | None) -> str | None:
    """ISO-8601 rendering of epoch seconds; None when datetime can't hold it."""
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, UTC).isoformat()
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: Any) -> float | None:
    """
    Parse an upstream timestamp into epoch seconds.

    Accepts epoch numbers (seconds or milliseconds) and ISO-8601 strings,
    including numeric strings. Returns None when nothing usable is found,
    including epoch values outside the range a datetime can represent.
    """
    if value is None or isinstance(value, bool):
        return None

    number = coerce_float(value)
    if number is not None:
        seconds = number / 1000.0 if abs(number) > _MILLISECONDS_THRESHOLD else number
        if format_timestamp(seconds) is None:
            logger.debug(f"Discarding out-of-range timestamp: {value!r}")
            return None
        return seconds

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def parse_status(value: Any) -> NodeStatus:
    if isinstance(value, NodeStatus):
        return value
    if isinstance(value, str):
        try:
            return NodeStatus(value.strip().lower())
        except ValueError:
            pass
    return NodeStatus.UNKNOWN


def normalize_node(raw: Any) -> Node | None:
    """
    Map one upstream record onto a Node.

    Returns None (and logs at DEBUG) for records that cannot identify a
    node; every other defect degrades to a default instead.
    """
    if isinstance(raw, Node):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping non-mapping roster entry: {type(raw).__name__}")
        return None

    pnode_id = _lookup(raw, "pnode_id")
    if pnode_id is None or str(pnode_id).strip() == "":
        logger.debug("Skipping roster entry without a node id")
        return None

    version = _lookup(raw, "version")
    telemetry = {name: coerce_float(_lookup(raw, name)) for name in _TELEMETRY_FIELDS}

    return Node(
        pnode_id=str(pnode_id),
        latitude=coerce_float(_lookup(raw, "latitude")) or 0.0,
        longitude=coerce_float(_lookup(raw, "longitude")) or 0.0,
        status=parse_status(_lookup(raw, "status")),
        storage_used=coerce_float(_lookup(raw, "storage_used")) or 0.0,
        version=str(version) if version not in (None, "") else "unknown",
        last_seen=parse_timestamp(_lookup(raw, "last_seen")),
        **telemetry,
    )


def normalize_roster(raw_nodes: Iterable[Any]) -> list[Node]:
    """Normalize a whole roster, dropping entries that have no identity."""
    nodes: list[Node] = []
    skipped = 0
    for raw in raw_nodes:
        node = normalize_node(raw)
        if node is None:
            skipped += 1
            continue
        nodes.append(node)
    if skipped:
        logger.debug(f"Normalized roster: kept {len(nodes)}, skipped {skipped}")
    return nodes
