"""Coarse geographic bucketing of the roster."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .models import Node, NodeStatus

REGION_CELL_DEGREES = 10


@dataclass
class RegionStats:
    """Node counts for one region bucket."""

    total: int = 0
    online: int = 0
    offline: int = 0

    @property
    def offline_ratio(self) -> float:
        return self.offline / self.total if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "online": self.online, "offline": self.offline}


def _round_half_up(value: float) -> int:
    # Halves round towards +infinity
    return math.floor(value + 0.5)


def region_key(node: Node) -> str:
    """
    Bucket key "lat:lon", each rounded to the nearest 10-degree multiple.

    e.g. (12.0, 18.0) -> "10:20", (-44.0, 151.0) -> "-40:150".
    """
    lat_bucket = _round_half_up(node.latitude / REGION_CELL_DEGREES) * REGION_CELL_DEGREES
    lon_bucket = _round_half_up(node.longitude / REGION_CELL_DEGREES) * REGION_CELL_DEGREES
    return f"{lat_bucket}:{lon_bucket}"


def compute_region_stats(nodes: Iterable[Node]) -> dict[str, RegionStats]:
    """Total/online/offline counts per region bucket, in first-seen order."""
    regions: dict[str, RegionStats] = {}
    for node in nodes:
        stats = regions.setdefault(region_key(node), RegionStats())
        stats.total += 1
        if node.status == NodeStatus.OFFLINE:
            stats.offline += 1
        elif node.status == NodeStatus.ONLINE:
            stats.online += 1
    return regions
