#!/usr/bin/env python3
"""Example 01: Network Pulse - Score a roster and watch a partition form.

This example demonstrates the core orbital workflow:
1. Ingesting a healthy roster and reading health / reputation
2. Ingesting a second roster where a region goes dark
3. Explaining one affected node and replaying the last hour

Requirements:
    - `pip install ourochronos-orbital` or run from source
    - No network access: rosters are built in memory

Usage:
    python examples/01_network_pulse.py
"""

from __future__ import annotations

import sys
import time
from pathlib import Path

# Add src to path when running from source
src_path = Path(__file__).parent.parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from orbital.core import GossipAnalytics


def make_roster(now: float, dark_region: bool = False) -> list[dict]:
    """Six pNodes around Frankfurt plus four spread over other continents."""
    roster = []
    for i in range(6):
        roster.append(
            {
                "pnodeId": f"fra-{i}",
                "latitude": 50.1,
                "longitude": 8.7,
                "status": "offline" if dark_region and i < 4 else "online",
                "storageUsed": 2_000_000_000,
                "version": "1.4.2",
                "lastSeen": (now - (900 if dark_region and i < 4 else 20)) * 1000,
                "peersSeen": 0 if dark_region and i < 4 else 14,
                "responseLatency": 70 + i * 10,
                "uptime": 0.97,
                "dataAvailability": 0.96,
            }
        )
    for i, (lat, lon) in enumerate([(40.7, -74.0), (-33.9, 151.2), (35.7, 139.7), (-23.5, -46.6)]):
        roster.append(
            {
                "pnodeId": f"far-{i}",
                "lat": lat,
                "lon": lon,
                "status": "online",
                "storage_used": 500_000_000,
                "version": "1.4.2",
                "last_seen": now - 45,
                "peers_seen": 9,
                "uptime_ratio": 0.6 if i == 1 else 0.93,
            }
        )
    return roster


def main() -> None:
    """Run the network pulse example."""
    print("=" * 60)
    print("  orbital Example 01: Network Pulse")
    print("=" * 60)
    print()

    engine = GossipAnalytics()
    now = time.time()

    # =========================================================================
    # Step 1: A healthy network
    # =========================================================================
    print("[Step 1] Ingesting a healthy roster...")
    print("-" * 40)

    state = engine.ingest(make_roster(now - 30), timestamp=now - 30)
    print(f"  Nodes:          {state.stats.total}")
    print(f"  Network health: {state.network_health:.0%}")
    for pnode_id in ("fra-0", "far-1"):
        health = state.health_by_id[pnode_id]
        reputation = state.reputation_by_id[pnode_id]
        print(f"  {pnode_id}: health {health.tier.value}, reputation {reputation.tier.value}")
    print(f"  Partition suspected: {state.failures.partition_suspected}")
    print()

    # =========================================================================
    # Step 2: Frankfurt goes dark
    # =========================================================================
    print("[Step 2] Ingesting a roster where Frankfurt drops out...")
    print("-" * 40)

    state = engine.ingest(make_roster(now, dark_region=True), timestamp=now)
    print(f"  Partition suspected: {state.failures.partition_suspected}")
    print(f"  Reason:              {state.failures.partition_reason}")
    for pnode_id in ("fra-0", "fra-5"):
        tags = sorted(t.value for t in state.failures.anomalies_for(pnode_id))
        print(f"  {pnode_id} anomalies: {', '.join(tags) or 'none'}")
    print()

    # =========================================================================
    # Step 3: Explain and replay
    # =========================================================================
    print("[Step 3] Why does fra-0 look bad?")
    print("-" * 40)

    result = engine.explain("fra-0", now=now)
    for line in result.why:
        print(f"  - {line}")
    for prediction in result.predictions:
        print(f"  [{prediction.confidence.value}] {prediction.message}")
    print()

    view = engine.time_travel("1h", index=0, now=now)
    kind = "synthetic" if view.synthetic else "recorded"
    print(f"  Time travel 1h: {len(view.snapshots)} {kind} frame(s), showing frame {view.index + 1}")
    print()
    print("Done.")


if __name__ == "__main__":
    main()
