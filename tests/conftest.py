"""Global test fixtures for the orbital test suite."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import pytest

from orbital.core.models import Node, NodeStatus

# Fixed reference time so freshness and age math is reproducible.
NOW = 1_700_000_000.0


def _make_node(
    pnode_id: str,
    status: NodeStatus | str = NodeStatus.ONLINE,
    latitude: float = 0.0,
    longitude: float = 0.0,
    last_seen: float | None = NOW,
    **kwargs: Any,
) -> Node:
    return Node(
        pnode_id=pnode_id,
        status=NodeStatus(status),
        latitude=latitude,
        longitude=longitude,
        last_seen=last_seen,
        **kwargs,
    )


def _healthy_node(pnode_id: str, **overrides: Any) -> Node:
    fields: dict[str, Any] = {
        "peers_seen": 10,
        "peer_diversity": 0.8,
        "response_latency_ms": 80,
        "uptime": 0.95,
        "data_availability": 0.95,
        "version_freshness": 0.9,
        "version": "1.2.0",
        "storage_used": 100.0,
    }
    fields.update(overrides)
    return _make_node(pnode_id, **fields)


@pytest.fixture
def now() -> float:
    """Reference time (epoch seconds) shared by node factories."""
    return NOW


@pytest.fixture
def make_node() -> Callable[..., Node]:
    """Factory for nodes with minimal telemetry (scorer defaults apply)."""
    return _make_node


@pytest.fixture
def healthy_node() -> Callable[..., Node]:
    """Factory for well-behaved online nodes with full telemetry."""
    return _healthy_node


@pytest.fixture
def spread_longitude() -> Callable[[int], float]:
    """Longitude that puts node ``i`` in its own region bucket."""
    return lambda i: -170.0 + i * 20.0


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Reset the config singleton and isolate from ORBITAL_* environment."""
    import orbital.core.config as config_module

    for key in list(os.environ):
        if key.startswith("ORBITAL_"):
            monkeypatch.delenv(key, raising=False)
    config_module._config = None
    yield
    config_module._config = None


@pytest.fixture
def raw_roster() -> list[dict[str, Any]]:
    """Upstream-shaped roster records (camelCase, mixed spellings)."""
    return [
        {
            "pnodeId": "node-a",
            "latitude": 48.8,
            "longitude": 2.3,
            "status": "online",
            "storageUsed": 1000,
            "version": "1.2.0",
            "lastSeen": NOW * 1000,
            "peersSeen": 12,
            "uptime": 0.99,
        },
        {
            "pnodeId": "node-b",
            "latitude": 40.7,
            "longitude": -74.0,
            "status": "offline",
            "storageUsed": 200,
            "version": "1.1.0",
            "lastSeen": "2023-11-14T22:00:00Z",
            "peers_seen": 0,
        },
        {
            "id": "node-c",
            "lat": -33.9,
            "lon": 151.2,
            "status": "unknown",
            "storage_used": "300",
            "version": "1.2.0",
            "last_seen": NOW - 30,
            "uptime_ratio": 0.6,
            "dataAvailability": 0.55,
        },
    ]
