"""
External collaborators of the analytics core.

- pRPC client for talking to individual pNodes
- Seed-based gossip discovery
- Geolocation of discovered peers
- Roster poller that feeds the engine on a schedule
"""

from orbital.network.discovery import discover_pnodes
from orbital.network.geo import enrich_with_geo
from orbital.network.poller import RosterPoller, extract_nodes, fetch_roster
from orbital.network.prpc import PRPCClient

__all__ = [
    "PRPCClient",
    "RosterPoller",
    "discover_pnodes",
    "enrich_with_geo",
    "extract_nodes",
    "fetch_roster",
]
