"""
Seed-based pNode discovery.

Asks each seed endpoint for its gossip peers (``pnode.gossipPeers``) and
merges the answers into one roster keyed by node id. A seed that fails
or answers with something other than a list is logged and skipped.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from ..core.exceptions import DiscoveryError, PRPCError
from .prpc import PRPCClient

logger = logging.getLogger(__name__)

GOSSIP_PEERS_METHOD = "pnode.gossipPeers"


def _peer_key(peer: dict[str, Any]) -> str:
    key = peer.get("pnodeId") or peer.get("id")
    if key:
        return str(key)
    return json.dumps(peer, sort_keys=True, default=str)


def unique_seeds(seeds: Iterable[str]) -> list[str]:
    """Strip blanks and duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for seed in seeds:
        trimmed = seed.strip()
        if trimmed:
            seen.setdefault(trimmed, None)
    return list(seen)


async def discover_pnodes(
    seeds: Iterable[str],
    client_factory: Callable[[str], PRPCClient] = PRPCClient,
    now: float | None = None,
) -> list[dict[str, Any]]:
    """
    Discover pNodes visible in gossip from a list of seeds.

    Args:
        seeds: pRPC endpoints to query
        client_factory: Builds a client for an endpoint (injectable for tests)
        now: Discovery time in epoch seconds (defaults to time.time())

    Returns:
        Unique peer records, each stamped with ``discoveredFrom`` and
        ``lastSeen`` (epoch milliseconds)

    Raises:
        DiscoveryError: If no usable seed endpoint was given
    """
    seed_list = unique_seeds(seeds)
    if not seed_list:
        raise DiscoveryError("No seed endpoints given")

    discovered: dict[str, dict[str, Any]] = {}

    for seed in seed_list:
        try:
            gossip = await client_factory(seed).call(GOSSIP_PEERS_METHOD)
        except PRPCError as e:
            logger.warning(f"Failed gossip from {seed}: {e.message}")
            continue

        if not isinstance(gossip, list):
            logger.warning(f"Unexpected gossip shape from {seed}: {type(gossip).__name__}")
            continue

        stamp_ms = int((time.time() if now is None else now) * 1000)
        for peer in gossip:
            if not isinstance(peer, dict):
                continue
            key = _peer_key(peer)
            record = {**peer, "discoveredFrom": seed, "lastSeen": stamp_ms}
            existing = discovered.get(key)
            discovered[key] = {**existing, **record} if existing else record

        logger.debug(f"Seed {seed} reported {len(gossip)} gossip peers")

    logger.info(f"Discovered {len(discovered)} pNodes from {len(seed_list)} seed(s)")
    return list(discovered.values())
