"""Live network commands: watch, discover."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from ...core.config import get_config
from ...core.engine import AnalyticsState, GossipAnalytics
from ...core.exceptions import OrbitalException
from ...network.discovery import discover_pnodes
from ...network.geo import enrich_with_geo
from ...network.poller import RosterPoller
from ...network.prpc import PRPCClient
from ..output import format_percent, output_error

logger = logging.getLogger(__name__)


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register network commands on the CLI parser."""
    watch_parser = subparsers.add_parser("watch", help="Poll the roster API and print a summary per cycle")
    watch_parser.add_argument("--url", help="Roster endpoint (default: ORBITAL_API_URL)")
    watch_parser.add_argument("--interval", type=float, help="Seconds between fetches")
    watch_parser.add_argument("--cycles", type=int, help="Stop after N cycles (default: run forever)")
    watch_parser.set_defaults(func=cmd_watch)

    discover_parser = subparsers.add_parser("discover", help="Discover pNodes via seed gossip")
    discover_parser.add_argument("seeds", nargs="*", help="Seed pRPC endpoints (default: ORBITAL_SEED_NODES)")
    discover_parser.add_argument("--output", "-o", help="Write the discovered roster to this file")
    discover_parser.add_argument(
        "--no-geo",
        action="store_true",
        help="Skip geolocating peers (default: ORBITAL_GEO_ENABLED)",
    )
    discover_parser.set_defaults(func=cmd_discover)


def format_cycle(state: AnalyticsState) -> str:
    """One-line summary of an ingested roster."""
    line = (
        f"{state.stats.total} nodes | {state.stats.online} online | "
        f"{state.stats.offline} offline | health {format_percent(state.network_health)}"
    )
    if state.failures.partition_suspected:
        line += f" | ⚠️  {state.failures.partition_reason}"
    return line


def cmd_watch(args: argparse.Namespace) -> int:
    """Poll the roster endpoint until interrupted."""
    config = get_config()
    engine = GossipAnalytics(capacity=config.snapshot_capacity)
    poller = RosterPoller(
        engine,
        args.url or config.api_url,
        interval=args.interval if args.interval is not None else config.poll_interval_seconds,
        timeout=config.request_timeout_seconds,
        on_update=lambda state: print(format_cycle(state), flush=True),
    )

    try:
        asyncio.run(poller.run(max_cycles=args.cycles))
    except KeyboardInterrupt:
        pass

    if poller.last_error:
        output_error(poller.last_error)
        return 1
    return 0


def cmd_discover(args: argparse.Namespace) -> int:
    """Build a roster from seed gossip."""
    config = get_config()
    seeds = args.seeds or config.seed_list

    geolocate = config.geo_enabled and not args.no_geo

    def client_factory(endpoint: str) -> PRPCClient:
        return PRPCClient(endpoint, timeout=config.request_timeout_seconds)

    async def discover() -> list[dict]:
        peers = await discover_pnodes(seeds, client_factory=client_factory)
        if geolocate:
            peers = await enrich_with_geo(
                peers,
                url=config.geo_lookup_url,
                timeout=config.request_timeout_seconds,
            )
        return peers

    try:
        nodes = asyncio.run(discover())
    except OrbitalException as e:
        output_error(e.message)
        return 1

    document = json.dumps({"nodes": nodes}, indent=2, default=str)
    if args.output:
        Path(args.output).write_text(document + "\n", encoding="utf-8")
        print(f"Discovered {len(nodes)} pNodes from {len(seeds)} seed(s) → {args.output}")
    else:
        print(document)
    return 0
