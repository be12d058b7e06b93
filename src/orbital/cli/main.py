#!/usr/bin/env python3
"""
orbital CLI - gossip analytics for the pNode network.

Commands:
  orbital analyze <roster.json>            Score a roster, detect anomalies
  orbital explain <roster.json> <node_id>  Explain one node
  orbital time-travel <roster.json>        Replay a time window
  orbital watch                            Poll the roster API
  orbital discover <seed> ...              Build a roster from seed gossip
  orbital serve                            Run the HTTP API
"""

from __future__ import annotations

import argparse
import logging
import sys

from ..core.logging import configure_logging
from .commands import COMMAND_MODULES

logger = logging.getLogger(__name__)


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="orbital",
        description="Gossip analytics for the pNode network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  orbital analyze roster.json                  Network summary
  orbital analyze roster.json -p earlier.json  Include sudden-drop detection
  orbital explain roster.json <node_id>        Why is this node unhealthy?
  orbital time-travel roster.json -w 24h -i 5  Frame 6 of the last day
  orbital watch --interval 30                  Live summary every 30s
  orbital discover http://seed:8899 -o r.json  Roster from seed gossip
  orbital serve --port 8430                    HTTP API
        """,
    )
    parser.add_argument("--log-level", help="Log level (default: ORBITAL_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in COMMAND_MODULES:
        module.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = app()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, json_format=False)

    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
