"""Serve command."""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the serve command on the CLI parser."""
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API with a background poller")
    serve_parser.add_argument("--host", help="Bind host (default: ORBITAL_HOST)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: ORBITAL_PORT)")
    serve_parser.set_defaults(func=cmd_serve)


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API until interrupted."""
    from ...server.app import run

    run(host=args.host, port=args.port, log_level=args.log_level)
    return 0
