"""Offline analysis commands: analyze, explain, time-travel.

Each works on roster JSON files, so saved API responses can be inspected
without a running poller.
"""

from __future__ import annotations

import argparse
import logging

from ...core.exceptions import OrbitalException
from ...core.health import ReputationTier
from ...core.time_travel import TimeWindow
from ..output import format_percent, output_error, output_result
from ..utils import build_engine, short_id

logger = logging.getLogger(__name__)


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register analysis commands on the CLI parser."""
    analyze_parser = subparsers.add_parser("analyze", help="Score a roster and detect anomalies")
    analyze_parser.add_argument("roster", help="Roster JSON file (list or {nodes: [...]})")
    analyze_parser.add_argument("--previous", "-p", help="Previous roster, enables sudden-drop detection")
    analyze_parser.add_argument("--json", action="store_true", help="Output full JSON")
    analyze_parser.set_defaults(func=cmd_analyze)

    explain_parser = subparsers.add_parser("explain", help="Explain one node's health and outlook")
    explain_parser.add_argument("roster", help="Current roster JSON file")
    explain_parser.add_argument("node_id", help="pNode id to explain")
    explain_parser.add_argument(
        "--history",
        nargs="*",
        default=[],
        help="Earlier roster files, oldest first (enables trend predictions)",
    )
    explain_parser.add_argument("--json", action="store_true", help="Output full JSON")
    explain_parser.set_defaults(func=cmd_explain)

    tt_parser = subparsers.add_parser("time-travel", help="Replay the roster for a time window")
    tt_parser.add_argument("roster", help="Current roster JSON file")
    tt_parser.add_argument(
        "--window",
        "-w",
        choices=[w.value for w in TimeWindow],
        default=TimeWindow.ONE_HOUR.value,
        help="Time window (default: 1h)",
    )
    tt_parser.add_argument("--index", "-i", type=int, default=0, help="Frame index within the window")
    tt_parser.add_argument("--json", action="store_true", help="Output full JSON")
    tt_parser.set_defaults(func=cmd_time_travel)


def cmd_analyze(args: argparse.Namespace) -> int:
    """Score a roster and print the network summary."""
    try:
        history = [args.previous] if args.previous else []
        state = build_engine(args.roster, history=history).state
    except (OrbitalException, OSError) as e:
        output_error(str(e))
        return 1

    stats = state.stats
    lines = [
        "Network Pulse",
        "─" * 40,
        f"  pNodes:          {stats.total}",
        f"  Online:          {stats.online}",
        f"  Unknown:         {stats.unknown}",
        f"  Offline:         {stats.offline}",
        f"  Total storage:   {stats.total_storage:,.0f} bytes",
        f"  Gossip health:   {format_percent(state.network_health)}",
    ]

    tiers = {tier: 0 for tier in ReputationTier}
    for rep in state.reputation_by_id.values():
        tiers[rep.tier] += 1
    lines.append("  Reputation:      " + ", ".join(f"{t.value} {n}" for t, n in tiers.items()))

    if state.region_stats:
        lines.append("")
        lines.append("Top regions")
        top = sorted(state.region_stats.items(), key=lambda item: item[1].total, reverse=True)[:3]
        for key, region in top:
            lines.append(f"  {key:<10} {region.total} nodes ({region.offline} offline)")

    anomalous = {k: v for k, v in state.failures.anomalies_by_id.items() if v}
    if anomalous:
        lines.append("")
        lines.append(f"Anomalies ({len(anomalous)} nodes)")
        for pnode_id, tags in sorted(anomalous.items()):
            lines.append(f"  {short_id(pnode_id):<16} {', '.join(sorted(t.value for t in tags))}")

    lines.append("")
    if state.failures.partition_suspected:
        lines.append(f"⚠️  Partition suspected: {state.failures.partition_reason}")
    else:
        lines.append("✓ No partition suspected")

    output_result({**state.to_dict(), "formatted": "\n".join(lines)}, as_json=args.json)
    return 0


def cmd_explain(args: argparse.Namespace) -> int:
    """Explain why a node scores the way it does."""
    try:
        engine = build_engine(args.roster, history=args.history)
        result = engine.explain(args.node_id)
    except (OrbitalException, OSError) as e:
        output_error(str(e))
        return 1

    state = engine.state
    health = state.health_by_id[args.node_id]
    reputation = state.reputation_by_id[args.node_id]

    lines = [
        f"pNode {args.node_id}",
        f"  Health:     {format_percent(health.score)} ({health.tier.value})",
        f"  Reputation: {format_percent(reputation.score)} ({reputation.tier.value})",
        "",
        "Why",
    ]
    lines.extend(f"  • {text}" for text in result.why)
    if result.predictions:
        lines.append("")
        lines.append("Predictions")
        lines.extend(f"  [{p.confidence.value}] {p.message}" for p in result.predictions)

    output_result(
        {
            "pnodeId": args.node_id,
            "health": health.to_dict(),
            "reputation": reputation.to_dict(),
            **result.to_dict(),
            "formatted": "\n".join(lines),
        },
        as_json=args.json,
    )
    return 0


def cmd_time_travel(args: argparse.Namespace) -> int:
    """Show one frame of roster history for a window."""
    try:
        engine = build_engine(args.roster)
    except (OrbitalException, OSError) as e:
        output_error(str(e))
        return 1

    view = engine.time_travel(args.window, index=args.index)
    label = "synthetic replay" if view.synthetic else "recorded history"
    lines = [f"Time travel {args.window} ({label}), frame {view.index + 1}/{len(view.snapshots)}"]
    for node in view.nodes:
        health = view.health_by_id.get(node.pnode_id)
        tier = health.tier.value if health else "?"
        lines.append(f"  {short_id(node.pnode_id):<16} {node.status.value:<8} health={tier}")

    output_result({"window": args.window, **view.to_dict(), "formatted": "\n".join(lines)}, as_json=args.json)
    return 0
