"""Utility functions for the orbital CLI."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..core.config import get_config
from ..core.engine import GossipAnalytics
from ..core.exceptions import RosterFormatError
from ..network.poller import extract_nodes

logger = logging.getLogger(__name__)


def load_roster(path: str | Path) -> list[Any]:
    """Load raw roster records from a JSON file (list or {"nodes": [...]})."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        raise RosterFormatError(f"{path} is not valid JSON: {e}") from e
    return extract_nodes(payload)


def build_engine(
    current: str | Path,
    history: Sequence[str | Path] = (),
    now: float | None = None,
) -> GossipAnalytics:
    """
    Replay history files (oldest first) and then the current roster.

    Files are spaced one poll interval apart, ending at ``now``.
    """
    config = get_config()
    now = time.time() if now is None else now
    engine = GossipAnalytics(capacity=config.snapshot_capacity)

    files = [*history, current]
    step = config.poll_interval_seconds
    for offset, path in enumerate(files):
        timestamp = now - (len(files) - 1 - offset) * step
        engine.ingest(load_roster(path), timestamp=timestamp)
        logger.debug(f"Replayed {path} at {timestamp:.0f}")
    return engine


def short_id(pnode_id: str, width: int = 16) -> str:
    """Shorten long node ids for tables."""
    return pnode_id if len(pnode_id) <= width else pnode_id[: width - 3] + "..."
