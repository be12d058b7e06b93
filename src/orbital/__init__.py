# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Orbital - gossip analytics for a peer-to-peer storage network.

Orbital ingests periodic snapshots of the pNode roster and derives
advisory signals for operators:

  Roster fetch (external)
    → Snapshot history (bounded, in-memory)
    → Health / reputation per node
    → Region aggregates, anomaly tags, partition verdict
    → Explanations, predictions and time-travel views on demand

The engine never talks to the network and never mutates the upstream
roster. Fetching, discovery and serving live in ``orbital.network``,
``orbital.server`` and ``orbital.cli``.

CLI entry point: ``orbital``
"""

__version__ = "0.4.0"

from . import (
    core as core,
)
