# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Output formatting for CLI commands.

Commands build a JSON-friendly dict plus (optionally) a pre-formatted
text rendering; this module decides which one to print.
"""

from __future__ import annotations

import json
import sys
from typing import Any


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Print a command result.

    With ``as_json`` the full dict is pretty-printed. Otherwise the
    "formatted" key is printed when present, falling back to JSON.
    """
    if as_json or "formatted" not in data:
        payload = {k: v for k, v in data.items() if k != "formatted"}
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(data["formatted"])


def output_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


def format_percent(value: float) -> str:
    return f"{value:.0%}"
