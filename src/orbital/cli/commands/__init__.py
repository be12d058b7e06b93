"""CLI command modules for orbital.

Each module exposes a ``register(subparsers)`` function that wires up
its argparse sub-commands and sets ``parser.set_defaults(func=handler)``.
"""

from . import analyze, network, serve
from .analyze import cmd_analyze, cmd_explain, cmd_time_travel
from .network import cmd_discover, cmd_watch
from .serve import cmd_serve

# All command modules with register() functions, in registration order.
COMMAND_MODULES = [
    analyze,
    network,
    serve,
]

__all__ = [
    "COMMAND_MODULES",
    "cmd_analyze",
    "cmd_discover",
    "cmd_explain",
    "cmd_serve",
    "cmd_time_travel",
    "cmd_watch",
]
