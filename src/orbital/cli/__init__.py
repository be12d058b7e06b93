# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""orbital CLI - roster analysis, live watching, discovery and serving."""

from .main import app, main

__all__ = ["main", "app"]
