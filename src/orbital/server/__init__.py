"""HTTP API for orbital.

Usage:
    orbital serve --port 8430

    # Or with uvicorn directly
    uvicorn orbital.server.app:create_polling_app --factory --port 8430
"""

from .app import create_app, create_polling_app, run

__all__ = ["create_app", "create_polling_app", "run"]
