# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Custom exception hierarchy for orbital.

The analytics core itself never raises: scoring and detection are total
functions over in-memory rosters. These exceptions belong to the edges
(roster fetching, pRPC calls, discovery, lookups by node id) so callers
can report failures there and keep the last good state.
"""

from __future__ import annotations

from typing import Any


class OrbitalException(Exception):  # noqa: N818
    """Base exception for all orbital errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(OrbitalException):
    """Exception for resource not found errors.

    Raised when a node id is not part of the current roster.
    """

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class FetchError(OrbitalException):
    """Roster fetch failed (transport error, timeout or non-200 status)."""

    def __init__(self, message: str, url: str, status: int | None = None):
        details: dict[str, Any] = {"url": url}
        if status is not None:
            details["status"] = status
        super().__init__(message, details)
        self.url = url
        self.status = status


class RosterFormatError(OrbitalException):
    """Roster payload had an unexpected shape."""

    pass


class PRPCError(OrbitalException):
    """A pRPC (JSON-RPC 2.0) call failed or returned an error member."""

    def __init__(self, message: str, endpoint: str, code: int | None = None):
        details: dict[str, Any] = {"endpoint": endpoint}
        if code is not None:
            details["code"] = code
        super().__init__(message, details)
        self.endpoint = endpoint
        self.code = code


class DiscoveryError(OrbitalException):
    """Discovery could not run (e.g. no usable seed endpoints)."""

    pass
