"""
pRPC client - JSON-RPC 2.0 over HTTP POST to a pNode.

Request ids come from an id source handed to the client (by default a
per-client counter), so there is no process-wide request state.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Iterator
from typing import Any

import aiohttp

from ..core.exceptions import PRPCError

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
DEFAULT_TIMEOUT_SECONDS = 10.0


class PRPCClient:
    """
    Client for one pNode pRPC endpoint.

    Example:
        client = PRPCClient("http://127.0.0.1:8899")
        peers = await client.call("pnode.gossipPeers")
    """

    def __init__(
        self,
        endpoint: str,
        id_source: Iterator[int] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._ids = id_source if id_source is not None else itertools.count(1)

    def build_request(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": next(self._ids),
            "method": method,
            "params": params or {},
        }

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """
        Call a pRPC method and return its ``result`` member.

        Raises:
            PRPCError: On transport failure, timeout, non-200 status, or an
                ``error`` member in the response
        """
        payload = self.build_request(method, params)

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    self.endpoint,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                ) as resp:
                    if resp.status != 200:
                        raise PRPCError(
                            f"HTTP {resp.status} from {self.endpoint}",
                            endpoint=self.endpoint,
                        )
                    data = await resp.json()
        except aiohttp.ClientError as e:
            raise PRPCError(f"Connection error: {e}", endpoint=self.endpoint) from e
        except asyncio.TimeoutError as e:
            raise PRPCError("Request timeout", endpoint=self.endpoint) from e

        if not isinstance(data, dict):
            raise PRPCError("Malformed pRPC response", endpoint=self.endpoint)

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                message = error.get("message") or str(error)
                code = error.get("code")
            else:
                message, code = str(error), None
            raise PRPCError(
                f"pRPC error from {self.endpoint}: {message}",
                endpoint=self.endpoint,
                code=code if isinstance(code, int) else None,
            )

        logger.debug(f"pRPC {method} on {self.endpoint} succeeded (id={payload['id']})")
        return data.get("result")
