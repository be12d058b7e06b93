"""
Roster polling loop.

Fetches the roster endpoint on a fixed interval and feeds each result to
the analytics engine. The loop is an asyncio task with an owned stop
event; a failed fetch is logged and remembered, and the engine simply
keeps serving the last roster it ingested.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from ..core.engine import AnalyticsState, GossipAnalytics
from ..core.exceptions import FetchError, OrbitalException, RosterFormatError
from ..core.logging import poll_cycle

logger = logging.getLogger(__name__)


def extract_nodes(payload: Any) -> list[Any]:
    """Accept either a bare list or ``{"nodes": [...]}``."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("nodes"), list):
        return payload["nodes"]
    raise RosterFormatError("Unexpected roster response shape")


async def fetch_roster(url: str, timeout: float = 10.0) -> list[Any]:
    """
    Fetch raw roster records from the upstream API.

    Raises:
        FetchError: On transport failure, timeout or non-200 status
        RosterFormatError: If the body is not JSON or not a roster
    """
    try:
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url) as resp:
                if resp.status != 200:
                    raise FetchError(f"Failed to fetch {url}: {resp.status}", url=url, status=resp.status)
                try:
                    payload = await resp.json(content_type=None)
                except ValueError as e:
                    raise RosterFormatError(
                        f"Roster response from {url} is not valid JSON",
                        details={"url": url},
                    ) from e
    except aiohttp.ClientError as e:
        raise FetchError(f"Connection error: {e}", url=url) from e
    except asyncio.TimeoutError as e:
        raise FetchError("Request timeout", url=url) from e

    return extract_nodes(payload)


class RosterPoller:
    """
    Periodically fetches the roster and ingests it.

    Implements:
    - One fetch + ingest per interval, each logged under its cycle number
    - Error tracking without stopping the loop
    - Clean shutdown through an owned stop event
    """

    def __init__(
        self,
        engine: GossipAnalytics,
        url: str,
        interval: float = 30.0,
        timeout: float = 10.0,
        on_update: Callable[[AnalyticsState], None] | None = None,
    ):
        self.engine = engine
        self.url = url
        self.interval = interval
        self.timeout = timeout
        self.on_update = on_update
        self.last_error: str | None = None
        self.last_success: float | None = None
        self.cycles = 0
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> AnalyticsState | None:
        """Run one fetch/ingest cycle. Returns the new state, or None on failure."""
        self.cycles += 1
        with poll_cycle(self.cycles, self.url):
            try:
                raw = await fetch_roster(self.url, timeout=self.timeout)
            except OrbitalException as e:
                self.last_error = e.message
                logger.warning(f"Roster fetch failed: {e.message}", extra={"extra_data": e.to_dict()})
                return None

            state = self.engine.ingest(raw, timestamp=time.time())
            self.last_error = None
            self.last_success = state.updated_at
            logger.info(
                f"Roster updated: {state.stats.total} nodes, "
                f"{state.stats.online} online, health {state.network_health:.0%}",
                extra={
                    "extra_data": {
                        "nodes": state.stats.total,
                        "online": state.stats.online,
                        "offline": state.stats.offline,
                        "network_health": round(state.network_health, 4),
                        "partition_suspected": state.failures.partition_suspected,
                    }
                },
            )
            if self.on_update is not None:
                self.on_update(state)
            return state

    async def run(self, max_cycles: int | None = None) -> None:
        """Poll until stopped (or until ``max_cycles`` cycles have run)."""
        runs = 0
        while not self._stop.is_set():
            await self.poll_once()
            runs += 1
            if max_cycles is not None and runs >= max_cycles:
                break
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    async def start(self) -> None:
        """Start the polling task."""
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self.run())
        logger.info(f"Roster poller started ({self.url}, every {self.interval:.0f}s)")

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it."""
        self._stop.set()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Roster poller stopped")
