"""
Geolocation of discovered pNodes.

Gossip peers carry a network address but no coordinates, so a roster
built by discovery would put every node in region ``0:0``. One batch
lookup against an ip-api.com compatible endpoint resolves each distinct
host and adds ``geoLat`` / ``geoLon`` (which roster normalization reads
as latitude / longitude) plus city and country labels.

Enrichment is best effort: if the lookup fails the peers are returned
unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from typing import Any

import aiohttp

from ..core.exceptions import FetchError

logger = logging.getLogger(__name__)

DEFAULT_GEO_LOOKUP_URL = "https://ip-api.com/batch"
GEO_FIELDS = "status,message,query,country,countryCode,city,lat,lon"
# ip-api.com rejects batches larger than this
GEO_BATCH_LIMIT = 100

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def extract_host(peer: dict[str, Any]) -> str | None:
    """
    Host part of a peer's gossip address.

    Handles ``host:port``, ``[ipv6]:port``, a bare host and addresses with
    an http(s) scheme or a path.
    """
    addr = peer.get("gossipAddr") or peer.get("addr")
    if not isinstance(addr, str) or not addr:
        return None

    host_port = _SCHEME.sub("", addr.strip()).split("/")[0]
    if host_port.startswith("["):
        end = host_port.find("]")
        return host_port[1:end] if end > 1 else None
    return host_port.split(":")[0] or None


async def lookup_geo(
    hosts: Sequence[str],
    url: str = DEFAULT_GEO_LOOKUP_URL,
    timeout: float = 10.0,
) -> dict[str, dict[str, Any]]:
    """
    Resolve hosts through the batch endpoint.

    Returns:
        Lookup rows keyed by host, in the order the endpoint answered

    Raises:
        FetchError: On transport failure, timeout, non-200 status or a
            body that is not a JSON list
    """
    rows_by_host: dict[str, dict[str, Any]] = {}
    try:
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            for start in range(0, len(hosts), GEO_BATCH_LIMIT):
                batch = list(hosts[start : start + GEO_BATCH_LIMIT])
                async with session.post(url, params={"fields": GEO_FIELDS}, json=batch) as resp:
                    if resp.status != 200:
                        raise FetchError(f"Geo lookup returned HTTP {resp.status}", url=url, status=resp.status)
                    try:
                        rows = await resp.json(content_type=None)
                    except ValueError as e:
                        raise FetchError("Geo lookup returned invalid JSON", url=url) from e

                if not isinstance(rows, list):
                    raise FetchError("Unexpected geo lookup response", url=url)
                for host, row in zip(batch, rows):
                    if isinstance(row, dict):
                        rows_by_host[host] = row
    except aiohttp.ClientError as e:
        raise FetchError(f"Connection error: {e}", url=url) from e
    except asyncio.TimeoutError as e:
        raise FetchError("Request timeout", url=url) from e

    return rows_by_host


def _apply_geo(peer: dict[str, Any], geo: dict[str, Any]) -> dict[str, Any]:
    label = ", ".join(part for part in (geo.get("city"), geo.get("countryCode")) if part)
    return {
        **peer,
        "geoIp": geo.get("query"),
        "geoCity": geo.get("city"),
        "geoCountry": geo.get("country"),
        "geoCountryCode": geo.get("countryCode"),
        "geoLat": geo.get("lat"),
        "geoLon": geo.get("lon"),
        "geoLabel": label,
    }


async def enrich_with_geo(
    peers: Sequence[dict[str, Any]],
    url: str = DEFAULT_GEO_LOOKUP_URL,
    timeout: float = 10.0,
) -> list[dict[str, Any]]:
    """
    Add geolocation fields to every peer whose host could be resolved.

    Peers without an address, or whose lookup row is not ``success``,
    pass through untouched. A failed lookup is logged and skipped.
    """
    hosts = list(dict.fromkeys(h for h in (extract_host(p) for p in peers) if h))
    if not hosts:
        return list(peers)

    try:
        geo_by_host = await lookup_geo(hosts, url=url, timeout=timeout)
    except FetchError as e:
        logger.warning(f"Geo lookup failed, skipping enrichment: {e.message}")
        return list(peers)

    enriched: list[dict[str, Any]] = []
    located = 0
    for peer in peers:
        host = extract_host(peer)
        geo = geo_by_host.get(host) if host else None
        if geo is None or geo.get("status") != "success":
            enriched.append(peer)
            continue
        enriched.append(_apply_geo(peer, geo))
        located += 1

    logger.info(f"Geolocated {located} of {len(peers)} pNodes via {len(hosts)} distinct hosts")
    return enriched
