"""Tests for orbital.network.geo - geolocation of discovered peers."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from orbital.core.exceptions import FetchError
from orbital.core.models import normalize_node
from orbital.core.regions import region_key
from orbital.network.geo import (
    GEO_BATCH_LIMIT,
    GEO_FIELDS,
    enrich_with_geo,
    extract_host,
    lookup_geo,
)

GEO_URL = "http://geo.test/batch"

BERLIN = {
    "status": "success",
    "query": "203.0.113.7",
    "country": "Germany",
    "countryCode": "DE",
    "city": "Berlin",
    "lat": 52.52,
    "lon": 13.40,
}


def _mock_session(responses=None, post_side_effect=None):
    """Session whose post() yields ``responses`` one per call."""
    contexts = []
    for response in responses or []:
        ctx = MagicMock()
        ctx.__aenter__ = AsyncMock(return_value=response)
        ctx.__aexit__ = AsyncMock(return_value=False)
        contexts.append(ctx)

    session = MagicMock()
    session.post = MagicMock(side_effect=post_side_effect or contexts)
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return session


def _response(status=200, body=None):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=body)
    return response


class TestExtractHost:
    """Tests for extract_host()."""

    @pytest.mark.parametrize(
        "addr, host",
        [
            ("203.0.113.7:9001", "203.0.113.7"),
            ("203.0.113.7", "203.0.113.7"),
            ("[2001:db8::1]:9001", "2001:db8::1"),
            ("http://node.example:6000/rpc", "node.example"),
            ("HTTPS://node.example", "node.example"),
        ],
    )
    def test_address_forms(self, addr, host):
        assert extract_host({"gossipAddr": addr}) == host

    def test_falls_back_to_addr(self):
        assert extract_host({"addr": "198.51.100.2:9001"}) == "198.51.100.2"

    @pytest.mark.parametrize("peer", [{}, {"gossipAddr": ""}, {"gossipAddr": "[]:9001"}, {"addr": 42}])
    def test_unusable_addresses(self, peer):
        assert extract_host(peer) is None


class TestLookupGeo:
    """Tests for lookup_geo()."""

    async def test_batch_post(self):
        session = _mock_session([_response(body=[BERLIN])])
        with patch("orbital.network.geo.aiohttp.ClientSession", return_value=session):
            rows = await lookup_geo(["203.0.113.7"], url=GEO_URL)

        assert rows == {"203.0.113.7": BERLIN}
        session.post.assert_called_once_with(GEO_URL, params={"fields": GEO_FIELDS}, json=["203.0.113.7"])

    async def test_large_host_lists_are_split(self):
        hosts = [f"10.0.{i // 256}.{i % 256}" for i in range(GEO_BATCH_LIMIT + 5)]
        first = _response(body=[{"status": "success"}] * GEO_BATCH_LIMIT)
        second = _response(body=[{"status": "success"}] * 5)
        session = _mock_session([first, second])
        with patch("orbital.network.geo.aiohttp.ClientSession", return_value=session):
            rows = await lookup_geo(hosts, url=GEO_URL)

        assert session.post.call_count == 2
        assert len(session.post.call_args_list[1].kwargs["json"]) == 5
        assert len(rows) == len(hosts)

    async def test_non_200(self):
        with patch("orbital.network.geo.aiohttp.ClientSession", return_value=_mock_session([_response(status=429)])):
            with pytest.raises(FetchError) as exc_info:
                await lookup_geo(["203.0.113.7"], url=GEO_URL)
        assert exc_info.value.status == 429

    async def test_non_list_body(self):
        body = {"status": "fail", "message": "invalid query"}
        with patch("orbital.network.geo.aiohttp.ClientSession", return_value=_mock_session([_response(body=body)])):
            with pytest.raises(FetchError, match="Unexpected geo lookup response"):
                await lookup_geo(["203.0.113.7"], url=GEO_URL)

    @pytest.mark.parametrize(
        "error, message",
        [(aiohttp.ClientConnectionError("refused"), "Connection error"), (asyncio.TimeoutError(), "timeout")],
    )
    async def test_transport_errors(self, error, message):
        session = _mock_session(post_side_effect=error)
        with patch("orbital.network.geo.aiohttp.ClientSession", return_value=session):
            with pytest.raises(FetchError, match=message):
                await lookup_geo(["203.0.113.7"], url=GEO_URL)


class TestEnrichWithGeo:
    """Tests for enrich_with_geo()."""

    async def test_adds_coordinates_and_labels(self):
        peers = [
            {"pnodeId": "a", "gossipAddr": "203.0.113.7:9001"},
            {"pnodeId": "b", "gossipAddr": "203.0.113.7:9002"},
        ]
        lookup = AsyncMock(return_value={"203.0.113.7": BERLIN})
        with patch("orbital.network.geo.lookup_geo", lookup):
            enriched = await enrich_with_geo(peers, url=GEO_URL)

        assert lookup.await_args.args[0] == ["203.0.113.7"]
        assert enriched[0]["geoLat"] == 52.52
        assert enriched[0]["geoLon"] == 13.40
        assert enriched[0]["geoLabel"] == "Berlin, DE"
        assert enriched[0]["geoCountry"] == "Germany"
        assert enriched[1]["pnodeId"] == "b"
        assert enriched[1]["geoIp"] == "203.0.113.7"

    async def test_enriched_peer_lands_in_its_region(self):
        lookup = AsyncMock(return_value={"203.0.113.7": BERLIN})
        with patch("orbital.network.geo.lookup_geo", lookup):
            [peer] = await enrich_with_geo([{"pnodeId": "a", "gossipAddr": "203.0.113.7:9001"}])

        assert region_key(normalize_node(peer)) == "50:10"

    async def test_failed_rows_pass_through(self):
        peers = [
            {"pnodeId": "a", "gossipAddr": "10.0.0.1:9001"},
            {"pnodeId": "b"},
        ]
        lookup = AsyncMock(return_value={"10.0.0.1": {"status": "fail", "message": "private range"}})
        with patch("orbital.network.geo.lookup_geo", lookup):
            assert await enrich_with_geo(peers) == peers

    async def test_no_addresses_skips_lookup(self):
        lookup = AsyncMock()
        with patch("orbital.network.geo.lookup_geo", lookup):
            assert await enrich_with_geo([{"pnodeId": "a"}]) == [{"pnodeId": "a"}]
        lookup.assert_not_awaited()

    async def test_lookup_failure_returns_peers_unchanged(self, caplog):
        peers = [{"pnodeId": "a", "gossipAddr": "203.0.113.7:9001"}]
        failing = AsyncMock(side_effect=FetchError("Geo lookup returned HTTP 503", url=GEO_URL, status=503))
        with patch("orbital.network.geo.lookup_geo", failing):
            with caplog.at_level(logging.WARNING, logger="orbital.network.geo"):
                assert await enrich_with_geo(peers, url=GEO_URL) == peers
        assert "skipping enrichment" in caplog.text
