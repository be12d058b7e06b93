"""Tests for orbital.network.discovery - seed gossip discovery."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from orbital.core.exceptions import DiscoveryError, PRPCError
from orbital.network.discovery import GOSSIP_PEERS_METHOD, discover_pnodes, unique_seeds

NOW = 1_700_000_000.0


def _factory(answers: dict):
    """client_factory returning mock clients; exceptions in ``answers`` are raised."""
    clients: dict[str, MagicMock] = {}

    def factory(endpoint: str) -> MagicMock:
        answer = answers[endpoint]
        client = MagicMock()
        if isinstance(answer, Exception):
            client.call = AsyncMock(side_effect=answer)
        else:
            client.call = AsyncMock(return_value=answer)
        clients[endpoint] = client
        return client

    factory.clients = clients
    return factory


class TestUniqueSeeds:
    """Tests for unique_seeds()."""

    def test_strips_and_dedupes(self):
        assert unique_seeds([" http://a ", "http://b", "http://a", "", "  "]) == ["http://a", "http://b"]


class TestDiscoverPnodes:
    """Tests for discover_pnodes()."""

    async def test_no_seeds(self):
        with pytest.raises(DiscoveryError):
            await discover_pnodes(["", "  "])

    async def test_merges_peers_by_id(self):
        factory = _factory(
            {
                "http://a": [{"pnodeId": "n1", "version": "1.0"}, {"pnodeId": "n2"}],
                "http://b": [{"pnodeId": "n1", "version": "1.1", "status": "online"}, {"id": "n3"}],
            }
        )
        nodes = await discover_pnodes(["http://a", "http://b"], client_factory=factory, now=NOW)

        by_id = {n.get("pnodeId") or n.get("id"): n for n in nodes}
        assert set(by_id) == {"n1", "n2", "n3"}
        assert by_id["n1"]["version"] == "1.1"
        assert by_id["n1"]["status"] == "online"
        assert by_id["n1"]["discoveredFrom"] == "http://b"
        assert by_id["n2"]["discoveredFrom"] == "http://a"
        assert all(n["lastSeen"] == int(NOW * 1000) for n in nodes)
        factory.clients["http://a"].call.assert_awaited_once_with(GOSSIP_PEERS_METHOD)

    async def test_failed_seed_is_skipped(self, caplog):
        factory = _factory(
            {
                "http://down": PRPCError("Connection error: refused", endpoint="http://down"),
                "http://up": [{"pnodeId": "n1"}],
            }
        )
        with caplog.at_level(logging.WARNING, logger="orbital.network.discovery"):
            nodes = await discover_pnodes(["http://down", "http://up"], client_factory=factory, now=NOW)

        assert [n["pnodeId"] for n in nodes] == ["n1"]
        assert "Failed gossip from http://down" in caplog.text

    async def test_non_list_answer_is_skipped(self, caplog):
        factory = _factory({"http://odd": {"peers": []}, "http://up": [{"pnodeId": "n1"}, "junk"]})
        with caplog.at_level(logging.WARNING, logger="orbital.network.discovery"):
            nodes = await discover_pnodes(["http://odd", "http://up"], client_factory=factory, now=NOW)

        assert [n["pnodeId"] for n in nodes] == ["n1"]
        assert "Unexpected gossip shape" in caplog.text

    async def test_peers_without_id_are_deduped_by_content(self):
        factory = _factory({"http://a": [{"ip": "1.2.3.4"}], "http://b": [{"ip": "1.2.3.4"}, {"ip": "5.6.7.8"}]})
        nodes = await discover_pnodes(["http://a", "http://b"], client_factory=factory, now=NOW)
        assert sorted(n["ip"] for n in nodes) == ["1.2.3.4", "5.6.7.8"]

    async def test_all_seeds_failing_yields_empty_roster(self):
        factory = _factory({"http://a": PRPCError("HTTP 500", endpoint="http://a")})
        assert await discover_pnodes(["http://a"], client_factory=factory, now=NOW) == []

    async def test_each_seed_queried_once(self):
        factory = _factory({"http://a": []})
        await discover_pnodes(["http://a", "http://a "], client_factory=factory, now=NOW)
        assert list(factory.clients) == ["http://a"]
