"""Tests for the HTTP and WebSocket applications."""

import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from monitor_bridge.api import create_live_app, create_stats_app
from monitor_bridge.fanout import LiveFanoutServer
from monitor_bridge.models import RawMessage
from monitor_bridge.stats import StatsAggregator, UptimeProbe


@pytest.fixture
def application(fake_bus, registry):
    """Started-application stand-in backed by the in-memory bus."""
    return SimpleNamespace(
        bus=fake_bus,
        aggregator=StatsAggregator(fake_bus, registry),
        uptime_probe=UptimeProbe(""),
        fanout=LiveFanoutServer(fake_bus),
    )


@pytest.fixture
def stats_client(application):
    return TestClient(create_stats_app(application))


class TestStatsEndpoint:
    """Tests for GET /stats."""

    def test_scenario(self, stats_client, fake_bus):
        fake_bus.counts = {"ns.events.viola.tool_call": 5, "ns.events.main.message_in": 10}

        response = stats_client.get("/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 15
        assert body["byCategory"] == {"tool": 5, "message": 10}
        assert body["bySubCategory"] == {"tool_call": 5, "message_in": 10}
        assert body["byAgent"]["viola"]["messageCount"] == 5
        assert body["byAgent"]["viola"]["toolCallCount"] == 5
        assert body["byAgent"]["main"]["inCount"] == 10
        assert body["degraded"] is False

    def test_agent_fields_camel_case(self, stats_client):
        """Test that nested agent entries are serialized in camelCase."""
        vera = stats_client.get("/stats").json()["byAgent"]["vera"]

        assert vera == {
            "id": "vera",
            "displayName": "Vera",
            "icon": "🔒",
            "streamName": "ns-events",
            "subjectPrefix": "ns.events.vera.",
            "messageCount": 0,
            "inCount": 0,
            "outCount": 0,
            "toolCallCount": 0,
            "lifecycleCount": 0,
        }

    def test_uptime_falls_back_to_bridge(self, stats_client):
        uptime = stats_client.get("/stats").json()["uptime"]

        assert uptime["source"] == "bridge"
        assert uptime["formatted"].endswith(" (bridge)")
        assert uptime["seconds"] >= 0

    def test_live_counters(self, stats_client, application):
        """Test that session counters ride along with the durable snapshot."""
        application.fanout.counters.total = 3
        application.fanout.counters.dropped = 1

        live = stats_client.get("/stats").json()["live"]

        assert live == {"total": 3, "byCategory": {}, "byAgent": {}, "dropped": 1}

    def test_degraded_is_still_ok(self, stats_client, fake_bus, query_error):
        """Test that a failed count query still answers 200 with zeros."""
        fake_bus.counts = {"ns.events.main.message_in": 10}
        fake_bus.query_error = query_error

        response = stats_client.get("/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["degraded"] is True
        assert body["total"] == 0
        assert body["byAgent"]["main"]["messageCount"] == 0

    def test_cors(self, stats_client):
        response = stats_client.get("/stats", headers={"Origin": "http://display.local"})

        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.parametrize(
        "path, status", [("/stats", 200), ("/health", 200), ("/nope", 404)]
    )
    def test_cors_without_origin(self, stats_client, path, status):
        """Test that plain requests also get the permissive header."""
        response = stats_client.get(path)

        assert response.status_code == status
        assert response.headers["access-control-allow-origin"] == "*"


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health(self, stats_client):
        response = stats_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "busConnected": True, "clients": 0}

    def test_bus_down(self, stats_client, fake_bus):
        fake_bus.is_connected = False

        assert stats_client.get("/health").json()["busConnected"] is False


class TestNotFound:
    """Tests for unknown paths."""

    @pytest.mark.parametrize("path", ["/", "/nope", "/docs", "/openapi.json"])
    def test_unknown_path(self, stats_client, path):
        response = stats_client.get(path)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_wrong_method(self, stats_client):
        response = stats_client.post("/stats")

        assert response.status_code == 405
        assert "error" in response.json()


class TestLiveEndpoint:
    """Tests for the WebSocket stream."""

    def test_subscribe_and_receive(self, application, fake_bus):
        fake_bus.backlog = [
            RawMessage(
                "ns.events.vera.tool_call",
                json.dumps({"session": "agent:vera:abc", "tool": "grep"}).encode(),
            ),
            RawMessage("other.subject", b"{}"),
        ]
        client = TestClient(create_live_app(application))

        with client.websocket_connect("/") as ws:
            ws.send_text(json.dumps({"action": "subscribe", "pattern": "ns.events.>"}))
            frame = ws.receive_json()

        assert frame["type"] == "event"
        assert frame["subject"] == "ns.events.vera.tool_call"
        assert frame["agent"] == "vera"
        assert frame["category"] == "tool"
        assert frame["data"] == {"session": "agent:vera:abc", "tool": "grep"}
        assert isinstance(frame["timestamp"], int)
        assert application.fanout.counters.total == 1
