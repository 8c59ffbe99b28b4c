"""
Tests for the WebSocket endpoint and health routes.

Uses FastAPI's TestClient as a context manager so the lifespan runs.
The chat round trip uses the scripted FakeProvider installed as the
default provider.
"""

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from blueprint_ai import __version__
from blueprint_ai.core.settings import get_settings_manager
from blueprint_ai.providers import registry as provider_registry_module
from blueprint_ai.providers.base import StreamDone, TextDelta
from blueprint_ai.providers.registry import ProviderRegistry
from blueprint_ai.server.main import app

IMPORTED = {
    "name": "Imported",
    "nodes": [
        {
            "title": "Event Tick",
            "category": "Events",
            "style": "Event",
            "outputPins": [{"name": "Exec", "type": "Exec", "direction": "Output"}],
            "positionX": 10,
            "positionY": 20,
        }
    ],
}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fake_default_provider(fake_provider_class):
    """Install a scripted provider as the global default."""
    provider = fake_provider_class([[TextDelta("Hello "), TextDelta("there"), StreamDone("end_turn")]])
    registry = ProviderRegistry(settings=get_settings_manager())
    registry.set_instance("fake", provider)
    provider_registry_module._provider_registry = registry
    get_settings_manager().set_agent_option("default_provider", "fake")
    return provider


@contextmanager
def connected(client):
    """Open a socket and consume the handshake (pong + FullSync)."""
    with client.websocket_connect("/ws") as socket:
        socket.receive_json()
        socket.receive_json()
        yield socket


class TestHandshake:
    """Tests for connection setup."""

    def test_confirmation_then_full_sync(self, client):
        """Test the connection pong is followed by the initial graph."""
        with client.websocket_connect("/ws") as ws:
            hello = ws.receive_json()
            sync = ws.receive_json()

        assert hello["type"] == "pong"
        assert hello["payload"]["status"] == "connected"
        assert hello["payload"]["provider"] == "anthropic"
        assert hello["payload"]["connection_id"]
        assert sync["type"] == "blueprint_delta"
        delta = sync["payload"]["delta"]
        assert delta["type"] == "FullSync"
        assert delta["version"] == 0
        assert delta["fullState"]["nodes"] == []

    def test_each_connection_gets_its_own_session(self, client):
        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            first_id = first.receive_json()["payload"]["connection_id"]
            second_id = second.receive_json()["payload"]["connection_id"]

        assert first_id != second_id


class TestProtocol:
    """Tests for request handling."""

    def test_ping(self, client):
        with connected(client) as socket:
            socket.send_json({"type": "ping", "timestamp": "2024-01-15T10:30:00"})
            pong = socket.receive_json()

        assert pong["type"] == "pong"
        assert pong["payload"]["timestamp"] == "2024-01-15T10:30:00"

    def test_undo_on_empty_history_sends_nothing(self, client):
        """Test undo without history is silent: the next message is the pong."""
        with connected(client) as socket:
            socket.send_json({"type": "undo"})
            socket.send_json({"type": "redo"})
            socket.send_json({"type": "ping"})
            reply = socket.receive_json()

        assert reply["type"] == "pong"

    def test_import_then_undo(self, client):
        """Test import pushes a FullSync and undo restores the empty graph."""
        with connected(client) as socket:
            socket.send_json({"type": "import_blueprint", "payload": {"blueprint": IMPORTED}})
            imported = socket.receive_json()
            socket.send_json({"type": "undo"})
            undone = socket.receive_json()

        state = imported["payload"]["delta"]["fullState"]
        assert state["name"] == "Imported"
        assert state["nodes"][0]["title"] == "Event Tick"
        assert state["nodes"][0]["positionX"] == 10
        assert imported["payload"]["delta"]["version"] == 1
        assert undone["payload"]["delta"]["fullState"]["nodes"] == []
        assert undone["payload"]["delta"]["version"] == 2

    def test_invalid_blueprint(self, client):
        with connected(client) as socket:
            socket.send_json({"type": "import_blueprint", "payload": {"blueprint": {"nodes": "nope"}}})
            error = socket.receive_json()

        assert error["type"] == "error"
        assert error["payload"]["code"] == "invalid_blueprint"
        assert error["payload"]["message"].startswith("Invalid blueprint: nodes")

    def test_unknown_provider(self, client):
        with connected(client) as socket:
            socket.send_json({"type": "set_provider", "payload": {"provider": "gemini"}})
            error = socket.receive_json()

        assert error["type"] == "error"
        assert error["payload"]["code"] == "unknown_provider"
        assert "gemini" in error["payload"]["message"]

    def test_known_provider_is_silent(self, client):
        with connected(client) as socket:
            socket.send_json({"type": "set_provider", "payload": {"provider": "ollama"}})
            socket.send_json({"type": "ping"})
            reply = socket.receive_json()

        assert reply["type"] == "pong"

    def test_blank_message_rejected(self, client):
        with connected(client) as socket:
            socket.send_json({"type": "send_message", "payload": {"message": "   "}})
            error = socket.receive_json()

        assert error["payload"]["code"] == "invalid_request"

    def test_malformed_messages(self, client):
        """Test bad JSON, unknown types and server-only types."""
        with connected(client) as socket:
            socket.send_text("{oops")
            bad_json = socket.receive_json()
            socket.send_json({"type": "bogus"})
            bad_type = socket.receive_json()
            socket.send_json({"type": "text_delta"})
            wrong_direction = socket.receive_json()

        assert bad_json["payload"]["code"] == "invalid_message"
        assert bad_type["payload"]["code"] == "invalid_message"
        assert wrong_direction["payload"]["code"] == "unknown_message_type"

    def test_cancel_without_turn_sends_nothing(self, client):
        """Test cancel with no turn running ends nothing: the next message is the pong."""
        with connected(client) as socket:
            socket.send_json({"type": "cancel_request"})
            socket.send_json({"type": "ping"})
            reply = socket.receive_json()

        assert reply["type"] == "pong"


class TestChatRoundTrip:
    """Tests for a full turn over the socket."""

    def test_text_turn(self, fake_default_provider, client):
        """Test text deltas stream in order and the turn ends with stream_complete."""
        with connected(client) as socket:
            socket.send_json({"type": "send_message", "payload": {"message": "Say hello"}})
            received = [socket.receive_json() for _ in range(3)]

        assert [m["type"] for m in received] == ["text_delta", "text_delta", "stream_complete"]
        assert "".join(m["payload"]["text"] for m in received[:2]) == "Hello there"
        assert fake_default_provider.requests[0][0].content == "Say hello"


class TestHealthRoutes:
    """Tests for /api/health and /api/status."""

    def test_health(self, client):
        body = client.get("/api/health").json()

        assert body["status"] == "healthy"
        assert body["version"] == __version__

    def test_status(self, client):
        body = client.get("/api/status").json()

        assert body["active_sessions"] == 0
        assert body["active_turns"] == 0
        assert body["default_provider"] == "anthropic"
        assert body["providers"] == ["anthropic", "ollama", "openai"]
        assert body["uptime_seconds"] >= 0

    def test_root(self, client):
        assert client.get("/").json()["websocket_url"] == "/ws"
