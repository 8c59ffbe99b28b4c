"""
Blueprint AI WebSocket Server Package.

FastAPI + WebSocket shell around the agent core: one WebSocket per client
session, events pushed as JSON envelopes.

Usage:
    # Start server
    python -m blueprint_ai.server.main

    # Or programmatically
    from blueprint_ai.server.main import run_server
    run_server(host="127.0.0.1", port=8765)
"""

from blueprint_ai.server.models import (
    MessageType,
    WSMessage,
    SendMessagePayload,
    SetProviderPayload,
    ImportBlueprintPayload,
    ErrorPayload,
)
from blueprint_ai.server.session import (
    Session,
    SessionManager,
    get_session_manager,
)
from blueprint_ai.server.networked_bridge import NetworkedBridge
from blueprint_ai.server.serializers import serialize_event_data

__all__ = [
    # Models
    "MessageType",
    "WSMessage",
    "SendMessagePayload",
    "SetProviderPayload",
    "ImportBlueprintPayload",
    "ErrorPayload",
    # Session
    "Session",
    "SessionManager",
    "get_session_manager",
    # Bridge
    "NetworkedBridge",
    # Serializers
    "serialize_event_data",
]
