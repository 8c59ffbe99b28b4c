"""
WebSocket Protocol Models for the Blueprint AI Server.

Every message in either direction uses one envelope:
    {type, id, timestamp, payload}

Protocol Overview:
- Client -> Server: send_message, undo, redo, set_provider, cancel_request,
  import_blueprint, ping
- Server -> Client: text_delta, blueprint_delta, tool_call_started,
  tool_call_completed, ask_user, error, stream_complete, pong
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# MESSAGE TYPES
# ============================================================================

class MessageType(str, Enum):
    """WebSocket message types for the Blueprint AI protocol."""

    # Client -> Server
    SEND_MESSAGE = "send_message"
    UNDO = "undo"
    REDO = "redo"
    SET_PROVIDER = "set_provider"
    CANCEL_REQUEST = "cancel_request"
    IMPORT_BLUEPRINT = "import_blueprint"
    PING = "ping"

    # Server -> Client
    TEXT_DELTA = "text_delta"
    BLUEPRINT_DELTA = "blueprint_delta"
    TOOL_CALL_STARTED = "tool_call_started"
    TOOL_CALL_COMPLETED = "tool_call_completed"
    ASK_USER = "ask_user"
    ERROR = "error"
    STREAM_COMPLETE = "stream_complete"
    PONG = "pong"


# ============================================================================
# BASE MESSAGE ENVELOPE
# ============================================================================

class WSMessage(BaseModel):
    """
    Base WebSocket message envelope.

    Attributes:
        type: Message type (from MessageType enum).
        id: Unique message ID for correlation/tracking.
        timestamp: ISO 8601 timestamp of message creation.
        payload: Message-type-specific payload data.
    """

    model_config = ConfigDict(use_enum_values=True)

    type: MessageType
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    payload: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# CLIENT -> SERVER PAYLOADS
# ============================================================================

class SendMessagePayload(BaseModel):
    """Payload for SEND_MESSAGE: the user's chat message."""

    message: str = Field(..., min_length=1, description="User's instruction")


class SetProviderPayload(BaseModel):
    """Payload for SET_PROVIDER: provider id used from the next turn on."""

    provider: str = Field(..., min_length=1, description="Provider id (openai, anthropic, ollama)")


class ImportBlueprintPayload(BaseModel):
    """
    Payload for IMPORT_BLUEPRINT.

    The graph is validated separately against the Blueprint model so the
    error can name the offending field.
    """

    blueprint: Dict[str, Any] = Field(..., description="Blueprint graph in wire (camelCase) form")


# ============================================================================
# SERVER -> CLIENT PAYLOADS
# ============================================================================

class ErrorPayload(BaseModel):
    """
    Payload for ERROR message.

    Attributes:
        message: Human-readable error message.
        code: Optional error code for protocol-level errors
            (e.g., "invalid_message", "unknown_provider").
    """

    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Error code")


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def create_event_message(event_type: str, data: Dict[str, Any]) -> WSMessage:
    """Wrap a channel event (type value + data) in an envelope."""
    return WSMessage(type=MessageType(event_type), payload=data)


def create_error_message(message: str, code: Optional[str] = None) -> WSMessage:
    """Create an ERROR message."""
    return WSMessage(
        type=MessageType.ERROR,
        payload=ErrorPayload(message=message, code=code).model_dump(exclude_none=True),
    )


def create_pong_message(timestamp: Optional[str] = None) -> WSMessage:
    """Create a PONG message in response to PING."""
    return WSMessage(
        type=MessageType.PONG,
        payload={"timestamp": timestamp or datetime.now().isoformat()},
    )


__all__ = [
    "MessageType",
    "WSMessage",
    "SendMessagePayload",
    "SetProviderPayload",
    "ImportBlueprintPayload",
    "ErrorPayload",
    "create_event_message",
    "create_error_message",
    "create_pong_message",
]
