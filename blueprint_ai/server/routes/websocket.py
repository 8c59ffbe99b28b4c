"""
WebSocket Endpoint Handler for the Blueprint AI Server.

Protocol:
1. Client connects to /ws
2. Server sends connection confirmation (PONG with connection_id)
3. Server pushes the current graph as a FullSync blueprint_delta
4. Client sends send_message to start a turn; the server streams
   text_delta / tool_call_* / blueprint_delta / ask_user events and
   ends the turn with stream_complete
5. Client may send undo / redo / import_blueprint at any time between
   turns, cancel_request during a turn, set_provider for later turns
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from blueprint_ai.agents.orchestrator import get_orchestrator
from blueprint_ai.core.events import emit_stream_complete
from blueprint_ai.core.settings import get_settings_manager
from blueprint_ai.providers.registry import get_provider_registry
from blueprint_ai.server.models import (
    MessageType,
    WSMessage,
    create_error_message,
    create_pong_message,
)
from blueprint_ai.server.networked_bridge import NetworkedBridge
from blueprint_ai.server.serializers import (
    deserialize_blueprint,
    deserialize_send_message,
    deserialize_set_provider,
)
from blueprint_ai.server.session import Session, get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Main WebSocket endpoint for Blueprint AI clients.

    One connection is one session: its own graph, history, transcript and
    provider selection. Everything is discarded on disconnect.
    """
    await websocket.accept()
    connection_id = str(uuid.uuid4())

    session_manager = get_session_manager()
    provider_id = get_settings_manager().get_default_provider()
    session = await session_manager.create_session(connection_id, websocket, provider_id)

    bridge = NetworkedBridge(session)
    await bridge.connect()

    logger.info(f"WebSocket connected: {connection_id}")

    try:
        confirmation = create_pong_message()
        confirmation.payload["connection_id"] = connection_id
        confirmation.payload["status"] = "connected"
        confirmation.payload["provider"] = provider_id
        await websocket.send_json(confirmation.model_dump())

        await get_orchestrator().sync(session.agent)

        while True:
            try:
                data = await websocket.receive_json()

                try:
                    message = WSMessage(**data)
                except Exception as e:
                    logger.warning(f"Invalid message format: {e}")
                    await send_error(websocket, f"Invalid message format: {e}", "invalid_message")
                    continue

                session.update_activity()
                await handle_message(session, message)

            except ValueError as e:
                # Invalid JSON
                await send_error(websocket, str(e), "invalid_message")

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        await session_manager.remove_session(connection_id)
        await bridge.disconnect()
        logger.info(f"WebSocket cleanup complete: {connection_id}")


async def handle_message(session: Session, message: WSMessage):
    """
    Route incoming message to appropriate handler.
    """
    handlers = {
        MessageType.SEND_MESSAGE: handle_send_message,
        MessageType.UNDO: handle_undo,
        MessageType.REDO: handle_redo,
        MessageType.SET_PROVIDER: handle_set_provider,
        MessageType.CANCEL_REQUEST: handle_cancel_request,
        MessageType.IMPORT_BLUEPRINT: handle_import_blueprint,
        MessageType.PING: handle_ping,
    }

    handler = handlers.get(MessageType(message.type))
    if handler:
        await handler(session, message)
    else:
        await send_error(
            session.websocket,
            f"Unexpected message type from client: {message.type}",
            "unknown_message_type",
        )


async def handle_send_message(session: Session, message: WSMessage):
    """
    Handle SEND_MESSAGE - start a new turn.

    An in-flight turn is cancelled first; the new turn runs in the
    background so the receive loop stays responsive to cancel_request.
    """
    try:
        text = deserialize_send_message(message.payload)
    except ValueError as e:
        await send_error(session.websocket, str(e), "invalid_request")
        return

    handle = await get_orchestrator().submit_message(session.agent, text)
    logger.info(f"Turn {handle.turn_id} started for session {session.connection_id}")


async def handle_undo(session: Session, message: WSMessage):
    """Handle UNDO; an empty history sends nothing."""
    await get_orchestrator().undo(session.agent)


async def handle_redo(session: Session, message: WSMessage):
    """Handle REDO; an empty history sends nothing."""
    await get_orchestrator().redo(session.agent)


async def handle_set_provider(session: Session, message: WSMessage):
    """
    Handle SET_PROVIDER - select the provider for subsequent turns.
    """
    try:
        provider_id = deserialize_set_provider(message.payload)
    except ValueError as e:
        await send_error(session.websocket, str(e), "invalid_request")
        return

    providers = get_provider_registry()
    if provider_id not in providers:
        await send_error(
            session.websocket,
            f"Unknown provider '{provider_id}'. Available: {', '.join(providers.available())}",
            "unknown_provider",
        )
        return

    session.agent.provider_id = provider_id
    logger.info(f"Session {session.connection_id} switched provider to {provider_id}")


async def handle_cancel_request(session: Session, message: WSMessage):
    """
    Handle CANCEL_REQUEST - stop the in-flight turn.

    A cancelled turn emits nothing further, so the end-of-turn marker is
    sent here once the turn has wound down. With no turn running there is
    nothing to end and nothing is sent.
    """
    cancelled = await get_orchestrator().cancel_turn(session.agent, wait=True)
    if cancelled:
        logger.info(f"Turn cancelled for session {session.connection_id}")
        await emit_stream_complete(session.agent.channel)


async def handle_import_blueprint(session: Session, message: WSMessage):
    """
    Handle IMPORT_BLUEPRINT - replace the graph (undoable).
    """
    try:
        blueprint = deserialize_blueprint(message.payload)
    except ValueError as e:
        await send_error(session.websocket, str(e), "invalid_blueprint")
        return

    await get_orchestrator().import_blueprint(session.agent, blueprint)
    logger.info(
        f"Imported blueprint '{blueprint.name}' ({len(blueprint.nodes)} nodes) "
        f"into session {session.connection_id}"
    )


async def handle_ping(session: Session, message: WSMessage):
    """Handle PING - respond with PONG for keep-alive."""
    pong = create_pong_message(message.timestamp)
    await session.websocket.send_json(pong.model_dump())


async def send_error(websocket: WebSocket, message: str, code: Optional[str] = None):
    """Send a protocol-level error message to the client."""
    error_msg = create_error_message(message=message, code=code)
    await websocket.send_json(error_msg.model_dump())


__all__ = ["router"]
