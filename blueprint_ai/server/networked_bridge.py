"""
Networked Bridge for the Blueprint AI Server.

Drains a session's EventChannel and forwards each event to the WebSocket
client as a JSON envelope, in publish order. Publishing never waits on
the socket; this consumer is the only place that does.
"""

import asyncio
import logging
from typing import Optional

from starlette.websockets import WebSocketState

from blueprint_ai.core.events import Event
from blueprint_ai.server.models import WSMessage, create_event_message
from blueprint_ai.server.serializers import serialize_event_data
from blueprint_ai.server.session import Session

logger = logging.getLogger(__name__)


class NetworkedBridge:
    """
    Bridge between a session's EventChannel and its WebSocket.

    Usage:
        bridge = NetworkedBridge(session)
        await bridge.connect()
        ...
        await bridge.disconnect()
    """

    def __init__(self, session: Session):
        self.session = session
        self._consumer_task: Optional[asyncio.Task] = None

        logger.info(f"NetworkedBridge created for session {session.connection_id}")

    # ========================================================================
    # CONNECTION LIFECYCLE
    # ========================================================================

    async def connect(self) -> None:
        """Start forwarding events in a background task."""
        self._consumer_task = asyncio.create_task(self._consume_events())
        logger.info(f"NetworkedBridge connected for session {self.session.connection_id}")

    async def disconnect(self) -> None:
        """Stop the consumer task."""
        if self._consumer_task:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            self._consumer_task = None

        logger.info(f"NetworkedBridge disconnected for session {self.session.connection_id}")

    # ========================================================================
    # EVENT CONSUMPTION
    # ========================================================================

    async def _consume_events(self) -> None:
        try:
            async for event in self.session.agent.channel.iter_events():
                await self._process_event(event)
        except asyncio.CancelledError:
            logger.debug(f"Event consumer cancelled for session {self.session.connection_id}")
            raise
        except Exception as e:
            logger.error(f"Event consumer error: {e}", exc_info=True)

    async def _process_event(self, event: Event) -> None:
        """
        Forward one event to the WebSocket client.

        A failed send is logged and the consumer keeps going; a client that
        disconnected is detected by the receive loop.
        """
        try:
            ws_message = create_event_message(
                event_type=event.type.value,
                data=serialize_event_data(event.data),
            )
            await self._send_message(ws_message)
        except Exception as e:
            logger.error(f"Error forwarding event {event.type}: {e}", exc_info=True)

    # ========================================================================
    # MESSAGE SENDING
    # ========================================================================

    async def _send_message(self, message: WSMessage) -> None:
        websocket = self.session.websocket
        if websocket.client_state != WebSocketState.CONNECTED:
            logger.warning(f"WebSocket not connected, dropping message: {message.type}")
            return

        await websocket.send_json(message.model_dump())


__all__ = ["NetworkedBridge"]
