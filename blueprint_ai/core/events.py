"""
Per-session push channel for Blueprint AI.

Carries everything the agent streams to a connected client:
- Text deltas from the model
- Graph deltas (serialized at publish time)
- Tool call lifecycle (started / completed)
- ask_user questions, errors and the end-of-turn marker

Publishing never blocks on the client: events are enqueued with
put_nowait and drained in order by a consumer (the NetworkedBridge).
Every turn-scoped event carries the id of the turn that produced it;
the channel drops events whose turn is no longer the active one.
"""

import asyncio
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum
import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)


# ============================================================================
# EVENT TYPES
# ============================================================================

class EventType(str, Enum):
    """Event types pushed to the client."""

    TEXT_DELTA = "text_delta"
    BLUEPRINT_DELTA = "blueprint_delta"
    TOOL_CALL_STARTED = "tool_call_started"
    TOOL_CALL_COMPLETED = "tool_call_completed"
    ASK_USER = "ask_user"
    ERROR = "error"
    STREAM_COMPLETE = "stream_complete"


# ============================================================================
# EVENT MODEL
# ============================================================================

class Event:
    """
    Generic event container.

    Attributes:
        type: Event type (from EventType enum).
        data: Event payload (JSON-safe dict).
        turn_id: Id of the turn that produced the event, or None for
            session-scoped events (undo/redo, initial sync).
        timestamp: ISO timestamp of event creation.
    """

    def __init__(
        self,
        event_type: EventType,
        data: Optional[Dict[str, Any]] = None,
        turn_id: Optional[str] = None,
    ):
        self.type = event_type
        self.data = data or {}
        self.turn_id = turn_id
        self.timestamp = datetime.now().isoformat()

    def __repr__(self) -> str:
        return f"Event(type={self.type}, turn_id={self.turn_id}, data={self.data})"


# ============================================================================
# EVENT CHANNEL
# ============================================================================

class EventChannel:
    """
    Ordered, non-blocking push channel for a single session.

    Example:
        >>> channel = EventChannel()
        >>> channel.activate_turn("turn-1")
        >>> await channel.publish(Event(EventType.TEXT_DELTA, {"text": "Hi"}, "turn-1"))
        True
        >>> async for event in channel.iter_events():
        ...     print(event.type)
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._active_turn_id: Optional[str] = None
        self._closed = False

        logger.debug("EventChannel initialized")

    @property
    def active_turn_id(self) -> Optional[str]:
        """Id of the turn whose events are currently delivered."""
        return self._active_turn_id

    @property
    def closed(self) -> bool:
        return self._closed

    def activate_turn(self, turn_id: Optional[str]) -> None:
        """
        Make a turn the active one.

        Events tagged with any other turn id are dropped from now on.

        Args:
            turn_id: The new active turn id, or None to deliver only
                session-scoped events.
        """
        self._active_turn_id = turn_id
        logger.debug(f"Active turn set to {turn_id}")

    async def publish(self, event: Event) -> bool:
        """
        Enqueue an event for delivery.

        Args:
            event: Event to publish.

        Returns:
            True if the event was enqueued, False if it was dropped.
        """
        if self._closed:
            logger.debug(f"EventChannel closed, dropping event: {event.type}")
            return False

        if event.turn_id is not None and event.turn_id != self._active_turn_id:
            logger.debug(f"Dropping stale event {event.type} from turn {event.turn_id}")
            return False

        self._queue.put_nowait(event)
        return True

    def pending(self) -> int:
        """Number of events waiting to be drained."""
        return self._queue.qsize()

    def drain(self) -> list:
        """Remove and return every queued event without waiting (tests, shutdown)."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is not None:
                events.append(item)
        return events

    async def iter_events(self):
        """Yield queued events until the channel is closed."""
        async for event in iter_queue(self._queue):
            yield event

    def close(self) -> None:
        """
        Close the channel.

        Sends the None sentinel so a consumer blocked in iter_events() exits.
        """
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)
        logger.debug("EventChannel closed")


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

async def emit_text_delta(channel: EventChannel, text: str, turn_id: Optional[str] = None) -> bool:
    """Emit a chunk of assistant text."""
    return await channel.publish(Event(EventType.TEXT_DELTA, {"text": text}, turn_id))


async def emit_blueprint_delta(channel: EventChannel, delta: BaseModel, turn_id: Optional[str] = None) -> bool:
    """
    Emit a graph delta.

    The delta is serialized here, so later mutations of the graph cannot
    leak into an event that is still queued.

    Args:
        channel: Target channel.
        delta: GraphDelta model.
        turn_id: Producing turn, or None for session-scoped deltas.
    """
    payload = {"delta": delta.model_dump(mode="json", by_alias=True, exclude_none=True)}
    return await channel.publish(Event(EventType.BLUEPRINT_DELTA, payload, turn_id))


async def emit_tool_call_started(
    channel: EventChannel, tool_name: str, call_id: str, turn_id: Optional[str] = None
) -> bool:
    """Emit the first sighting of a tool call."""
    data = {"name": tool_name, "id": call_id}
    return await channel.publish(Event(EventType.TOOL_CALL_STARTED, data, turn_id))


async def emit_tool_call_completed(
    channel: EventChannel,
    tool_name: str,
    call_id: str,
    result: Dict[str, Any],
    turn_id: Optional[str] = None,
) -> bool:
    """Emit a finished tool call with its result summary."""
    data = {"name": tool_name, "id": call_id, "result": result}
    return await channel.publish(Event(EventType.TOOL_CALL_COMPLETED, data, turn_id))


async def emit_ask_user(channel: EventChannel, question: str, turn_id: Optional[str] = None) -> bool:
    """Emit a question the agent wants the user to answer."""
    return await channel.publish(Event(EventType.ASK_USER, {"question": question}, turn_id))


async def emit_error(channel: EventChannel, message: str, turn_id: Optional[str] = None) -> bool:
    """Emit a turn-level error."""
    return await channel.publish(Event(EventType.ERROR, {"message": message}, turn_id))


async def emit_stream_complete(channel: EventChannel, turn_id: Optional[str] = None) -> bool:
    """Emit the end-of-turn marker."""
    return await channel.publish(Event(EventType.STREAM_COMPLETE, {}, turn_id))


# ============================================================================
# ASYNC QUEUE ITERATOR HELPER
# ============================================================================

async def iter_queue(queue: asyncio.Queue):
    """
    Async iterator for asyncio.Queue.

    Yields items from queue until None sentinel is received.
    """
    while True:
        item = await queue.get()
        if item is None:  # Shutdown sentinel
            break
        yield item


__all__ = [
    "EventType",
    "Event",
    "EventChannel",
    "emit_text_delta",
    "emit_blueprint_delta",
    "emit_tool_call_started",
    "emit_tool_call_completed",
    "emit_ask_user",
    "emit_error",
    "emit_stream_complete",
    "iter_queue",
]
