"""
Agent session state for Blueprint AI.

An AgentSession bundles everything one connected client owns:
- the graph and its undo/redo history (StateManager)
- the conversation transcript
- the selected provider id
- the push channel
- the in-flight turn handle and its current state
- the lock that serializes graph mutations

Sessions share nothing with each other.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from blueprint_ai.core.events import EventChannel
from blueprint_ai.graph.state import StateManager
from blueprint_ai.providers.base import ChatMessage

logger = logging.getLogger(__name__)


# ============================================================================
# TURN STATE
# ============================================================================

class TurnState(str, Enum):
    """Where the orchestrator is within a user turn."""

    IDLE = "idle"
    STREAMING = "streaming"
    EXECUTING_TOOLS = "executing_tools"
    WAITING_ON_USER = "waiting_on_user"
    DONE = "done"
    CANCELLED = "cancelled"


class TurnOutcome(str, Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    ASKED_USER = "asked_user"
    TRUNCATED = "truncated"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class TurnHandle:
    """
    Cancellation handle for one turn.

    Attributes:
        turn_id: Unique id tagged onto every event the turn emits.
        cancel_event: Set to request cooperative cancellation.
        task: Background task running the turn (if started via submit).
        outcome: Filled in when the turn ends.
    """

    turn_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    task: Optional[asyncio.Task] = None
    outcome: Optional[TurnOutcome] = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def done(self) -> bool:
        if self.task is not None:
            return self.task.done()
        return self.outcome is not None

    def cancel(self) -> None:
        self.cancel_event.set()


# ============================================================================
# AGENT SESSION
# ============================================================================

@dataclass
class AgentSession:
    """
    Per-client agent state.

    Attributes:
        session_id: Unique session identifier.
        provider_id: Provider used for the next turn.
        state: Graph owner with undo/redo stacks.
        transcript: Ordered user / assistant / tool messages.
        channel: Push channel to the client.
        graph_lock: Serializes tool execution, undo, redo and import.
        turn: Handle of the current or most recent turn.
        turn_state: Current TurnState.
    """

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    provider_id: str = "anthropic"
    state: StateManager = field(default_factory=StateManager)
    transcript: List[ChatMessage] = field(default_factory=list)
    channel: EventChannel = field(default_factory=EventChannel)
    graph_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    turn: Optional[TurnHandle] = None
    turn_state: TurnState = TurnState.IDLE
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_running(self) -> bool:
        return self.turn is not None and not self.turn.done

    def set_turn_state(self, state: TurnState) -> None:
        if state != self.turn_state:
            logger.debug(f"Session {self.session_id}: {self.turn_state.value} -> {state.value}")
        self.turn_state = state

    def close(self) -> None:
        """Request cancellation of any running turn and close the channel."""
        if self.turn is not None and not self.turn.done:
            self.turn.cancel()
        self.channel.close()


__all__ = ["TurnState", "TurnOutcome", "TurnHandle", "AgentSession"]
