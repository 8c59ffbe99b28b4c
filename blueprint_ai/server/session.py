"""
Session Manager for the Blueprint AI Server.

Maps WebSocket connections to agent sessions. Each connection owns one
AgentSession (graph, transcript, push channel); nothing is shared across
connections except this registry.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from fastapi import WebSocket

from blueprint_ai.agents.session import AgentSession

logger = logging.getLogger(__name__)


# ============================================================================
# SESSION DATA CLASS
# ============================================================================

@dataclass
class Session:
    """
    Represents an active WebSocket session.

    Attributes:
        connection_id: Unique identifier for this connection.
        websocket: The FastAPI WebSocket connection object.
        agent: Agent state for this client.
        created_at: Session creation timestamp.
        last_activity: Last activity timestamp.
    """

    connection_id: str
    websocket: WebSocket
    agent: AgentSession
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)

    def update_activity(self) -> None:
        self.last_activity = datetime.now()

    @property
    def is_running(self) -> bool:
        return self.agent.is_running


# ============================================================================
# SESSION MANAGER
# ============================================================================

class SessionManager:
    """
    Tracks connected sessions by connection id.

    Usage:
        manager = get_session_manager()
        session = await manager.create_session(connection_id, websocket, "anthropic")
        ...
        await manager.remove_session(connection_id)
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()

        logger.debug("SessionManager initialized")

    async def create_session(
        self,
        connection_id: str,
        websocket: WebSocket,
        provider_id: str,
    ) -> Session:
        """
        Create a new session for a WebSocket connection.

        Args:
            connection_id: Unique connection identifier.
            websocket: The FastAPI WebSocket connection.
            provider_id: Provider used until the client selects another.

        Returns:
            The created Session object.
        """
        async with self._lock:
            agent = AgentSession(session_id=connection_id, provider_id=provider_id)
            session = Session(connection_id=connection_id, websocket=websocket, agent=agent)
            self._sessions[connection_id] = session
            logger.info(f"Session created: {connection_id} (provider={provider_id})")
            return session

    async def get_session(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    async def remove_session(self, connection_id: str) -> Optional[Session]:
        """
        Remove a session (on disconnect).

        Cancels the session's in-flight turn and closes its channel.

        Returns:
            The removed session, or None if it was not registered.
        """
        async with self._lock:
            session = self._sessions.pop(connection_id, None)
        if session:
            session.agent.close()
            logger.info(f"Session removed: {connection_id}")
        return session

    async def get_all_sessions(self) -> Dict[str, Session]:
        return dict(self._sessions)

    async def close_all(self) -> int:
        """Remove every session (server shutdown). Returns how many were open."""
        connection_ids = list(self._sessions)
        for connection_id in connection_ids:
            await self.remove_session(connection_id)
        return len(connection_ids)

    async def get_session_count(self) -> int:
        return len(self._sessions)

    async def get_active_turn_count(self) -> int:
        """Number of sessions with a turn in flight."""
        return sum(1 for session in self._sessions.values() if session.is_running)


# ============================================================================
# GLOBAL SINGLETON
# ============================================================================

_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """
    Get global SessionManager instance (singleton).
    """
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager


def reset_session_manager() -> None:
    """
    Reset global SessionManager instance.

    WARNING: Only use in tests.
    """
    global _session_manager
    _session_manager = None


__all__ = [
    "Session",
    "SessionManager",
    "get_session_manager",
    "reset_session_manager",
]
