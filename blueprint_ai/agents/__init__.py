"""
Agent layer for Blueprint AI.

- session: per-client state (graph, transcript, channel, turn handle)
- orchestrator: the streaming tool-calling loop that drives one turn
"""

from blueprint_ai.agents.session import AgentSession, TurnHandle, TurnOutcome, TurnState
from blueprint_ai.agents.orchestrator import (
    SKIPPED_TOOL_MESSAGE,
    AgentOrchestrator,
    get_orchestrator,
    reset_orchestrator,
)

__all__ = [
    "AgentSession",
    "TurnHandle",
    "TurnOutcome",
    "TurnState",
    "AgentOrchestrator",
    "SKIPPED_TOOL_MESSAGE",
    "get_orchestrator",
    "reset_orchestrator",
]
