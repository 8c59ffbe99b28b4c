"""
Tests for blueprint_ai/agents/session.py - TurnHandle and AgentSession.
"""

import asyncio

import pytest

from blueprint_ai.agents.session import AgentSession, TurnHandle, TurnOutcome, TurnState


class TestTurnHandle:
    """Tests for the cancellation handle."""

    def test_fresh_handle(self):
        handle = TurnHandle()

        assert not handle.cancelled
        assert not handle.done
        assert handle.turn_id != TurnHandle().turn_id

    def test_cancel_sets_event(self):
        handle = TurnHandle()
        handle.cancel()

        assert handle.cancelled
        assert handle.cancel_event.is_set()

    def test_done_without_task_follows_outcome(self):
        """Test a handle run inline is done once its outcome is recorded."""
        handle = TurnHandle()
        handle.outcome = TurnOutcome.COMPLETED

        assert handle.done

    @pytest.mark.asyncio
    async def test_done_follows_task(self):
        handle = TurnHandle()
        gate = asyncio.Event()
        handle.task = asyncio.create_task(gate.wait())

        assert not handle.done
        gate.set()
        await handle.task
        assert handle.done


class TestAgentSession:
    """Tests for AgentSession."""

    def test_defaults(self):
        session = AgentSession()

        assert session.provider_id == "anthropic"
        assert session.transcript == []
        assert session.turn_state == TurnState.IDLE
        assert session.state.version == 0
        assert not session.is_running

    def test_sessions_share_nothing(self):
        """Test each session owns its own graph, transcript and channel."""
        first = AgentSession()
        second = AgentSession()

        assert first.session_id != second.session_id
        assert first.state is not second.state
        assert first.channel is not second.channel
        assert first.transcript is not second.transcript
        assert first.graph_lock is not second.graph_lock

    def test_set_turn_state(self):
        session = AgentSession()
        session.set_turn_state(TurnState.STREAMING)

        assert session.turn_state == TurnState.STREAMING

    @pytest.mark.asyncio
    async def test_close_cancels_turn_and_channel(self):
        """Test close signals a running turn and ends the channel."""
        session = AgentSession()
        session.turn = TurnHandle()
        gate = asyncio.Event()
        session.turn.task = asyncio.create_task(gate.wait())

        assert session.is_running
        session.close()

        assert session.turn.cancelled
        assert session.channel.closed
        events = [event async for event in session.channel.iter_events()]
        assert events == []

        gate.set()
        await session.turn.task
