"""
Agent Orchestrator for Blueprint AI.

Drives one user turn as a loop of model rounds:

    STREAMING -> EXECUTING_TOOLS -> (STREAMING | WAITING_ON_USER | DONE)

plus CANCELLED, which can preempt any state.

Per round the model response is streamed chunk by chunk: text is
forwarded as it arrives, tool-call arguments are buffered per call id.
When the response ends, the completed calls run one at a time under the
session's graph lock and each delta is pushed before the next call
starts. A turn ends when the model stops calling tools, when a tool asks
the user a question, or at the round cap.

Cancellation is cooperative. It is checked while waiting for the next
chunk, after every chunk and before every tool call. A tool call that
has started always finishes. A cancelled turn emits no stream_complete.

Usage:
    orchestrator = AgentOrchestrator()
    handle = await orchestrator.submit_message(session, "Print hello on BeginPlay")
    await handle.task
"""

import asyncio
import contextlib
import logging
from typing import Dict, List, Optional, Tuple

from blueprint_ai.agents.session import AgentSession, TurnHandle, TurnOutcome, TurnState
from blueprint_ai.core.errors import BlueprintAIError
from blueprint_ai.core.events import (
    emit_ask_user,
    emit_blueprint_delta,
    emit_error,
    emit_stream_complete,
    emit_text_delta,
    emit_tool_call_completed,
    emit_tool_call_started,
)
from blueprint_ai.core.prompts import get_system_prompt
from blueprint_ai.core.settings import SettingsManager, get_settings_manager
from blueprint_ai.graph.models import Blueprint, GraphDelta
from blueprint_ai.providers.base import (
    ChatMessage,
    ChatProvider,
    StreamDone,
    TextDelta,
    ToolCallArgChunk,
    ToolCallDone,
    ToolCallRecord,
    ToolCallStart,
)
from blueprint_ai.providers.registry import ProviderRegistry, get_provider_registry
from blueprint_ai.tools.executor import ToolExecutor
from blueprint_ai.tools.registry import ToolRegistry, get_tool_registry

logger = logging.getLogger(__name__)

SKIPPED_TOOL_MESSAGE = "Tool call skipped: turn cancelled"


class TurnCancelled(Exception):
    """Raised inside a turn when its cancel handle has been set."""

    pass


class AgentOrchestrator:
    """
    Runs agent turns for sessions.

    One orchestrator can serve any number of sessions; all per-turn state
    lives on the session and its TurnHandle.
    """

    def __init__(
        self,
        tool_registry: Optional[ToolRegistry] = None,
        providers: Optional[ProviderRegistry] = None,
        settings: Optional[SettingsManager] = None,
        system_prompt: Optional[str] = None,
        max_rounds: Optional[int] = None,
    ):
        """
        Args:
            tool_registry: Tools offered to the model (default: built-ins).
            providers: Provider lookup table (default: global registry).
            settings: Settings source for the round cap.
            system_prompt: Override for the default system prompt.
            max_rounds: Override for the configured round cap.
        """
        self.tool_registry = tool_registry or get_tool_registry()
        self.executor = ToolExecutor(self.tool_registry)
        self.providers = providers or get_provider_registry()
        self.settings = settings or get_settings_manager()
        self.system_prompt = system_prompt if system_prompt is not None else get_system_prompt()
        self._max_rounds = max_rounds

    @property
    def max_rounds(self) -> int:
        if self._max_rounds is not None:
            return self._max_rounds
        return self.settings.get_max_rounds()

    # ========================================================================
    # TURN LIFECYCLE
    # ========================================================================

    def begin_turn(self, session: AgentSession) -> TurnHandle:
        """Install a fresh turn handle and make it the channel's active turn."""
        handle = TurnHandle()
        session.turn = handle
        session.channel.activate_turn(handle.turn_id)
        return handle

    async def submit_message(self, session: AgentSession, text: str) -> TurnHandle:
        """
        Start a new turn in the background, cancelling any in-flight turn.

        The previous turn is allowed to wind down (its started tool call
        finishes) before the new turn becomes active, so no event from the
        old turn can interleave with the new one.

        Returns:
            Handle of the new turn; await handle.task for its outcome.
        """
        await self.cancel_turn(session, wait=True)

        handle = self.begin_turn(session)
        handle.task = asyncio.create_task(self.run_turn(session, text, handle))
        logger.info(f"Turn {handle.turn_id} submitted for session {session.session_id}")
        return handle

    async def cancel_turn(self, session: AgentSession, wait: bool = True) -> bool:
        """
        Request cancellation of the session's in-flight turn.

        Args:
            session: Target session.
            wait: Wait for the turn task to finish winding down.

        Returns:
            True if a running turn was signalled.
        """
        handle = session.turn
        if handle is None or handle.done:
            return False

        logger.info(f"Cancelling turn {handle.turn_id} for session {session.session_id}")
        handle.cancel()

        if wait and handle.task is not None and handle.task is not asyncio.current_task():
            await handle.task
        return True

    async def run_turn(
        self,
        session: AgentSession,
        text: str,
        handle: Optional[TurnHandle] = None,
    ) -> TurnOutcome:
        """
        Run one user turn to completion.

        Args:
            session: Session the turn belongs to.
            text: User message.
            handle: Turn handle (created and activated if omitted).

        Returns:
            TurnOutcome describing how the turn ended.
        """
        if handle is None:
            handle = self.begin_turn(session)

        turn_id = handle.turn_id
        channel = session.channel
        session.transcript.append(ChatMessage.user(text))
        logger.info(f"Turn {turn_id} started (provider={session.provider_id})")

        outcome = TurnOutcome.FAILED
        try:
            provider = self.providers.get(session.provider_id)
            max_rounds = self.max_rounds

            for round_number in range(1, max_rounds + 1):
                session.set_turn_state(TurnState.STREAMING)
                text_out, calls = await self._stream_round(session, provider, handle)
                logger.debug(f"Turn {turn_id} round {round_number}: {len(calls)} tool call(s)")

                if not calls:
                    outcome = TurnOutcome.COMPLETED
                    break

                session.set_turn_state(TurnState.EXECUTING_TOOLS)
                if await self._execute_calls(session, calls, handle):
                    session.set_turn_state(TurnState.WAITING_ON_USER)
                    outcome = TurnOutcome.ASKED_USER
                    break
            else:
                logger.warning(f"Turn {turn_id} reached the round cap ({max_rounds})")
                outcome = TurnOutcome.TRUNCATED

            session.set_turn_state(TurnState.DONE)
            await emit_stream_complete(channel, turn_id)

        except TurnCancelled:
            outcome = TurnOutcome.CANCELLED
            session.set_turn_state(TurnState.CANCELLED)
            logger.info(f"Turn {turn_id} cancelled")

        except BlueprintAIError as e:
            outcome = await self._fail_turn(session, handle, str(e))

        except Exception as e:
            logger.error(f"Turn {turn_id} failed unexpectedly: {e}", exc_info=True)
            outcome = await self._fail_turn(session, handle, f"Unexpected error: {e}")

        handle.outcome = outcome
        logger.info(f"Turn {turn_id} finished: {outcome.value}")
        return outcome

    async def _fail_turn(self, session: AgentSession, handle: TurnHandle, message: str) -> TurnOutcome:
        if handle.cancelled:
            session.set_turn_state(TurnState.CANCELLED)
            return TurnOutcome.CANCELLED

        logger.error(f"Turn {handle.turn_id} failed: {message}")
        session.set_turn_state(TurnState.DONE)
        await emit_error(session.channel, message, handle.turn_id)
        await emit_stream_complete(session.channel, handle.turn_id)
        return TurnOutcome.FAILED

    # ========================================================================
    # STREAMING
    # ========================================================================

    @staticmethod
    def _check_cancelled(handle: TurnHandle) -> None:
        if handle.cancelled:
            raise TurnCancelled()

    async def _next_chunk(self, stream, handle: TurnHandle):
        """
        Wait for the next chunk or the cancel signal, whichever comes first.

        Returns:
            The chunk, or None when the stream is exhausted.

        Raises:
            TurnCancelled: The cancel signal won the race.
        """
        self._check_cancelled(handle)

        next_task = asyncio.ensure_future(stream.__anext__())
        cancel_task = asyncio.ensure_future(handle.cancel_event.wait())
        try:
            done, _ = await asyncio.wait({next_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()

        if next_task in done:
            try:
                return next_task.result()
            except StopAsyncIteration:
                return None

        next_task.cancel()
        with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
            await next_task
        raise TurnCancelled()

    async def _stream_round(
        self,
        session: AgentSession,
        provider: ChatProvider,
        handle: TurnHandle,
    ) -> Tuple[str, List[ToolCallRecord]]:
        """
        Stream one model response and record it in the transcript.

        Returns:
            (assistant text, completed tool calls in completion order)
        """
        turn_id = handle.turn_id
        text_parts: List[str] = []
        buffers: Dict[str, List[str]] = {}
        names: Dict[str, str] = {}
        completed: List[ToolCallRecord] = []
        completed_ids = set()

        stream = provider.stream_completion(
            session.transcript,
            self.tool_registry.get_definitions(),
            self.system_prompt,
            handle.cancel_event,
        )
        try:
            while True:
                chunk = await self._next_chunk(stream, handle)
                if chunk is None or isinstance(chunk, StreamDone):
                    break

                if isinstance(chunk, TextDelta):
                    text_parts.append(chunk.text)
                    await emit_text_delta(session.channel, chunk.text, turn_id)

                elif isinstance(chunk, ToolCallStart):
                    if chunk.id not in buffers:
                        buffers[chunk.id] = []
                        names[chunk.id] = chunk.name
                        await emit_tool_call_started(session.channel, chunk.name, chunk.id, turn_id)

                elif isinstance(chunk, ToolCallArgChunk):
                    buffers.setdefault(chunk.id, []).append(chunk.fragment)

                elif isinstance(chunk, ToolCallDone):
                    if chunk.id in buffers and chunk.id not in completed_ids:
                        completed_ids.add(chunk.id)
                        completed.append(
                            ToolCallRecord(chunk.id, names.get(chunk.id, ""), "".join(buffers[chunk.id]))
                        )

                self._check_cancelled(handle)

        except TurnCancelled:
            if text_parts:
                session.transcript.append(ChatMessage.assistant("".join(text_parts)))
            raise

        finally:
            await stream.aclose()

        text = "".join(text_parts)
        if text or completed:
            session.transcript.append(ChatMessage.assistant(text, completed))
        return text, completed

    # ========================================================================
    # TOOL EXECUTION
    # ========================================================================

    async def _execute_calls(
        self,
        session: AgentSession,
        calls: List[ToolCallRecord],
        handle: TurnHandle,
    ) -> bool:
        """
        Execute a batch of completed tool calls sequentially.

        Returns:
            True if any call asked the user a question.
        """
        turn_id = handle.turn_id
        channel = session.channel
        asked_user = False

        for index, call in enumerate(calls):
            if handle.cancelled:
                for skipped in calls[index:]:
                    session.transcript.append(ChatMessage.tool(skipped.id, skipped.name, SKIPPED_TOOL_MESSAGE))
                raise TurnCancelled()

            async with session.graph_lock:
                result = await self.executor.execute(call.name, call.arguments, session.state)

            for delta in result.deltas:
                await emit_blueprint_delta(channel, delta, turn_id)

            if result.ask_user_question:
                asked_user = True
                await emit_ask_user(channel, result.ask_user_question, turn_id)

            await emit_tool_call_completed(channel, call.name, call.id, result.summary(), turn_id)
            session.transcript.append(ChatMessage.tool(call.id, call.name, result.message))

        return asked_user

    # ========================================================================
    # HISTORY AND IMPORT
    # ========================================================================

    async def undo(self, session: AgentSession) -> Optional[GraphDelta]:
        """Undo the last mutation; pushes a FullSync only when something changed."""
        async with session.graph_lock:
            delta = session.state.undo()
        if delta is not None:
            await emit_blueprint_delta(session.channel, delta)
        return delta

    async def redo(self, session: AgentSession) -> Optional[GraphDelta]:
        """Redo the last undone mutation; pushes a FullSync only when something changed."""
        async with session.graph_lock:
            delta = session.state.redo()
        if delta is not None:
            await emit_blueprint_delta(session.channel, delta)
        return delta

    async def import_blueprint(self, session: AgentSession, blueprint: Blueprint) -> GraphDelta:
        """Replace the session graph with an imported one and push a FullSync."""
        async with session.graph_lock:
            delta = session.state.replace_graph(blueprint)
        await emit_blueprint_delta(session.channel, delta)
        return delta

    async def sync(self, session: AgentSession) -> GraphDelta:
        """Push the current graph as a FullSync (on connect)."""
        delta = session.state.full_sync()
        await emit_blueprint_delta(session.channel, delta)
        return delta


# ============================================================================
# GLOBAL SINGLETON
# ============================================================================

_orchestrator: Optional[AgentOrchestrator] = None


def get_orchestrator() -> AgentOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = AgentOrchestrator()
    return _orchestrator


def reset_orchestrator() -> None:
    """
    Reset the global orchestrator (tests, or after provider settings change).
    """
    global _orchestrator
    _orchestrator = None


__all__ = [
    "AgentOrchestrator",
    "TurnCancelled",
    "SKIPPED_TOOL_MESSAGE",
    "get_orchestrator",
    "reset_orchestrator",
]
