"""
Pytest Configuration and Shared Fixtures for Blueprint AI.

Provides common fixtures for:
- Isolated settings (temp config dir, no API keys from the environment)
- Graph state with a small Event -> Print String graph
- Tool registry / executor with the built-in tools
- A scripted fake chat provider and orchestrator wiring
"""

import asyncio
import json
from typing import Any, AsyncIterator, Dict, List

import pytest

from blueprint_ai.agents import orchestrator as orchestrator_module
from blueprint_ai.agents.orchestrator import AgentOrchestrator
from blueprint_ai.agents.session import AgentSession
from blueprint_ai.core import settings as settings_module
from blueprint_ai.core.settings import SettingsManager
from blueprint_ai.graph.state import StateManager
from blueprint_ai.providers import registry as provider_registry_module
from blueprint_ai.providers.base import (
    ChatMessage,
    ChatProvider,
    StreamChunk,
    StreamDone,
    TextDelta,
    ToolCallArgChunk,
    ToolCallDone,
    ToolCallStart,
)
from blueprint_ai.providers.registry import ProviderRegistry
from blueprint_ai.server import session as session_module
from blueprint_ai.tools import registry as tool_registry_module
from blueprint_ai.tools.executor import ToolExecutor
from blueprint_ai.tools.registry import ToolRegistry


# ============================================================================
# FAKE PROVIDER
# ============================================================================

class FakeProvider(ChatProvider):
    """
    Chat provider that replays scripted rounds.

    Each round is a list whose items are:
    - StreamChunk values, yielded as-is
    - an asyncio.Event, awaited before continuing (to hold a stream open)
    - an Exception instance, raised at that point

    Rounds beyond the script produce an empty response.
    """

    name = "fake"

    def __init__(self, rounds: List[List[Any]] = None):
        self.rounds = list(rounds or [])
        self.requests: List[List[ChatMessage]] = []
        self.tool_names: List[List[str]] = []

    def build_request(self, messages, tools, system_prompt) -> Dict[str, Any]:
        self.requests.append(list(messages))
        self.tool_names.append([tool["name"] for tool in tools])
        return {"round": len(self.requests) - 1}

    async def _iter_lines(self, body: Dict[str, Any]) -> AsyncIterator[str]:
        yield json.dumps(body)

    async def decode_lines(self, lines: AsyncIterator[str]) -> AsyncIterator[StreamChunk]:
        body = None
        async for line in lines:
            body = json.loads(line)

        index = body["round"]
        script = self.rounds[index] if index < len(self.rounds) else [StreamDone("end_turn")]
        for item in script:
            if isinstance(item, asyncio.Event):
                await item.wait()
            elif isinstance(item, Exception):
                raise item
            else:
                yield item


def tool_call(call_id: str, name: str, arguments: Dict[str, Any], pieces: int = 2) -> List[StreamChunk]:
    """Start / ArgChunk... / Done for one call, arguments split into pieces."""
    text = json.dumps(arguments)
    size = max(1, len(text) // pieces + 1)
    fragments = [text[i:i + size] for i in range(0, len(text), size)]
    return (
        [ToolCallStart(call_id, name)]
        + [ToolCallArgChunk(call_id, fragment) for fragment in fragments]
        + [ToolCallDone(call_id)]
    )


@pytest.fixture
def fake_provider_class():
    """The FakeProvider class (for building providers inside tests)."""
    return FakeProvider


@pytest.fixture
def make_tool_call():
    """Factory for tool call chunk sequences."""
    return tool_call


@pytest.fixture
def text_round():
    """Factory for a round that only streams text."""
    def _round(*parts: str) -> List[StreamChunk]:
        return [TextDelta(part) for part in parts] + [StreamDone("end_turn")]
    return _round


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def settings_manager(tmp_path):
    """SettingsManager writing to a temp directory."""
    return SettingsManager(config_dir=tmp_path / "config")


@pytest.fixture(autouse=True)
def isolated_globals(tmp_path, monkeypatch):
    """
    Reset module singletons around each test.

    The global settings manager points at a temp directory and API keys
    from the environment are hidden.
    """
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setattr(
        settings_module,
        "_settings_manager",
        SettingsManager(config_dir=tmp_path / "global_config"),
    )
    monkeypatch.setattr(tool_registry_module, "_default_registry", None)
    monkeypatch.setattr(provider_registry_module, "_provider_registry", None)
    monkeypatch.setattr(session_module, "_session_manager", None)
    monkeypatch.setattr(orchestrator_module, "_orchestrator", None)
    yield


# ============================================================================
# GRAPH FIXTURES
# ============================================================================

@pytest.fixture
def state():
    """Empty StateManager."""
    return StateManager()


@pytest.fixture
def tool_registry():
    """Registry with the ten built-in tools."""
    registry = ToolRegistry()
    registry.register_default_tools()
    return registry


@pytest.fixture
def executor(tool_registry):
    return ToolExecutor(tool_registry)


@pytest.fixture
def event_print_graph(state):
    """
    State holding Event BeginPlay -> Print String (unconnected).

    Returns:
        (state, event_node, print_node)
    """
    from blueprint_ai.graph.models import BlueprintNode, NodeStyle, Pin, PinDirection, PinType

    event = BlueprintNode(
        title="Event BeginPlay",
        category="Events",
        style=NodeStyle.EVENT,
        output_pins=[Pin(name="Exec", type=PinType.EXEC, direction=PinDirection.OUTPUT)],
    )
    printer = BlueprintNode(
        title="Print String",
        category="Utilities",
        style=NodeStyle.FUNCTION,
        input_pins=[
            Pin(name="Exec", type=PinType.EXEC, direction=PinDirection.INPUT),
            Pin(name="In String", type=PinType.STRING, direction=PinDirection.INPUT, default_value="Hello"),
        ],
        output_pins=[Pin(name="Then", type=PinType.EXEC, direction=PinDirection.OUTPUT)],
    )
    state.add_node(event)
    state.add_node(printer)
    return state, event, printer


# ============================================================================
# AGENT FIXTURES
# ============================================================================

@pytest.fixture
def agent_session():
    """Fresh AgentSession using the fake provider id."""
    return AgentSession(provider_id="fake")


@pytest.fixture
def make_orchestrator(tool_registry, settings_manager):
    """
    Factory: build an orchestrator whose "fake" provider replays `rounds`.

    Returns:
        Callable (rounds, max_rounds=None) -> (orchestrator, provider)
    """
    def _make(rounds, max_rounds=None):
        provider = FakeProvider(rounds)
        providers = ProviderRegistry(settings=settings_manager)
        providers.set_instance("fake", provider)
        orchestrator = AgentOrchestrator(
            tool_registry=tool_registry,
            providers=providers,
            settings=settings_manager,
            system_prompt="You edit blueprints.",
            max_rounds=max_rounds,
        )
        return orchestrator, provider

    return _make
