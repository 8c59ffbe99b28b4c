"""
Provider abstraction for Blueprint AI.

Every model backend is wrapped by a ChatProvider that turns the canonical
transcript into the backend's request format and the backend's streaming
response into one canonical chunk sequence:

    TextDelta(text)
    ToolCallStart(id, name)
    ToolCallArgChunk(id, fragment)
    ToolCallDone(id)
    StreamDone(stop_reason)

Per call id, Start precedes its ArgChunks, which precede exactly one Done.
Chunks for different ids may interleave. Argument fragments are raw text;
only their concatenation at Done is expected to parse as JSON.

Each adapter splits into two halves:
- _iter_lines(body): the transport, yielding raw response lines
- decode_lines(lines): a pure decoder from lines to chunks
so decoding can be exercised without a network.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Type, Union

from blueprint_ai.core.errors import ProviderTransportError

logger = logging.getLogger(__name__)


# ============================================================================
# STREAM CHUNKS
# ============================================================================

@dataclass
class TextDelta:
    """A piece of assistant text."""
    text: str


@dataclass
class ToolCallStart:
    """First sighting of a tool call."""
    id: str
    name: str


@dataclass
class ToolCallArgChunk:
    """A raw fragment of a tool call's JSON arguments."""
    id: str
    fragment: str


@dataclass
class ToolCallDone:
    """The tool call's arguments are complete."""
    id: str


@dataclass
class StreamDone:
    """End of the model response."""
    stop_reason: Optional[str] = None


StreamChunk = Union[TextDelta, ToolCallStart, ToolCallArgChunk, ToolCallDone, StreamDone]


# ============================================================================
# TRANSCRIPT MODELS
# ============================================================================

@dataclass
class ToolCallRecord:
    """A completed tool call as recorded in the transcript."""
    id: str
    name: str
    arguments: str = ""

    def parsed_arguments(self) -> Dict[str, Any]:
        """Arguments as a dict; anything unparsable becomes {}."""
        if not self.arguments or not self.arguments.strip():
            return {}
        try:
            value = json.loads(self.arguments)
        except json.JSONDecodeError:
            return {}
        return value if isinstance(value, dict) else {}


@dataclass
class ChatMessage:
    """
    One role-tagged transcript entry.

    Attributes:
        role: "user", "assistant" or "tool".
        content: Message text (tool result text for role "tool").
        tool_calls: Completed calls made by an assistant message.
        tool_call_id: For role "tool", the call this result answers.
        tool_name: For role "tool", the name of the tool that ran.
    """
    role: str
    content: str = ""
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    tool_name: Optional[str] = None

    @classmethod
    def user(cls, text: str) -> "ChatMessage":
        return cls(role="user", content=text)

    @classmethod
    def assistant(cls, text: str = "", tool_calls: Optional[List[ToolCallRecord]] = None) -> "ChatMessage":
        return cls(role="assistant", content=text, tool_calls=list(tool_calls or []))

    @classmethod
    def tool(cls, tool_call_id: str, tool_name: str, content: str) -> "ChatMessage":
        return cls(role="tool", content=content, tool_call_id=tool_call_id, tool_name=tool_name)


# ============================================================================
# SSE HELPERS
# ============================================================================

def sse_data(line: str) -> Optional[str]:
    """
    Payload of an SSE "data:" line, or None for any other line.

    Event names, comments, ids and blank separators are ignored; the
    JSON payloads of both supported SSE backends are self-describing.
    """
    if not line:
        return None
    line = line.rstrip("\r\n")
    if not line.startswith("data:"):
        return None
    return line[5:].strip()


def load_json_line(payload: str, provider: str) -> Optional[Dict[str, Any]]:
    """Parse one JSON payload; malformed or non-object payloads are skipped."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning(f"{provider}: skipping malformed stream line: {payload[:200]!r}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"{provider}: skipping non-object stream line")
        return None
    return data


def as_dict(value: Any) -> Dict[str, Any]:
    """value if it is a JSON object, else {} (wrong-shaped fields are ignored)."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


# ============================================================================
# PROVIDER BASE CLASS
# ============================================================================

class ChatProvider(ABC):
    """
    Abstract base class for streaming chat backends.

    Subclasses set `name` and `transport_errors`, and implement
    build_request(), _iter_lines() and decode_lines().
    """

    name: str = "base"
    transport_errors: Tuple[Type[BaseException], ...] = ()

    @abstractmethod
    def build_request(
        self,
        messages: List[ChatMessage],
        tools: List[Dict[str, Any]],
        system_prompt: str,
    ) -> Dict[str, Any]:
        """Translate transcript and tool definitions into the native request body."""

    @abstractmethod
    def _iter_lines(self, body: Dict[str, Any]) -> AsyncIterator[str]:
        """Issue the streaming request and yield raw response lines."""

    @abstractmethod
    def decode_lines(self, lines: AsyncIterator[str]) -> AsyncIterator[StreamChunk]:
        """Decode raw response lines into canonical chunks."""

    async def stream_completion(
        self,
        messages: List[ChatMessage],
        tools: List[Dict[str, Any]],
        system_prompt: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream one model response as canonical chunks.

        Args:
            messages: Canonical transcript.
            tools: Provider-neutral tool definitions.
            system_prompt: System prompt text.
            cancel_event: When set, no further lines are read.

        Yields:
            StreamChunk values, ending with StreamDone on success.

        Raises:
            ProviderTransportError: Request failed or the stream reported an error.
            ProviderConfigurationError: Provider lacks required configuration.
        """
        body = self.build_request(messages, tools, system_prompt)
        logger.info(f"{self.name}: streaming request, messages={len(messages)}, tools={len(tools)}")

        try:
            async for chunk in self.decode_lines(self._iter_lines(body)):
                yield chunk
                if cancel_event is not None and cancel_event.is_set():
                    logger.debug(f"{self.name}: cancelled, stopping stream")
                    return
        except self.transport_errors as e:
            logger.error(f"{self.name}: transport failure: {e}")
            raise ProviderTransportError(
                f"{self.name} request failed: {e}",
                status_code=getattr(e, "status_code", None),
                provider=self.name,
            ) from e


__all__ = [
    "TextDelta",
    "ToolCallStart",
    "ToolCallArgChunk",
    "ToolCallDone",
    "StreamDone",
    "StreamChunk",
    "ToolCallRecord",
    "ChatMessage",
    "sse_data",
    "load_json_line",
    "as_dict",
    "as_list",
    "as_text",
    "ChatProvider",
]
