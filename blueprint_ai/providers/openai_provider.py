"""
OpenAI chat-completions adapter.

Wire format: POST {base_url}/chat/completions with stream=true. The
response is SSE; each "data:" line holds a chat.completion.chunk JSON
object and the stream ends with "data: [DONE]".

Tool calls arrive as deltas keyed by `index`. The first fragment for an
index carries the call id and function name, later fragments carry only
argument text. OpenAI has no explicit per-call end marker, so every open
call is closed when a choice reports a finish_reason (or at [DONE] / EOF).
"""

import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import openai

from blueprint_ai.core.errors import ProviderConfigurationError, ProviderTransportError
from blueprint_ai.providers.base import (
    ChatMessage,
    ChatProvider,
    StreamChunk,
    StreamDone,
    TextDelta,
    ToolCallArgChunk,
    ToolCallDone,
    ToolCallStart,
    as_dict,
    as_list,
    as_text,
    load_json_line,
    sse_data,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(ChatProvider):
    """Streaming adapter for the OpenAI chat-completions API."""

    name = "openai"
    transport_errors = (openai.APIError, httpx.HTTPError)

    DEFAULT_MODEL = "gpt-4o"
    DEFAULT_MAX_TOKENS = 4096
    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        base_url: str = DEFAULT_BASE_URL,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.base_url = base_url
        self._client: Optional[openai.AsyncOpenAI] = None

    @classmethod
    def from_settings(cls, settings) -> "OpenAIProvider":
        config = settings.get_provider_config(cls.name)
        return cls(
            api_key=settings.get_api_key(cls.name),
            model=config.get("model", cls.DEFAULT_MODEL),
            max_tokens=int(config.get("max_tokens", cls.DEFAULT_MAX_TOKENS)),
            base_url=config.get("base_url", cls.DEFAULT_BASE_URL),
        )

    # ========================================================================
    # REQUEST TRANSLATION
    # ========================================================================

    def build_request(
        self,
        messages: List[ChatMessage],
        tools: List[Dict[str, Any]],
        system_prompt: str,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": self._convert_messages(messages, system_prompt),
            "max_tokens": self.max_tokens,
            "stream": True,
        }
        if tools:
            body["tools"] = self._convert_tools(tools)
        return body

    def _convert_messages(self, messages: List[ChatMessage], system_prompt: str) -> List[Dict[str, Any]]:
        """
        Canonical transcript to OpenAI messages.

        The system prompt goes first as a system message; assistant tool
        calls use the function-call shape; tool results reference their
        call by tool_call_id.
        """
        converted: List[Dict[str, Any]] = []
        if system_prompt:
            converted.append({"role": "system", "content": system_prompt})

        for msg in messages:
            if msg.role == "assistant":
                entry: Dict[str, Any] = {"role": "assistant", "content": msg.content or None}
                if msg.tool_calls:
                    entry["tool_calls"] = [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": call.arguments or "{}"},
                        }
                        for call in msg.tool_calls
                    ]
                converted.append(entry)
            elif msg.role == "tool":
                converted.append({
                    "role": "tool",
                    "tool_call_id": msg.tool_call_id,
                    "content": msg.content,
                })
            else:
                converted.append({"role": "user", "content": msg.content})

        return converted

    def _convert_tools(self, tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool["description"],
                    "parameters": tool["parameters"],
                },
            }
            for tool in tools
        ]

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is not None:
            return self._client

        if not self.api_key:
            raise ProviderConfigurationError(
                "OpenAI API key not configured. Set it in config.json or OPENAI_API_KEY."
            )

        self._client = openai.AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        logger.info(f"OpenAI client initialized (model={self.model})")
        return self._client

    async def _iter_lines(self, body: Dict[str, Any]) -> AsyncIterator[str]:
        client = self._get_client()
        async with client.chat.completions.with_streaming_response.create(**body) as response:
            async for line in response.iter_lines():
                yield line

    # ========================================================================
    # DECODING
    # ========================================================================

    async def decode_lines(self, lines: AsyncIterator[str]) -> AsyncIterator[StreamChunk]:
        open_calls: Dict[int, str] = {}
        stop_reason: Optional[str] = None

        async for line in lines:
            payload = sse_data(line)
            if payload is None or not payload:
                continue
            if payload == "[DONE]":
                break

            data = load_json_line(payload, self.name)
            if data is None:
                continue

            if data.get("error"):
                error = data["error"]
                message = error.get("message") if isinstance(error, dict) else str(error)
                raise ProviderTransportError(f"openai stream error: {message}", provider=self.name)

            for choice in as_list(data.get("choices")):
                if not isinstance(choice, dict):
                    logger.warning(f"openai: skipping malformed choice: {choice!r}")
                    continue
                delta = as_dict(choice.get("delta"))

                content = as_text(delta.get("content"))
                if content:
                    yield TextDelta(content)

                for call in as_list(delta.get("tool_calls")):
                    if not isinstance(call, dict):
                        logger.warning(f"openai: skipping malformed tool call delta: {call!r}")
                        continue
                    index = call.get("index", 0)
                    if not isinstance(index, int):
                        logger.warning(f"openai: skipping tool call delta with index {index!r}")
                        continue
                    function = as_dict(call.get("function"))
                    if index not in open_calls:
                        call_id = as_text(call.get("id")) or f"call_{uuid.uuid4().hex[:8]}"
                        open_calls[index] = call_id
                        yield ToolCallStart(call_id, as_text(function.get("name")))
                    fragment = as_text(function.get("arguments"))
                    if fragment:
                        yield ToolCallArgChunk(open_calls[index], fragment)

                if choice.get("finish_reason"):
                    stop_reason = as_text(choice["finish_reason"]) or None
                    for call_id in open_calls.values():
                        yield ToolCallDone(call_id)
                    open_calls.clear()

        for call_id in open_calls.values():
            yield ToolCallDone(call_id)

        yield StreamDone(stop_reason)


__all__ = ["OpenAIProvider"]
