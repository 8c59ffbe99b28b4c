"""
Anthropic messages adapter.

Wire format: POST /v1/messages with stream=true and the
anthropic-version header (set by the SDK). The response is SSE; each
"data:" line is a JSON event whose "type" says what it is:

- content_block_start   text block, or tool_use block (opens a call)
- content_block_delta   text_delta or input_json_delta for a block index
- content_block_stop    closes the block; closes its tool call if any
- message_delta         carries the stop_reason
- message_stop          end of the response
- error                 stream-level failure
- ping / message_start  ignored
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import anthropic
import httpx

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


class AnthropicProvider(ChatProvider):
    """Streaming adapter for the Anthropic messages API."""

    name = "anthropic"
    transport_errors = (anthropic.APIError, httpx.HTTPError)

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    DEFAULT_MAX_TOKENS = 4096
    DEFAULT_BASE_URL = "https://api.anthropic.com"

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
        self._client: Optional[anthropic.AsyncAnthropic] = None

    @classmethod
    def from_settings(cls, settings) -> "AnthropicProvider":
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
            "max_tokens": self.max_tokens,
            "messages": self._convert_messages(messages),
            "stream": True,
        }
        if system_prompt:
            body["system"] = system_prompt
        if tools:
            body["tools"] = self._convert_tools(tools)
        return body

    def _convert_messages(self, messages: List[ChatMessage]) -> List[Dict[str, Any]]:
        """
        Canonical transcript to Anthropic messages.

        Assistant turns become text / tool_use content blocks. Tool results
        become tool_result blocks inside a user message; consecutive results
        share one user message, as the API requires.
        """
        converted: List[Dict[str, Any]] = []

        for msg in messages:
            if msg.role == "assistant":
                blocks: List[Dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for call in msg.tool_calls:
                    blocks.append({
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": call.parsed_arguments(),
                    })
                if blocks:
                    converted.append({"role": "assistant", "content": blocks})

            elif msg.role == "tool":
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }
                previous = converted[-1] if converted else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and all(b.get("type") == "tool_result" for b in previous["content"])
                ):
                    previous["content"].append(block)
                else:
                    converted.append({"role": "user", "content": [block]})

            else:
                converted.append({"role": "user", "content": msg.content})

        return converted

    def _convert_tools(self, tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool["name"],
                "description": tool["description"],
                "input_schema": tool["parameters"],
            }
            for tool in tools
        ]

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is not None:
            return self._client

        if not self.api_key:
            raise ProviderConfigurationError(
                "Anthropic API key not configured. Set it in config.json or ANTHROPIC_API_KEY."
            )

        self._client = anthropic.AsyncAnthropic(api_key=self.api_key, base_url=self.base_url)
        logger.info(f"Anthropic client initialized (model={self.model})")
        return self._client

    async def _iter_lines(self, body: Dict[str, Any]) -> AsyncIterator[str]:
        client = self._get_client()
        async with client.messages.with_streaming_response.create(**body) as response:
            async for line in response.iter_lines():
                yield line

    # ========================================================================
    # DECODING
    # ========================================================================

    async def decode_lines(self, lines: AsyncIterator[str]) -> AsyncIterator[StreamChunk]:
        tool_blocks: Dict[int, str] = {}
        stop_reason: Optional[str] = None

        async for line in lines:
            payload = sse_data(line)
            if not payload:
                continue

            data = load_json_line(payload, self.name)
            if data is None:
                continue

            event_type = data.get("type")
            index = data.get("index", 0)
            if not isinstance(index, int):
                logger.warning(f"anthropic: skipping event with index {index!r}")
                continue

            if event_type == "content_block_start":
                block = as_dict(data.get("content_block"))
                if block.get("type") == "tool_use":
                    call_id = as_text(block.get("id"))
                    tool_blocks[index] = call_id
                    yield ToolCallStart(call_id, as_text(block.get("name")))
                elif block.get("type") == "text" and as_text(block.get("text")):
                    yield TextDelta(block["text"])

            elif event_type == "content_block_delta":
                delta = as_dict(data.get("delta"))
                if delta.get("type") == "text_delta" and as_text(delta.get("text")):
                    yield TextDelta(delta["text"])
                elif delta.get("type") == "input_json_delta" and index in tool_blocks:
                    fragment = as_text(delta.get("partial_json"))
                    if fragment:
                        yield ToolCallArgChunk(tool_blocks[index], fragment)

            elif event_type == "content_block_stop":
                call_id = tool_blocks.pop(index, None)
                if call_id is not None:
                    yield ToolCallDone(call_id)

            elif event_type == "message_delta":
                stop_reason = as_text(as_dict(data.get("delta")).get("stop_reason")) or stop_reason

            elif event_type == "message_stop":
                break

            elif event_type == "error":
                error = as_dict(data.get("error"))
                raise ProviderTransportError(
                    f"anthropic stream error: {error.get('message', 'unknown error')}",
                    provider=self.name,
                )

        for call_id in tool_blocks.values():
            yield ToolCallDone(call_id)

        yield StreamDone(stop_reason)


__all__ = ["AnthropicProvider"]
