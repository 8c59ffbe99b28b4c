"""
Ollama native chat adapter.

Wire format: POST {base_url}/api/chat with stream=true. The response is
NDJSON: one JSON object per line with a partial `message`, and a final
object carrying done=true and done_reason.

Ollama delivers tool calls whole (arguments as an object, no id), so each
one is emitted as Start + a single ArgChunk + Done under a generated id.
"""

import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from blueprint_ai.core.errors import ProviderTransportError
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
)

logger = logging.getLogger(__name__)


class OllamaProvider(ChatProvider):
    """Streaming adapter for a local Ollama server."""

    name = "ollama"
    transport_errors = (httpx.HTTPError,)

    DEFAULT_MODEL = "llama3"
    DEFAULT_BASE_URL = "http://localhost:11434"
    REQUEST_TIMEOUT = httpx.Timeout(300.0, connect=10.0)

    def __init__(self, model: str = DEFAULT_MODEL, base_url: str = DEFAULT_BASE_URL):
        self.model = model
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings) -> "OllamaProvider":
        config = settings.get_provider_config(cls.name)
        return cls(
            model=config.get("model", cls.DEFAULT_MODEL),
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
            "stream": True,
        }
        if tools:
            body["tools"] = [
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
        return body

    def _convert_messages(self, messages: List[ChatMessage], system_prompt: str) -> List[Dict[str, Any]]:
        converted: List[Dict[str, Any]] = []
        if system_prompt:
            converted.append({"role": "system", "content": system_prompt})

        for msg in messages:
            if msg.role == "assistant":
                entry: Dict[str, Any] = {"role": "assistant", "content": msg.content}
                if msg.tool_calls:
                    entry["tool_calls"] = [
                        {"function": {"name": call.name, "arguments": call.parsed_arguments()}}
                        for call in msg.tool_calls
                    ]
                converted.append(entry)
            elif msg.role == "tool":
                converted.append({"role": "tool", "content": msg.content, "tool_name": msg.tool_name})
            else:
                converted.append({"role": "user", "content": msg.content})

        return converted

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    async def _iter_lines(self, body: Dict[str, Any]) -> AsyncIterator[str]:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.REQUEST_TIMEOUT) as client:
            async with client.stream("POST", "/api/chat", json=body) as response:
                if response.is_error:
                    await response.aread()
                    raise ProviderTransportError(
                        f"ollama request failed: HTTP {response.status_code}: {response.text[:200]}",
                        status_code=response.status_code,
                        provider=self.name,
                    )
                async for line in response.aiter_lines():
                    yield line

    # ========================================================================
    # DECODING
    # ========================================================================

    async def decode_lines(self, lines: AsyncIterator[str]) -> AsyncIterator[StreamChunk]:
        stop_reason: Optional[str] = None

        async for line in lines:
            line = line.strip()
            if not line:
                continue

            data = load_json_line(line, self.name)
            if data is None:
                continue

            if data.get("error"):
                raise ProviderTransportError(f"ollama stream error: {data['error']}", provider=self.name)

            message = as_dict(data.get("message"))
            content = as_text(message.get("content"))
            if content:
                yield TextDelta(content)

            for call in as_list(message.get("tool_calls")):
                function = as_dict(call.get("function")) if isinstance(call, dict) else {}
                if not function:
                    logger.warning(f"ollama: skipping malformed tool call: {call!r}")
                    continue
                call_id = as_text(call.get("id")) or f"call_{uuid.uuid4().hex[:8]}"
                arguments = function.get("arguments", {})
                fragment = arguments if isinstance(arguments, str) else json.dumps(arguments)

                yield ToolCallStart(call_id, as_text(function.get("name")))
                yield ToolCallArgChunk(call_id, fragment)
                yield ToolCallDone(call_id)

            if data.get("done"):
                stop_reason = as_text(data.get("done_reason")) or None
                break

        yield StreamDone(stop_reason)


__all__ = ["OllamaProvider"]
