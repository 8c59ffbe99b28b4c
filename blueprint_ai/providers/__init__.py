"""
Streaming chat providers for Blueprint AI.

Adapters:
- openai: chat-completions SSE
- anthropic: messages SSE
- ollama: native /api/chat NDJSON

All of them yield the same canonical chunk sequence (see base.py).
"""

from blueprint_ai.providers.base import (
    ChatMessage,
    ChatProvider,
    StreamChunk,
    StreamDone,
    TextDelta,
    ToolCallArgChunk,
    ToolCallDone,
    ToolCallRecord,
    ToolCallStart,
)
from blueprint_ai.providers.registry import (
    ProviderRegistry,
    get_provider,
    get_provider_registry,
    reset_provider_registry,
)

__all__ = [
    "ChatMessage",
    "ChatProvider",
    "StreamChunk",
    "StreamDone",
    "TextDelta",
    "ToolCallArgChunk",
    "ToolCallDone",
    "ToolCallRecord",
    "ToolCallStart",
    "ProviderRegistry",
    "get_provider",
    "get_provider_registry",
    "reset_provider_registry",
]
