"""
Graph editing tools for Blueprint AI.

Built-in capabilities:
- nodes: create_node, delete_node, update_node
- connections: connect_pins, disconnect_pins
- annotations: create_comment, create_variable
- inspection: get_blueprint_state
- layout: auto_layout
- interaction: ask_user

Every tool takes (args, state) and returns a ToolResult; ToolExecutor is
the failure boundary between tool logic and the agent loop.
"""

from blueprint_ai.tools.registry import (
    ToolResult,
    ToolDefinition,
    ToolRegistry,
    get_tool_registry,
)
from blueprint_ai.tools.executor import ToolExecutor

__all__ = [
    "ToolResult",
    "ToolDefinition",
    "ToolRegistry",
    "get_tool_registry",
    "ToolExecutor",
]
