"""
Tool Registry for Blueprint AI.

Maps tool names to graph-editing capabilities and exposes their
definitions to model providers.

Architecture:
- Each capability is a ToolDefinition (name, description, JSON schema,
  callable taking (args, state) and returning a ToolResult)
- Registration order is the order definitions are offered to the model
- Re-registering a name replaces the capability but keeps its slot
- Execution lives in ToolExecutor; the registry only stores and describes
"""

from typing import Dict, Any, Callable, Optional, List
import logging

from pydantic import BaseModel, Field

from blueprint_ai.graph.models import GraphDelta

logger = logging.getLogger(__name__)


# ============================================================================
# TOOL RESULT
# ============================================================================

class ToolResult(BaseModel):
    """
    Structured output from a tool execution.

    Attributes:
        success: Whether the tool executed successfully.
        message: Human/model-readable summary (or the error).
        deltas: Graph deltas produced, in emission order.
        ask_user_question: Set only by ask_user; ends the turn after the batch.
    """

    success: bool = Field(..., description="Whether the tool executed successfully")
    message: str = Field(default="", description="Summary fed back to the model")
    deltas: List[GraphDelta] = Field(default_factory=list, description="Graph deltas produced")
    ask_user_question: Optional[str] = Field(None, description="Question for the user, if any")

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(success=False, message=message)

    def summary(self) -> Dict[str, Any]:
        """Client-facing result for tool_call_completed events."""
        return {"success": self.success, "message": self.message}


# ============================================================================
# TOOL METADATA
# ============================================================================

class ToolDefinition:
    """
    Tool metadata for registration.

    Attributes:
        name: Tool name (unique identifier).
        description: Description shown to the model.
        function: Callable (sync or async) invoked as function(args, state).
        parameters: JSON schema of the arguments object.
    """

    def __init__(
        self,
        name: str,
        description: str,
        function: Callable,
        parameters: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.description = description
        self.function = function
        self.parameters = parameters or {"type": "object", "properties": {}}

    def to_definition(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }

    def __repr__(self) -> str:
        return f"ToolDefinition(name={self.name!r})"


# ============================================================================
# TOOL REGISTRY
# ============================================================================

class ToolRegistry:
    """
    Centralized tool registry.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register_default_tools()
        >>> [d["name"] for d in registry.get_definitions()][:2]
        ['create_node', 'delete_node']
    """

    def __init__(self):
        self.tools: Dict[str, ToolDefinition] = {}

    def register_tool(self, tool: ToolDefinition) -> None:
        """
        Register a tool. A later registration for the same name wins.

        Args:
            tool: ToolDefinition to register.
        """
        if tool.name in self.tools:
            logger.warning(f"Tool re-registered, replacing: {tool.name}")

        self.tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def register_default_tools(self) -> None:
        """Register the built-in graph editing tools."""
        from blueprint_ai.tools import (
            nodes,
            connections,
            annotations,
            inspection,
            layout,
            interaction,
        )

        for module in (nodes, connections, annotations, inspection, layout, interaction):
            for tool in module.TOOLS:
                self.register_tool(tool)

        logger.info(f"Registered {len(self.tools)} default tools")

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self.tools.get(name)

    def get_definitions(self) -> List[Dict[str, Any]]:
        """
        Provider-neutral tool definitions in registration order.

        Returns:
            List of {"name", "description", "parameters"} dicts.
        """
        return [tool.to_definition() for tool in self.tools.values()]

    def list_tools(self) -> List[str]:
        return list(self.tools)

    def __len__(self) -> int:
        return len(self.tools)

    def __contains__(self, name: object) -> bool:
        return name in self.tools


# ============================================================================
# DEFAULT REGISTRY
# ============================================================================

_default_registry: Optional[ToolRegistry] = None


def get_tool_registry() -> ToolRegistry:
    """
    Get the shared registry with the built-in tools registered.

    Returns:
        Global ToolRegistry instance.
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = ToolRegistry()
        _default_registry.register_default_tools()
    return _default_registry


def reset_tool_registry() -> None:
    """
    Reset the shared registry.

    WARNING: Only use in tests.
    """
    global _default_registry
    _default_registry = None


__all__ = [
    "ToolResult",
    "ToolDefinition",
    "ToolRegistry",
    "get_tool_registry",
    "reset_tool_registry",
]
