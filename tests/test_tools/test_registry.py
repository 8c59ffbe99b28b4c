"""
Tests for blueprint_ai/tools/registry.py - ToolRegistry.
"""

from blueprint_ai.tools.registry import (
    ToolDefinition,
    ToolRegistry,
    ToolResult,
    get_tool_registry,
)

BUILT_IN_TOOLS = [
    "create_node",
    "delete_node",
    "update_node",
    "connect_pins",
    "disconnect_pins",
    "create_comment",
    "create_variable",
    "get_blueprint_state",
    "auto_layout",
    "ask_user",
]


def _noop(args, state):
    return ToolResult(success=True, message="ok")


class TestToolRegistry:
    """Tests for registration and definitions."""

    def test_default_tools_registered_in_order(self, tool_registry):
        """Test all ten built-ins are offered in registration order."""
        assert tool_registry.list_tools() == BUILT_IN_TOOLS
        assert len(tool_registry) == 10

    def test_definitions_shape(self, tool_registry):
        """Test definitions are provider-neutral name/description/parameters dicts."""
        definitions = tool_registry.get_definitions()

        assert [d["name"] for d in definitions] == BUILT_IN_TOOLS
        for definition in definitions:
            assert set(definition) == {"name", "description", "parameters"}
            assert definition["parameters"]["type"] == "object"

    def test_reregistration_replaces_in_place(self):
        """Test the last registration for a name wins and keeps its slot."""
        registry = ToolRegistry()
        registry.register_tool(ToolDefinition("a", "first", _noop))
        registry.register_tool(ToolDefinition("b", "second", _noop))
        registry.register_tool(ToolDefinition("a", "replaced", _noop))

        assert registry.list_tools() == ["a", "b"]
        assert registry.get_tool("a").description == "replaced"

    def test_lookup(self, tool_registry):
        """Test lookup of known and unknown names."""
        assert "ask_user" in tool_registry
        assert "rm_rf" not in tool_registry
        assert tool_registry.get_tool("rm_rf") is None

    def test_default_parameters(self):
        """Test a definition without a schema gets an empty object schema."""
        tool = ToolDefinition("noop", "does nothing", _noop)
        assert tool.to_definition()["parameters"] == {"type": "object", "properties": {}}

    def test_global_registry_singleton(self):
        """Test get_tool_registry returns one populated instance."""
        registry = get_tool_registry()
        assert registry is get_tool_registry()
        assert registry.list_tools() == BUILT_IN_TOOLS


class TestToolResult:
    """Tests for ToolResult helpers."""

    def test_failure(self):
        result = ToolResult.failure("boom")
        assert result.success is False
        assert result.deltas == []
        assert result.summary() == {"success": False, "message": "boom"}
