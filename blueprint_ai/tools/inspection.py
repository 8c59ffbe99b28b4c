"""
Inspection tool: get_blueprint_state.

Renders the graph as plain text so the model can reason about what is
already on the canvas. Read-only; produces no deltas.
"""

from typing import List

from blueprint_ai.graph.models import Blueprint, Pin
from blueprint_ai.graph.state import StateManager
from blueprint_ai.tools.registry import ToolDefinition, ToolResult


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _pin_line(prefix: str, pin: Pin) -> str:
    line = f"    {prefix}: {pin.name} ({pin.type.value})"
    if pin.default_value is not None:
        line += f" = {pin.default_value}"
    if pin.is_connected:
        line += " [connected]"
    return line


def describe_blueprint(graph: Blueprint) -> str:
    """
    Text summary of a graph: nodes with pins, connections, variables
    and comments.
    """
    lines: List[str] = [f"Blueprint: {graph.name} (v{graph.version})"]

    lines.append(f"Nodes ({len(graph.nodes)}):")
    for node in graph.nodes:
        lines.append(
            f"  - [{node.id}] {node.title} ({node.style.value}) at "
            f"({_format_number(node.position_x)}, {_format_number(node.position_y)})"
        )
        lines.extend(_pin_line("IN", pin) for pin in node.input_pins)
        lines.extend(_pin_line("OUT", pin) for pin in node.output_pins)

    titles = {node.id: node for node in graph.nodes}
    lines.append(f"Connections ({len(graph.connections)}):")
    for conn in graph.connections:
        source = titles.get(conn.source_node_id)
        target = titles.get(conn.target_node_id)
        source_pin = source.find_pin(conn.source_pin_id) if source else None
        target_pin = target.find_pin(conn.target_pin_id) if target else None
        source_label = f"{source.title}.{source_pin.name}" if source and source_pin else conn.source_pin_id
        target_label = f"{target.title}.{target_pin.name}" if target and target_pin else conn.target_pin_id
        lines.append(
            f"  - [{conn.source_node_id}] {source_label} → [{conn.target_node_id}] {target_label} "
            f"({conn.pin_type.value})"
        )

    lines.append(f"Variables ({len(graph.variables)}):")
    for variable in graph.variables:
        line = f"  - {variable.name}: {variable.type.value}"
        if variable.default_value is not None:
            line += f" = {variable.default_value}"
        lines.append(line)

    if graph.comments:
        lines.append(f"Comments ({len(graph.comments)}):")
        lines.extend(f"  - {comment.text}" for comment in graph.comments)

    return "\n".join(lines)


def get_blueprint_state(args: dict, state: StateManager) -> ToolResult:
    return ToolResult(success=True, message=describe_blueprint(state.graph))


GET_BLUEPRINT_STATE_TOOL = ToolDefinition(
    name="get_blueprint_state",
    description=(
        "Get the current state of the blueprint, including all nodes, connections, "
        "variables, and comments."
    ),
    function=get_blueprint_state,
    parameters={"type": "object", "properties": {}},
)

TOOLS = [GET_BLUEPRINT_STATE_TOOL]


__all__ = ["describe_blueprint", "get_blueprint_state", "GET_BLUEPRINT_STATE_TOOL", "TOOLS"]
