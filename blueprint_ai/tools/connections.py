"""
Connection tools: connect_pins, disconnect_pins.

Pins are addressed by node id plus pin name; the source pin must be an
output and the target pin an input.
"""

import logging

from blueprint_ai.core.errors import ToolHandlerError
from blueprint_ai.graph.models import BlueprintNode, Connection, GraphModel, Pin, PinType
from blueprint_ai.graph.state import StateManager
from blueprint_ai.tools.registry import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)


class PinLinkArgs(GraphModel):
    source_node_id: str
    source_pin_name: str
    target_node_id: str
    target_pin_name: str


def types_compatible(source: PinType, target: PinType) -> bool:
    """
    Whether a source pin may feed a target pin.

    Exec and Wildcard sources connect to anything, Wildcard targets accept
    anything; otherwise types must match exactly.
    """
    if source in (PinType.EXEC, PinType.WILDCARD) or target == PinType.WILDCARD:
        return True
    return source == target


def _resolve_endpoints(spec: PinLinkArgs, state: StateManager):
    source_node = state.find_node(spec.source_node_id)
    if source_node is None:
        raise ToolHandlerError(f"Source node '{spec.source_node_id}' not found")

    target_node = state.find_node(spec.target_node_id)
    if target_node is None:
        raise ToolHandlerError(f"Target node '{spec.target_node_id}' not found")

    source_pin = source_node.find_output_pin(spec.source_pin_name)
    if source_pin is None:
        raise ToolHandlerError(
            f"Output pin '{spec.source_pin_name}' not found on node '{source_node.title}'"
        )

    target_pin = target_node.find_input_pin(spec.target_pin_name)
    if target_pin is None:
        raise ToolHandlerError(
            f"Input pin '{spec.target_pin_name}' not found on node '{target_node.title}'"
        )

    return source_node, source_pin, target_node, target_pin


def _label(node: BlueprintNode, pin: Pin) -> str:
    return f"{node.title}.{pin.name}"


def connect_pins(args: dict, state: StateManager) -> ToolResult:
    """Connect an output pin to an input pin after a type check."""
    spec = PinLinkArgs.model_validate(args)
    source_node, source_pin, target_node, target_pin = _resolve_endpoints(spec, state)

    if not types_compatible(source_pin.type, target_pin.type):
        raise ToolHandlerError(
            f"Type mismatch: cannot connect {source_pin.type.value} to {target_pin.type.value}"
        )

    connection = Connection(
        source_node_id=source_node.id,
        source_pin_id=source_pin.id,
        target_node_id=target_node.id,
        target_pin_id=target_pin.id,
        pin_type=source_pin.type,
    )
    delta = state.add_connection(connection)

    return ToolResult(
        success=True,
        message=f"Connected {_label(source_node, source_pin)} → {_label(target_node, target_pin)}",
        deltas=[delta],
    )


def disconnect_pins(args: dict, state: StateManager) -> ToolResult:
    spec = PinLinkArgs.model_validate(args)
    source_node, source_pin, target_node, target_pin = _resolve_endpoints(spec, state)

    connection = next(
        (
            c for c in state.graph.connections
            if c.source_pin_id == source_pin.id and c.target_pin_id == target_pin.id
        ),
        None,
    )
    if connection is None:
        raise ToolHandlerError("Connection not found")

    delta = state.remove_connection(connection.id)
    return ToolResult(
        success=True,
        message=f"Disconnected {_label(source_node, source_pin)} from {_label(target_node, target_pin)}",
        deltas=[delta],
    )


_LINK_SCHEMA = {
    "type": "object",
    "properties": {
        "sourceNodeId": {"type": "string", "description": "ID of the source node"},
        "sourcePinName": {"type": "string", "description": "Name of the output pin on source node"},
        "targetNodeId": {"type": "string", "description": "ID of the target node"},
        "targetPinName": {"type": "string", "description": "Name of the input pin on target node"},
    },
    "required": ["sourceNodeId", "sourcePinName", "targetNodeId", "targetPinName"],
}

CONNECT_PINS_TOOL = ToolDefinition(
    name="connect_pins",
    description="Connect an output pin of one node to an input pin of another node.",
    function=connect_pins,
    parameters=_LINK_SCHEMA,
)

DISCONNECT_PINS_TOOL = ToolDefinition(
    name="disconnect_pins",
    description="Remove a connection between two pins.",
    function=disconnect_pins,
    parameters=_LINK_SCHEMA,
)

TOOLS = [CONNECT_PINS_TOOL, DISCONNECT_PINS_TOOL]


__all__ = [
    "types_compatible",
    "connect_pins",
    "disconnect_pins",
    "CONNECT_PINS_TOOL",
    "DISCONNECT_PINS_TOOL",
    "TOOLS",
]
