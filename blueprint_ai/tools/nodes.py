"""
Node tools: create_node, delete_node, update_node.
"""

import logging
from typing import Dict, List, Optional

from pydantic import Field

from blueprint_ai.core.errors import ToolHandlerError
from blueprint_ai.graph.models import (
    BlueprintNode,
    GraphModel,
    NodeStyle,
    Pin,
    PinDirection,
    PinType,
)
from blueprint_ai.graph.state import StateManager
from blueprint_ai.tools.registry import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_WIDTH = 300
DEFAULT_ROW_Y = 200

_PIN_TYPE_NAMES = [
    "Exec", "Bool", "Int", "Float", "String", "Vector", "Rotator",
    "Transform", "Object", "Class", "Wildcard",
]


# ============================================================================
# ARGUMENT MODELS
# ============================================================================

class PinSpec(GraphModel):
    name: str
    type: PinType
    default_value: Optional[str] = None


class CreateNodeArgs(GraphModel):
    title: str
    category: str
    style: NodeStyle
    input_pins: List[PinSpec] = Field(default_factory=list)
    output_pins: List[PinSpec] = Field(default_factory=list)
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    is_compact: bool = False


class DeleteNodeArgs(GraphModel):
    node_id: str


class UpdateNodeArgs(GraphModel):
    node_id: str
    title: Optional[str] = None
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    pin_defaults: Dict[str, Optional[str]] = Field(default_factory=dict)
    is_compact: Optional[bool] = None


# ============================================================================
# HANDLERS
# ============================================================================

def create_node(args: dict, state: StateManager) -> ToolResult:
    """
    Create a node with its pins.

    Nodes without an explicit position are placed in the next free column
    (x = node count * 300, y = 200).
    """
    spec = CreateNodeArgs.model_validate(args)

    node = BlueprintNode(
        title=spec.title,
        category=spec.category,
        style=spec.style,
        position_x=spec.position_x if spec.position_x is not None else len(state.graph.nodes) * DEFAULT_COLUMN_WIDTH,
        position_y=spec.position_y if spec.position_y is not None else DEFAULT_ROW_Y,
        is_compact=spec.is_compact,
        input_pins=[
            Pin(name=p.name, type=p.type, direction=PinDirection.INPUT, default_value=p.default_value)
            for p in spec.input_pins
        ],
        output_pins=[
            Pin(name=p.name, type=p.type, direction=PinDirection.OUTPUT)
            for p in spec.output_pins
        ],
    )

    delta = state.add_node(node)
    return ToolResult(
        success=True,
        message=f"Created node '{node.title}' with id '{node.id}'",
        deltas=[delta],
    )


def delete_node(args: dict, state: StateManager) -> ToolResult:
    """Delete a node; its connections are removed first."""
    spec = DeleteNodeArgs.model_validate(args)

    node = state.find_node(spec.node_id)
    if node is None:
        raise ToolHandlerError(f"Node '{spec.node_id}' not found")

    title = node.title
    deltas = state.remove_node(spec.node_id)
    return ToolResult(
        success=True,
        message=f"Deleted node '{title}' and {len(deltas) - 1} connection(s)",
        deltas=deltas,
    )


def update_node(args: dict, state: StateManager) -> ToolResult:
    spec = UpdateNodeArgs.model_validate(args)

    if state.find_node(spec.node_id) is None:
        raise ToolHandlerError(f"Node '{spec.node_id}' not found")

    delta = state.update_node(
        spec.node_id,
        title=spec.title,
        position_x=spec.position_x,
        position_y=spec.position_y,
        pin_defaults=spec.pin_defaults,
        is_compact=spec.is_compact,
    )
    return ToolResult(
        success=True,
        message=f"Updated node '{delta.node.title}'",
        deltas=[delta],
    )


# ============================================================================
# DEFINITIONS
# ============================================================================

def _pin_array_schema(with_default: bool) -> dict:
    properties = {
        "name": {"type": "string"},
        "type": {"type": "string", "enum": _PIN_TYPE_NAMES},
    }
    if with_default:
        properties["defaultValue"] = {"type": "string"}
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": properties,
            "required": ["name", "type"],
        },
    }


CREATE_NODE_TOOL = ToolDefinition(
    name="create_node",
    description="Create a new Blueprint node with specified title, category, style, pins, and position.",
    function=create_node,
    parameters={
        "type": "object",
        "properties": {
            "title": {
                "type": "string",
                "description": "Display title of the node (e.g., 'Print String', 'Event BeginPlay')",
            },
            "category": {
                "type": "string",
                "description": "Node category (e.g., 'Flow Control', 'String', 'Utilities')",
            },
            "style": {
                "type": "string",
                "enum": ["Event", "Function", "Pure", "FlowControl", "Variable", "Macro"],
                "description": "Visual style determining header color",
            },
            "inputPins": _pin_array_schema(with_default=True),
            "outputPins": _pin_array_schema(with_default=False),
            "positionX": {"type": "number", "description": "X coordinate on canvas"},
            "positionY": {"type": "number", "description": "Y coordinate on canvas"},
            "isCompact": {"type": "boolean", "description": "Whether to render as compact node"},
        },
        "required": ["title", "category", "style", "inputPins", "outputPins"],
    },
)

DELETE_NODE_TOOL = ToolDefinition(
    name="delete_node",
    description="Delete a node and all its connections from the blueprint.",
    function=delete_node,
    parameters={
        "type": "object",
        "properties": {
            "nodeId": {"type": "string", "description": "ID of the node to delete"},
        },
        "required": ["nodeId"],
    },
)

UPDATE_NODE_TOOL = ToolDefinition(
    name="update_node",
    description="Update an existing node's title, position, or pin default values.",
    function=update_node,
    parameters={
        "type": "object",
        "properties": {
            "nodeId": {"type": "string", "description": "ID of the node to update"},
            "title": {"type": "string", "description": "New title"},
            "positionX": {"type": "number"},
            "positionY": {"type": "number"},
            "isCompact": {"type": "boolean"},
            "pinDefaults": {
                "type": "object",
                "description": "Map of pin name to new default value",
                "additionalProperties": {"type": "string"},
            },
        },
        "required": ["nodeId"],
    },
)

TOOLS = [CREATE_NODE_TOOL, DELETE_NODE_TOOL, UPDATE_NODE_TOOL]


__all__ = [
    "create_node",
    "delete_node",
    "update_node",
    "CREATE_NODE_TOOL",
    "DELETE_NODE_TOOL",
    "UPDATE_NODE_TOOL",
    "TOOLS",
]
