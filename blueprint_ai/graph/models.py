"""
Graph Models for Blueprint AI.

Pydantic models for the Blueprint graph and the deltas emitted when it
changes. Field names are snake_case in Python and camelCase on the wire
(positionX, inputPins, isConnected, removedId, fullState).

Entities reference each other by id only: a Connection stores node and pin
ids, never objects.
"""

import uuid
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_id() -> str:
    """Generate a fresh entity id."""
    return str(uuid.uuid4())


# ============================================================================
# ENUMS
# ============================================================================

class PinType(str, Enum):
    """Data type carried by a pin."""

    EXEC = "Exec"
    BOOL = "Bool"
    INT = "Int"
    FLOAT = "Float"
    STRING = "String"
    VECTOR = "Vector"
    ROTATOR = "Rotator"
    TRANSFORM = "Transform"
    OBJECT = "Object"
    CLASS = "Class"
    BYTE = "Byte"
    NAME = "Name"
    TEXT = "Text"
    ENUM = "Enum"
    STRUCT = "Struct"
    ARRAY = "Array"
    SET = "Set"
    MAP = "Map"
    DELEGATE = "Delegate"
    WILDCARD = "Wildcard"


class PinDirection(str, Enum):
    INPUT = "Input"
    OUTPUT = "Output"


class NodeStyle(str, Enum):
    """Visual style (header colour) of a node."""

    EVENT = "Event"
    FUNCTION = "Function"
    PURE = "Pure"
    FLOW_CONTROL = "FlowControl"
    VARIABLE = "Variable"
    MACRO = "Macro"
    COMMENT = "Comment"


class DeltaType(str, Enum):
    """Kind of change carried by a GraphDelta."""

    NODE_ADDED = "NodeAdded"
    NODE_REMOVED = "NodeRemoved"
    NODE_UPDATED = "NodeUpdated"
    CONNECTION_ADDED = "ConnectionAdded"
    CONNECTION_REMOVED = "ConnectionRemoved"
    COMMENT_ADDED = "CommentAdded"
    COMMENT_REMOVED = "CommentRemoved"
    VARIABLE_ADDED = "VariableAdded"
    VARIABLE_REMOVED = "VariableRemoved"
    FULL_SYNC = "FullSync"


# ============================================================================
# BASE MODEL
# ============================================================================

class GraphModel(BaseModel):
    """Base for graph entities: camelCase aliases, populate by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """JSON-safe dict with camelCase keys, as sent to clients."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# ENTITIES
# ============================================================================

class Pin(GraphModel):
    """
    A typed input or output slot on a node.

    Attributes:
        id: Unique pin id.
        name: Display name, unique per side of a node by convention.
        type: PinType of the value carried.
        direction: Input or Output.
        default_value: Literal value used when the pin is unconnected.
        sub_type: Element/struct type name for container pins.
        is_connected: True while at least one connection uses the pin.
    """

    id: str = Field(default_factory=new_id)
    name: str = ""
    type: PinType = PinType.EXEC
    direction: PinDirection = PinDirection.INPUT
    default_value: Optional[str] = None
    sub_type: Optional[str] = None
    is_connected: bool = False


class BlueprintNode(GraphModel):
    """A node on the canvas with ordered input and output pins."""

    id: str = Field(default_factory=new_id)
    title: str = ""
    category: str = ""
    style: NodeStyle = NodeStyle.FUNCTION
    input_pins: List[Pin] = Field(default_factory=list)
    output_pins: List[Pin] = Field(default_factory=list)
    position_x: float = 0.0
    position_y: float = 0.0
    is_compact: bool = False

    def find_input_pin(self, name: str) -> Optional[Pin]:
        return next((p for p in self.input_pins if p.name == name), None)

    def find_output_pin(self, name: str) -> Optional[Pin]:
        return next((p for p in self.output_pins if p.name == name), None)

    def find_pin(self, pin_id: str) -> Optional[Pin]:
        """Look up a pin by id on either side."""
        for pin in self.input_pins + self.output_pins:
            if pin.id == pin_id:
                return pin
        return None

    def find_pin_by_name(self, name: str) -> Optional[Pin]:
        """Look up a pin by name, inputs first."""
        return self.find_input_pin(name) or self.find_output_pin(name)


class Connection(GraphModel):
    """A directed link from an output pin to an input pin."""

    id: str = Field(default_factory=new_id)
    source_node_id: str
    source_pin_id: str
    target_node_id: str
    target_pin_id: str
    pin_type: PinType = PinType.EXEC

    def touches(self, node_id: str) -> bool:
        return self.source_node_id == node_id or self.target_node_id == node_id


class BlueprintComment(GraphModel):
    """A free-floating comment box."""

    id: str = Field(default_factory=new_id)
    text: str = ""
    position_x: float = 0.0
    position_y: float = 0.0
    width: float = 400.0
    height: float = 200.0
    color: str = "#FFFFFF"


class BlueprintVariable(GraphModel):
    """A graph-level variable usable from Get/Set nodes."""

    id: str = Field(default_factory=new_id)
    name: str = ""
    type: PinType = PinType.BOOL
    default_value: Optional[str] = None
    category: str = ""
    is_editable: bool = True


class Blueprint(GraphModel):
    """
    The complete graph owned by one session.

    version starts at 0 and increases by exactly one per applied mutation.
    """

    id: str = Field(default_factory=new_id)
    name: str = "NewBlueprint"
    nodes: List[BlueprintNode] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)
    comments: List[BlueprintComment] = Field(default_factory=list)
    variables: List[BlueprintVariable] = Field(default_factory=list)
    version: int = 0


# ============================================================================
# DELTA
# ============================================================================

class GraphDelta(GraphModel):
    """
    Minimal description of one graph change.

    Exactly one payload field is set, matching `type`:
    node / connection / comment / variable for additions and updates,
    removed_id for removals, full_state for FullSync.
    Payloads are deep copies taken at mutation time.
    """

    type: DeltaType
    node: Optional[BlueprintNode] = None
    connection: Optional[Connection] = None
    comment: Optional[BlueprintComment] = None
    variable: Optional[BlueprintVariable] = None
    removed_id: Optional[str] = None
    full_state: Optional[Blueprint] = None
    version: int


__all__ = [
    "new_id",
    "PinType",
    "PinDirection",
    "NodeStyle",
    "DeltaType",
    "GraphModel",
    "Pin",
    "BlueprintNode",
    "Connection",
    "BlueprintComment",
    "BlueprintVariable",
    "Blueprint",
    "GraphDelta",
]
