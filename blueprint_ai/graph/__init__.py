"""
Blueprint graph model and its versioned, undoable state manager.
"""

from blueprint_ai.graph.models import (
    PinType,
    PinDirection,
    NodeStyle,
    DeltaType,
    Pin,
    BlueprintNode,
    Connection,
    BlueprintComment,
    BlueprintVariable,
    Blueprint,
    GraphDelta,
)
from blueprint_ai.graph.state import StateManager

__all__ = [
    "PinType",
    "PinDirection",
    "NodeStyle",
    "DeltaType",
    "Pin",
    "BlueprintNode",
    "Connection",
    "BlueprintComment",
    "BlueprintVariable",
    "Blueprint",
    "GraphDelta",
    "StateManager",
]
