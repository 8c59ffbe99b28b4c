"""
Annotation tools: create_comment, create_variable.
"""

from typing import Literal, Optional

from blueprint_ai.graph.models import BlueprintComment, BlueprintVariable, GraphModel, PinType
from blueprint_ai.graph.state import StateManager
from blueprint_ai.tools.registry import ToolDefinition, ToolResult

VARIABLE_TYPES = ["Bool", "Int", "Float", "String", "Vector", "Rotator", "Transform", "Object"]


class CreateCommentArgs(GraphModel):
    text: str
    position_x: float = 0.0
    position_y: float = 0.0
    width: float = 400.0
    height: float = 200.0
    color: str = "#FFFFFF"


class CreateVariableArgs(GraphModel):
    name: str
    type: Literal["Bool", "Int", "Float", "String", "Vector", "Rotator", "Transform", "Object"]
    default_value: Optional[str] = None
    category: str = ""


def create_comment(args: dict, state: StateManager) -> ToolResult:
    spec = CreateCommentArgs.model_validate(args)
    comment = BlueprintComment(**spec.model_dump())

    delta = state.add_comment(comment)
    return ToolResult(
        success=True,
        message=f"Created comment '{comment.text}'",
        deltas=[delta],
    )


def create_variable(args: dict, state: StateManager) -> ToolResult:
    spec = CreateVariableArgs.model_validate(args)
    variable = BlueprintVariable(
        name=spec.name,
        type=PinType(spec.type),
        default_value=spec.default_value,
        category=spec.category,
    )

    delta = state.add_variable(variable)
    return ToolResult(
        success=True,
        message=f"Created variable '{variable.name}' of type {variable.type.value}",
        deltas=[delta],
    )


CREATE_COMMENT_TOOL = ToolDefinition(
    name="create_comment",
    description="Add a comment box to the blueprint canvas.",
    function=create_comment,
    parameters={
        "type": "object",
        "properties": {
            "text": {"type": "string", "description": "Comment text"},
            "positionX": {"type": "number"},
            "positionY": {"type": "number"},
            "width": {"type": "number"},
            "height": {"type": "number"},
            "color": {"type": "string", "description": "Hex color for the comment box"},
        },
        "required": ["text"],
    },
)

CREATE_VARIABLE_TOOL = ToolDefinition(
    name="create_variable",
    description="Declare a blueprint variable that can be used with Get/Set nodes.",
    function=create_variable,
    parameters={
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Variable name"},
            "type": {"type": "string", "enum": VARIABLE_TYPES, "description": "Variable type"},
            "defaultValue": {"type": "string", "description": "Default value"},
            "category": {"type": "string", "description": "Category for organization"},
        },
        "required": ["name", "type"],
    },
)

TOOLS = [CREATE_COMMENT_TOOL, CREATE_VARIABLE_TOOL]


__all__ = [
    "create_comment",
    "create_variable",
    "CREATE_COMMENT_TOOL",
    "CREATE_VARIABLE_TOOL",
    "TOOLS",
]
