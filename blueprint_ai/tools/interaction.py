"""
Interaction tool: ask_user.

Does not touch the graph. Its result carries the question, which makes
the orchestrator end the turn once the current tool batch finishes.
"""

from blueprint_ai.graph.models import GraphModel
from blueprint_ai.graph.state import StateManager
from blueprint_ai.tools.registry import ToolDefinition, ToolResult


class AskUserArgs(GraphModel):
    question: str


def ask_user(args: dict, state: StateManager) -> ToolResult:
    spec = AskUserArgs.model_validate(args)
    return ToolResult(success=True, message=spec.question, ask_user_question=spec.question)


ASK_USER_TOOL = ToolDefinition(
    name="ask_user",
    description="Ask the user a clarifying question when more information is needed to build the blueprint.",
    function=ask_user,
    parameters={
        "type": "object",
        "properties": {
            "question": {"type": "string", "description": "The question to ask the user"},
        },
        "required": ["question"],
    },
)

TOOLS = [ASK_USER_TOOL]


__all__ = ["ask_user", "ASK_USER_TOOL", "TOOLS"]
