"""
Tool Executor for Blueprint AI.

Turns a (tool name, raw argument text) pair produced by the model into a
ToolResult. The executor never raises: unknown tools, unparsable
arguments and capability failures all come back as failed results so the
model can read the error and try again.
"""

import inspect
import json
import logging
from typing import Any, Dict

from blueprint_ai.core.errors import ToolHandlerError, ToolValidationError
from blueprint_ai.graph.state import StateManager
from blueprint_ai.tools.registry import ToolRegistry, ToolResult

logger = logging.getLogger(__name__)


class ToolExecutor:
    """
    Executes registered tools against a session's StateManager.

    Example:
        >>> executor = ToolExecutor(registry)
        >>> result = await executor.execute("auto_layout", "{}", state)
        >>> result.success
        True
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def execute(self, name: str, arguments_json: str, state: StateManager) -> ToolResult:
        """
        Execute a tool by name.

        Args:
            name: Tool name requested by the model.
            arguments_json: Concatenated argument fragments. Blank text is
                treated as an empty object.
            state: Session state the tool operates on.

        Returns:
            ToolResult (success or failure).
        """
        tool = self.registry.get_tool(name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {name}")
            return ToolResult.failure(f"Unknown tool: {name}")

        try:
            args = self._parse_arguments(name, arguments_json)
        except ToolValidationError as e:
            logger.warning(str(e))
            return ToolResult.failure(str(e))

        logger.info(f"Executing tool: {name}")

        try:
            result = tool.function(args, state)
            if inspect.isawaitable(result):
                result = await result
            result = self._coerce_result(name, result)
        except ToolHandlerError as e:
            return ToolResult.failure(str(e))
        except Exception as e:
            logger.error(f"Tool execution failed: {name} - {e}", exc_info=True)
            return ToolResult.failure(f"Tool execution error: {e}")

        logger.debug(f"Tool {name} finished: success={result.success}, deltas={len(result.deltas)}")
        return result

    @staticmethod
    def _coerce_result(name: str, result: Any) -> ToolResult:
        """Accept a ToolResult or a dict of its fields; anything else is a handler bug."""
        if isinstance(result, ToolResult):
            return result
        if isinstance(result, dict):
            return ToolResult.model_validate(result)
        raise TypeError(f"{name} returned {type(result).__name__}, expected ToolResult")

    @staticmethod
    def _parse_arguments(name: str, arguments_json: str) -> Dict[str, Any]:
        if arguments_json is None or not arguments_json.strip():
            return {}

        try:
            args = json.loads(arguments_json)
        except json.JSONDecodeError as e:
            raise ToolValidationError(f"Invalid arguments for {name}: {e}") from e

        if not isinstance(args, dict):
            raise ToolValidationError(
                f"Invalid arguments for {name}: expected a JSON object, got {type(args).__name__}"
            )
        return args


__all__ = ["ToolExecutor"]
