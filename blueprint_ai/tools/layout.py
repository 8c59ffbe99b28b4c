"""
Layout tool: auto_layout.

Arranges nodes left to right by their depth in the connection graph.
Nodes with no incoming connections form column 0; every other node sits
one column right of its deepest predecessor. Within a column nodes are
stacked top to bottom in graph order.
"""

from collections import deque
from typing import Dict, List, Optional

from blueprint_ai.graph.models import BlueprintNode, Connection, GraphModel
from blueprint_ai.graph.state import StateManager
from blueprint_ai.tools.registry import ToolDefinition, ToolResult

DEFAULT_SPACING = 300.0
VERTICAL_SPACING = 150.0
ORIGIN_X = 100.0
ORIGIN_Y = 100.0


class AutoLayoutArgs(GraphModel):
    spacing: Optional[float] = None


def compute_levels(nodes: List[BlueprintNode], connections: List[Connection]) -> Dict[str, int]:
    """
    Column index for every node.

    Longest-path levels from the root nodes. Cycles are tolerated: a node's
    level is capped at len(nodes) - 1, so relaxation always terminates.
    """
    outgoing: Dict[str, List[str]] = {node.id: [] for node in nodes}
    incoming: Dict[str, set] = {node.id: set() for node in nodes}
    for conn in connections:
        if conn.source_node_id in outgoing and conn.target_node_id in incoming:
            outgoing[conn.source_node_id].append(conn.target_node_id)
            incoming[conn.target_node_id].add(conn.source_node_id)

    roots = [node.id for node in nodes if not incoming[node.id]]
    if not roots and nodes:
        roots = [nodes[0].id]

    max_level = max(len(nodes) - 1, 0)
    levels: Dict[str, int] = {root: 0 for root in roots}
    queue = deque(roots)
    while queue:
        current = queue.popleft()
        next_level = levels[current] + 1
        if next_level > max_level:
            continue
        for target in outgoing[current]:
            if levels.get(target, -1) < next_level:
                levels[target] = next_level
                queue.append(target)

    for node in nodes:
        levels.setdefault(node.id, 0)
    return levels


def auto_layout(args: dict, state: StateManager) -> ToolResult:
    """Reposition every node; emits one NodeUpdated per node."""
    spec = AutoLayoutArgs.model_validate(args)
    nodes = state.graph.nodes
    if not nodes:
        return ToolResult(success=True, message="No nodes to layout")

    spacing = spec.spacing if spec.spacing is not None else DEFAULT_SPACING
    levels = compute_levels(nodes, state.graph.connections)

    positions = {}
    for level in sorted(set(levels.values())):
        y = ORIGIN_Y
        for node in nodes:
            if levels[node.id] != level:
                continue
            positions[node.id] = (ORIGIN_X + level * spacing, y)
            y += VERTICAL_SPACING

    columns = len(set(levels.values()))
    deltas = state.move_nodes(positions)
    return ToolResult(
        success=True,
        message=f"Arranged {len(nodes)} nodes across {columns} columns",
        deltas=deltas,
    )


AUTO_LAYOUT_TOOL = ToolDefinition(
    name="auto_layout",
    description="Automatically arrange nodes in a left-to-right layout based on execution flow.",
    function=auto_layout,
    parameters={
        "type": "object",
        "properties": {
            "spacing": {"type": "number", "description": "Horizontal spacing between nodes (default 300)"},
        },
    },
)

TOOLS = [AUTO_LAYOUT_TOOL]


__all__ = ["compute_levels", "auto_layout", "AUTO_LAYOUT_TOOL", "TOOLS"]
