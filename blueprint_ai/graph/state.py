"""
Versioned graph state with undo/redo for Blueprint AI.

StateManager is the only writer of a session's Blueprint. Every mutating
operation follows the same protocol:

1. serialize the current graph onto the undo stack and clear redo
2. apply the change
3. bump version by one (per delta for cascades)
4. return the delta(s), whose payloads are deep copies

Undo and redo restore a snapshot *into the same Blueprint object* and
bump the running version; they never roll the counter back, so clients
can always tell a newer state from an older one.

Lookups that fail raise StateInvariantError before anything is
snapshotted, so a rejected mutation leaves no trace in history.
"""

import logging
from typing import Dict, List, Optional, Any

from blueprint_ai.core.errors import StateInvariantError
from blueprint_ai.graph.models import (
    Blueprint,
    BlueprintNode,
    BlueprintComment,
    BlueprintVariable,
    Connection,
    DeltaType,
    GraphDelta,
)

logger = logging.getLogger(__name__)


class StateManager:
    """
    Owns one Blueprint plus its undo/redo history.

    Example:
        >>> state = StateManager()
        >>> delta = state.add_node(BlueprintNode(title="Event BeginPlay"))
        >>> delta.version
        1
        >>> state.undo().type
        <DeltaType.FULL_SYNC: 'FullSync'>
    """

    def __init__(self, blueprint: Optional[Blueprint] = None):
        self._graph = blueprint or Blueprint()
        self._undo_stack: List[str] = []
        self._redo_stack: List[str] = []

    # ========================================================================
    # READ ACCESS
    # ========================================================================

    @property
    def graph(self) -> Blueprint:
        return self._graph

    @property
    def version(self) -> int:
        return self._graph.version

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def find_node(self, node_id: str) -> Optional[BlueprintNode]:
        return next((n for n in self._graph.nodes if n.id == node_id), None)

    def find_connection(self, connection_id: str) -> Optional[Connection]:
        return next((c for c in self._graph.connections if c.id == connection_id), None)

    def find_comment(self, comment_id: str) -> Optional[BlueprintComment]:
        return next((c for c in self._graph.comments if c.id == comment_id), None)

    def find_variable(self, variable_id: str) -> Optional[BlueprintVariable]:
        return next((v for v in self._graph.variables if v.id == variable_id), None)

    def full_sync(self) -> GraphDelta:
        """FullSync delta of the current graph, without mutating it."""
        return self._delta(DeltaType.FULL_SYNC, full_state=self._graph)

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    def _snapshot(self) -> None:
        self._undo_stack.append(self._graph.model_dump_json())
        self._redo_stack.clear()

    def _bump(self) -> int:
        self._graph.version += 1
        return self._graph.version

    def _delta(self, delta_type: DeltaType, **payload: Any) -> GraphDelta:
        copies = {
            key: value.model_copy(deep=True) if hasattr(value, "model_copy") else value
            for key, value in payload.items()
        }
        return GraphDelta(type=delta_type, version=self._graph.version, **copies)

    def _require_node(self, node_id: str) -> BlueprintNode:
        node = self.find_node(node_id)
        if node is None:
            raise StateInvariantError(f"Node '{node_id}' not found")
        return node

    def _refresh_pin_flags(self, connection: Connection) -> None:
        """Recompute is_connected for both endpoints of a removed connection."""
        for node_id, pin_id in (
            (connection.source_node_id, connection.source_pin_id),
            (connection.target_node_id, connection.target_pin_id),
        ):
            node = self.find_node(node_id)
            pin = node.find_pin(pin_id) if node else None
            if pin is not None:
                pin.is_connected = any(
                    pin_id in (c.source_pin_id, c.target_pin_id)
                    for c in self._graph.connections
                )

    # ========================================================================
    # NODES
    # ========================================================================

    def add_node(self, node: BlueprintNode) -> GraphDelta:
        """Append a node. Returns NodeAdded."""
        if self.find_node(node.id) is not None:
            raise StateInvariantError(f"Node '{node.id}' already exists")

        self._snapshot()
        self._graph.nodes.append(node)
        self._bump()
        logger.debug(f"Node added: {node.title} ({node.id})")
        return self._delta(DeltaType.NODE_ADDED, node=node)

    def remove_node(self, node_id: str) -> List[GraphDelta]:
        """
        Remove a node and every connection touching it.

        Returns:
            One ConnectionRemoved per touching connection in graph order,
            then NodeRemoved. Each delta carries its own version.
        """
        node = self._require_node(node_id)

        self._snapshot()
        deltas: List[GraphDelta] = []
        for connection in [c for c in self._graph.connections if c.touches(node_id)]:
            self._graph.connections.remove(connection)
            self._refresh_pin_flags(connection)
            self._bump()
            deltas.append(self._delta(DeltaType.CONNECTION_REMOVED, removed_id=connection.id))

        self._graph.nodes.remove(node)
        self._bump()
        deltas.append(self._delta(DeltaType.NODE_REMOVED, removed_id=node_id))

        logger.debug(f"Node removed: {node_id} ({len(deltas) - 1} connection(s))")
        return deltas

    def update_node(
        self,
        node_id: str,
        title: Optional[str] = None,
        position_x: Optional[float] = None,
        position_y: Optional[float] = None,
        pin_defaults: Optional[Dict[str, Optional[str]]] = None,
        is_compact: Optional[bool] = None,
    ) -> GraphDelta:
        """
        Change node fields in place. Returns NodeUpdated.

        pin_defaults maps pin name to new default; names that match no pin
        are ignored.
        """
        node = self._require_node(node_id)

        self._snapshot()
        if title is not None:
            node.title = title
        if position_x is not None:
            node.position_x = position_x
        if position_y is not None:
            node.position_y = position_y
        if is_compact is not None:
            node.is_compact = is_compact
        for pin_name, value in (pin_defaults or {}).items():
            pin = node.find_pin_by_name(pin_name)
            if pin is not None:
                pin.default_value = value
        self._bump()
        return self._delta(DeltaType.NODE_UPDATED, node=node)

    def move_nodes(self, positions: Dict[str, tuple]) -> List[GraphDelta]:
        """
        Reposition several nodes as one undoable step.

        Args:
            positions: node id -> (x, y), applied in dict order.

        Returns:
            One NodeUpdated per node, each carrying its own version.
        """
        nodes = [self._require_node(node_id) for node_id in positions]
        if not nodes:
            return []

        self._snapshot()
        deltas = []
        for node in nodes:
            node.position_x, node.position_y = positions[node.id]
            self._bump()
            deltas.append(self._delta(DeltaType.NODE_UPDATED, node=node))
        return deltas

    # ========================================================================
    # CONNECTIONS
    # ========================================================================

    def add_connection(self, connection: Connection) -> GraphDelta:
        """
        Add a connection between existing pins. Returns ConnectionAdded.

        Marks both endpoint pins as connected.
        """
        source = self._require_node(connection.source_node_id)
        target = self._require_node(connection.target_node_id)
        source_pin = source.find_pin(connection.source_pin_id)
        target_pin = target.find_pin(connection.target_pin_id)
        if source_pin is None:
            raise StateInvariantError(f"Pin '{connection.source_pin_id}' not found on node '{source.title}'")
        if target_pin is None:
            raise StateInvariantError(f"Pin '{connection.target_pin_id}' not found on node '{target.title}'")

        self._snapshot()
        self._graph.connections.append(connection)
        source_pin.is_connected = True
        target_pin.is_connected = True
        self._bump()
        return self._delta(DeltaType.CONNECTION_ADDED, connection=connection)

    def remove_connection(self, connection_id: str) -> GraphDelta:
        """Remove a connection. Returns ConnectionRemoved."""
        connection = self.find_connection(connection_id)
        if connection is None:
            raise StateInvariantError(f"Connection '{connection_id}' not found")

        self._snapshot()
        self._graph.connections.remove(connection)
        self._refresh_pin_flags(connection)
        self._bump()
        return self._delta(DeltaType.CONNECTION_REMOVED, removed_id=connection_id)

    # ========================================================================
    # COMMENTS AND VARIABLES
    # ========================================================================

    def add_comment(self, comment: BlueprintComment) -> GraphDelta:
        self._snapshot()
        self._graph.comments.append(comment)
        self._bump()
        return self._delta(DeltaType.COMMENT_ADDED, comment=comment)

    def remove_comment(self, comment_id: str) -> GraphDelta:
        comment = self.find_comment(comment_id)
        if comment is None:
            raise StateInvariantError(f"Comment '{comment_id}' not found")

        self._snapshot()
        self._graph.comments.remove(comment)
        self._bump()
        return self._delta(DeltaType.COMMENT_REMOVED, removed_id=comment_id)

    def add_variable(self, variable: BlueprintVariable) -> GraphDelta:
        self._snapshot()
        self._graph.variables.append(variable)
        self._bump()
        return self._delta(DeltaType.VARIABLE_ADDED, variable=variable)

    def remove_variable(self, variable_id: str) -> GraphDelta:
        variable = self.find_variable(variable_id)
        if variable is None:
            raise StateInvariantError(f"Variable '{variable_id}' not found")

        self._snapshot()
        self._graph.variables.remove(variable)
        self._bump()
        return self._delta(DeltaType.VARIABLE_REMOVED, removed_id=variable_id)

    # ========================================================================
    # HISTORY
    # ========================================================================

    def _restore(self, snapshot: str) -> None:
        """Copy snapshot contents into the live graph, keeping its identity."""
        restored = Blueprint.model_validate_json(snapshot)
        self._graph.name = restored.name
        self._graph.nodes[:] = restored.nodes
        self._graph.connections[:] = restored.connections
        self._graph.comments[:] = restored.comments
        self._graph.variables[:] = restored.variables

    def undo(self) -> Optional[GraphDelta]:
        """
        Step back one mutation.

        Returns:
            FullSync of the restored graph, or None if there is no history.
        """
        if not self._undo_stack:
            return None

        self._redo_stack.append(self._graph.model_dump_json())
        self._restore(self._undo_stack.pop())
        self._bump()
        logger.debug(f"Undo applied, version {self.version}")
        return self.full_sync()

    def redo(self) -> Optional[GraphDelta]:
        """
        Re-apply the most recently undone mutation.

        Returns:
            FullSync of the restored graph, or None if nothing was undone.
        """
        if not self._redo_stack:
            return None

        self._undo_stack.append(self._graph.model_dump_json())
        self._restore(self._redo_stack.pop())
        self._bump()
        logger.debug(f"Redo applied, version {self.version}")
        return self.full_sync()

    def replace_graph(self, blueprint: Blueprint) -> GraphDelta:
        """
        Replace the graph contents with an imported Blueprint (undoable).

        The live graph keeps its id; the imported name and entities are
        copied in and the version moves forward.

        Returns:
            FullSync of the new graph.
        """
        self._snapshot()
        self._restore(blueprint.model_dump_json())
        self._bump()
        logger.info(f"Graph replaced: {len(self._graph.nodes)} nodes, {len(self._graph.connections)} connections")
        return self.full_sync()


__all__ = ["StateManager"]
