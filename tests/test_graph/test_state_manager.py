"""
Tests for blueprint_ai/graph/state.py - StateManager.

Tests:
- Version increments per delta (including cascades)
- Undo/redo restore contents in place and keep versions increasing
- Rejected mutations leave history untouched
- Delta payloads are detached copies
"""

import pytest

from blueprint_ai.core.errors import StateInvariantError
from blueprint_ai.graph.models import (
    Blueprint,
    BlueprintComment,
    BlueprintNode,
    BlueprintVariable,
    Connection,
    DeltaType,
    PinType,
)
from blueprint_ai.graph.state import StateManager


def _connect(state, source, target, source_pin="Exec", target_pin="Exec"):
    return state.add_connection(Connection(
        source_node_id=source.id,
        source_pin_id=source.find_output_pin(source_pin).id,
        target_node_id=target.id,
        target_pin_id=target.find_input_pin(target_pin).id,
        pin_type=PinType.EXEC,
    ))


class TestMutations:
    """Tests for the mutating operations."""

    def test_add_node_bumps_version(self, state):
        """Test each add_node returns NodeAdded with the new version."""
        first = state.add_node(BlueprintNode(title="A"))
        second = state.add_node(BlueprintNode(title="B"))

        assert first.type == DeltaType.NODE_ADDED
        assert first.version == 1
        assert second.version == 2
        assert state.version == 2

    def test_add_duplicate_node_rejected(self, state):
        """Test re-adding an id raises and records nothing."""
        node = BlueprintNode(title="A")
        state.add_node(node)

        with pytest.raises(StateInvariantError):
            state.add_node(node)

        assert state.version == 1
        assert len(state.graph.nodes) == 1

    def test_remove_node_cascades_connections(self, event_print_graph):
        """Test remove_node emits ConnectionRemoved before NodeRemoved."""
        state, event, printer = event_print_graph
        connection_delta = _connect(state, event, printer)
        assert state.version == 3

        deltas = state.remove_node(printer.id)

        assert [d.type for d in deltas] == [DeltaType.CONNECTION_REMOVED, DeltaType.NODE_REMOVED]
        assert deltas[0].removed_id == connection_delta.connection.id
        assert deltas[1].removed_id == printer.id
        assert [d.version for d in deltas] == [4, 5]
        assert state.graph.connections == []
        assert event.find_output_pin("Exec").is_connected is False

    def test_remove_missing_node_raises(self, state):
        """Test removing an unknown id raises without snapshotting."""
        with pytest.raises(StateInvariantError):
            state.remove_node("missing")
        assert state.can_undo is False

    def test_add_connection_marks_pins(self, event_print_graph):
        """Test both endpoint pins are flagged as connected."""
        state, event, printer = event_print_graph
        delta = _connect(state, event, printer)

        assert delta.type == DeltaType.CONNECTION_ADDED
        assert event.find_output_pin("Exec").is_connected is True
        assert printer.find_input_pin("Exec").is_connected is True

    def test_add_connection_unknown_pin(self, event_print_graph):
        """Test a connection to a missing pin id is rejected."""
        state, event, printer = event_print_graph
        with pytest.raises(StateInvariantError):
            state.add_connection(Connection(
                source_node_id=event.id,
                source_pin_id="nope",
                target_node_id=printer.id,
                target_pin_id=printer.find_input_pin("Exec").id,
            ))
        assert state.version == 2

    def test_remove_connection_clears_flags(self, event_print_graph):
        """Test pin flags are recomputed after removal."""
        state, event, printer = event_print_graph
        delta = _connect(state, event, printer)

        removed = state.remove_connection(delta.connection.id)

        assert removed.type == DeltaType.CONNECTION_REMOVED
        assert printer.find_input_pin("Exec").is_connected is False

    def test_update_node_fields(self, event_print_graph):
        """Test update_node changes title, position and pin defaults."""
        state, _, printer = event_print_graph
        delta = state.update_node(
            printer.id,
            title="Print Hello",
            position_x=50,
            pin_defaults={"In String": "Hi there", "Unknown": "x"},
        )

        assert delta.type == DeltaType.NODE_UPDATED
        assert delta.node.title == "Print Hello"
        assert delta.node.position_x == 50
        assert printer.find_input_pin("In String").default_value == "Hi there"

    def test_move_nodes_single_undo_step(self, event_print_graph):
        """Test move_nodes emits one delta per node but one history entry."""
        state, event, printer = event_print_graph
        deltas = state.move_nodes({event.id: (10, 20), printer.id: (30, 40)})

        assert [d.version for d in deltas] == [3, 4]
        assert (printer.position_x, printer.position_y) == (30, 40)

        state.undo()
        assert (printer.position_x, printer.position_y) != (30, 40)
        assert (event.position_x, event.position_y) == (0, 0)

    def test_comments_and_variables(self, state):
        """Test comment and variable add/remove."""
        comment = state.add_comment(BlueprintComment(text="Setup"))
        variable = state.add_variable(BlueprintVariable(name="Health", type=PinType.FLOAT))

        assert comment.type == DeltaType.COMMENT_ADDED
        assert variable.type == DeltaType.VARIABLE_ADDED

        assert state.remove_comment(comment.comment.id).removed_id == comment.comment.id
        assert state.remove_variable(variable.variable.id).type == DeltaType.VARIABLE_REMOVED
        assert state.version == 4

        with pytest.raises(StateInvariantError):
            state.remove_comment("missing")


class TestDeltaPayloads:
    """Tests that deltas describe the state at mutation time."""

    def test_payload_is_a_copy(self, state):
        """Test later mutations do not leak into an earlier delta."""
        node = BlueprintNode(title="Original")
        delta = state.add_node(node)

        state.update_node(node.id, title="Renamed")

        assert delta.node.title == "Original"
        assert delta.node is not node

    def test_full_sync_does_not_mutate(self, event_print_graph):
        """Test full_sync reports the current version without bumping it."""
        state, _, _ = event_print_graph
        delta = state.full_sync()

        assert delta.type == DeltaType.FULL_SYNC
        assert delta.version == 2
        assert len(delta.full_state.nodes) == 2
        assert state.version == 2


class TestHistory:
    """Tests for undo/redo/replace_graph."""

    def test_undo_on_empty_history(self, state):
        """Test undo/redo with nothing recorded return None and change nothing."""
        assert state.undo() is None
        assert state.redo() is None
        assert state.version == 0

    def test_undo_restores_in_place(self, state):
        """Test undo keeps the same Blueprint object and id."""
        graph = state.graph
        graph_id = graph.id
        state.add_node(BlueprintNode(title="A"))

        delta = state.undo()

        assert state.graph is graph
        assert graph.id == graph_id
        assert graph.nodes == []
        assert delta.type == DeltaType.FULL_SYNC
        assert delta.full_state.nodes == []

    def test_version_never_goes_backwards(self, state):
        """Test version keeps increasing across undo and redo."""
        state.add_node(BlueprintNode(title="A"))
        assert state.version == 1

        assert state.undo().version == 2
        assert state.redo().version == 3
        assert [n.title for n in state.graph.nodes] == ["A"]

    def test_undo_restores_previous_contents(self, event_print_graph):
        """Test undo after a cascade brings back node and connection."""
        state, event, printer = event_print_graph
        _connect(state, event, printer)
        before = state.graph.model_dump(exclude={"version"})

        state.remove_node(printer.id)
        state.undo()

        assert state.graph.model_dump(exclude={"version"}) == before

    def test_redo_restores_exact_contents(self, event_print_graph):
        """Test undo then redo lands on the same graph, connection and pin flags included."""
        state, event, printer = event_print_graph
        _connect(state, event, printer)
        state.add_node(BlueprintNode(title="Later"))
        after = state.graph.model_dump(exclude={"version"})

        state.undo()
        assert state.graph.model_dump(exclude={"version"}) != after
        state.redo()

        assert state.graph.model_dump(exclude={"version"}) == after
        assert len(state.graph.connections) == 1
        assert printer.id in {n.id for n in state.graph.nodes}

    def test_new_mutation_clears_redo(self, state):
        """Test redo is discarded once a new mutation is applied."""
        state.add_node(BlueprintNode(title="A"))
        state.undo()
        assert state.can_redo

        state.add_node(BlueprintNode(title="B"))

        assert state.can_redo is False
        assert state.redo() is None

    def test_replace_graph_is_undoable(self, event_print_graph):
        """Test importing a graph keeps the live id and can be undone."""
        state, _, _ = event_print_graph
        graph_id = state.graph.id
        imported = Blueprint(name="Imported", nodes=[BlueprintNode(title="Only")])

        delta = state.replace_graph(imported)

        assert delta.type == DeltaType.FULL_SYNC
        assert state.graph.id == graph_id
        assert state.graph.name == "Imported"
        assert [n.title for n in state.graph.nodes] == ["Only"]

        state.undo()
        assert [n.title for n in state.graph.nodes] == ["Event BeginPlay", "Print String"]

    def test_initial_blueprint(self):
        """Test StateManager can wrap an existing graph."""
        graph = Blueprint(name="Existing", version=7)
        state = StateManager(graph)

        assert state.graph is graph
        assert state.version == 7
