"""Tests for the event graph validator."""

import pytest

from eventgraph.graph import EventGraph, GraphInvalid, Severity, ensure_valid_graph, validate_graph
from eventgraph.schemas.event_graph import Connection, PortRef


def _chain() -> tuple[EventGraph, str, str]:
    graph = EventGraph(graph_id="chain")
    trigger = graph.create_node("trigger", node_id="start")
    action = graph.create_node("action", node_id="greet", properties={"value": "Hello"})
    graph.connect((trigger.id, 0), (action.id, 0))
    return graph, trigger.id, action.id


def _codes(graph: EventGraph, single_entry: bool = False) -> list[str]:
    return [issue.code for issue in validate_graph(graph, single_entry=single_entry)]


def test_validator_accepts_valid_graph() -> None:
    graph, _, _ = _chain()

    assert validate_graph(graph) == []


def test_validator_reports_dangling_edge() -> None:
    graph, trigger_id, _ = _chain()
    graph.add_connection(
        Connection(id="conn_ghost", source=PortRef(node_id=trigger_id, port=0), target=PortRef(node_id="ghost", port=0))
    )

    errors = validate_graph(graph)
    dangling = [e for e in errors if e.code == "DANGLING_EDGE"]

    assert len(dangling) == 1
    assert dangling[0].path == "connections[1].to.nodeId"
    assert dangling[0].connection_id == "conn_ghost"
    assert dangling[0].is_blocking


def test_validator_reports_port_arity_violation() -> None:
    graph, trigger_id, action_id = _chain()
    graph.add_connection(
        Connection(id="conn_bad", source=PortRef(node_id=action_id, port=3), target=PortRef(node_id=action_id, port=0))
    )

    errors = validate_graph(graph)

    assert any(e.code == "PORT_ARITY_VIOLATION" and e.path == "connections[1].from.port" for e in errors)


def test_validator_reports_duplicate_input_binding() -> None:
    graph, _, action_id = _chain()
    other = graph.create_node("trigger", node_id="start_2")
    graph.add_connection(
        Connection(id="conn_dup", source=PortRef(node_id=other.id, port=0), target=PortRef(node_id=action_id, port=0))
    )

    errors = validate_graph(graph)
    duplicates = [e for e in errors if e.code == "DUPLICATE_INPUT_BINDING"]

    assert len(duplicates) == 1
    assert duplicates[0].connection_id == "conn_dup"


def test_validator_reports_missing_trigger() -> None:
    graph = EventGraph()
    graph.create_node("dialogue")

    errors = validate_graph(graph)

    assert any(e.code == "NO_START_NODE" and e.severity == Severity.ERROR for e in errors)


def test_multiple_triggers_only_warn_in_single_entry_mode() -> None:
    graph, _, _ = _chain()
    graph.create_node("trigger", node_id="start_2")

    assert "AMBIGUOUS_START" not in _codes(graph)
    ambiguous = [e for e in validate_graph(graph, single_entry=True) if e.code == "AMBIGUOUS_START"]
    assert len(ambiguous) == 1
    assert ambiguous[0].severity == Severity.WARNING
    assert ambiguous[0].node_id == "start"


def test_validator_warns_on_unreachable_node() -> None:
    graph, _, _ = _chain()
    orphan = graph.create_node("action", node_id="orphan")

    errors = validate_graph(graph)

    assert [(e.code, e.node_id, e.severity) for e in errors] == [
        ("UNREACHABLE_NODE", orphan.id, Severity.WARNING)
    ]


def test_island_cycle_is_unreachable() -> None:
    graph, _, _ = _chain()
    a = graph.create_node("dialogue", node_id="island_a")
    b = graph.create_node("dialogue", node_id="island_b")
    graph.connect((a.id, 0), (b.id, 0))
    graph.connect((b.id, 0), (a.id, 0))

    unreachable = sorted(e.node_id for e in validate_graph(graph) if e.code == "UNREACHABLE_NODE")

    assert unreachable == ["island_a", "island_b"]


def test_validator_flags_self_loop() -> None:
    graph, _, action_id = _chain()
    dialogue = graph.create_node("dialogue", node_id="loop")
    graph.connect((action_id, 0), (dialogue.id, 0))
    graph.add_connection(
        Connection(id="conn_loop", source=PortRef(node_id="loop", port=0), target=PortRef(node_id="loop", port=0))
    )

    codes = _codes(graph)

    assert "SELF_LOOP" in codes
    assert "DUPLICATE_INPUT_BINDING" in codes


def test_validator_warns_on_unknown_action_type() -> None:
    graph, _, action_id = _chain()
    graph.update_node_properties(action_id, action_type="summon_legendary")

    errors = validate_graph(graph)

    assert [(e.code, e.severity) for e in errors] == [("UNKNOWN_ACTION_TYPE", Severity.WARNING)]


def test_all_issues_are_reported_together() -> None:
    graph = EventGraph()
    action = graph.create_node("action", node_id="a")
    graph.add_connection(
        Connection(id="c1", source=PortRef(node_id="ghost", port=0), target=PortRef(node_id=action.id, port=4))
    )

    codes = _codes(graph)

    assert {"DANGLING_EDGE", "PORT_ARITY_VIOLATION", "NO_START_NODE", "UNREACHABLE_NODE"} <= set(codes)


def test_ensure_valid_graph_raises_with_full_list() -> None:
    graph, trigger_id, _ = _chain()
    graph.create_node("action", node_id="orphan")
    graph.add_connection(
        Connection(id="conn_ghost", source=PortRef(node_id=trigger_id, port=0), target=PortRef(node_id="ghost", port=0))
    )

    with pytest.raises(GraphInvalid) as exc_info:
        ensure_valid_graph(graph)

    codes = {e.code for e in exc_info.value.errors}
    assert codes == {"DANGLING_EDGE", "UNREACHABLE_NODE"}
    assert "DANGLING_EDGE" in str(exc_info.value)


def test_ensure_valid_graph_returns_warnings() -> None:
    graph, _, _ = _chain()
    graph.create_node("action", node_id="orphan")

    warnings = ensure_valid_graph(graph)

    assert [w.code for w in warnings] == ["UNREACHABLE_NODE"]


def test_remaining_graph_is_valid_after_cascade_delete() -> None:
    graph, _, action_id = _chain()
    tail = graph.create_node("dialogue", node_id="tail")
    graph.connect((action_id, 0), (tail.id, 0))

    graph.delete_node(tail.id)

    assert validate_graph(graph) == []
