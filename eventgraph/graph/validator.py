"""Structural validation for event graphs."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable

from eventgraph.graph.model import EventGraph
from eventgraph.schemas.event_graph import ActionNode, ActionType, Connection, NodeKind

logger = logging.getLogger(__name__)

_KNOWN_ACTION_TYPES = {action_type.value for action_type in ActionType}


class Severity(StrEnum):
    """Blocking errors abort compilation; warnings do not."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class GraphValidationError:
    """Structured validation issue for event graphs."""

    code: str
    path: str
    message: str
    severity: Severity = Severity.ERROR
    node_id: str | None = None
    connection_id: str | None = None

    @property
    def is_blocking(self) -> bool:
        return self.severity == Severity.ERROR


class GraphInvalid(ValueError):
    """Raised when a graph has blocking validation errors."""

    def __init__(self, errors: Iterable[GraphValidationError]) -> None:
        self.errors = list(errors)
        formatted = "; ".join([f"{e.code} ({e.path}): {e.message}" for e in blocking_errors(self.errors)])
        super().__init__(f"Invalid event graph: {formatted}")


def blocking_errors(issues: Iterable[GraphValidationError]) -> list[GraphValidationError]:
    return [issue for issue in issues if issue.is_blocking]


def warning_issues(issues: Iterable[GraphValidationError]) -> list[GraphValidationError]:
    return [issue for issue in issues if not issue.is_blocking]


def _valid_edges(graph: EventGraph) -> list[Connection]:
    """Connections whose endpoints exist and whose ports are in range."""
    result: list[Connection] = []
    for conn in graph.connections:
        source = graph.get_node(conn.source.node_id)
        target = graph.get_node(conn.target.node_id)
        if source is None or target is None:
            continue
        source_spec = graph.registry.get(source.type)
        target_spec = graph.registry.get(target.type)
        if source_spec is None or target_spec is None:
            continue
        if 0 <= conn.source.port < source_spec.outputs and 0 <= conn.target.port < target_spec.inputs:
            result.append(conn)
    return result


def _build_adjacency(edges: Iterable[Connection], node_ids: Iterable[str]) -> dict[str, set[str]]:
    adjacency: dict[str, set[str]] = {node_id: set() for node_id in node_ids}
    for edge in edges:
        adjacency[edge.source.node_id].add(edge.target.node_id)
    return adjacency


def _reachable_from_entrypoints(entrypoints: list[str], adjacency: dict[str, set[str]]) -> set[str]:
    visited: set[str] = set()
    queue = list(entrypoints)
    while queue:
        node = queue.pop(0)
        if node in visited:
            continue
        visited.add(node)
        for nxt in sorted(adjacency.get(node, set())):
            if nxt not in visited:
                queue.append(nxt)
    return visited


def _check_connections(graph: EventGraph) -> list[GraphValidationError]:
    errors: list[GraphValidationError] = []

    for idx, conn in enumerate(graph.connections):
        edge_path = f"connections[{idx}]"
        ends = (
            ("from", conn.source.node_id, conn.source.port, "output"),
            ("to", conn.target.node_id, conn.target.port, "input"),
        )

        for end, node_id, port, direction in ends:
            node = graph.get_node(node_id)
            if node is None:
                errors.append(
                    GraphValidationError(
                        code="DANGLING_EDGE",
                        path=f"{edge_path}.{end}.nodeId",
                        message=f"Connection '{conn.id}' references missing node '{node_id}'.",
                        node_id=node_id,
                        connection_id=conn.id,
                    )
                )
                continue

            spec = graph.registry.resolve(node.type)
            count = spec.outputs if direction == "output" else spec.inputs
            if not 0 <= port < count:
                errors.append(
                    GraphValidationError(
                        code="PORT_ARITY_VIOLATION",
                        path=f"{edge_path}.{end}.port",
                        message=(
                            f"Connection '{conn.id}' uses {direction} port {port} of {node.type} node "
                            f"'{node_id}', which declares {count} {direction}(s)."
                        ),
                        node_id=node_id,
                        connection_id=conn.id,
                    )
                )

        if conn.is_self_loop and graph.get_node(conn.source.node_id) is not None:
            errors.append(
                GraphValidationError(
                    code="SELF_LOOP",
                    path=edge_path,
                    message=f"Connection '{conn.id}' loops node '{conn.source.node_id}' onto itself.",
                    severity=Severity.WARNING,
                    node_id=conn.source.node_id,
                    connection_id=conn.id,
                )
            )

    return errors


def _check_input_bindings(graph: EventGraph, edges: list[Connection]) -> list[GraphValidationError]:
    errors: list[GraphValidationError] = []
    bindings: dict[tuple[str, int], list[Connection]] = defaultdict(list)
    for conn in edges:
        bindings[(conn.target.node_id, conn.target.port)].append(conn)

    index_by_id = {conn.id: idx for idx, conn in enumerate(graph.connections)}
    for (node_id, port), bound in bindings.items():
        for extra in bound[1:]:
            errors.append(
                GraphValidationError(
                    code="DUPLICATE_INPUT_BINDING",
                    path=f"connections[{index_by_id[extra.id]}].to",
                    message=(
                        f"Input port {port} of node '{node_id}' is bound by both "
                        f"'{bound[0].id}' and '{extra.id}'."
                    ),
                    node_id=node_id,
                    connection_id=extra.id,
                )
            )
    return errors


def validate_graph(graph: EventGraph, single_entry: bool = False) -> list[GraphValidationError]:
    """Validate an event graph and return every issue found."""

    errors = _check_connections(graph)
    edges = _valid_edges(graph)
    errors.extend(_check_input_bindings(graph, edges))

    node_ids = sorted(graph.nodes)
    triggers = [node_id for node_id in node_ids if graph.nodes[node_id].type == NodeKind.TRIGGER]

    if not triggers:
        errors.append(
            GraphValidationError(
                code="NO_START_NODE",
                path="nodes",
                message="Graph must contain at least one trigger node.",
            )
        )
    elif single_entry and len(triggers) > 1:
        errors.append(
            GraphValidationError(
                code="AMBIGUOUS_START",
                path="nodes",
                message=f"Single-entry mode uses '{triggers[0]}'; ignoring triggers {triggers[1:]}.",
                severity=Severity.WARNING,
                node_id=triggers[0],
            )
        )

    adjacency = _build_adjacency(edges, node_ids)
    reachable = _reachable_from_entrypoints(triggers, adjacency)
    for node_id in node_ids:
        if node_id in reachable:
            continue
        errors.append(
            GraphValidationError(
                code="UNREACHABLE_NODE",
                path=f"nodes.{node_id}",
                message=f"Node '{node_id}' cannot be reached from any trigger.",
                severity=Severity.WARNING,
                node_id=node_id,
            )
        )

    for node_id in node_ids:
        node = graph.nodes[node_id]
        if isinstance(node, ActionNode) and node.properties.action_type not in _KNOWN_ACTION_TYPES:
            errors.append(
                GraphValidationError(
                    code="UNKNOWN_ACTION_TYPE",
                    path=f"nodes.{node_id}.properties.actionType",
                    message=f"Action type '{node.properties.action_type}' is not handled by the runtime.",
                    severity=Severity.WARNING,
                    node_id=node_id,
                )
            )

    return errors


def ensure_valid_graph(graph: EventGraph, single_entry: bool = False) -> list[GraphValidationError]:
    """Raise GraphInvalid on blocking errors; return the warnings otherwise."""

    issues = validate_graph(graph, single_entry=single_entry)
    if blocking_errors(issues):
        raise GraphInvalid(issues)

    for issue in warning_issues(issues):
        logger.warning(f"Graph {graph.id}: {issue.code} ({issue.path}): {issue.message}")
    return warning_issues(issues)


__all__ = [
    "GraphInvalid",
    "GraphValidationError",
    "Severity",
    "blocking_errors",
    "ensure_valid_graph",
    "validate_graph",
    "warning_issues",
]
