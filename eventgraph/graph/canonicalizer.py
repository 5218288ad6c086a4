"""Canonicalization for event graphs."""

from __future__ import annotations

from typing import Any

from eventgraph.graph.model import EventGraph
from eventgraph.schemas.event_graph import Connection, EventNode


def _connection_sort_key(indexed: tuple[int, Connection]) -> tuple[str, int, int]:
    idx, conn = indexed
    return (conn.source.node_id, conn.source.port, idx)


def canonical_nodes(graph: EventGraph) -> list[EventNode]:
    """Nodes ordered by id."""

    return [graph.nodes[node_id] for node_id in sorted(graph.nodes)]


def canonical_connections(graph: EventGraph) -> list[Connection]:
    """
    Connections grouped by source node and output port.

    Within one output port the creation order is kept, since it decides
    which branch target comes first.
    """

    return [conn for _, conn in sorted(enumerate(graph.connections), key=_connection_sort_key)]


def canonicalize_graph(graph: EventGraph) -> EventGraph:
    """Return a deterministic canonical copy of a graph."""

    canonical = EventGraph(graph_id=graph.id, name=graph.name, registry=graph.registry)
    for node in canonical_nodes(graph):
        canonical.add_node(node.model_copy(deep=True))
    for conn in canonical_connections(graph):
        canonical.add_connection(conn)
    return canonical


def graph_signature(graph: EventGraph) -> dict[str, Any]:
    """
    Content signature used to compare graphs.

    Nodes are compared by id, type and properties; connections by endpoint
    pairs. Positions and connection ids are ignored.
    """

    return {
        "id": graph.id,
        "name": graph.name,
        "nodes": [
            {
                "id": node.id,
                "type": node.type.value,
                "properties": node.properties.model_dump(mode="json", by_alias=True),
            }
            for node in canonical_nodes(graph)
        ],
        "connections": [
            [conn.source.node_id, conn.source.port, conn.target.node_id, conn.target.port]
            for conn in canonical_connections(graph)
        ],
    }
