"""Event graph authoring, validation and compilation."""

from eventgraph.graph.canonicalizer import canonicalize_graph, graph_signature
from eventgraph.graph.compiler import GraphCompiler, compile_graph
from eventgraph.graph.errors import (
    AuthoringError,
    DuplicateNodeId,
    InvalidPort,
    InvalidPosition,
    InvalidProperties,
    PortAlreadyBound,
    UnknownNode,
    UnknownNodeType,
)
from eventgraph.graph.model import EventGraph
from eventgraph.graph.registry import NodeTypeRegistry, NodeTypeSpec, node_type_registry
from eventgraph.graph.validator import (
    GraphInvalid,
    GraphValidationError,
    Severity,
    ensure_valid_graph,
    validate_graph,
)

__all__ = [
    "AuthoringError",
    "DuplicateNodeId",
    "EventGraph",
    "GraphCompiler",
    "GraphInvalid",
    "GraphValidationError",
    "InvalidPort",
    "InvalidPosition",
    "InvalidProperties",
    "NodeTypeRegistry",
    "NodeTypeSpec",
    "PortAlreadyBound",
    "Severity",
    "UnknownNode",
    "UnknownNodeType",
    "canonicalize_graph",
    "compile_graph",
    "ensure_valid_graph",
    "graph_signature",
    "node_type_registry",
    "validate_graph",
]
