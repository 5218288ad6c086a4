"""
Persistence Codec - JSON documents exchanged with editors and storage.

Graph document::

    {
      "version": "1.0", "id": "...", "name": "...",
      "nodes": [[nodeId, NodeObject], ...],
      "connections": [ConnectionObject, ...],
      "variables": [[name, value], ...],
      "flags": [[name, value], ...]
    }

Decoding builds a fresh graph only after the whole document has parsed, so
a failed decode never leaves a half-loaded graph behind.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from eventgraph.configs import EventGraphSettings, get_settings
from eventgraph.core.version import is_supported_version
from eventgraph.graph.canonicalizer import canonical_nodes
from eventgraph.graph.errors import AuthoringError
from eventgraph.graph.model import EventGraph
from eventgraph.graph.registry import NodeTypeRegistry
from eventgraph.runtime.context import RuntimeContext
from eventgraph.schemas.compiled_graph import CompiledGraph
from eventgraph.schemas.event_graph import Connection, EventNode, parse_event_node

logger = logging.getLogger(__name__)

# Port bindings written next to each node; recomputed from connections on decode.
_DERIVED_NODE_KEYS = ("inputs", "outputs")


class PersistenceError(ValueError):
    """Raised when a document cannot be decoded."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class GraphDocument(BaseModel):
    """Wire shape of a persisted graph."""

    model_config = ConfigDict(extra="forbid")

    version: str = "1.0"
    id: str = Field(min_length=1)
    name: str = ""
    nodes: list[tuple[str, dict[str, Any]]] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    variables: list[tuple[str, Any]] = Field(default_factory=list)
    flags: list[tuple[str, bool]] = Field(default_factory=list)


def _load_json(text: str | bytes) -> dict[str, Any]:
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise PersistenceError("MALFORMED_JSON", str(exc)) from exc
    if not isinstance(raw, dict):
        raise PersistenceError("INVALID_DOCUMENT", f"Expected a JSON object, got {type(raw).__name__}.")
    return raw


class PersistenceCodec:
    """Encode and decode graphs, runtime contexts and compiled graphs."""

    def __init__(
        self,
        settings: EventGraphSettings | None = None,
        registry: NodeTypeRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.registry = registry

    # ── Graph documents ───────────────────────────────────────────────

    def encode_graph(self, graph: EventGraph, context: RuntimeContext | None = None) -> str:
        """Serialize a graph (and optionally a context's variables and flags)."""
        context = context or RuntimeContext()
        document = {
            "version": self.settings.document_version,
            "id": graph.id,
            "name": graph.name,
            "nodes": [[node.id, self._node_object(graph, node)] for node in canonical_nodes(graph)],
            "connections": [conn.model_dump(mode="json", by_alias=True) for conn in graph.connections],
            "variables": [[name, context.variables[name]] for name in sorted(context.variables)],
            "flags": [[name, context.flags[name]] for name in sorted(context.flags)],
        }
        return json.dumps(document)

    def decode_graph(self, text: str | bytes) -> tuple[EventGraph, RuntimeContext]:
        """
        Parse a graph document.

        Raises:
            PersistenceError: MALFORMED_JSON, UNSUPPORTED_VERSION or INVALID_DOCUMENT
        """
        raw = _load_json(text)
        version = str(raw.get("version", "1.0"))
        if not is_supported_version(version, self.settings.supported_document_versions):
            raise PersistenceError(
                "UNSUPPORTED_VERSION",
                f"Document version '{version}' does not satisfy '{self.settings.supported_document_versions}'.",
            )

        try:
            document = GraphDocument.model_validate(raw)
            nodes = [self._parse_node(node_id, obj) for node_id, obj in document.nodes]
        except ValidationError as exc:
            raise PersistenceError("INVALID_DOCUMENT", str(exc)) from exc

        graph = EventGraph(graph_id=document.id, name=document.name, registry=self.registry)
        try:
            for node in nodes:
                graph.add_node(node)
            for conn in document.connections:
                graph.add_connection(conn)
        except AuthoringError as exc:
            raise PersistenceError("INVALID_DOCUMENT", exc.message) from exc

        context = RuntimeContext(variables=dict(document.variables), flags=dict(document.flags))
        logger.info(
            f"Decoded graph {graph.id}: {len(nodes)} node(s), {len(document.connections)} connection(s)"
        )
        return graph, context

    def _node_object(self, graph: EventGraph, node: EventNode) -> dict[str, Any]:
        obj = node.model_dump(mode="json", by_alias=True)
        obj["inputs"] = [conn.id if conn is not None else None for conn in graph.input_slots(node.id)]
        obj["outputs"] = [[conn.id for conn in slot] for slot in graph.output_slots(node.id)]
        return obj

    def _parse_node(self, node_id: str, obj: dict[str, Any]) -> EventNode:
        payload = {key: value for key, value in obj.items() if key not in _DERIVED_NODE_KEYS}
        payload.setdefault("id", node_id)
        node = parse_event_node(payload)
        if node.id != node_id:
            raise PersistenceError("INVALID_DOCUMENT", f"Node entry '{node_id}' carries id '{node.id}'.")
        return node

    # ── Compiled graphs ───────────────────────────────────────────────

    def encode_compiled(self, compiled: CompiledGraph) -> str:
        return compiled.model_dump_json(by_alias=True)

    def decode_compiled(self, text: str | bytes) -> CompiledGraph:
        """
        Parse a stored ``compiled_data`` document.

        Raises:
            PersistenceError: MALFORMED_JSON, UNSUPPORTED_VERSION or INVALID_DOCUMENT
        """
        raw = _load_json(text)
        metadata = raw.get("metadata")
        version = str(metadata.get("version", "")) if isinstance(metadata, dict) else ""
        if not is_supported_version(version, self.settings.supported_compiled_versions):
            raise PersistenceError(
                "UNSUPPORTED_VERSION",
                f"Compiled version '{version}' does not satisfy '{self.settings.supported_compiled_versions}'.",
            )
        try:
            return CompiledGraph.model_validate(raw)
        except ValidationError as exc:
            raise PersistenceError("INVALID_DOCUMENT", str(exc)) from exc


def encode_graph(graph: EventGraph, context: RuntimeContext | None = None) -> str:
    return PersistenceCodec().encode_graph(graph, context)


def decode_graph(text: str | bytes, registry: NodeTypeRegistry | None = None) -> tuple[EventGraph, RuntimeContext]:
    return PersistenceCodec(registry=registry).decode_graph(text)


def encode_compiled(compiled: CompiledGraph) -> str:
    return PersistenceCodec().encode_compiled(compiled)


def decode_compiled(text: str | bytes) -> CompiledGraph:
    return PersistenceCodec().decode_compiled(text)


__all__ = [
    "GraphDocument",
    "PersistenceCodec",
    "PersistenceError",
    "decode_compiled",
    "decode_graph",
    "encode_compiled",
    "encode_graph",
]
