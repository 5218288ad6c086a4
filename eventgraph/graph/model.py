"""
Event Graph Model - In-memory authoring representation.

The graph owns its nodes (keyed by id) and its connections (kept in
creation order). Nodes never own connections; port bindings are computed
by lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from eventgraph.graph.errors import (
    AuthoringError,
    DuplicateNodeId,
    InvalidPort,
    InvalidPosition,
    InvalidProperties,
    PortAlreadyBound,
    UnknownNode,
)
from eventgraph.graph.registry import NodeTypeRegistry, NodeTypeSpec, node_type_registry
from eventgraph.schemas.event_graph import Connection, EventNode, NodeKind, PortRef, Position

logger = logging.getLogger(__name__)

PositionLike = Position | Mapping[str, float] | tuple[float, float]
PortLike = PortRef | Mapping[str, Any] | tuple[str, int]


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def _to_position(position: PositionLike | None) -> Position:
    if position is None:
        return Position()
    if isinstance(position, Position):
        return position.model_copy()
    try:
        if isinstance(position, tuple):
            x, y = position
            return Position(x=x, y=y)
        return Position.model_validate(dict(position))
    except (TypeError, ValueError) as exc:
        raise InvalidPosition(position, str(exc)) from exc


def _to_port_ref(ref: PortLike) -> PortRef:
    if isinstance(ref, PortRef):
        return ref
    if isinstance(ref, tuple):
        node_id, port = ref
        return PortRef(node_id=node_id, port=port)
    return PortRef.model_validate(dict(ref))


class EventGraph:
    """
    Mutable authoring graph.

    All mutations go through this API; a UI layer translates pointer input
    into these calls. Rejected mutations raise an AuthoringError and leave
    the graph unchanged.
    """

    def __init__(
        self,
        graph_id: str | None = None,
        name: str = "",
        registry: NodeTypeRegistry | None = None,
    ) -> None:
        self.id = graph_id or _new_id("graph")
        self.name = name
        self.registry = registry or node_type_registry
        self._nodes: dict[str, EventNode] = {}
        self._connections: list[Connection] = []

    # ── Read access ───────────────────────────────────────────────────

    @property
    def nodes(self) -> Mapping[str, EventNode]:
        return MappingProxyType(self._nodes)

    @property
    def connections(self) -> tuple[Connection, ...]:
        return tuple(self._connections)

    def get_node(self, node_id: str) -> EventNode | None:
        return self._nodes.get(node_id)

    def spec_for(self, node_id: str) -> NodeTypeSpec:
        node = self._nodes.get(node_id)
        if node is None:
            raise UnknownNode(node_id)
        return self.registry.resolve(node.type)

    def incoming(self, node_id: str) -> list[Connection]:
        return [conn for conn in self._connections if conn.target.node_id == node_id]

    def outgoing(self, node_id: str) -> list[Connection]:
        return [conn for conn in self._connections if conn.source.node_id == node_id]

    def input_slots(self, node_id: str) -> list[Connection | None]:
        """One binding (or None) per declared input port."""
        slots: list[Connection | None] = [None] * self.spec_for(node_id).inputs
        for conn in self.incoming(node_id):
            port = conn.target.port
            if 0 <= port < len(slots) and slots[port] is None:
                slots[port] = conn
        return slots

    def output_slots(self, node_id: str) -> list[list[Connection]]:
        """Connections per declared output port, in creation order."""
        slots: list[list[Connection]] = [[] for _ in range(self.spec_for(node_id).outputs)]
        for conn in self.outgoing(node_id):
            port = conn.source.port
            if 0 <= port < len(slots):
                slots[port].append(conn)
        return slots

    # ── Nodes ─────────────────────────────────────────────────────────

    def create_node(
        self,
        node_type: NodeKind | str,
        position: PositionLike | None = None,
        properties: Mapping[str, Any] | None = None,
        node_id: str | None = None,
    ) -> EventNode:
        """
        Create a node with the kind's default properties.

        Args:
            node_type: Registered node kind
            position: Canvas position (authoring only)
            properties: Optional overrides validated against the kind's property record
            node_id: Optional explicit id; generated when omitted

        Raises:
            UnknownNodeType: If node_type is not registered
            DuplicateNodeId: If node_id is already used in this graph
            InvalidProperties: If the overrides fail validation
            InvalidPosition: If position is not an (x, y) pair or mapping
        """
        spec = self.registry.resolve(node_type)
        node_id = node_id or _new_id("node")
        if node_id in self._nodes:
            raise DuplicateNodeId(node_id)

        try:
            props = spec.properties_model.model_validate(dict(properties or {}))
        except ValidationError as exc:
            raise InvalidProperties(node_id, str(exc)) from exc

        node = spec.node_model(id=node_id, position=_to_position(position), properties=props)
        self._nodes[node_id] = node  # type: ignore[assignment]
        logger.debug(f"Graph {self.id}: created {spec.kind} node {node_id}")
        return node  # type: ignore[return-value]

    def add_node(self, node: EventNode) -> None:
        """Insert an already-built node (used when importing documents)."""
        self.registry.resolve(node.type)
        if node.id in self._nodes:
            raise DuplicateNodeId(node.id)
        self._nodes[node.id] = node

    def delete_node(self, node_id: str) -> list[Connection]:
        """Remove a node and every connection touching it. No-op if absent."""
        if self._nodes.pop(node_id, None) is None:
            return []

        removed = [
            conn for conn in self._connections if conn.source.node_id == node_id or conn.target.node_id == node_id
        ]
        if removed:
            removed_ids = {conn.id for conn in removed}
            self._connections = [conn for conn in self._connections if conn.id not in removed_ids]

        logger.debug(f"Graph {self.id}: deleted node {node_id} and {len(removed)} connection(s)")
        return removed

    def move_node(self, node_id: str, position: PositionLike) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            raise UnknownNode(node_id)
        node.position = _to_position(position)

    def update_node_properties(self, node_id: str, **changes: Any) -> EventNode:
        """Apply a validated partial update; keys may be snake_case or camelCase."""
        node = self._nodes.get(node_id)
        if node is None:
            raise UnknownNode(node_id)

        model = type(node.properties)
        aliases: dict[str, str] = {}
        for name, info in model.model_fields.items():
            alias = info.alias or name
            aliases[name] = alias
            aliases[alias] = alias

        unknown = sorted(key for key in changes if key not in aliases)
        if unknown:
            raise InvalidProperties(node_id, f"unknown keys {unknown}")

        data = node.properties.model_dump(by_alias=True)
        data.update({aliases[key]: value for key, value in changes.items()})
        try:
            node.properties = model.model_validate(data)  # type: ignore[assignment]
        except ValidationError as exc:
            raise InvalidProperties(node_id, str(exc)) from exc

        logger.debug(f"Graph {self.id}: updated properties of {node_id}: {sorted(changes)}")
        return node

    # ── Connections ───────────────────────────────────────────────────

    def _input_binding(self, ref: PortRef) -> Connection | None:
        for conn in self._connections:
            if conn.target.node_id == ref.node_id and conn.target.port == ref.port:
                return conn
        return None

    def _check_port(self, ref: PortRef, direction: str) -> None:
        node = self._nodes.get(ref.node_id)
        if node is None:
            raise InvalidPort(ref.node_id, ref.port, direction, f"Node '{ref.node_id}' does not exist.")
        spec = self.registry.resolve(node.type)
        count = spec.outputs if direction == "output" else spec.inputs
        if not 0 <= ref.port < count:
            raise InvalidPort(ref.node_id, ref.port, direction)

    def connect(self, source: PortLike, target: PortLike) -> Connection:
        """
        Connect an output port to an input port.

        Raises:
            InvalidPort: If either endpoint node is missing or a port index is out of range
            PortAlreadyBound: If the input port already holds a connection
        """
        source_ref = _to_port_ref(source)
        target_ref = _to_port_ref(target)
        self._check_port(source_ref, "output")
        self._check_port(target_ref, "input")

        existing = self._input_binding(target_ref)
        if existing is not None:
            raise PortAlreadyBound(target_ref.node_id, target_ref.port, existing.id)

        connection = Connection(id=_new_id("conn"), source=source_ref, target=target_ref)
        self._connections.append(connection)
        logger.debug(
            f"Graph {self.id}: connected {source_ref.node_id}[{source_ref.port}] -> "
            f"{target_ref.node_id}[{target_ref.port}] as {connection.id}"
        )
        return connection

    def add_connection(self, connection: Connection) -> None:
        """Append a connection without arity checks (import path; the validator reports problems)."""
        if any(conn.id == connection.id for conn in self._connections):
            raise AuthoringError(f"Connection id '{connection.id}' is already in use.")
        self._connections.append(connection)

    def disconnect(self, connection_id: str) -> bool:
        """Remove a connection. Returns False when it did not exist."""
        before = len(self._connections)
        self._connections = [conn for conn in self._connections if conn.id != connection_id]
        removed = len(self._connections) != before
        if removed:
            logger.debug(f"Graph {self.id}: removed connection {connection_id}")
        return removed


__all__ = ["EventGraph", "PortLike", "PositionLike"]
