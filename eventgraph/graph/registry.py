"""
Node Type Registry - Central registry for event node kinds.

This module provides the NodeTypeRegistry class that declares, for each
node kind, its port arity and its typed node/property models.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel

from eventgraph.graph.errors import UnknownNodeType
from eventgraph.schemas.event_graph import (
    ActionNode,
    ActionProperties,
    ConditionNode,
    ConditionProperties,
    DialogueNode,
    DialogueProperties,
    EncounterNode,
    EncounterProperties,
    EventNodeBase,
    NodeKind,
    TeleportNode,
    TeleportProperties,
    TriggerNode,
    TriggerProperties,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeTypeSpec:
    """Port arity and models for one node kind."""

    kind: NodeKind
    inputs: int
    outputs: int
    node_model: type[EventNodeBase]
    properties_model: type[BaseModel]
    output_labels: tuple[str, ...] = field(default=())

    def output_label(self, port: int) -> str:
        if port < len(self.output_labels):
            return self.output_labels[port]
        return str(port)


class NodeTypeRegistry:
    """
    Registry of node kinds.

    Authoring calls resolve node types here; the validator reads port arity
    from the same specs.
    """

    def __init__(self) -> None:
        self._specs: dict[NodeKind, NodeTypeSpec] = {}

    def register(self, spec: NodeTypeSpec, override: bool = False) -> None:
        """
        Register a node kind.

        Args:
            spec: The node type spec to register
            override: If True, allow replacing an existing spec

        Raises:
            ValueError: If the kind already exists and override is False
        """
        if spec.kind in self._specs and not override:
            raise ValueError(f"Node type '{spec.kind}' already registered. Use override=True to replace.")

        if spec.inputs < 0 or spec.outputs < 0:
            raise ValueError(f"Node type '{spec.kind}' declares a negative port count.")

        self._specs[spec.kind] = spec
        logger.debug(f"Registered node type: {spec.kind} (inputs={spec.inputs}, outputs={spec.outputs})")

    def get(self, kind: NodeKind | str) -> NodeTypeSpec | None:
        """Get a spec by kind, or None if the kind is unknown."""
        try:
            return self._specs.get(NodeKind(kind))
        except ValueError:
            return None

    def resolve(self, kind: NodeKind | str) -> NodeTypeSpec:
        """Get a spec by kind, raising UnknownNodeType when it is not registered."""
        spec = self.get(kind)
        if spec is None:
            raise UnknownNodeType(str(kind))
        return spec

    def list_all(self) -> list[NodeKind]:
        return list(self._specs.keys())


def create_default_registry() -> NodeTypeRegistry:
    """Registry with the six built-in node kinds."""

    registry = NodeTypeRegistry()
    registry.register(NodeTypeSpec(NodeKind.TRIGGER, 0, 1, TriggerNode, TriggerProperties, ("next",)))
    registry.register(
        NodeTypeSpec(NodeKind.CONDITION, 1, 2, ConditionNode, ConditionProperties, ("true", "false"))
    )
    registry.register(NodeTypeSpec(NodeKind.ACTION, 1, 1, ActionNode, ActionProperties, ("next",)))
    registry.register(NodeTypeSpec(NodeKind.DIALOGUE, 1, 1, DialogueNode, DialogueProperties, ("next",)))
    registry.register(
        NodeTypeSpec(
            NodeKind.POKEMON_ENCOUNTER,
            1,
            2,
            EncounterNode,
            EncounterProperties,
            ("resolved", "battle"),
        )
    )
    registry.register(NodeTypeSpec(NodeKind.TELEPORT, 1, 1, TeleportNode, TeleportProperties, ("next",)))
    return registry


# Global registry instance
node_type_registry = create_default_registry()


__all__ = [
    "NodeTypeRegistry",
    "NodeTypeSpec",
    "create_default_registry",
    "node_type_registry",
]
