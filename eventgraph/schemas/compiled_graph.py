"""
Compiled Graph Schema.

Immutable, flattened form of an event graph consumed by the runtime and
stored by the backend as ``compiled_data``.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from eventgraph.schemas.event_graph import NodeKind


class _CompiledModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class CompiledNode(_CompiledModel):
    """Adjacency record for one node."""

    type: NodeKind
    data: dict[str, Any] = Field(default_factory=dict)
    outputs: tuple[tuple[str, ...], ...] = Field(
        default=(),
        description="Target node ids per output port, in connection creation order",
    )

    def targets(self, port: int) -> tuple[str, ...]:
        """Targets bound to an output port; empty for closed or missing ports."""
        if port < 0 or port >= len(self.outputs):
            return ()
        return self.outputs[port]


class CompiledEntrypoint(_CompiledModel):
    """A trigger node usable as an activation start."""

    node_id: str = Field(alias="nodeId")
    trigger_type: str = Field(alias="triggerType")
    condition: str


class CompiledGraphMetadata(_CompiledModel):
    """Compile stamp."""

    compiled_at: datetime = Field(alias="compiledAt")
    version: str
    warnings: tuple[str, ...] = ()


class CompiledGraph(_CompiledModel):
    """Validated, executable event graph."""

    id: str
    name: str = ""
    start_node: str | None = Field(default=None, alias="startNode")
    entrypoints: tuple[CompiledEntrypoint, ...] = ()
    nodes: dict[str, CompiledNode] = Field(default_factory=dict)
    metadata: CompiledGraphMetadata

    def entrypoint(self, node_id: str) -> CompiledEntrypoint | None:
        for entry in self.entrypoints:
            if entry.node_id == node_id:
                return entry
        return None

    def entrypoints_for(self, trigger_type: str) -> list[CompiledEntrypoint]:
        return [entry for entry in self.entrypoints if entry.trigger_type == trigger_type]

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict using the wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)

    def canonical_json(self, exclude_timestamp: bool = False) -> str:
        """Serialize deterministically; optionally drop ``compiledAt``."""
        document = self.to_document()
        if exclude_timestamp:
            document["metadata"].pop("compiledAt", None)
        return json.dumps(document, sort_keys=True, separators=(",", ":"))


__all__ = [
    "CompiledEntrypoint",
    "CompiledGraph",
    "CompiledGraphMetadata",
    "CompiledNode",
]
