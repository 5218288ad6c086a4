"""Compiler for event graphs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from eventgraph.configs import EventGraphSettings, get_settings
from eventgraph.graph.canonicalizer import canonical_nodes, canonicalize_graph
from eventgraph.graph.model import EventGraph
from eventgraph.graph.validator import GraphValidationError, ensure_valid_graph
from eventgraph.schemas.compiled_graph import (
    CompiledEntrypoint,
    CompiledGraph,
    CompiledGraphMetadata,
    CompiledNode,
)
from eventgraph.schemas.event_graph import EventNode, TriggerNode

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GraphCompiler:
    """Compile an authoring graph to its immutable executable form."""

    def __init__(
        self,
        settings: EventGraphSettings | None = None,
        single_entry: bool | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.single_entry = self.settings.single_entry if single_entry is None else single_entry
        self._clock = clock or _utcnow

    def compile(self, graph: EventGraph) -> CompiledGraph:
        """
        Validate and flatten a graph.

        The output depends only on node data and connection topology;
        two compilations of the same graph differ only in ``compiledAt``.

        Raises:
            GraphInvalid: If the graph has blocking validation errors
        """
        issues = ensure_valid_graph(graph, single_entry=self.single_entry)
        canonical = canonicalize_graph(graph)

        nodes: dict[str, CompiledNode] = {}
        entrypoints: list[CompiledEntrypoint] = []
        for node in canonical_nodes(canonical):
            nodes[node.id] = self._compile_node(canonical, node)
            if isinstance(node, TriggerNode):
                entrypoints.append(
                    CompiledEntrypoint(
                        node_id=node.id,
                        trigger_type=node.properties.trigger_type,
                        condition=node.properties.condition,
                    )
                )

        if self.single_entry:
            entrypoints = entrypoints[:1]

        compiled = CompiledGraph(
            id=graph.id,
            name=graph.name,
            start_node=entrypoints[0].node_id,
            entrypoints=tuple(entrypoints),
            nodes=nodes,
            metadata=CompiledGraphMetadata(
                compiled_at=self._clock(),
                version=self.settings.compiled_version,
                warnings=self._warning_codes(issues),
            ),
        )
        logger.info(
            f"Compiled graph {graph.id}: {len(nodes)} node(s), {len(entrypoints)} entrypoint(s), "
            f"{len(issues)} warning(s)"
        )
        return compiled

    def _compile_node(self, graph: EventGraph, node: EventNode) -> CompiledNode:
        outputs = tuple(tuple(conn.target.node_id for conn in slot) for slot in graph.output_slots(node.id))
        return CompiledNode(
            type=node.type,
            data=node.properties.model_dump(mode="json", by_alias=True),
            outputs=outputs,
        )

    def _warning_codes(self, issues: list[GraphValidationError]) -> tuple[str, ...]:
        return tuple(sorted(f"{issue.code}:{issue.path}" for issue in issues))


def compile_graph(graph: EventGraph, single_entry: bool | None = None) -> CompiledGraph:
    """Compile with the default settings."""

    return GraphCompiler(single_entry=single_entry).compile(graph)


__all__ = ["GraphCompiler", "compile_graph"]
