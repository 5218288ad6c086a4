"""
Event graph scripting core.

Authoring model, validator and compiler for visual event graphs, plus the
runtime that interprets compiled graphs against shared world state.
"""

import logging

from eventgraph.core.logs import configure_logging
from eventgraph.graph import EventGraph, GraphCompiler, GraphInvalid, compile_graph, validate_graph
from eventgraph.persistence import PersistenceCodec, PersistenceError
from eventgraph.runtime import (
    DEFERRED,
    ActivationState,
    EncounterResult,
    EventCollaborator,
    GraphRuntime,
    RuntimeContext,
)
from eventgraph.schemas.compiled_graph import CompiledGraph
from eventgraph.schemas.event_graph import NodeKind

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DEFERRED",
    "ActivationState",
    "CompiledGraph",
    "EncounterResult",
    "EventCollaborator",
    "EventGraph",
    "GraphCompiler",
    "GraphInvalid",
    "GraphRuntime",
    "NodeKind",
    "PersistenceCodec",
    "PersistenceError",
    "RuntimeContext",
    "compile_graph",
    "configure_logging",
    "validate_graph",
]
