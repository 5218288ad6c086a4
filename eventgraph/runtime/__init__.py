"""Runtime interpretation of compiled event graphs."""

from eventgraph.runtime.collaborators import (
    DEFERRED,
    ConditionEvaluator,
    Deferred,
    EncounterResult,
    EventCollaborator,
)
from eventgraph.runtime.conditions import ConditionError, DefaultConditionEvaluator
from eventgraph.runtime.context import RuntimeContext
from eventgraph.runtime.engine import (
    Activation,
    ActivationState,
    GraphRuntime,
    IncompatibleGraphVersion,
    RuntimeDiagnostic,
    UnknownActivation,
)

__all__ = [
    "DEFERRED",
    "Activation",
    "ActivationState",
    "ConditionError",
    "ConditionEvaluator",
    "DefaultConditionEvaluator",
    "Deferred",
    "EncounterResult",
    "EventCollaborator",
    "GraphRuntime",
    "IncompatibleGraphVersion",
    "RuntimeContext",
    "RuntimeDiagnostic",
    "UnknownActivation",
]
