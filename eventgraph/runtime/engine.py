"""
Graph Runtime - Interprets compiled event graphs.

Execution is single-threaded and cooperative. Each activation advances node
by node until it completes, aborts or suspends on a deferred collaborator.
Failures are confined to the activation that hit them: they are recorded
as an ``aborted`` state with a diagnostic and never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from eventgraph.configs import EventGraphSettings, get_settings
from eventgraph.core.version import is_supported_version
from eventgraph.runtime.collaborators import (
    DEFERRED,
    ConditionEvaluator,
    Deferred,
    EncounterResult,
    EventCollaborator,
)
from eventgraph.runtime.conditions import ConditionError, DefaultConditionEvaluator
from eventgraph.runtime.context import RuntimeContext
from eventgraph.schemas.compiled_graph import CompiledGraph, CompiledNode
from eventgraph.schemas.event_graph import (
    CONTEXT_ACTION_TYPES,
    ActionProperties,
    ActionType,
    ConditionProperties,
    DialogueProperties,
    EncounterProperties,
    NodeKind,
    TeleportProperties,
    TriggerProperties,
)

logger = logging.getLogger(__name__)

_PROPERTIES_MODELS: dict[NodeKind, type[BaseModel]] = {
    NodeKind.TRIGGER: TriggerProperties,
    NodeKind.CONDITION: ConditionProperties,
    NodeKind.ACTION: ActionProperties,
    NodeKind.DIALOGUE: DialogueProperties,
    NodeKind.POKEMON_ENCOUNTER: EncounterProperties,
    NodeKind.TELEPORT: TeleportProperties,
}


class ActivationState(StrEnum):
    """Lifecycle of one activation."""

    PENDING = "pending"
    RUNNING = "running"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


LIVE_STATES = frozenset({ActivationState.PENDING, ActivationState.RUNNING, ActivationState.SUSPENDED})


class IncompatibleGraphVersion(ValueError):
    """Raised when a compiled graph's format version is not supported."""

    def __init__(self, version: str, supported: str) -> None:
        super().__init__(f"Compiled graph version '{version}' does not satisfy '{supported}'.")
        self.version = version
        self.supported = supported


class UnknownActivation(KeyError):
    """Raised when an activation id is not known to the runtime."""


@dataclass(frozen=True)
class RuntimeDiagnostic:
    """Why an activation aborted."""

    code: str
    node_id: str | None
    message: str


@dataclass
class Activation:
    """One run of a compiled graph from a fired trigger."""

    id: str
    graph: CompiledGraph
    entry_node_id: str
    state: ActivationState = ActivationState.PENDING
    cursor: str | None = None
    steps: int = 0
    visited: list[str] = field(default_factory=list)
    diagnostic: RuntimeDiagnostic | None = None

    @property
    def graph_id(self) -> str:
        return self.graph.id

    @property
    def is_live(self) -> bool:
        return self.state in LIVE_STATES


class _StepFailure(Exception):
    """Internal: aborts the current activation with a diagnostic code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


_STOP = object()


class GraphRuntime:
    """
    Runs activations of compiled graphs against a shared RuntimeContext.

    Example:
        runtime = GraphRuntime(context, collaborator)
        activation = await runtime.activate(compiled)
        if activation.state == ActivationState.SUSPENDED:
            ...  # later, when the player closes the dialogue box
            await runtime.resume(activation.id)
    """

    def __init__(
        self,
        context: RuntimeContext,
        collaborator: EventCollaborator,
        condition_evaluator: ConditionEvaluator | None = None,
        settings: EventGraphSettings | None = None,
    ) -> None:
        self.context = context
        self.collaborator = collaborator
        self.conditions = condition_evaluator or DefaultConditionEvaluator()
        self.settings = settings or get_settings()
        self._activations: dict[str, Activation] = {}

    # ── Public API ────────────────────────────────────────────────────

    async def activate(self, compiled: CompiledGraph, entry_node_id: str | None = None) -> Activation:
        """
        Start an activation at a trigger and run it to suspension or completion.

        Args:
            compiled: Compiled graph to execute
            entry_node_id: Trigger node to start from; defaults to the graph's start node

        Raises:
            IncompatibleGraphVersion: If the compiled format version is not supported
            ValueError: If entry_node_id is not one of the graph's entrypoints
        """
        self._check_version(compiled)
        entry_node_id = entry_node_id or compiled.start_node
        if entry_node_id is None or compiled.entrypoint(entry_node_id) is None:
            raise ValueError(f"'{entry_node_id}' is not an entrypoint of graph '{compiled.id}'.")

        activation = Activation(id=f"act_{uuid4().hex}", graph=compiled, entry_node_id=entry_node_id)
        self._activations[activation.id] = activation
        self.context.active_events.add(activation.id)
        logger.info(f"Activation {activation.id} started for graph {compiled.id} at {entry_node_id}")

        await self._run(activation, entry_node_id)
        return activation

    async def fire_trigger(self, compiled: CompiledGraph, trigger_type: str) -> list[Activation]:
        """Start one activation per entrypoint whose trigger type matches."""
        self._check_version(compiled)
        activations: list[Activation] = []
        for entry in compiled.entrypoints_for(trigger_type):
            activations.append(await self.activate(compiled, entry.node_id))
        return activations

    async def resume(self, activation_id: str, result: Any = None) -> Activation:
        """
        Deliver a deferred collaborator result and continue the activation.

        Resumes for activations that are not suspended (including cancelled
        ones) are ignored, so a late result is never applied.
        """
        activation = self._require(activation_id)
        if activation.state != ActivationState.SUSPENDED:
            logger.warning(f"Ignoring resume for activation {activation_id} in state {activation.state}")
            return activation

        node_id = activation.cursor or ""
        node = activation.graph.nodes.get(node_id)
        if node is None:
            self._abort(activation, "MISSING_TARGET_NODE", node_id, f"Suspended node '{node_id}' is missing.")
            return activation

        activation.state = ActivationState.RUNNING
        try:
            port = self._port_for_result(node, result)
        except _StepFailure as exc:
            self._abort(activation, exc.code, node_id, exc.message)
            return activation

        logger.info(f"Activation {activation_id} resumed at {node_id}")
        await self._run(activation, self._follow(activation, node_id, node, port))
        return activation

    def cancel(self, activation_id: str) -> Activation:
        """Cancel an activation in any state. Terminal activations are left as they are."""
        activation = self._require(activation_id)
        if not activation.is_live:
            return activation
        self._finish(activation, ActivationState.CANCELLED)
        logger.info(f"Activation {activation_id} cancelled at {activation.cursor}")
        return activation

    def get_activation(self, activation_id: str) -> Activation | None:
        return self._activations.get(activation_id)

    def list_activations(self, state: ActivationState | None = None) -> list[Activation]:
        return [a for a in self._activations.values() if state is None or a.state == state]

    def prune_finished(self) -> int:
        """Forget activations in a terminal state. Returns how many were dropped."""
        finished = [a.id for a in self._activations.values() if not a.is_live]
        for activation_id in finished:
            del self._activations[activation_id]
        return len(finished)

    # ── Execution ─────────────────────────────────────────────────────

    async def _run(self, activation: Activation, node_id: str | None) -> None:
        activation.state = ActivationState.RUNNING
        current = node_id

        while current is not None:
            node = activation.graph.nodes.get(current)
            if node is None:
                self._abort(activation, "MISSING_TARGET_NODE", current, f"Node '{current}' is not in the graph.")
                return

            if activation.steps >= self.settings.max_steps:
                self._abort(
                    activation,
                    "STEP_LIMIT_EXCEEDED",
                    current,
                    f"Activation exceeded {self.settings.max_steps} steps.",
                )
                return

            activation.steps += 1
            activation.cursor = current
            activation.visited.append(current)

            try:
                outcome = await self._execute(current, node)
            except _StepFailure as exc:
                self._abort(activation, exc.code, current, exc.message)
                return
            except asyncio.CancelledError:
                if activation.is_live:
                    self._finish(activation, ActivationState.CANCELLED)
                    logger.info(f"Activation {activation.id} cancelled by its task during {current}")
                raise
            except Exception as exc:
                if activation.is_live:
                    self._abort(activation, "COLLABORATOR_FAILURE", current, f"{type(exc).__name__}: {exc}")
                return

            if not activation.is_live:
                logger.info(f"Activation {activation.id} was cancelled during {current}; discarding its result")
                return

            if isinstance(outcome, Deferred):
                activation.state = ActivationState.SUSPENDED
                logger.info(f"Activation {activation.id} suspended at {current}")
                return

            if outcome is _STOP:
                break

            current = self._follow(activation, current, node, outcome)

        self._finish(activation, ActivationState.COMPLETED)
        logger.info(f"Activation {activation.id} completed after {activation.steps} step(s)")

    async def _execute(self, node_id: str, node: CompiledNode) -> Any:
        """Run one node. Returns an output port index, DEFERRED, or _STOP."""
        props = self._properties(node_id, node)

        match props:
            case TriggerProperties():
                try:
                    passed = self.conditions.evaluate_trigger(props.condition, self.context)
                except ConditionError as exc:
                    raise _StepFailure("INVALID_CONDITION", str(exc)) from exc
                return 0 if passed else _STOP

            case ConditionProperties():
                try:
                    passed = self.conditions.evaluate_condition(
                        props.condition_type, props.operator, props.value, props.key, self.context
                    )
                except ConditionError as exc:
                    raise _StepFailure("INVALID_CONDITION", str(exc)) from exc
                return 0 if passed else 1

            case ActionProperties():
                return await self._perform_action(props)

            case DialogueProperties():
                outcome = await self.collaborator.present_dialogue(props.speaker, props.text, props.portrait)
                return DEFERRED if isinstance(outcome, Deferred) else 0

            case EncounterProperties():
                outcome = await self.collaborator.resolve_encounter(props.pokemon_id, props.level, props.shiny)
                if isinstance(outcome, Deferred):
                    return DEFERRED
                return self._encounter_port(outcome)

            case TeleportProperties():
                outcome = await self.collaborator.perform_teleport(props.target_map, props.x, props.y, props.z)
                return DEFERRED if isinstance(outcome, Deferred) else 0

        raise _StepFailure("UNKNOWN_NODE_TYPE", f"Node type '{node.type}' cannot be executed.")

    async def _perform_action(self, props: ActionProperties) -> Any:
        try:
            action_type = ActionType(props.action_type)
        except ValueError as exc:
            raise _StepFailure("UNKNOWN_ACTION_TYPE", f"Action type '{props.action_type}' is not supported.") from exc

        if action_type in CONTEXT_ACTION_TYPES:
            self._apply_context_action(action_type, props)
            return 0

        outcome = await self.collaborator.perform_action(action_type.value, props.target, props.value)
        return DEFERRED if isinstance(outcome, Deferred) else 0

    def _apply_context_action(self, action_type: ActionType, props: ActionProperties) -> None:
        if not props.target:
            raise _StepFailure("INVALID_ACTION", f"Action '{action_type}' needs a target.")

        if action_type == ActionType.SET_VARIABLE:
            self.context.set_variable(props.target, props.value)
        elif action_type == ActionType.INCREMENT_VARIABLE:
            amount = _to_number(props.value if props.value not in ("", None) else 1)
            if amount is None:
                raise _StepFailure("INVALID_ACTION", f"Increment amount {props.value!r} is not a number.")
            try:
                self.context.increment_variable(props.target, amount)
            except TypeError as exc:
                raise _StepFailure("INVALID_ACTION", str(exc)) from exc
        elif action_type == ActionType.SET_FLAG:
            self.context.set_flag(props.target, _to_flag(props.value))
        elif action_type == ActionType.CLEAR_FLAG:
            self.context.clear_flag(props.target)

    def _properties(self, node_id: str, node: CompiledNode) -> BaseModel:
        model = _PROPERTIES_MODELS.get(node.type)
        if model is None:
            raise _StepFailure("UNKNOWN_NODE_TYPE", f"Node type '{node.type}' cannot be executed.")
        try:
            return model.model_validate(node.data)
        except ValidationError as exc:
            raise _StepFailure("INVALID_NODE_DATA", f"Node '{node_id}' has invalid data: {exc}") from exc

    def _encounter_port(self, result: Any) -> int:
        try:
            outcome = result if isinstance(result, EncounterResult) else EncounterResult.model_validate(result)
        except ValidationError as exc:
            raise _StepFailure("INVALID_RESUME_RESULT", f"Invalid encounter result: {exc}") from exc
        return 1 if outcome.battle_triggered else 0

    def _port_for_result(self, node: CompiledNode, result: Any) -> int:
        if node.type == NodeKind.POKEMON_ENCOUNTER:
            return self._encounter_port(result)
        return 0

    def _follow(self, activation: Activation, node_id: str, node: CompiledNode, port: int) -> str | None:
        targets = node.targets(port)
        if not targets:
            return None
        if len(targets) > 1:
            logger.debug(
                f"Activation {activation.id}: {node_id}[{port}] fans out to {list(targets)}; following {targets[0]}"
            )
        return targets[0]

    # ── Bookkeeping ───────────────────────────────────────────────────

    def _check_version(self, compiled: CompiledGraph) -> None:
        supported = self.settings.supported_compiled_versions
        if not is_supported_version(compiled.metadata.version, supported):
            raise IncompatibleGraphVersion(compiled.metadata.version, supported)

    def _require(self, activation_id: str) -> Activation:
        activation = self._activations.get(activation_id)
        if activation is None:
            raise UnknownActivation(activation_id)
        return activation

    def _finish(
        self,
        activation: Activation,
        state: ActivationState,
        diagnostic: RuntimeDiagnostic | None = None,
    ) -> None:
        activation.state = state
        activation.diagnostic = diagnostic
        self.context.active_events.discard(activation.id)

    def _abort(self, activation: Activation, code: str, node_id: str | None, message: str) -> None:
        diagnostic = RuntimeDiagnostic(code=code, node_id=node_id, message=message)
        self._finish(activation, ActivationState.ABORTED, diagnostic)
        logger.error(f"Activation {activation.id} aborted at node {node_id}: {code}: {message}")


def _to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                continue
    return None


def _to_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "no", "off", "0")
    if value is None:
        return True
    return bool(value)


__all__ = [
    "Activation",
    "ActivationState",
    "GraphRuntime",
    "IncompatibleGraphVersion",
    "RuntimeDiagnostic",
    "UnknownActivation",
]
