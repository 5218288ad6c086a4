"""
Collaborator contracts - what the runtime calls into.

The host (3D client, game server, UI overlay) implements these. A
collaborator either returns its result, in which case the activation
continues immediately, or returns ``DEFERRED``, in which case the
activation suspends until the host calls ``GraphRuntime.resume``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Final

from pydantic import BaseModel, ConfigDict

from eventgraph.schemas.event_graph import ConditionKind, ConditionOperator

if TYPE_CHECKING:
    from eventgraph.runtime.context import RuntimeContext


class Deferred:
    """Marker returned by a collaborator that will report completion later."""

    _instance: "Deferred | None" = None

    def __new__(cls) -> "Deferred":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DEFERRED"


DEFERRED: Final = Deferred()


class EncounterResult(BaseModel):
    """Outcome of a wild encounter."""

    model_config = ConfigDict(extra="forbid")

    caught: bool = False
    fled: bool = False

    @property
    def battle_triggered(self) -> bool:
        return not (self.caught or self.fled)


class EventCollaborator(ABC):
    """
    Host-side effects for event nodes.

    Subclasses must implement every coroutine. Each may return ``DEFERRED``
    to suspend the activation instead of blocking the event loop while a
    player reads a dialogue box or a battle plays out.
    """

    @abstractmethod
    async def present_dialogue(self, speaker: str, text: str, portrait: str) -> None | Deferred:
        """Show a dialogue box."""
        ...

    @abstractmethod
    async def resolve_encounter(self, pokemon_id: int, level: int, shiny: bool) -> EncounterResult | Deferred:
        """Start a wild encounter and report whether it ended without battle."""
        ...

    @abstractmethod
    async def perform_teleport(self, target_map: str, x: float, y: float, z: float) -> None | Deferred:
        """Move the player to another map position."""
        ...

    @abstractmethod
    async def perform_action(self, action_type: str, target: str, value: Any) -> None | Deferred:
        """Run a delegated action such as ``show_message`` or ``give_item``."""
        ...


class ConditionEvaluator(ABC):
    """Synchronous predicate evaluation against the runtime context."""

    @abstractmethod
    def evaluate_condition(
        self,
        condition_type: ConditionKind,
        operator: ConditionOperator,
        value: Any,
        key: str,
        context: "RuntimeContext",
    ) -> bool:
        """Evaluate a condition node."""
        ...

    @abstractmethod
    def evaluate_trigger(self, condition: str, context: "RuntimeContext") -> bool:
        """Evaluate a trigger's precondition expression."""
        ...


__all__ = [
    "DEFERRED",
    "ConditionEvaluator",
    "Deferred",
    "EncounterResult",
    "EventCollaborator",
]
