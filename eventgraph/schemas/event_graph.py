"""
Event Graph Schema.

Authoring-side IR for visual event graphs.
Each node kind carries its own typed property record; the node union is
discriminated on ``type``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class NodeKind(StrEnum):
    """Supported event node kinds."""

    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"
    DIALOGUE = "dialogue"
    POKEMON_ENCOUNTER = "pokemon_encounter"
    TELEPORT = "teleport"


class ConditionKind(StrEnum):
    """Where a condition node looks up its key."""

    VARIABLE = "variable"
    FLAG = "flag"
    ALWAYS = "always"


class ConditionOperator(StrEnum):
    """Supported comparison operators for condition nodes."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS_OR_EQUAL = "less_or_equal"
    TRUTHY = "truthy"
    FALSY = "falsy"
    CONTAINS = "contains"


class ActionType(StrEnum):
    """Action types understood by the runtime."""

    # Applied directly to the runtime context
    SET_VARIABLE = "set_variable"
    INCREMENT_VARIABLE = "increment_variable"
    SET_FLAG = "set_flag"
    CLEAR_FLAG = "clear_flag"

    # Delegated to the host collaborator
    SHOW_MESSAGE = "show_message"
    GIVE_ITEM = "give_item"
    START_QUEST = "start_quest"
    COMPLETE_QUEST = "complete_quest"
    START_BATTLE = "start_battle"
    PLAY_SOUND = "play_sound"
    CUSTOM = "custom"


CONTEXT_ACTION_TYPES = frozenset(
    {
        ActionType.SET_VARIABLE,
        ActionType.INCREMENT_VARIABLE,
        ActionType.SET_FLAG,
        ActionType.CLEAR_FLAG,
    }
)


class _PropertiesModel(BaseModel):
    """Property records use camelCase keys on the wire."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
    )


class TriggerProperties(_PropertiesModel):
    """Trigger node properties."""

    trigger_type: str = Field(default="player_enter", min_length=1)
    condition: str = "always"


class ConditionProperties(_PropertiesModel):
    """Condition node properties."""

    condition_type: ConditionKind = ConditionKind.VARIABLE
    key: str = ""
    value: Any = ""
    operator: ConditionOperator = ConditionOperator.EQUALS


class ActionProperties(_PropertiesModel):
    """Action node properties. ``action_type`` is checked by the runtime."""

    action_type: str = "show_message"
    target: str = ""
    value: Any = ""


class DialogueProperties(_PropertiesModel):
    """Dialogue node properties."""

    speaker: str = "NPC"
    text: str = "Hello!"
    portrait: str = ""


class EncounterProperties(_PropertiesModel):
    """Wild encounter node properties."""

    pokemon_id: int = Field(default=1, ge=1)
    level: int = Field(default=5, ge=1, le=100)
    shiny: bool = False


class TeleportProperties(_PropertiesModel):
    """Teleport node properties."""

    target_map: str = ""
    x: float = 0
    y: float = 0
    z: float = 0


class Position(BaseModel):
    """Canvas position. Authoring only."""

    model_config = ConfigDict(extra="forbid")

    x: float = 0
    y: float = 0


class EventNodeBase(BaseModel):
    """Common node fields."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    position: Position = Field(default_factory=Position)


class TriggerNode(EventNodeBase):
    """Entry point node."""

    type: Literal[NodeKind.TRIGGER] = NodeKind.TRIGGER
    properties: TriggerProperties = Field(default_factory=TriggerProperties)


class ConditionNode(EventNodeBase):
    """Two-way branch: output 0 is the true branch, output 1 the false branch."""

    type: Literal[NodeKind.CONDITION] = NodeKind.CONDITION
    properties: ConditionProperties = Field(default_factory=ConditionProperties)


class ActionNode(EventNodeBase):
    """Action node."""

    type: Literal[NodeKind.ACTION] = NodeKind.ACTION
    properties: ActionProperties = Field(default_factory=ActionProperties)


class DialogueNode(EventNodeBase):
    """Dialogue node."""

    type: Literal[NodeKind.DIALOGUE] = NodeKind.DIALOGUE
    properties: DialogueProperties = Field(default_factory=DialogueProperties)


class EncounterNode(EventNodeBase):
    """Encounter node: output 0 is resolved without battle, output 1 is battle."""

    type: Literal[NodeKind.POKEMON_ENCOUNTER] = NodeKind.POKEMON_ENCOUNTER
    properties: EncounterProperties = Field(default_factory=EncounterProperties)


class TeleportNode(EventNodeBase):
    """Teleport node."""

    type: Literal[NodeKind.TELEPORT] = NodeKind.TELEPORT
    properties: TeleportProperties = Field(default_factory=TeleportProperties)


EventNode = Annotated[
    TriggerNode | ConditionNode | ActionNode | DialogueNode | EncounterNode | TeleportNode,
    Field(discriminator="type"),
]

event_node_adapter: TypeAdapter[EventNode] = TypeAdapter(EventNode)


class PortRef(BaseModel):
    """One end of a connection."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    node_id: str = Field(min_length=1, alias="nodeId")
    port: int


class Connection(BaseModel):
    """Directed edge from an output port to an input port."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    source: PortRef = Field(alias="from")
    target: PortRef = Field(alias="to")

    @property
    def is_self_loop(self) -> bool:
        return self.source.node_id == self.target.node_id


def parse_event_node(raw: dict[str, Any]) -> EventNode:
    """Parse and validate a raw node payload."""

    return event_node_adapter.validate_python(raw)


__all__ = [
    "CONTEXT_ACTION_TYPES",
    "ActionNode",
    "ActionProperties",
    "ActionType",
    "ConditionKind",
    "ConditionNode",
    "ConditionOperator",
    "ConditionProperties",
    "Connection",
    "DialogueNode",
    "DialogueProperties",
    "EncounterNode",
    "EncounterProperties",
    "EventNode",
    "EventNodeBase",
    "NodeKind",
    "PortRef",
    "Position",
    "TeleportNode",
    "TeleportProperties",
    "TriggerNode",
    "TriggerProperties",
    "event_node_adapter",
    "parse_event_node",
]
