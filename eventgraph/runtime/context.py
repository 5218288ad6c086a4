"""
Runtime Context - Shared variable and flag store for one game world.

Every activation reads and writes the same context directly. Each write
helper performs its read-then-write without awaiting, so steps of
interleaved activations never lose updates.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RuntimeContext(BaseModel):
    """Per-world state threaded through every runtime call."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    variables: dict[str, Any] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict)
    active_events: set[str] = Field(default_factory=set, description="Ids of running or suspended activations")

    def get_variable(self, name: str, default: Any = None) -> Any:
        return self.variables.get(name, default)

    def set_variable(self, name: str, value: Any) -> None:
        self.variables[name] = value

    def increment_variable(self, name: str, amount: int | float = 1) -> int | float:
        """Add to a numeric variable, starting from 0 when unset."""
        current = self.variables.get(name, 0)
        if isinstance(current, bool) or not isinstance(current, (int, float)):
            raise TypeError(f"Variable '{name}' is not numeric: {current!r}")
        updated = current + amount
        self.variables[name] = updated
        return updated

    def get_flag(self, name: str) -> bool:
        return self.flags.get(name, False)

    def set_flag(self, name: str, value: bool = True) -> None:
        self.flags[name] = bool(value)

    def clear_flag(self, name: str) -> None:
        self.flags[name] = False

    def lookup(self, key: str) -> Any:
        """Resolve a key against variables first, then flags; None when absent."""
        if key in self.variables:
            return self.variables[key]
        return self.flags.get(key)


__all__ = ["RuntimeContext"]
