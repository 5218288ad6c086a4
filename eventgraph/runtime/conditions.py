"""Default condition evaluation for trigger and condition nodes."""

from __future__ import annotations

import logging
from typing import Any

from eventgraph.runtime.collaborators import ConditionEvaluator
from eventgraph.runtime.context import RuntimeContext
from eventgraph.schemas.event_graph import ConditionKind, ConditionOperator

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}

_SYMBOL_OPERATORS: dict[str, ConditionOperator] = {
    "==": ConditionOperator.EQUALS,
    "!=": ConditionOperator.NOT_EQUALS,
    ">": ConditionOperator.GREATER_THAN,
    "<": ConditionOperator.LESS_THAN,
    ">=": ConditionOperator.GREATER_OR_EQUAL,
    "<=": ConditionOperator.LESS_OR_EQUAL,
}


class ConditionError(ValueError):
    """Raised when a condition expression cannot be understood."""


def coerce_like(expected: Any, actual: Any) -> Any:
    """
    Convert an authored value to the type of the stored value.

    Editors store most values as strings, so ``"true"`` compares equal to a
    ``True`` flag and ``"5"`` to an integer variable.
    """
    if isinstance(actual, bool):
        if isinstance(expected, str):
            lowered = expected.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return expected

    if isinstance(actual, (int, float)) and isinstance(expected, str):
        for cast in (int, float):
            try:
                return cast(expected)
            except ValueError:
                continue
        return expected

    return expected


def compare(operator: ConditionOperator, actual: Any, expected: Any) -> bool:
    """Apply an operator; incomparable values are simply false."""
    if operator == ConditionOperator.TRUTHY:
        return bool(actual)
    if operator == ConditionOperator.FALSY:
        return not bool(actual)

    expected = coerce_like(expected, actual)
    try:
        if operator == ConditionOperator.EQUALS:
            return actual == expected
        if operator == ConditionOperator.NOT_EQUALS:
            return actual != expected
        if operator == ConditionOperator.GREATER_THAN:
            return actual > expected
        if operator == ConditionOperator.LESS_THAN:
            return actual < expected
        if operator == ConditionOperator.GREATER_OR_EQUAL:
            return actual >= expected
        if operator == ConditionOperator.LESS_OR_EQUAL:
            return actual <= expected
        if operator == ConditionOperator.CONTAINS:
            return expected in actual
    except TypeError:
        logger.debug(f"Cannot compare {actual!r} {operator} {expected!r}; treating as false")
        return False

    raise ConditionError(f"Unsupported operator: {operator}")


class DefaultConditionEvaluator(ConditionEvaluator):
    """
    Evaluates conditions against variables and flags.

    Trigger expressions:
        ``always`` or empty, ``never``, ``flag:<name>``, ``not_flag:<name>``,
        ``variable:<name>`` (truthy) and ``<key> <operator> <value>`` where the
        operator is a ConditionOperator value or one of ``== != > < >= <=``.
    """

    def evaluate_condition(
        self,
        condition_type: ConditionKind,
        operator: ConditionOperator,
        value: Any,
        key: str,
        context: RuntimeContext,
    ) -> bool:
        if condition_type == ConditionKind.ALWAYS:
            return True
        if not key:
            raise ConditionError(f"A {condition_type} condition needs a key")
        if condition_type == ConditionKind.FLAG:
            actual: Any = context.get_flag(key)
        else:
            actual = context.lookup(key)
        return compare(operator, actual, value)

    def evaluate_trigger(self, condition: str, context: RuntimeContext) -> bool:
        expression = condition.strip()
        if expression in ("", "always"):
            return True
        if expression == "never":
            return False

        prefix, sep, name = expression.partition(":")
        if sep and name and " " not in expression:
            if prefix == "flag":
                return context.get_flag(name)
            if prefix == "not_flag":
                return not context.get_flag(name)
            if prefix == "variable":
                return bool(context.get_variable(name))
            raise ConditionError(f"Unknown trigger condition prefix '{prefix}'")

        parts = expression.split(maxsplit=2)
        if len(parts) == 3:
            key, raw_operator, raw_value = parts
            operator = _SYMBOL_OPERATORS.get(raw_operator)
            if operator is None:
                try:
                    operator = ConditionOperator(raw_operator)
                except ValueError as exc:
                    raise ConditionError(f"Unknown operator '{raw_operator}' in '{expression}'") from exc
            return compare(operator, context.lookup(key), raw_value)

        raise ConditionError(f"Cannot parse trigger condition '{expression}'")


__all__ = [
    "ConditionError",
    "DefaultConditionEvaluator",
    "coerce_like",
    "compare",
]
