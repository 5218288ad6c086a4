"""Tests for the default condition evaluator."""

import pytest

from eventgraph.runtime import ConditionError, DefaultConditionEvaluator, RuntimeContext
from eventgraph.runtime.conditions import coerce_like, compare
from eventgraph.schemas.event_graph import ConditionKind, ConditionOperator


@pytest.fixture
def evaluator() -> DefaultConditionEvaluator:
    return DefaultConditionEvaluator()


@pytest.fixture
def world() -> RuntimeContext:
    return RuntimeContext(variables={"badges": 3, "rival": "Gary", "party": ["pikachu"]}, flags={"has_badge": True})


@pytest.mark.parametrize(
    ("expected", "actual", "coerced"),
    [
        ("true", True, True),
        ("No", False, False),
        ("5", 3, 5),
        ("2.5", 1.0, 2.5),
        ("many", 3, "many"),
        ("x", "y", "x"),
    ],
)
def test_coerce_like(expected, actual, coerced) -> None:
    assert coerce_like(expected, actual) == coerced


@pytest.mark.parametrize(
    ("operator", "actual", "expected", "result"),
    [
        (ConditionOperator.EQUALS, 3, "3", True),
        (ConditionOperator.NOT_EQUALS, "Gary", "Ash", True),
        (ConditionOperator.GREATER_THAN, 3, 2, True),
        (ConditionOperator.LESS_OR_EQUAL, 3, 3, True),
        (ConditionOperator.CONTAINS, ["pikachu"], "pikachu", True),
        (ConditionOperator.TRUTHY, 0, None, False),
        (ConditionOperator.FALSY, None, None, True),
        (ConditionOperator.GREATER_THAN, None, 1, False),
    ],
)
def test_compare(operator, actual, expected, result) -> None:
    assert compare(operator, actual, expected) is result


def test_flag_condition(evaluator: DefaultConditionEvaluator, world: RuntimeContext) -> None:
    def check(key: str) -> bool:
        return evaluator.evaluate_condition(ConditionKind.FLAG, ConditionOperator.EQUALS, "true", key, world)

    assert check("has_badge") is True
    assert check("never_set") is False


def test_variable_condition(evaluator: DefaultConditionEvaluator, world: RuntimeContext) -> None:
    assert evaluator.evaluate_condition(
        ConditionKind.VARIABLE, ConditionOperator.GREATER_OR_EQUAL, "3", "badges", world
    )
    assert not evaluator.evaluate_condition(ConditionKind.VARIABLE, ConditionOperator.EQUALS, "Ash", "rival", world)


def test_always_condition_ignores_key(evaluator: DefaultConditionEvaluator, world: RuntimeContext) -> None:
    assert evaluator.evaluate_condition(ConditionKind.ALWAYS, ConditionOperator.EQUALS, "", "", world)


def test_condition_without_key_is_an_error(evaluator: DefaultConditionEvaluator, world: RuntimeContext) -> None:
    with pytest.raises(ConditionError):
        evaluator.evaluate_condition(ConditionKind.VARIABLE, ConditionOperator.EQUALS, 1, "", world)


@pytest.mark.parametrize(
    ("expression", "result"),
    [
        ("", True),
        ("always", True),
        ("never", False),
        ("flag:has_badge", True),
        ("not_flag:has_badge", False),
        ("flag:missing", False),
        ("variable:badges", True),
        ("variable:missing", False),
        ("badges >= 3", True),
        ("badges less_than 3", False),
        ("rival == Gary", True),
        ("has_badge == true", True),
    ],
)
def test_trigger_expressions(evaluator, world, expression: str, result: bool) -> None:
    assert evaluator.evaluate_trigger(expression, world) is result


@pytest.mark.parametrize("expression", ["sometimes", "weather:rain", "badges ~ 3"])
def test_unparseable_trigger_expressions(evaluator, world, expression: str) -> None:
    with pytest.raises(ConditionError):
        evaluator.evaluate_trigger(expression, world)
