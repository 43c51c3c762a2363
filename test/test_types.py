"""Tests for the core value types."""

import dataclasses

import pytest
from filterbox.types import (
    ConditionValue,
    FieldDescriptor,
    FilterCondition,
    FilterExpression,
    OperatorDescriptor,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    check_connector_invariant,
    make_condition,
)


def _expression(connector=None) -> FilterExpression:
    return FilterExpression(
        condition=make_condition(
            FieldDescriptor(key="name", label="Name"),
            OperatorDescriptor(key="eq", label="equals", symbol="="),
            ConditionValue.of("bob"),
        ),
        connector=connector,
    )


def test_value_types_are_frozen() -> None:
    """Test expressions cannot be mutated in place."""
    expression = _expression()

    with pytest.raises(dataclasses.FrozenInstanceError):
        expression.connector = "AND"  # type: ignore[misc]


def test_condition_value_of() -> None:
    """Test ConditionValue.of uses str() for display and wire forms."""
    assert ConditionValue.of(3) == ConditionValue(raw=3, display="3", serialized="3")


def test_make_condition() -> None:
    """Test make_condition follows grammar order."""
    condition = _expression().condition

    assert isinstance(condition, FilterCondition)
    assert condition.field.key == "name"
    assert condition.operator.symbol == "="


def test_validation_result_valid_ignores_warnings() -> None:
    """Test warnings never make a result invalid."""
    result = ValidationResult(warnings=[ValidationWarning(message="hmm")])
    assert result.valid

    result.extend(ValidationResult(errors=[ValidationError(type="field", message="bad")]))
    assert not result.valid
    assert len(result.warnings) == 1


@pytest.mark.parametrize(
    ("connectors", "ok"),
    [
        ((), True),
        ((None,), True),
        (("AND", None), True),
        (("OR", "AND", None), True),
        (("AND",), False),
        ((None, None), False),
        (("AND", "OR"), False),
    ],
)
def test_check_connector_invariant(connectors: tuple, ok: bool) -> None:
    """Test every expression but the last carries a connector."""
    expressions = tuple(_expression(c) for c in connectors)

    assert (check_connector_invariant(expressions) is None) == ok
