"""Pytest configuration for filterbox tests."""

import sys
from pathlib import Path

import pytest

# Add src directory to path so we can import filterbox without installing it
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from filterbox.schema import FilterSchema, create_schema  # noqa: E402
from filterbox.state_machine import FilterStateMachine  # noqa: E402
from filterbox.suggestions import StaticAutocompleter  # noqa: E402
from filterbox.types import (  # noqa: E402
    ConditionValue,
    Connector,
    FilterCondition,
    FilterExpression,
)


@pytest.fixture
def schema() -> FilterSchema:
    """A schema with one field of each common type."""
    return (
        create_schema()
        .field("status", "Status")
        .type("enum")
        .description("Account status")
        .allow_multiple(False)
        .value_autocompleter(
            StaticAutocompleter({"active": "Active", "inactive": "Inactive"})
        )
        .done()
        .field("name", "Name")
        .type("string")
        .group("Profile")
        .done()
        .field("age", "Age")
        .type("number")
        .default_operator("gt")
        .done()
        .field("created", "Created")
        .type("date")
        .done()
        .build()
    )


@pytest.fixture
def machine() -> FilterStateMachine:
    """A fresh state machine."""
    return FilterStateMachine()


@pytest.fixture
def make_expression(schema: FilterSchema) -> "_ExpressionFactory":
    """Fixture that provides a factory for schema-backed expressions."""
    return _ExpressionFactory(schema)


class _ExpressionFactory:
    """Builds FilterExpressions from field/operator keys of a schema."""

    def __init__(self, schema: FilterSchema) -> None:
        self.schema = schema

    def __call__(
        self,
        field_key: str,
        operator_key: str,
        value: object,
        connector: Connector | None = None,
        display: str | None = None,
    ) -> FilterExpression:
        field_config = self.schema.get_field(field_key)
        assert field_config is not None
        operator_config = field_config.get_operator(operator_key)
        assert operator_config is not None
        text = str(value)
        return FilterExpression(
            condition=FilterCondition(
                field=field_config.to_descriptor(),
                operator=operator_config.to_descriptor(),
                value=ConditionValue(
                    raw=value,
                    display=display if display is not None else text,
                    serialized=text,
                ),
            ),
            connector=connector,
        )
