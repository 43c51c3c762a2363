"""
Edits to committed expressions.

Each function takes the committed expressions and returns an EditResult with a
new tuple; the input is never mutated. When a schema is given, the replacement
expression is validated before it is accepted.
"""

import logging
from dataclasses import replace

from ..schema import FilterSchema
from ..types import (
    CONNECTORS,
    ConditionValue,
    Connector,
    FieldDescriptor,
    Filter,
    FilterCondition,
    OperatorDescriptor,
    ValidationError,
)
from ..validation import validate_expression
from .actions import EditResult

logger = logging.getLogger(__name__)


def _index_error(expressions: Filter, index: int) -> EditResult | None:
    if 0 <= index < len(expressions):
        return None
    return EditResult(
        success=False,
        expressions=expressions,
        errors=[
            ValidationError(
                type="expression",
                message=f"No expression at index {index} "
                f"({len(expressions)} expression(s) committed)",
                expression_index=index,
            )
        ],
    )


def _replace_condition(
    expressions: Filter,
    index: int,
    condition: FilterCondition,
    schema: FilterSchema | None,
) -> EditResult:
    """Swap the condition of one expression, keeping its connector."""
    failure = _index_error(expressions, index)
    if failure is not None:
        return failure

    updated = replace(expressions[index], condition=condition)
    candidate = expressions[:index] + (updated,) + expressions[index + 1 :]

    if schema is not None:
        result = validate_expression(updated, schema, index, candidate)
        if not result.valid:
            logger.debug(f"Rejected edit of expression {index}: {result.errors}")
            return EditResult(success=False, expressions=expressions, errors=result.errors)

    return EditResult(success=True, expressions=candidate)


def edit_value(
    expressions: Filter,
    index: int,
    value: ConditionValue,
    schema: FilterSchema | None = None,
) -> EditResult:
    """Replace the value of the expression at ``index``."""
    failure = _index_error(expressions, index)
    if failure is not None:
        return failure
    condition = replace(expressions[index].condition, value=value)
    return _replace_condition(expressions, index, condition, schema)


def edit_operator(
    expressions: Filter,
    index: int,
    operator: OperatorDescriptor,
    schema: FilterSchema | None = None,
) -> EditResult:
    """Replace the operator of the expression at ``index``, keeping its value."""
    failure = _index_error(expressions, index)
    if failure is not None:
        return failure
    condition = replace(expressions[index].condition, operator=operator)
    return _replace_condition(expressions, index, condition, schema)


def edit_field(
    expressions: Filter,
    index: int,
    field: FieldDescriptor,
    operator: OperatorDescriptor,
    value: ConditionValue,
    schema: FilterSchema | None = None,
) -> EditResult:
    """Replace the whole condition of the expression at ``index``.

    A new field generally invalidates the old operator and value, so all three
    are supplied together.
    """
    condition = FilterCondition(field=field, operator=operator, value=value)
    return _replace_condition(expressions, index, condition, schema)


def edit_connector(expressions: Filter, index: int, connector: Connector) -> EditResult:
    """Change the connector after the expression at ``index``.

    Only expressions that already carry a connector can be edited; adding or
    removing connectors is the grammar's job.
    """
    failure = _index_error(expressions, index)
    if failure is not None:
        return failure
    if connector not in CONNECTORS:
        return EditResult(
            success=False,
            expressions=expressions,
            errors=[
                ValidationError(
                    type="expression",
                    message=f"Invalid connector: {connector!r}",
                    expression_index=index,
                )
            ],
        )
    target = expressions[index]
    if target.connector is None:
        return EditResult(
            success=False,
            expressions=expressions,
            errors=[
                ValidationError(
                    type="expression",
                    message=f"Expression {index} has no connector to edit",
                    expression_index=index,
                    field=target.condition.field.key,
                )
            ],
        )
    updated = replace(target, connector=connector)
    return EditResult(
        success=True,
        expressions=expressions[:index] + (updated,) + expressions[index + 1 :],
    )


def delete_expression(
    expressions: Filter,
    index: int,
    trailing_connector: Connector | None = None,
) -> EditResult:
    """Remove the expression at ``index``.

    Args:
        expressions: Committed expressions.
        index: Expression to remove.
        trailing_connector: Connector the new last expression must carry (the
            pending connector while an expression is being built, else None).

    Returns:
        EditResult with the remaining expressions.
    """
    failure = _index_error(expressions, index)
    if failure is not None:
        return failure
    remaining = expressions[:index] + expressions[index + 1 :]
    return EditResult(
        success=True,
        expressions=with_trailing_connector(remaining, trailing_connector),
    )


def with_trailing_connector(expressions: Filter, connector: Connector | None) -> Filter:
    """Return ``expressions`` with the last expression's connector set to ``connector``."""
    if not expressions or expressions[-1].connector == connector:
        return expressions
    return expressions[:-1] + (replace(expressions[-1], connector=connector),)
