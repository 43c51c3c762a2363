"""Validation of filter expressions and schemas.

Validation never raises for bad input: every problem is reported as a
ValidationError (or ValidationWarning) so callers can show them all at once.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from .schema import FieldConfig, FilterSchema, OperatorConfig, ValidationContext
from .types import (
    FilterExpression,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    """Check whether a raw value counts as "no value"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _is_range(operator: OperatorConfig) -> bool:
    """Check whether an operator takes a (from, to) pair."""
    if operator.key == "between":
        return True
    mv = operator.multi_value
    return mv is not None and mv.count == 2 and tuple(mv.labels) == ("from", "to")


def _value_required(field_config: FieldConfig, operator: OperatorConfig) -> bool:
    if operator.value_required is not None:
        return operator.value_required
    return field_config.value_required


def _check_multi_value(
    raw: Any,
    field_key: str,
    operator: OperatorConfig,
    index: int | None,
) -> ValidationError | None:
    """Check the shape of a multi-value raw value.

    Args:
        raw: The raw value (must be a list or tuple).
        field_key: Field key for messages.
        operator: The multi-value operator.
        index: Expression index for error context.

    Returns:
        The first shape error found, or None.
    """
    assert operator.multi_value is not None
    count = operator.multi_value.count

    if not isinstance(raw, (list, tuple)):
        return ValidationError(
            type="value",
            message=f'Value for "{operator.key}" operator on field "{field_key}" '
            "must be a list",
            expression_index=index,
            field=field_key,
        )

    if count == -1:
        if len(raw) == 0:
            return ValidationError(
                type="value",
                message=f'Operator "{operator.key}" on field "{field_key}" requires '
                "at least one value",
                expression_index=index,
                field=field_key,
            )
    elif len(raw) != count:
        return ValidationError(
            type="value",
            message=f'Operator "{operator.key}" on field "{field_key}" requires '
            f"exactly {count} values, but got {len(raw)}",
            expression_index=index,
            field=field_key,
        )

    if _is_range(operator) and len(raw) == 2:
        low, high = raw
        try:
            inverted = low is not None and high is not None and low > high
        except TypeError:
            # Incomparable ends (e.g. a date and a string); nothing to check
            inverted = False
        if inverted:
            return ValidationError(
                type="value",
                message=f'Range for field "{field_key}" is inverted: '
                f"{low!r} is after {high!r}",
                expression_index=index,
                field=field_key,
            )

    return None


def _scoped(result: ValidationResult, field_key: str, index: int | None) -> ValidationResult:
    """Attribute hook-reported errors/warnings to one field and expression."""
    return ValidationResult(
        errors=[
            replace(
                e,
                field=e.field or field_key,
                expression_index=e.expression_index if e.expression_index is not None else index,
            )
            for e in result.errors
        ],
        warnings=[
            replace(
                w,
                field=w.field or field_key,
                expression_index=w.expression_index if w.expression_index is not None else index,
            )
            for w in result.warnings
        ],
    )


def validate_expression(
    expression: FilterExpression,
    schema: FilterSchema,
    index: int | None = None,
    expressions: Sequence[FilterExpression] | None = None,
) -> ValidationResult:
    """Validate a single expression against a schema.

    Rules run in order and the first failing rule produces the expression's
    error:

    1. The field must exist in the schema.
    2. The operator must be one of the field's operators.
    3. A required value must be present; multi-value operators check shape.
    4. Operator and field ``validate`` hooks.

    Args:
        expression: The expression to check.
        schema: Schema to check against.
        index: Position of the expression in its list (for error context).
        expressions: The whole list, passed to custom hooks. Defaults to just
            this expression.

    Returns:
        The validation result.
    """
    result = ValidationResult()
    condition = expression.condition
    field_key = condition.field.key
    operator_key = condition.operator.key

    field_config = schema.get_field(field_key)
    if field_config is None:
        result.errors.append(
            ValidationError(
                type="field",
                message=f'Field "{field_key}" not found in schema',
                expression_index=index,
                field=field_key,
            )
        )
        return result

    operator_config = field_config.get_operator(operator_key)
    if operator_config is None:
        result.errors.append(
            ValidationError(
                type="operator",
                message=f'Operator "{operator_key}" is not valid for field "{field_key}"',
                expression_index=index,
                field=field_key,
            )
        )
        return result

    raw = condition.value.raw
    required = _value_required(field_config, operator_config)
    if operator_config.multi_value is not None:
        if required or not _is_empty(raw):
            error = _check_multi_value(raw, field_key, operator_config, index)
            if error is not None:
                result.errors.append(error)
                return result
    elif required and _is_empty(raw):
        result.errors.append(
            ValidationError(
                type="value",
                message=f'Value is required for field "{field_key}"',
                expression_index=index,
                field=field_key,
            )
        )
        return result

    context = ValidationContext(
        field=field_config,
        operator=operator_config,
        expressions=tuple(expressions) if expressions is not None else (expression,),
        schema=schema,
    )
    for hook in (operator_config.validate, field_config.validate):
        if hook is None:
            continue
        hook_result = _scoped(hook(condition.value, context), field_key, index)
        result.warnings.extend(hook_result.warnings)
        if hook_result.errors:
            result.errors.extend(hook_result.errors)
            break

    return result


def validate_expressions(
    expressions: Sequence[FilterExpression],
    schema: FilterSchema,
) -> ValidationResult:
    """Validate a list of expressions against a schema.

    Runs validate_expression() on every expression, then the list-level rules:
    the expression limit, single-use fields, connector placement, duplicate
    detection (a warning) and finally the schema's own ``validate`` hook.

    Args:
        expressions: The expressions to check, in order.
        schema: Schema to check against.

    Returns:
        The combined validation result.
    """
    result = ValidationResult()
    expressions = tuple(expressions)

    if schema.max_expressions is not None and len(expressions) > schema.max_expressions:
        result.errors.append(
            ValidationError(
                type="schema",
                message=f"Maximum of {schema.max_expressions} expressions allowed, "
                f"but {len(expressions)} provided",
            )
        )

    field_usage: dict[str, list[int]] = {}
    seen_conditions: dict[tuple[str, str, str], int] = {}
    last_index = len(expressions) - 1

    for i, expr in enumerate(expressions):
        result.extend(validate_expression(expr, schema, i, expressions))

        field_key = expr.condition.field.key
        field_usage.setdefault(field_key, []).append(i)

        if i < last_index and expr.connector is None:
            result.errors.append(
                ValidationError(
                    type="expression",
                    message=f"Expression {i + 1} is missing a connector to the next expression",
                    expression_index=i,
                    field=field_key,
                )
            )
        elif i == last_index and expr.connector is not None:
            result.errors.append(
                ValidationError(
                    type="expression",
                    message=f"Last expression has a dangling {expr.connector} connector",
                    expression_index=i,
                    field=field_key,
                )
            )

        signature = (
            field_key,
            expr.condition.operator.key,
            expr.condition.value.serialized,
        )
        if signature in seen_conditions:
            result.warnings.append(
                ValidationWarning(
                    message=f"Expression {i + 1} duplicates expression "
                    f"{seen_conditions[signature] + 1}",
                    expression_index=i,
                    field=field_key,
                )
            )
        else:
            seen_conditions[signature] = i

    for field_config in schema.fields:
        if field_config.allow_multiple:
            continue
        usage = field_usage.get(field_config.key, [])
        if len(usage) > 1:
            result.errors.append(
                ValidationError(
                    type="field",
                    message=f'Field "{field_config.label}" can only be used once, '
                    f"but appears {len(usage)} times",
                    expression_index=usage[1],
                    field=field_config.key,
                )
            )

    if schema.validate is not None:
        result.extend(schema.validate(expressions))

    logger.debug(
        f"Validated {len(expressions)} expression(s): "
        f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )
    return result


def validate_schema(schema: FilterSchema) -> ValidationResult:
    """Validate a schema configuration.

    Args:
        schema: The schema to check.

    Returns:
        The validation result; all errors have type "schema".
    """
    result = ValidationResult()

    if not schema.fields:
        result.errors.append(
            ValidationError(type="schema", message="Schema must have at least one field")
        )
        return result

    if schema.max_expressions is not None and schema.max_expressions < 1:
        result.errors.append(
            ValidationError(
                type="schema",
                message=f"max_expressions must be positive, got {schema.max_expressions}",
            )
        )

    field_keys: set[str] = set()
    for field_config in schema.fields:
        key = field_config.key
        if key in field_keys:
            result.errors.append(
                ValidationError(
                    type="schema", message=f'Duplicate field key: "{key}"', field=key
                )
            )
        field_keys.add(key)

        if not field_config.operators:
            result.errors.append(
                ValidationError(
                    type="schema",
                    message=f'Field "{key}" must have at least one operator',
                    field=key,
                )
            )
            continue

        operator_keys: set[str] = set()
        for op in field_config.operators:
            if op.key in operator_keys:
                result.errors.append(
                    ValidationError(
                        type="schema",
                        message=f'Duplicate operator "{op.key}" on field "{key}"',
                        field=key,
                    )
                )
            operator_keys.add(op.key)

        if (
            field_config.default_operator is not None
            and field_config.default_operator not in operator_keys
        ):
            result.errors.append(
                ValidationError(
                    type="schema",
                    message=f'Default operator "{field_config.default_operator}" '
                    f'is not an operator of field "{key}"',
                    field=key,
                )
            )

    return result
