"""Tests for expression and schema validation."""

from filterbox.schema import (
    FieldConfig,
    FilterSchema,
    OperatorConfig,
    ValidationContext,
    create_schema,
    get_default_operators,
)
from filterbox.types import (
    ConditionValue,
    FieldDescriptor,
    FilterCondition,
    FilterExpression,
    OperatorDescriptor,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from filterbox.validation import (
    validate_expression,
    validate_expressions,
    validate_schema,
)

# --- validate_expression ---


def test_empty_value_is_required(make_expression, schema: FilterSchema) -> None:
    """Test an empty string value fails the required rule."""
    result = validate_expression(make_expression("name", "contains", ""), schema)

    assert not result.valid
    assert result.errors[0].type == "value"
    assert "required" in result.errors[0].message


def test_unknown_field(schema: FilterSchema) -> None:
    """Test a field missing from the schema is reported first."""
    expression = FilterExpression(
        condition=FilterCondition(
            field=FieldDescriptor(key="color", label="Color"),
            operator=OperatorDescriptor(key="eq", label="equals"),
            value=ConditionValue.of(""),
        )
    )

    result = validate_expression(expression, schema, index=2)

    assert [e.type for e in result.errors] == ["field"]
    assert result.errors[0].message == 'Field "color" not found in schema'
    assert result.errors[0].expression_index == 2


def test_operator_not_on_field(schema: FilterSchema) -> None:
    """Test an operator that belongs to another field is rejected."""
    expression = FilterExpression(
        condition=FilterCondition(
            field=FieldDescriptor(key="status", label="Status", type="enum"),
            operator=OperatorDescriptor(key="gt", label="greater than"),
            value=ConditionValue.of("x"),
        )
    )

    result = validate_expression(expression, schema)

    assert result.errors[0].message == 'Operator "gt" is not valid for field "status"'


def test_operator_can_waive_value() -> None:
    """Test an operator with value_required=False accepts an empty value."""
    schema = FilterSchema(
        fields=[
            FieldConfig(
                key="email",
                label="Email",
                operators=[OperatorConfig(key="isEmpty", label="is empty", value_required=False)],
            )
        ]
    )
    expression = FilterExpression(
        condition=FilterCondition(
            field=FieldDescriptor(key="email", label="Email"),
            operator=OperatorDescriptor(key="isEmpty", label="is empty"),
            value=ConditionValue(raw=None, display="", serialized=""),
        )
    )

    assert validate_expression(expression, schema).valid


def test_between_requires_two_values(make_expression, schema: FilterSchema) -> None:
    """Test the between operator checks its value count."""
    result = validate_expression(make_expression("age", "between", (1,)), schema)

    assert "exactly 2 values, but got 1" in result.errors[0].message


def test_between_rejects_inverted_range(make_expression, schema: FilterSchema) -> None:
    """Test the between operator requires from <= to."""
    result = validate_expression(make_expression("age", "between", (50, 10)), schema)

    assert not result.valid
    assert "inverted" in result.errors[0].message
    assert validate_expression(make_expression("age", "between", (10, 50)), schema).valid


def test_in_requires_at_least_one_value(make_expression, schema: FilterSchema) -> None:
    """Test enum 'in' needs a non-empty list."""
    result = validate_expression(make_expression("status", "in", []), schema)

    assert "at least one value" in result.errors[0].message
    assert validate_expression(make_expression("status", "in", ["active"]), schema).valid


def test_field_hook_errors_are_scoped() -> None:
    """Test errors from a field hook get the field key and expression index."""

    def must_be_adult(value: ConditionValue, context: ValidationContext) -> ValidationResult:
        if value.raw < 18:
            return ValidationResult(
                errors=[ValidationError(type="value", message="Must be at least 18")]
            )
        return ValidationResult(warnings=[ValidationWarning(message="Checked")])

    schema = (
        create_schema()
        .field("age", "Age")
        .type("number")
        .validator(must_be_adult)
        .done()
        .build()
    )
    expression = FilterExpression(
        condition=FilterCondition(
            field=FieldDescriptor(key="age", label="Age", type="number"),
            operator=OperatorDescriptor(key="gt", label="greater than", symbol=">"),
            value=ConditionValue.of(12),
        )
    )

    result = validate_expression(expression, schema, index=0)

    assert result.errors == [
        ValidationError(
            type="value", message="Must be at least 18", expression_index=0, field="age"
        )
    ]

    adult = FilterExpression(
        condition=FilterCondition(
            field=expression.condition.field,
            operator=expression.condition.operator,
            value=ConditionValue.of(30),
        )
    )
    ok = validate_expression(adult, schema)
    assert ok.valid
    assert ok.warnings[0].field == "age"


def test_validation_is_deterministic(make_expression, schema: FilterSchema) -> None:
    """Test the same input always gives the same result."""
    expressions = (
        make_expression("status", "eq", "active", "AND"),
        make_expression("name", "contains", ""),
    )

    assert validate_expressions(expressions, schema) == validate_expressions(expressions, schema)


# --- validate_expressions ---


def test_max_expressions(make_expression, schema: FilterSchema) -> None:
    """Test the schema's expression limit."""
    schema.max_expressions = 1
    expressions = (
        make_expression("name", "eq", "a", "AND"),
        make_expression("name", "eq", "b"),
    )

    result = validate_expressions(expressions, schema)

    assert result.errors[0].type == "schema"
    assert "Maximum of 1 expressions allowed, but 2 provided" == result.errors[0].message


def test_single_use_field(make_expression, schema: FilterSchema) -> None:
    """Test a field with allow_multiple=False used twice."""
    expressions = (
        make_expression("status", "eq", "active", "OR"),
        make_expression("status", "eq", "inactive"),
    )

    result = validate_expressions(expressions, schema)

    assert any(
        e.type == "field" and "can only be used once" in e.message and e.expression_index == 1
        for e in result.errors
    )


def test_connector_placement(make_expression, schema: FilterSchema) -> None:
    """Test missing and dangling connectors are reported."""
    expressions = (
        make_expression("name", "eq", "a"),
        make_expression("age", "gt", 1, "AND"),
    )

    result = validate_expressions(expressions, schema)

    messages = [e.message for e in result.errors if e.type == "expression"]
    assert "Expression 1 is missing a connector to the next expression" in messages
    assert "Last expression has a dangling AND connector" in messages


def test_duplicate_expression_warns(make_expression, schema: FilterSchema) -> None:
    """Test identical conditions are a warning, not an error."""
    expressions = (
        make_expression("name", "eq", "a", "OR"),
        make_expression("name", "eq", "a"),
    )

    result = validate_expressions(expressions, schema)

    assert result.valid
    assert result.warnings[0].message == "Expression 2 duplicates expression 1"


def test_schema_hook_runs_on_list(make_expression, schema: FilterSchema) -> None:
    """Test the schema-level hook sees the whole list."""
    seen = []

    def hook(expressions) -> ValidationResult:
        seen.append(len(expressions))
        return ValidationResult(errors=[ValidationError(type="schema", message="nope")])

    schema.validate = hook
    result = validate_expressions((make_expression("name", "eq", "a"),), schema)

    assert seen == [1]
    assert result.errors[-1].message == "nope"


# --- validate_schema ---


def test_valid_schema(schema: FilterSchema) -> None:
    """Test the shared fixture schema is valid."""
    assert validate_schema(schema).valid


def test_empty_schema() -> None:
    """Test a schema needs at least one field."""
    result = validate_schema(FilterSchema())

    assert result.errors[0].message == "Schema must have at least one field"


def test_schema_mistakes() -> None:
    """Test duplicate keys, missing operators and a bad default operator."""
    schema = FilterSchema(
        fields=[
            FieldConfig(key="a", label="A", operators=get_default_operators("string")),
            FieldConfig(key="a", label="A again", operators=get_default_operators("string")),
            FieldConfig(key="b", label="B"),
            FieldConfig(
                key="c",
                label="C",
                operators=get_default_operators("number"),
                default_operator="contains",
            ),
        ],
        max_expressions=0,
    )

    messages = [e.message for e in validate_schema(schema).errors]

    assert "max_expressions must be positive, got 0" in messages
    assert 'Duplicate field key: "a"' in messages
    assert 'Field "b" must have at least one operator' in messages
    assert 'Default operator "contains" is not an operator of field "c"' in messages
