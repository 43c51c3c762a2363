"""Tests for the schema builder, default operators and schema combinators."""

from filterbox.schema import (
    DEFAULT_CONNECTORS,
    FieldConfig,
    FilterSchema,
    OperatorConfig,
    create_schema,
    extend_schema,
    get_default_operators,
    merge_schemas,
    omit_fields,
    pick_fields,
)


def test_builder_applies_type_defaults() -> None:
    """Test .type() fills in the type's default operators."""
    schema = create_schema().field("age", "Age").type("number").done().build()

    age = schema.get_field("age")
    assert age is not None
    assert [op.key for op in age.operators] == [
        "eq",
        "neq",
        "gt",
        "gte",
        "lt",
        "lte",
        "between",
    ]
    assert age.get_operator("between").multi_value.labels == ("from", "to")  # type: ignore[union-attr]


def test_builder_operator_keys_select_defaults() -> None:
    """Test .operators() with keys picks from the type's defaults."""
    schema = (
        create_schema()
        .field("age", "Age")
        .type("number")
        .operators(["gt", "lt"])
        .default_operator("lt")
        .done()
        .max(3)
        .build()
    )

    age = schema.fields[0]
    assert [op.key for op in age.operators] == ["gt", "lt"]
    assert age.default_operator_config().key == "lt"  # type: ignore[union-attr]
    assert schema.max_expressions == 3
    assert schema.connectors == DEFAULT_CONNECTORS


def test_builder_custom_operators() -> None:
    """Test full OperatorConfig objects and add_operator."""
    schema = (
        create_schema()
        .field("email", "Email")
        .operators([OperatorConfig(key="eq", label="is")])
        .add_operator(OperatorConfig(key="isEmpty", label="is empty", value_required=False))
        .allow_multiple(False)
        .value_required(False)
        .done()
        .build()
    )

    email = schema.fields[0]
    assert [op.key for op in email.operators] == ["eq", "isEmpty"]
    assert email.allow_multiple is False
    assert email.value_required is False


def test_done_without_type_uses_string_operators() -> None:
    """Test a field with no type or operators gets the string defaults."""
    schema = create_schema().field("q", "Query").done().build()

    assert schema.fields[0].type == "string"
    assert schema.fields[0].get_operator("contains") is not None


def test_default_operators_are_copies() -> None:
    """Test mutating returned defaults does not leak into other fields."""
    first = get_default_operators("enum")
    first[0].label = "changed"

    assert get_default_operators("enum")[0].label == "is"


def test_custom_type_falls_back_to_string() -> None:
    """Test unknown field types use the string operators."""
    assert [op.key for op in get_default_operators("custom")] == [
        op.key for op in get_default_operators("string")
    ]


def test_default_operator_config_falls_back_to_first() -> None:
    """Test an unset or unknown default operator falls back to the first one."""
    field_config = FieldConfig(
        key="a", label="A", operators=get_default_operators("date"), default_operator="nope"
    )

    assert field_config.default_operator_config().key == "before"  # type: ignore[union-attr]
    assert FieldConfig(key="b", label="B").default_operator_config() is None


def _schema(*keys: str, **kwargs: object) -> FilterSchema:
    return FilterSchema(
        fields=[FieldConfig(key=k, label=k.title()) for k in keys],
        **kwargs,  # type: ignore[arg-type]
    )


def test_merge_schemas_first_key_wins() -> None:
    """Test merge keeps the first field with a key and the last schema's limits."""
    first = _schema("a", "b")
    second = FilterSchema(
        fields=[FieldConfig(key="b", label="Other B"), FieldConfig(key="c", label="C")],
        max_expressions=7,
    )

    merged = merge_schemas(first, second)

    assert merged.field_keys() == ["a", "b", "c"]
    assert merged.get_field("b").label == "B"  # type: ignore[union-attr]
    assert merged.max_expressions == 7


def test_pick_and_omit_fields() -> None:
    """Test picking and omitting fields by key."""
    schema = _schema("a", "b", "c", max_expressions=2)

    assert pick_fields(schema, ["c", "a"]).field_keys() == ["a", "c"]
    assert omit_fields(schema, ["b"]).field_keys() == ["a", "c"]
    assert omit_fields(schema, ["b"]).max_expressions == 2
    assert schema.field_keys() == ["a", "b", "c"]


def test_extend_schema() -> None:
    """Test extend appends fields and overrides attributes."""
    extended = extend_schema(_schema("a"), [FieldConfig(key="z", label="Z")], max_expressions=1)

    assert extended.field_keys() == ["a", "z"]
    assert extended.max_expressions == 1
