"""Schema configuration for filter fields, operators and connectors.

A schema lists the fields a user may filter on, the operators each field
accepts, and optional hooks for validating and (de)serializing values. This
module also carries the default operator sets per field type and a fluent
builder for assembling schemas in code.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from .types import (
    Connector,
    ConditionValue,
    FieldDescriptor,
    FieldType,
    FilterExpression,
    OperatorDescriptor,
    ValidationResult,
)

if TYPE_CHECKING:
    from .suggestions import Autocompleter


@dataclass(frozen=True)
class MultiValueConfig:
    """Configuration for operators taking several values (between, in).

    Attributes:
        count: Number of values required, or -1 for "one or more".
        separator: Separator used when rendering the values.
        labels: Labels for each value slot (e.g. ["from", "to"]).
    """

    count: int
    separator: str = ","
    labels: tuple[str, ...] = ()


@dataclass
class OperatorConfig:
    """An operator a field accepts."""

    key: str
    label: str
    symbol: str | None = None
    value_type: FieldType | None = None  # Overrides the field's type for values
    value_required: bool | None = None  # None defers to the field (default: True)
    value_autocompleter: "Autocompleter | None" = None
    multi_value: MultiValueConfig | None = None
    validate: "Callable[[ConditionValue, ValidationContext], ValidationResult] | None" = None

    def to_descriptor(self) -> OperatorDescriptor:
        return OperatorDescriptor(key=self.key, label=self.label, symbol=self.symbol)


@dataclass
class FieldConfig:
    """A filterable field and everything the engine needs to know about it."""

    key: str
    label: str
    type: FieldType = "string"
    operators: list[OperatorConfig] = field(default_factory=list)
    description: str | None = None
    default_operator: str | None = None  # First operator if not specified
    group: str | None = None
    allow_multiple: bool = True
    value_required: bool = True
    value_autocompleter: "Autocompleter | None" = None
    validate: "Callable[[ConditionValue, ValidationContext], ValidationResult] | None" = None
    serialize: Callable[[ConditionValue], Any] | None = None
    deserialize: Callable[[Any], ConditionValue] | None = None

    def to_descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(key=self.key, label=self.label, type=self.type)

    def get_operator(self, key: str) -> OperatorConfig | None:
        """Get one of this field's operators by key."""
        for op in self.operators:
            if op.key == key:
                return op
        return None

    def default_operator_config(self) -> OperatorConfig | None:
        """Get the operator used when none was chosen explicitly.

        Returns:
            The configured default operator, else the first operator, else None.
        """
        if self.default_operator is not None:
            op = self.get_operator(self.default_operator)
            if op is not None:
                return op
        return self.operators[0] if self.operators else None

    def value_type_for(self, operator: OperatorConfig) -> FieldType:
        """Get the type of values entered for one of this field's operators."""
        return operator.value_type or self.type


@dataclass(frozen=True)
class ConnectorConfig:
    """A connector offered between expressions."""

    key: Connector
    label: str


DEFAULT_CONNECTORS: tuple[ConnectorConfig, ...] = (
    ConnectorConfig(key="AND", label="AND"),
    ConnectorConfig(key="OR", label="OR"),
)


@dataclass
class FilterSchema:
    """Complete filter configuration.

    Attributes:
        fields: Available fields, in the order they are offered.
        connectors: Available connectors.
        validate: Cross-expression validation hook, run once per list.
        max_expressions: Maximum number of expressions allowed (None = no limit).
        serialize: Whole-list serialization override.
        deserialize: Whole-list deserialization override.
    """

    fields: list[FieldConfig] = field(default_factory=list)
    connectors: tuple[ConnectorConfig, ...] = DEFAULT_CONNECTORS
    validate: "Callable[[Sequence[FilterExpression]], ValidationResult] | None" = None
    max_expressions: int | None = None
    serialize: Callable[[Sequence[FilterExpression]], Any] | None = None
    deserialize: Callable[[Any], list[FilterExpression]] | None = None

    def get_field(self, key: str) -> FieldConfig | None:
        """Get a field by key."""
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def field_keys(self) -> list[str]:
        return [f.key for f in self.fields]


@dataclass(frozen=True)
class ValidationContext:
    """Context handed to per-field and per-operator ``validate`` hooks."""

    field: FieldConfig
    operator: OperatorConfig
    expressions: tuple[FilterExpression, ...]
    schema: FilterSchema


# =============================================================================
# Default operator sets
# =============================================================================

_RANGE = MultiValueConfig(count=2, separator="and", labels=("from", "to"))

STRING_OPERATORS: tuple[OperatorConfig, ...] = (
    OperatorConfig(key="eq", label="equals", symbol="="),
    OperatorConfig(key="neq", label="not equals", symbol="≠"),
    OperatorConfig(key="contains", label="contains"),
    OperatorConfig(key="startsWith", label="starts with"),
    OperatorConfig(key="endsWith", label="ends with"),
    OperatorConfig(key="like", label="like"),
)

NUMBER_OPERATORS: tuple[OperatorConfig, ...] = (
    OperatorConfig(key="eq", label="equals", symbol="="),
    OperatorConfig(key="neq", label="not equals", symbol="≠"),
    OperatorConfig(key="gt", label="greater than", symbol=">"),
    OperatorConfig(key="gte", label="greater or equal", symbol="≥"),
    OperatorConfig(key="lt", label="less than", symbol="<"),
    OperatorConfig(key="lte", label="less or equal", symbol="≤"),
    OperatorConfig(key="between", label="between", multi_value=_RANGE),
)

DATE_OPERATORS: tuple[OperatorConfig, ...] = (
    OperatorConfig(key="before", label="before"),
    OperatorConfig(key="after", label="after"),
    OperatorConfig(key="on", label="on"),
    OperatorConfig(key="between", label="between", multi_value=_RANGE),
)

BOOLEAN_OPERATORS: tuple[OperatorConfig, ...] = (
    OperatorConfig(key="is", label="is"),
)

ENUM_OPERATORS: tuple[OperatorConfig, ...] = (
    OperatorConfig(key="eq", label="is", symbol="="),
    OperatorConfig(key="neq", label="is not", symbol="≠"),
    OperatorConfig(key="in", label="in", multi_value=MultiValueConfig(count=-1)),
)

ID_OPERATORS: tuple[OperatorConfig, ...] = (
    OperatorConfig(key="eq", label="equals", symbol="="),
    OperatorConfig(key="in", label="in list"),
)

_DEFAULT_OPERATORS: dict[str, tuple[OperatorConfig, ...]] = {
    "string": STRING_OPERATORS,
    "number": NUMBER_OPERATORS,
    "date": DATE_OPERATORS,
    "datetime": DATE_OPERATORS,
    "boolean": BOOLEAN_OPERATORS,
    "enum": ENUM_OPERATORS,
    "id": ID_OPERATORS,
}


def get_default_operators(field_type: FieldType) -> list[OperatorConfig]:
    """Get fresh copies of the default operators for a field type.

    Custom (and unknown) types fall back to the string operators.
    """
    operators = _DEFAULT_OPERATORS.get(field_type, STRING_OPERATORS)
    return [replace(op) for op in operators]


# =============================================================================
# Fluent builder
# =============================================================================


class FieldBuilder:
    """Builds one FieldConfig, then hands control back to its SchemaBuilder."""

    def __init__(self, schema_builder: "SchemaBuilder", key: str, label: str) -> None:
        self._schema_builder = schema_builder
        self._config = FieldConfig(key=key, label=label)

    def type(self, field_type: FieldType) -> "FieldBuilder":
        """Set the field type, applying its default operators if none are set."""
        self._config.type = field_type
        if not self._config.operators:
            self._config.operators = get_default_operators(field_type)
        return self

    def description(self, description: str) -> "FieldBuilder":
        self._config.description = description
        return self

    def group(self, group: str) -> "FieldBuilder":
        self._config.group = group
        return self

    def operators(self, operators: Sequence[OperatorConfig | str]) -> "FieldBuilder":
        """Replace the field's operators.

        Args:
            operators: Either full OperatorConfig objects, or keys selecting from
                the default operators of the field's type.
        """
        if operators and isinstance(operators[0], str):
            keys = set(operators)
            defaults = get_default_operators(self._config.type)
            self._config.operators = [op for op in defaults if op.key in keys]
        else:
            self._config.operators = [
                op for op in operators if isinstance(op, OperatorConfig)
            ]
        return self

    def add_operator(self, operator: OperatorConfig) -> "FieldBuilder":
        self._config.operators = [*self._config.operators, operator]
        return self

    def default_operator(self, key: str) -> "FieldBuilder":
        self._config.default_operator = key
        return self

    def allow_multiple(self, allow: bool) -> "FieldBuilder":
        self._config.allow_multiple = allow
        return self

    def value_required(self, required: bool) -> "FieldBuilder":
        self._config.value_required = required
        return self

    def value_autocompleter(self, autocompleter: "Autocompleter") -> "FieldBuilder":
        self._config.value_autocompleter = autocompleter
        return self

    def validator(
        self,
        hook: Callable[[ConditionValue, ValidationContext], ValidationResult],
    ) -> "FieldBuilder":
        self._config.validate = hook
        return self

    def serializer(
        self,
        serialize: Callable[[ConditionValue], Any],
        deserialize: Callable[[Any], ConditionValue] | None = None,
    ) -> "FieldBuilder":
        self._config.serialize = serialize
        self._config.deserialize = deserialize
        return self

    def done(self) -> "SchemaBuilder":
        """Finish the field and return to the schema builder."""
        if not self._config.operators:
            self._config.operators = get_default_operators(self._config.type)
        self._schema_builder.add_field(self._config)
        return self._schema_builder


class SchemaBuilder:
    """Fluent builder for FilterSchema.

    Examples:
        >>> schema = (
        ...     create_schema()
        ...     .field("status", "Status").type("enum").done()
        ...     .field("age", "Age").type("number").operators(["gt", "lt"]).done()
        ...     .max(5)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._fields: list[FieldConfig] = []
        self._max_expressions: int | None = None
        self._connectors: tuple[ConnectorConfig, ...] = DEFAULT_CONNECTORS
        self._validate: Callable[[Sequence[FilterExpression]], ValidationResult] | None = None

    def field(self, key: str, label: str) -> FieldBuilder:
        """Start defining a new field."""
        return FieldBuilder(self, key, label)

    def add_field(self, config: FieldConfig) -> "SchemaBuilder":
        """Add a pre-configured field."""
        self._fields.append(config)
        return self

    def max(self, count: int) -> "SchemaBuilder":
        self._max_expressions = count
        return self

    def with_connectors(self, connectors: Sequence[ConnectorConfig]) -> "SchemaBuilder":
        self._connectors = tuple(connectors)
        return self

    def validator(
        self, hook: Callable[[Sequence[FilterExpression]], ValidationResult]
    ) -> "SchemaBuilder":
        self._validate = hook
        return self

    def build(self) -> FilterSchema:
        return FilterSchema(
            fields=list(self._fields),
            connectors=self._connectors,
            validate=self._validate,
            max_expressions=self._max_expressions,
        )


def create_schema() -> SchemaBuilder:
    """Create a new schema builder."""
    return SchemaBuilder()


# =============================================================================
# Schema combinators
# =============================================================================


def merge_schemas(*schemas: FilterSchema) -> FilterSchema:
    """Merge schemas; the first field with a given key wins.

    Limits and connectors come from the last schema.
    """
    merged: list[FieldConfig] = []
    seen: set[str] = set()
    for schema in schemas:
        for f in schema.fields:
            if f.key not in seen:
                merged.append(f)
                seen.add(f.key)

    if not schemas:
        return FilterSchema(fields=merged)
    last = schemas[-1]
    return FilterSchema(
        fields=merged,
        connectors=last.connectors,
        max_expressions=last.max_expressions,
    )


def pick_fields(schema: FilterSchema, field_keys: Sequence[str]) -> FilterSchema:
    """Keep only the named fields."""
    keys = set(field_keys)
    return replace(schema, fields=[f for f in schema.fields if f.key in keys])


def omit_fields(schema: FilterSchema, field_keys: Sequence[str]) -> FilterSchema:
    """Drop the named fields."""
    keys = set(field_keys)
    return replace(schema, fields=[f for f in schema.fields if f.key not in keys])


def extend_schema(
    base: FilterSchema,
    fields: Sequence[FieldConfig] = (),
    **overrides: Any,
) -> FilterSchema:
    """Append fields to a schema and override any other schema attributes."""
    return replace(base, fields=[*base.fields, *fields], **overrides)
