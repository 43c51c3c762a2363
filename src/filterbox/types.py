"""Core value types for filter expressions.

Everything here is an immutable shape: descriptors for fields, operators and
connectors, the three-way condition value, committed expressions, the display
tokens projected from them, and the validation result types shared by the
validator and the editing operations.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

FieldType = Literal[
    "string", "number", "date", "datetime", "boolean", "enum", "id", "custom"
]

Connector = Literal["AND", "OR"]

# Valid connector keys, in the order they are offered to the user
CONNECTORS: tuple[Connector, ...] = ("AND", "OR")

FIELD_TYPES: tuple[FieldType, ...] = (
    "string",
    "number",
    "date",
    "datetime",
    "boolean",
    "enum",
    "id",
    "custom",
)

TokenType = Literal["field", "operator", "value", "connector"]

AutocompleteItemType = Literal["field", "operator", "value", "connector", "custom"]

ValidationErrorType = Literal["field", "operator", "value", "expression", "schema"]


@dataclass(frozen=True)
class FieldDescriptor:
    """A field chosen for a condition.

    Attributes:
        key: API field key (e.g. "status").
        label: Human-readable label (e.g. "Status").
        type: Field type, which drives default operators and value handling.
    """

    key: str
    label: str
    type: FieldType = "string"


@dataclass(frozen=True)
class OperatorDescriptor:
    """An operator chosen for a condition.

    Attributes:
        key: Operator key (e.g. "eq", "before").
        label: Human-readable label (e.g. "equals").
        symbol: Optional compact symbol (e.g. "=").
    """

    key: str
    label: str
    symbol: str | None = None


@dataclass(frozen=True)
class ConditionValue:
    """One user-entered value in three parallel representations.

    Attributes:
        raw: The typed value (str, int, date, a tuple for ranges and lists...).
        display: Human-readable rendering of the value.
        serialized: Wire rendering of the value.
    """

    raw: Any
    display: str
    serialized: str

    @classmethod
    def of(cls, value: Any) -> "ConditionValue":
        """Build a value whose display and wire forms are both ``str(value)``."""
        text = str(value)
        return cls(raw=value, display=text, serialized=text)


@dataclass(frozen=True)
class ConnectorValue:
    """A connector as shown to the user."""

    key: Connector
    label: str


@dataclass(frozen=True)
class FilterCondition:
    """A complete condition: field, operator and value."""

    field: FieldDescriptor
    operator: OperatorDescriptor
    value: ConditionValue


@dataclass(frozen=True)
class FilterExpression:
    """A condition plus the connector joining it to the NEXT expression.

    The last expression of a filter always has ``connector=None``.
    """

    condition: FilterCondition
    connector: Connector | None = None

    @property
    def field(self) -> FieldDescriptor:
        return self.condition.field

    @property
    def operator(self) -> OperatorDescriptor:
        return self.condition.operator

    @property
    def value(self) -> ConditionValue:
        return self.condition.value


# The externally visible filter: an ordered, immutable sequence of expressions
Filter = tuple[FilterExpression, ...]


@dataclass(frozen=True)
class TokenData:
    """A display token projected from committed or in-progress state.

    Attributes:
        id: Stable identifier ("0-field", "pending-operator", ...).
        type: Which grammar slot the token fills.
        value: The descriptor/value the token shows.
        position: Index of the token in the full token sequence.
        expression_index: Owning expression, or -1 for in-progress tokens.
        is_pending: Whether the token belongs to the in-progress selection.
    """

    id: str
    type: TokenType
    value: FieldDescriptor | OperatorDescriptor | ConditionValue | ConnectorValue
    position: int
    expression_index: int
    is_pending: bool = False


@dataclass(frozen=True)
class AutocompleteItem:
    """A single suggestion offered for the current step."""

    type: AutocompleteItemType
    key: str
    label: str
    description: str | None = None
    disabled: bool = False
    group: str | None = None
    metadata: Any = None


@dataclass(frozen=True)
class ValidationError:
    """A validation failure. Always returned as data, never raised."""

    type: ValidationErrorType
    message: str
    expression_index: int | None = None
    field: str | None = None


@dataclass(frozen=True)
class ValidationWarning:
    """A non-fatal validation finding."""

    message: str
    expression_index: int | None = None
    field: str | None = None


@dataclass
class ValidationResult:
    """Outcome of a validation run.

    ``valid`` is derived from ``errors``; warnings never make a result
    invalid.
    """

    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def extend(self, other: "ValidationResult") -> None:
        """Merge another result's errors and warnings into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


def make_condition(
    field_: FieldDescriptor,
    operator: OperatorDescriptor,
    value: ConditionValue,
) -> FilterCondition:
    """Convenience constructor mirroring the grammar order."""
    return FilterCondition(field=field_, operator=operator, value=value)


def check_connector_invariant(expressions: tuple[FilterExpression, ...]) -> str | None:
    """Check the connector invariant of an expression list.

    Args:
        expressions: The expressions to check.

    Returns:
        A description of the first violation, or None if the list is well formed.
    """
    last_index = len(expressions) - 1
    for i, expr in enumerate(expressions):
        if i < last_index and expr.connector is None:
            return f"expression {i} has no connector but is followed by another"
        if i == last_index and expr.connector is not None:
            return f"last expression {i} has connector {expr.connector!r}"
    return None
