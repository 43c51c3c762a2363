"""Serialization of filter expressions.

Three encodings are supported:

- JSON-ready dicts (``serialize``/``deserialize``, ``to_json``/``from_json``):
  ``{"field", "operator", "value"[, "connector"]}`` per expression, lossless.
- Query strings (``to_query_string``/``from_query_string``): ``field=value``
  pairs for shareable URLs. Operators and connectors are dropped on encode, so
  decoding can only guess them.
- Display strings (``to_display_string``): one human-readable line.

Decoding never raises for malformed input. Bad entries are skipped and
reported in DeserializeResult.errors while the rest of the batch decodes.
"""

import json
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qsl, urlencode

from .schema import FieldConfig, FilterSchema, OperatorConfig
from .types import (
    CONNECTORS,
    ConditionValue,
    Connector,
    FieldDescriptor,
    FieldType,
    Filter,
    FilterCondition,
    FilterExpression,
    OperatorDescriptor,
)

logger = logging.getLogger(__name__)

# A JSON-ready expression: {"field", "operator", "value"[, "connector"]}
SerializedExpression = dict[str, Any]

# Connector assumed between query-string pairs and between decoded entries
# that lost theirs
IMPLIED_CONNECTOR: Connector = "AND"


@dataclass(frozen=True)
class SerializeOptions:
    use_field_serializers: bool = True
    use_schema_serializer: bool = True


@dataclass(frozen=True)
class DeserializeOptions:
    use_field_deserializers: bool = True
    use_schema_deserializer: bool = True


@dataclass(frozen=True)
class DisplayFormatOptions:
    """Formatters for to_display_string().

    Attributes:
        format_field: Renders a field (default: its label).
        format_operator: Renders an operator (default: its label, or its symbol
            when ``use_symbols`` is set and it has one).
        format_value: Renders a value (default: its display string).
        format_connector: Renders a connector (default: as is).
        format_expression: Renders a whole expression, overriding the above.
        use_symbols: Prefer operator symbols over labels.
    """

    format_field: Callable[[FieldDescriptor], str] | None = None
    format_operator: Callable[[OperatorDescriptor], str] | None = None
    format_value: (
        Callable[[ConditionValue, FieldDescriptor, OperatorDescriptor], str] | None
    ) = None
    format_connector: Callable[[Connector], str] | None = None
    format_expression: Callable[[FilterExpression, int], str] | None = None
    use_symbols: bool = False


@dataclass(frozen=True)
class SerializationError:
    """A wire entry that could not be decoded.

    Attributes:
        index: Position of the entry in the input (None for whole-input errors).
        message: What was wrong with it.
        field: The entry's field key, when it had one.
    """

    index: int | None
    message: str
    field: str | None = None


@dataclass
class DeserializeResult:
    """Decoded expressions plus the entries that were skipped."""

    expressions: Filter = ()
    errors: list[SerializationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0


class _EntryError(Exception):
    """Internal: one wire entry is malformed."""


# =============================================================================
# JSON
# =============================================================================


def serialize(
    expressions: Sequence[FilterExpression],
    schema: FilterSchema | None = None,
    options: SerializeOptions | None = None,
) -> list[SerializedExpression]:
    """Serialize expressions to JSON-ready dicts.

    Args:
        expressions: Expressions to serialize.
        schema: Optional schema supplying ``serialize`` hooks.
        options: Which hooks to honor.

    Returns:
        One dict per expression, in order.

    Examples:
        >>> serialize([status_eq_active])
        [{'field': 'status', 'operator': 'eq', 'value': 'active'}]
    """
    options = options or SerializeOptions()

    if schema is not None and options.use_schema_serializer and schema.serialize:
        custom = schema.serialize(list(expressions))
        if isinstance(custom, list):
            return custom
        logger.debug("Schema serializer did not return a list; using default format")

    result: list[SerializedExpression] = []
    for expr in expressions:
        condition = expr.condition
        value: Any = condition.value.serialized
        if schema is not None and options.use_field_serializers:
            field_config = schema.get_field(condition.field.key)
            if field_config is not None and field_config.serialize is not None:
                value = field_config.serialize(condition.value)

        item: SerializedExpression = {
            "field": condition.field.key,
            "operator": condition.operator.key,
            "value": value,
        }
        if expr.connector is not None:
            item["connector"] = expr.connector
        result.append(item)
    return result


def _wire_text(value: Any) -> str:
    """Render a wire value as text for the display/serialized slots."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_wire_text(v) for v in value)
    return str(value)


def _fallback_value(value: Any) -> ConditionValue:
    return ConditionValue(raw=value, display=_wire_text(value), serialized=_wire_text(value))


def _split_multi_value(text: str, separator: str) -> list[str]:
    """Split a wire string into the parts of a multi-value operator."""
    text = text.strip()
    if len(text) >= 2 and text[0] + text[-1] in ("()", "[]"):
        text = text[1:-1]
    if not text.strip():
        return []

    if separator.isalnum():
        # Word separators ("and") only count between whitespace
        pattern = rf"\s+{re.escape(separator)}\s+"
    else:
        pattern = rf"\s*{re.escape(separator)}\s*"
    parts = re.split(pattern, text, flags=re.IGNORECASE)
    if len(parts) == 1 and separator != ",":
        parts = text.split(",")
    return [p.strip() for p in parts]


def _coerce_part(part: Any, value_type: FieldType) -> Any:
    """Convert one multi-value part to the operator's value type, if it can."""
    if not isinstance(part, str):
        return part
    if value_type == "number":
        for convert in (int, float):
            try:
                return convert(part)
            except ValueError:
                pass
    elif value_type == "boolean" and part.lower() in ("true", "false"):
        return part.lower() == "true"
    return part


def _fallback_multi_value(
    value: Any, operator_config: OperatorConfig, value_type: FieldType
) -> ConditionValue:
    """Decode a hook-less wire value for a multi-value operator into a list."""
    assert operator_config.multi_value is not None
    separator = operator_config.multi_value.separator

    if isinstance(value, (list, tuple)):
        parts = list(value)
    elif isinstance(value, str):
        parts = _split_multi_value(value, separator)
    else:
        return _fallback_value(value)

    raw = [_coerce_part(p, value_type) for p in parts]
    joiner = f" {separator} " if separator.isalnum() else separator
    return ConditionValue(
        raw=raw,
        display=joiner.join(_wire_text(p) for p in raw),
        serialized=_wire_text(value),
    )


def _decode_entry(
    item: Any,
    schema: FilterSchema,
    options: DeserializeOptions,
) -> FilterExpression:
    """Decode one wire entry.

    Raises:
        _EntryError: If the entry is malformed.
    """
    if not isinstance(item, dict):
        raise _EntryError(f"Expected an object, got {type(item).__name__}")
    for key in ("field", "operator"):
        if not isinstance(item.get(key), str):
            raise _EntryError(f"Missing or non-string '{key}'")
    if "value" not in item:
        raise _EntryError("Missing 'value'")

    field_config = schema.get_field(item["field"])
    if field_config is None:
        raise _EntryError(f"Unknown field: {item['field']}")
    operator_config = field_config.get_operator(item["operator"])
    if operator_config is None:
        raise _EntryError(
            f"Unknown operator: {item['operator']} for field {item['field']}"
        )

    connector = item.get("connector")
    if connector is not None and connector not in CONNECTORS:
        raise _EntryError(f"Invalid connector: {connector!r}")

    if options.use_field_deserializers and field_config.deserialize is not None:
        try:
            value = field_config.deserialize(item["value"])
        except Exception as e:
            logger.exception(f"Deserialize hook for field {item['field']} failed")
            raise _EntryError(f"Could not deserialize value {item['value']!r}: {e}") from e
        if not isinstance(value, ConditionValue):
            raise _EntryError(
                f"Deserialize hook for field {item['field']} returned "
                f"{type(value).__name__}, not a ConditionValue"
            )
    elif operator_config.multi_value is not None:
        value = _fallback_multi_value(
            item["value"], operator_config, field_config.value_type_for(operator_config)
        )
    else:
        value = _fallback_value(item["value"])

    return FilterExpression(
        condition=FilterCondition(
            field=field_config.to_descriptor(),
            operator=operator_config.to_descriptor(),
            value=value,
        ),
        connector=connector,
    )


def _join(expressions: list[FilterExpression]) -> Filter:
    """Restore the connector invariant on a decoded list.

    Skipped entries can leave a connector dangling at the end or a gap between
    two survivors; the former is dropped and the latter filled with AND.
    """
    joined: list[FilterExpression] = []
    last_index = len(expressions) - 1
    for i, expr in enumerate(expressions):
        if i == last_index and expr.connector is not None:
            expr = replace(expr, connector=None)
        elif i < last_index and expr.connector is None:
            logger.warning(
                f"Decoded expression {i} has no connector; assuming {IMPLIED_CONNECTOR}"
            )
            expr = replace(expr, connector=IMPLIED_CONNECTOR)
        joined.append(expr)
    return tuple(joined)


def deserialize(
    data: Any,
    schema: FilterSchema,
    options: DeserializeOptions | None = None,
) -> DeserializeResult:
    """Deserialize JSON-ready dicts back into expressions.

    Field and operator descriptors are rebuilt from the schema by key. A
    field's ``deserialize`` hook turns the wire value into a ConditionValue;
    without one the wire value is used as the raw value and rendered as text
    for the display and serialized forms.

    Args:
        data: A list of serialized expressions.
        schema: Schema to look fields and operators up in.
        options: Which hooks to honor.

    Returns:
        The decoded expressions and one error per skipped entry.
    """
    options = options or DeserializeOptions()

    if options.use_schema_deserializer and schema.deserialize is not None:
        try:
            custom = list(schema.deserialize(data))
        except Exception as e:
            logger.exception("Schema deserializer failed")
            return DeserializeResult(
                errors=[SerializationError(index=None, message=f"Schema deserializer failed: {e}")]
            )
        expressions = [e for e in custom if isinstance(e, FilterExpression)]
        errors = [
            SerializationError(
                index=i, message=f"Schema deserializer returned {type(e).__name__}"
            )
            for i, e in enumerate(custom)
            if not isinstance(e, FilterExpression)
        ]
        return DeserializeResult(expressions=_join(expressions), errors=errors)

    if not isinstance(data, list):
        return DeserializeResult(
            errors=[
                SerializationError(
                    index=None,
                    message=f"Expected a list of expressions, got {type(data).__name__}",
                )
            ]
        )

    decoded: list[FilterExpression] = []
    errors: list[SerializationError] = []
    for i, item in enumerate(data):
        try:
            decoded.append(_decode_entry(item, schema, options))
        except _EntryError as e:
            field_key = item.get("field") if isinstance(item, dict) else None
            logger.warning(f"Skipping serialized expression {i}: {e}")
            errors.append(
                SerializationError(
                    index=i,
                    message=str(e),
                    field=field_key if isinstance(field_key, str) else None,
                )
            )

    return DeserializeResult(expressions=_join(decoded), errors=errors)


def to_json(
    expressions: Sequence[FilterExpression],
    schema: FilterSchema | None = None,
    options: SerializeOptions | None = None,
    indent: int | None = None,
) -> str:
    """Serialize expressions straight to a JSON string."""
    return json.dumps(serialize(expressions, schema, options), indent=indent, default=str)


def from_json(
    text: str,
    schema: FilterSchema,
    options: DeserializeOptions | None = None,
) -> DeserializeResult:
    """Deserialize expressions from a JSON string."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return DeserializeResult(
            errors=[SerializationError(index=None, message=f"Invalid JSON: {e}")]
        )
    return deserialize(data, schema, options)


# =============================================================================
# Query strings
# =============================================================================


def to_query_string(expressions: Sequence[FilterExpression]) -> str:
    """Encode expressions as ``field=value&field2=value2``.

    Operators and connectors are not encoded. A field used twice produces two
    pairs.

    Examples:
        >>> to_query_string([status_eq_active, age_gt_30])
        'status=active&age=30'
    """
    pairs = [
        (expr.condition.field.key, str(expr.condition.value.serialized))
        for expr in expressions
    ]
    return urlencode(pairs)


def _query_operator(field_config: FieldConfig) -> OperatorDescriptor | None:
    return field_config.operators[0].to_descriptor() if field_config.operators else None


def from_query_string(query: str, schema: FilterSchema) -> DeserializeResult:
    """Decode a query string built by to_query_string().

    This decoding is lossy. The operator of each pair is reconstructed
    heuristically as the first operator the field allows, so any other
    operator chosen originally is lost. Every pair is joined with
    AND. Pairs naming unknown fields are skipped and reported.

    Args:
        query: The query string, with or without a leading "?".
        schema: Schema to look fields up in.

    Returns:
        The decoded expressions and one error per skipped pair.
    """
    decoded: list[FilterExpression] = []
    errors: list[SerializationError] = []

    pairs = parse_qsl(query.lstrip("?"), keep_blank_values=True)
    for i, (key, value) in enumerate(pairs):
        field_config = schema.get_field(key)
        if field_config is None:
            logger.debug(f"Skipping unknown query-string field: {key}")
            errors.append(SerializationError(index=i, message=f"Unknown field: {key}", field=key))
            continue
        operator = _query_operator(field_config)
        if operator is None:
            errors.append(
                SerializationError(
                    index=i, message=f"Field {key} has no operators", field=key
                )
            )
            continue
        decoded.append(
            FilterExpression(
                condition=FilterCondition(
                    field=field_config.to_descriptor(),
                    operator=operator,
                    value=ConditionValue(raw=value, display=value, serialized=value),
                ),
                connector=IMPLIED_CONNECTOR,
            )
        )

    return DeserializeResult(expressions=_join(decoded), errors=errors)


# =============================================================================
# Display strings
# =============================================================================


def to_display_string(
    expressions: Sequence[FilterExpression],
    options: DisplayFormatOptions | None = None,
) -> str:
    """Render expressions as one human-readable line.

    Only labels and ``display`` strings are used; raw and serialized values
    are never read.

    Examples:
        >>> to_display_string([status_eq_active_and, age_gt_30])
        'Status equals Active AND Age greater than 30'
    """
    options = options or DisplayFormatOptions()

    def format_field(f: FieldDescriptor) -> str:
        return options.format_field(f) if options.format_field else f.label

    def format_operator(o: OperatorDescriptor) -> str:
        if options.format_operator:
            return options.format_operator(o)
        if options.use_symbols and o.symbol:
            return o.symbol
        return o.label

    def format_value(v: ConditionValue, f: FieldDescriptor, o: OperatorDescriptor) -> str:
        return options.format_value(v, f, o) if options.format_value else v.display

    def format_connector(c: Connector) -> str:
        return options.format_connector(c) if options.format_connector else c

    parts: list[str] = []
    last_index = len(expressions) - 1
    for i, expr in enumerate(expressions):
        condition = expr.condition
        if options.format_expression:
            part = options.format_expression(expr, i)
        else:
            part = " ".join(
                [
                    format_field(condition.field),
                    format_operator(condition.operator),
                    format_value(condition.value, condition.field, condition.operator),
                ]
            )
        if expr.connector is not None and i < last_index:
            part += f" {format_connector(expr.connector)}"
        parts.append(part)

    return " ".join(parts)
