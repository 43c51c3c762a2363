"""Schema configuration loading from YAML.

Example schema.yml::

    max_expressions: 5
    fields:
      - key: status
        label: Status
        type: enum
        allow_multiple: false
        values:
          active: Active
          inactive: Inactive
      - key: age
        label: Age
        type: number
        operators: [gt, lt, between]
        default_operator: gt
"""

import os
from typing import Any

import yaml  # type: ignore[import-untyped]

from .schema import (
    ConnectorConfig,
    FieldConfig,
    FilterSchema,
    MultiValueConfig,
    OperatorConfig,
    get_default_operators,
)
from .suggestions import StaticAutocompleter
from .types import CONNECTORS, FIELD_TYPES

SCHEMA_ENV_VAR = "FILTERBOX_SCHEMA"

_FIELD_KEYS = {
    "key",
    "label",
    "type",
    "operators",
    "default_operator",
    "allow_multiple",
    "value_required",
    "description",
    "group",
    "values",
}


class SchemaConfigError(ValueError):
    """Raised when a schema file or mapping is malformed."""


def _get_config_path() -> str:
    """Get the path to the schema file.

    The FILTERBOX_SCHEMA environment variable wins over the default location.
    """
    env_path = os.environ.get(SCHEMA_ENV_VAR)
    if env_path:
        return os.path.expanduser(env_path)
    return os.path.expanduser("~/.config/filterbox/schema.yml")


def load_schema(path: str | None = None) -> FilterSchema:
    """Load a FilterSchema from a YAML file.

    Args:
        path: Path to the schema file. Defaults to _get_config_path().

    Returns:
        The parsed schema.

    Raises:
        FileNotFoundError: If the schema file doesn't exist.
        SchemaConfigError: If the schema file is malformed.
    """
    config_path = path if path is not None else _get_config_path()

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Schema file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaConfigError(f"Invalid YAML in {config_path}: {e}") from e

    return parse_schema_data(data)


def parse_schema_data(data: Any) -> FilterSchema:
    """Build a FilterSchema from already-parsed YAML/JSON data.

    Raises:
        SchemaConfigError: If the data is malformed.
    """
    if not isinstance(data, dict):
        raise SchemaConfigError("Schema must be a dictionary")

    fields_data = data.get("fields")
    if not isinstance(fields_data, list) or not fields_data:
        raise SchemaConfigError("'fields' must be a non-empty list")

    fields = [_parse_field(i, item) for i, item in enumerate(fields_data)]

    max_expressions = data.get("max_expressions")
    if max_expressions is not None and (
        isinstance(max_expressions, bool) or not isinstance(max_expressions, int)
    ):
        raise SchemaConfigError("'max_expressions' must be an integer")

    schema = FilterSchema(fields=fields, max_expressions=max_expressions)
    if "connectors" in data:
        schema.connectors = _parse_connectors(data["connectors"])
    return schema


def _parse_field(index: int, item: Any) -> FieldConfig:
    if not isinstance(item, dict):
        raise SchemaConfigError(f"Field {index} must be a dictionary")

    for required in ("key", "label"):
        if not isinstance(item.get(required), str):
            raise SchemaConfigError(f"Field {index} missing required field: {required}")
    key = item["key"]

    unknown = set(item) - _FIELD_KEYS
    if unknown:
        raise SchemaConfigError(
            f"Field '{key}' has unknown setting(s): {', '.join(sorted(unknown))}"
        )

    field_type = item.get("type", "string")
    if field_type not in FIELD_TYPES:
        raise SchemaConfigError(f"Field '{key}' has unknown type: {field_type}")

    config = FieldConfig(
        key=key,
        label=item["label"],
        type=field_type,
        operators=_parse_operators(key, field_type, item.get("operators")),
        description=item.get("description"),
        default_operator=item.get("default_operator"),
        group=item.get("group"),
        allow_multiple=_parse_bool(key, item, "allow_multiple", True),
        value_required=_parse_bool(key, item, "value_required", True),
    )

    if "values" in item:
        values = item["values"]
        if not isinstance(values, (dict, list)):
            raise SchemaConfigError(f"Field '{key}': 'values' must be a list or mapping")
        config.value_autocompleter = StaticAutocompleter(values)

    return config


def _parse_bool(key: str, item: dict[str, Any], name: str, default: bool) -> bool:
    value = item.get(name, default)
    if not isinstance(value, bool):
        raise SchemaConfigError(f"Field '{key}': '{name}' must be true or false")
    return value


def _parse_operators(key: str, field_type: str, operators: Any) -> list[OperatorConfig]:
    """Parse a field's operators: omitted, a list of default keys, or mappings."""
    defaults = get_default_operators(field_type)  # type: ignore[arg-type]
    if operators is None:
        return defaults
    if not isinstance(operators, list) or not operators:
        raise SchemaConfigError(f"Field '{key}': 'operators' must be a non-empty list")

    by_key = {op.key: op for op in defaults}
    parsed: list[OperatorConfig] = []
    for entry in operators:
        if isinstance(entry, str):
            if entry not in by_key:
                raise SchemaConfigError(
                    f"Field '{key}': unknown operator '{entry}' for type {field_type}"
                )
            parsed.append(by_key[entry])
        elif isinstance(entry, dict):
            parsed.append(_parse_operator_mapping(key, entry))
        else:
            raise SchemaConfigError(
                f"Field '{key}': each operator must be a key or a mapping"
            )
    return parsed


def _parse_operator_mapping(key: str, entry: dict[str, Any]) -> OperatorConfig:
    for required in ("key", "label"):
        if not isinstance(entry.get(required), str):
            raise SchemaConfigError(
                f"Field '{key}': operator missing required field: {required}"
            )

    multi_value = None
    if "multi_value" in entry:
        mv = entry["multi_value"]
        if not isinstance(mv, dict) or not isinstance(mv.get("count"), int):
            raise SchemaConfigError(
                f"Field '{key}': operator '{entry['key']}' has a malformed multi_value"
            )
        multi_value = MultiValueConfig(
            count=mv["count"],
            separator=mv.get("separator", ","),
            labels=tuple(mv.get("labels", ())),
        )

    value_required = entry.get("value_required")
    if value_required is not None and not isinstance(value_required, bool):
        raise SchemaConfigError(
            f"Field '{key}': operator '{entry['key']}' value_required must be true or false"
        )

    return OperatorConfig(
        key=entry["key"],
        label=entry["label"],
        symbol=entry.get("symbol"),
        value_type=entry.get("value_type"),
        value_required=value_required,
        multi_value=multi_value,
    )


def _parse_connectors(connectors: Any) -> tuple[ConnectorConfig, ...]:
    if not isinstance(connectors, list) or not connectors:
        raise SchemaConfigError("'connectors' must be a non-empty list")

    parsed: list[ConnectorConfig] = []
    for entry in connectors:
        if isinstance(entry, str):
            connector_key, label = entry, entry
        elif isinstance(entry, dict):
            connector_key, label = entry.get("key"), entry.get("label", entry.get("key"))
        else:
            raise SchemaConfigError("Each connector must be a key or a mapping")
        if connector_key not in CONNECTORS:
            raise SchemaConfigError(f"Unknown connector: {connector_key}")
        parsed.append(ConnectorConfig(key=connector_key, label=str(label)))
    return tuple(parsed)
