"""
filterbox - a schema-driven engine for building structured filters.

Users build filters one token at a time (field, operator, value, connector)
through FilterStateMachine. The committed expressions can be projected into
display tokens, validated against a FilterSchema, and serialized to JSON, query
strings or display strings.
"""

__version__ = "0.1.0"

from .config import SchemaConfigError, load_schema, parse_schema_data
from .schema import (
    ConnectorConfig,
    FieldConfig,
    FilterSchema,
    MultiValueConfig,
    OperatorConfig,
    ValidationContext,
    create_schema,
    extend_schema,
    get_default_operators,
    merge_schemas,
    omit_fields,
    pick_fields,
)
from .serialization import (
    DeserializeOptions,
    DeserializeResult,
    DisplayFormatOptions,
    SerializationError,
    SerializeOptions,
    deserialize,
    from_json,
    from_query_string,
    serialize,
    to_display_string,
    to_json,
    to_query_string,
)
from .state_machine import (
    ActionType,
    Applied,
    EditResult,
    FilterContext,
    FilterStateMachine,
    FilterStep,
    Ignored,
    InvariantViolation,
    TransitionResult,
)
from .suggestions import (
    AutocompleteContext,
    Autocompleter,
    CancellationToken,
    StaticAutocompleter,
    SuggestionSession,
    afetch_value_suggestions,
    build_autocomplete_context,
    fetch_value_suggestions,
    get_step_suggestions,
)
from .tokens import project_machine, project_tokens
from .types import (
    AutocompleteItem,
    ConditionValue,
    ConnectorValue,
    FieldDescriptor,
    Filter,
    FilterCondition,
    FilterExpression,
    OperatorDescriptor,
    TokenData,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from .validation import validate_expression, validate_expressions, validate_schema

__all__ = [
    "__version__",
    # Types
    "AutocompleteItem",
    "ConditionValue",
    "ConnectorValue",
    "FieldDescriptor",
    "Filter",
    "FilterCondition",
    "FilterExpression",
    "OperatorDescriptor",
    "TokenData",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    # Schema
    "ConnectorConfig",
    "FieldConfig",
    "FilterSchema",
    "MultiValueConfig",
    "OperatorConfig",
    "ValidationContext",
    "create_schema",
    "extend_schema",
    "get_default_operators",
    "merge_schemas",
    "omit_fields",
    "pick_fields",
    # Config
    "SchemaConfigError",
    "load_schema",
    "parse_schema_data",
    # State machine
    "ActionType",
    "Applied",
    "EditResult",
    "FilterContext",
    "FilterStateMachine",
    "FilterStep",
    "Ignored",
    "InvariantViolation",
    "TransitionResult",
    # Tokens
    "project_machine",
    "project_tokens",
    # Validation
    "validate_expression",
    "validate_expressions",
    "validate_schema",
    # Serialization
    "DeserializeOptions",
    "DeserializeResult",
    "DisplayFormatOptions",
    "SerializationError",
    "SerializeOptions",
    "deserialize",
    "from_json",
    "from_query_string",
    "serialize",
    "to_display_string",
    "to_json",
    "to_query_string",
    # Suggestions
    "AutocompleteContext",
    "Autocompleter",
    "CancellationToken",
    "StaticAutocompleter",
    "SuggestionSession",
    "afetch_value_suggestions",
    "build_autocomplete_context",
    "fetch_value_suggestions",
    "get_step_suggestions",
]
