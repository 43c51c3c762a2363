"""Suggestions for the current step and value-suggestion providers.

Built-in suggestions (fields, operators, connectors) come straight from the
schema. Value suggestions come from an Autocompleter attached to a field or
operator; providers may be synchronous or asynchronous, and each query carries
a CancellationToken so that a slow, superseded query never reaches the caller.
"""

import inspect
import logging
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Protocol

from .schema import FieldConfig, FilterSchema, OperatorConfig
from .state_machine import FilterStateMachine, FilterStep, StepState
from .state_machine.steps import current_field_of
from .types import AutocompleteItem, FieldDescriptor, FilterExpression, OperatorDescriptor

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag for one suggestion query."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class AutocompleteContext:
    """What a value-suggestion provider gets to see.

    Attributes:
        input_value: Text typed so far.
        field: Field whose value is being entered.
        operator: Operator already chosen, if any.
        existing_expressions: Committed expressions.
        schema: The active schema.
    """

    input_value: str
    field: FieldDescriptor | None
    operator: OperatorDescriptor | None
    existing_expressions: tuple[FilterExpression, ...]
    schema: FilterSchema


class Autocompleter(Protocol):
    """Protocol for value-suggestion providers."""

    def get_suggestions(
        self, context: AutocompleteContext, token: CancellationToken
    ) -> list[AutocompleteItem] | Awaitable[list[AutocompleteItem]]:
        """Return suggestions, either directly or as an awaitable."""
        ...


class StaticAutocompleter:
    """Suggests a fixed list of values, filtered by the typed text.

    Args:
        values: Mapping of value key to label, or a sequence of keys used as
            their own labels.
    """

    def __init__(self, values: dict[str, str] | Sequence[str]) -> None:
        if isinstance(values, dict):
            self.values = dict(values)
        else:
            self.values = {str(v): str(v) for v in values}

    def get_suggestions(
        self, context: AutocompleteContext, token: CancellationToken
    ) -> list[AutocompleteItem]:
        items = [
            AutocompleteItem(type="value", key=key, label=label)
            for key, label in self.values.items()
        ]
        return _filter_items(items, context.input_value)


# =============================================================================
# Value suggestions
# =============================================================================


def get_value_autocompleter(
    field_config: FieldConfig, operator_config: OperatorConfig | None = None
) -> Autocompleter | None:
    """Pick the provider for a field/operator pair; the operator's wins."""
    if operator_config is not None and operator_config.value_autocompleter is not None:
        return operator_config.value_autocompleter
    return field_config.value_autocompleter


def fetch_value_suggestions(
    autocompleter: Autocompleter,
    context: AutocompleteContext,
    token: CancellationToken,
) -> list[AutocompleteItem] | None:
    """Run a synchronous provider.

    Returns:
        The suggestions, or None if the token was cancelled before or while the
        provider ran.

    Raises:
        TypeError: If the provider returned an awaitable; use
            afetch_value_suggestions() for asynchronous providers.
    """
    if token.cancelled:
        return None
    result = autocompleter.get_suggestions(context, token)
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError(
            "Autocompleter returned an awaitable; use afetch_value_suggestions()"
        )
    if token.cancelled:
        logger.debug("Discarding stale value suggestions")
        return None
    return list(result)


async def afetch_value_suggestions(
    autocompleter: Autocompleter,
    context: AutocompleteContext,
    token: CancellationToken,
) -> list[AutocompleteItem] | None:
    """Run a synchronous or asynchronous provider.

    Returns:
        The suggestions, or None if the token was cancelled before or while the
        provider ran.
    """
    if token.cancelled:
        return None
    result = autocompleter.get_suggestions(context, token)
    if inspect.isawaitable(result):
        result = await result
    if token.cancelled:
        logger.debug("Discarding stale value suggestions")
        return None
    return list(result)


class SuggestionSession:
    """Issues one CancellationToken per query, cancelling the previous one.

    Only the most recent query can produce a result; every earlier query in
    flight becomes stale as soon as a newer one starts.
    """

    def __init__(self) -> None:
        self._token: CancellationToken | None = None

    def start(self) -> CancellationToken:
        """Cancel the current query (if any) and start a new one."""
        self.cancel()
        self._token = CancellationToken()
        return self._token

    def cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()

    def fetch(
        self, autocompleter: Autocompleter, context: AutocompleteContext
    ) -> list[AutocompleteItem] | None:
        return fetch_value_suggestions(autocompleter, context, self.start())

    async def afetch(
        self, autocompleter: Autocompleter, context: AutocompleteContext
    ) -> list[AutocompleteItem] | None:
        return await afetch_value_suggestions(autocompleter, context, self.start())


def build_autocomplete_context(
    machine: FilterStateMachine, schema: FilterSchema, input_value: str = ""
) -> AutocompleteContext:
    """Build a provider context from a machine's current state."""
    context = machine.get_context()
    return AutocompleteContext(
        input_value=input_value,
        field=context.current_field,
        operator=context.current_operator,
        existing_expressions=machine.get_filter(),
        schema=schema,
    )


# =============================================================================
# Step suggestions
# =============================================================================


def _filter_items(items: list[AutocompleteItem], input_value: str) -> list[AutocompleteItem]:
    """Keep items whose label or description contains the text (case-insensitive)."""
    needle = input_value.strip().lower()
    if not needle:
        return items
    return [
        item
        for item in items
        if needle in item.label.lower()
        or (item.description is not None and needle in item.description.lower())
    ]


def _field_items(
    schema: FilterSchema, expressions: Sequence[FilterExpression]
) -> list[AutocompleteItem]:
    used = {expr.condition.field.key for expr in expressions}
    return [
        AutocompleteItem(
            type="field",
            key=f.key,
            label=f.label,
            description=f.description,
            disabled=not f.allow_multiple and f.key in used,
            group=f.group,
        )
        for f in schema.fields
    ]


def _operator_items(field_config: FieldConfig) -> list[AutocompleteItem]:
    # The default operator is offered first
    default = field_config.default_operator_config()
    operators = sorted(field_config.operators, key=lambda op: op is not default)
    return [
        AutocompleteItem(
            type="operator",
            key=op.key,
            label=op.label,
            description=op.symbol,
            metadata=op.multi_value,
        )
        for op in operators
    ]


def get_step_suggestions(
    source: FilterStateMachine | StepState,
    schema: FilterSchema,
    input_value: str = "",
) -> list[AutocompleteItem]:
    """Suggest what can be chosen in the current step.

    Args:
        source: A machine, or one of its step states.
        schema: The active schema.
        input_value: Text typed so far, used to filter the suggestions.

    Returns:
        Fields while selecting a field, the current field's operators while
        selecting an operator, connectors while selecting a connector, and
        nothing otherwise (values come from the field's Autocompleter).

    Examples:
        >>> [item.key for item in get_step_suggestions(machine, schema, "sta")]
        ['status']
    """
    state = source.get_step_state() if isinstance(source, FilterStateMachine) else source
    step = state.step

    if step == FilterStep.SELECTING_FIELD:
        items = _field_items(schema, state.expressions)
    elif step == FilterStep.SELECTING_OPERATOR:
        current = current_field_of(state)
        field_config = schema.get_field(current.key) if current is not None else None
        if field_config is None:
            return []
        items = _operator_items(field_config)
    elif step == FilterStep.SELECTING_CONNECTOR:
        if not state.expressions:
            return []
        items = [
            AutocompleteItem(type="connector", key=c.key, label=c.label)
            for c in schema.connectors
        ]
    else:
        return []

    return _filter_items(items, input_value)
