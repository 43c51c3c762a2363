"""Tests for step suggestions and value-suggestion providers."""

import asyncio

import pytest
from filterbox.schema import FilterSchema
from filterbox.state_machine import (
    Blur,
    DeleteLast,
    FilterStateMachine,
    Focus,
    SelectField,
)
from filterbox.suggestions import (
    AutocompleteContext,
    CancellationToken,
    StaticAutocompleter,
    SuggestionSession,
    afetch_value_suggestions,
    build_autocomplete_context,
    fetch_value_suggestions,
    get_step_suggestions,
    get_value_autocompleter,
)
from filterbox.types import AutocompleteItem


def _context(schema: FilterSchema, text: str = "") -> AutocompleteContext:
    return AutocompleteContext(
        input_value=text,
        field=None,
        operator=None,
        existing_expressions=(),
        schema=schema,
    )


class _CancellingAutocompleter:
    """Cancels its own token mid-query, like a newer query arriving."""

    def get_suggestions(self, context, token):
        token.cancel()
        return [AutocompleteItem(type="value", key="late", label="Late")]


class _AsyncAutocompleter:
    def __init__(self) -> None:
        self.calls = 0

    async def get_suggestions(self, context, token):
        self.calls += 1
        await asyncio.sleep(0)
        return [AutocompleteItem(type="value", key="x", label="X")]


# --- Step suggestions ---


def test_field_suggestions(machine: FilterStateMachine, schema: FilterSchema) -> None:
    """Test selecting-field offers every field in schema order."""
    machine.transition(Focus())

    items = get_step_suggestions(machine, schema)

    assert [i.key for i in items] == ["status", "name", "age", "created"]
    assert items[1].group == "Profile"
    assert all(i.type == "field" for i in items)


def test_field_suggestions_filter_by_label_and_description(
    machine: FilterStateMachine, schema: FilterSchema
) -> None:
    """Test filtering is a case-insensitive substring match."""
    machine.transition(Focus())

    assert [i.key for i in get_step_suggestions(machine, schema, "AG")] == ["age"]
    assert [i.key for i in get_step_suggestions(machine, schema, "account")] == ["status"]


def test_single_use_field_is_disabled_once_used(make_expression, schema: FilterSchema) -> None:
    """Test a field with allow_multiple=False is offered disabled after use."""
    machine = FilterStateMachine([make_expression("status", "eq", "active")])
    machine.transition(Focus())

    items = {i.key: i for i in get_step_suggestions(machine, schema)}

    assert items["status"].disabled
    assert not items["name"].disabled


def test_operator_suggestions(machine: FilterStateMachine, schema: FilterSchema) -> None:
    """Test selecting-operator offers the current field's operators."""
    machine.transition(Focus())
    machine.transition(SelectField(schema.get_field("age").to_descriptor()))  # type: ignore[union-attr]

    items = get_step_suggestions(machine, schema, "less")

    assert [i.key for i in items] == ["lt", "lte"]
    assert items[0].description == "<"


def test_default_operator_is_offered_first(
    machine: FilterStateMachine, schema: FilterSchema
) -> None:
    """Test the field's default operator leads the operator suggestions."""
    machine.transition(Focus())
    machine.transition(SelectField(schema.get_field("age").to_descriptor()))  # type: ignore[union-attr]

    keys = [i.key for i in get_step_suggestions(machine, schema)]

    assert keys[:3] == ["gt", "eq", "neq"]
    assert sorted(keys) == sorted(op.key for op in schema.get_field("age").operators)  # type: ignore[union-attr]


def test_connector_suggestions(make_expression, schema: FilterSchema) -> None:
    """Test selecting-connector offers the schema's connectors."""
    machine = FilterStateMachine([make_expression("name", "eq", "a")])
    machine.transition(Focus())
    machine.transition(DeleteLast())

    assert [i.key for i in get_step_suggestions(machine, schema)] == ["AND", "OR"]


def test_no_suggestions_when_idle(make_expression, schema: FilterSchema) -> None:
    """Test idle has nothing to suggest."""
    machine = FilterStateMachine([make_expression("name", "eq", "a")])
    machine.transition(Focus())
    machine.transition(Blur())

    assert get_step_suggestions(machine.get_step_state(), schema) == []


# --- Value suggestions ---


def test_static_autocompleter(schema: FilterSchema) -> None:
    """Test the static provider filters its values."""
    provider = StaticAutocompleter({"active": "Active", "inactive": "Inactive"})

    items = fetch_value_suggestions(provider, _context(schema, "in"), CancellationToken())

    assert [i.key for i in items or []] == ["inactive"]


def test_operator_autocompleter_wins(schema: FilterSchema) -> None:
    """Test an operator's provider takes precedence over the field's."""
    status = schema.get_field("status")
    assert status is not None
    op = status.get_operator("in")
    assert op is not None

    assert get_value_autocompleter(status) is status.value_autocompleter
    op.value_autocompleter = StaticAutocompleter(["x"])
    assert get_value_autocompleter(status, op) is op.value_autocompleter


def test_cancelled_before_fetch_is_stale(schema: FilterSchema) -> None:
    """Test a token cancelled up front never runs the provider."""
    token = CancellationToken()
    token.cancel()

    assert fetch_value_suggestions(StaticAutocompleter(["a"]), _context(schema), token) is None


def test_cancelled_while_running_is_stale(schema: FilterSchema) -> None:
    """Test results from a query cancelled mid-flight are discarded."""
    token = CancellationToken()

    assert fetch_value_suggestions(_CancellingAutocompleter(), _context(schema), token) is None


def test_sync_fetch_rejects_async_provider(schema: FilterSchema) -> None:
    """Test the sync helper refuses awaitables."""
    with pytest.raises(TypeError, match="afetch_value_suggestions"):
        fetch_value_suggestions(_AsyncAutocompleter(), _context(schema), CancellationToken())


def test_async_fetch(schema: FilterSchema) -> None:
    """Test the async helper awaits async providers and accepts sync ones."""
    provider = _AsyncAutocompleter()

    items = asyncio.run(afetch_value_suggestions(provider, _context(schema), CancellationToken()))
    sync_items = asyncio.run(
        afetch_value_suggestions(StaticAutocompleter(["a"]), _context(schema), CancellationToken())
    )

    assert [i.key for i in items or []] == ["x"]
    assert [i.key for i in sync_items or []] == ["a"]


def test_session_cancels_previous_query(schema: FilterSchema) -> None:
    """Test a newer query makes the older one stale."""
    provider = _AsyncAutocompleter()
    session = SuggestionSession()

    async def race():
        first = asyncio.ensure_future(session.afetch(provider, _context(schema, "a")))
        await asyncio.sleep(0)
        second = await session.afetch(provider, _context(schema, "ab"))
        return await first, second

    first, second = asyncio.run(race())

    assert first is None
    assert second is not None
    assert provider.calls == 2


def test_build_autocomplete_context(make_expression, schema: FilterSchema) -> None:
    """Test the provider context mirrors the machine."""
    machine = FilterStateMachine([make_expression("name", "eq", "a")])
    machine.transition(Focus())
    status = schema.get_field("status")
    assert status is not None
    machine.transition(SelectField(status.to_descriptor()))

    context = build_autocomplete_context(machine, schema, "act")

    assert context.input_value == "act"
    assert context.field == status.to_descriptor()
    assert context.operator is None
    assert context.existing_expressions[-1].connector is None
