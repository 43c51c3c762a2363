"""Tests for the static transition table."""

from filterbox.state_machine import (
    BUILDING_STEPS,
    VALID_ACTIONS,
    ActionType,
    FilterStep,
    is_valid_action,
)


def test_every_step_has_an_entry() -> None:
    """Test VALID_ACTIONS covers every step."""
    assert set(VALID_ACTIONS) == set(FilterStep)


def test_clear_and_reset_valid_everywhere_but_editing() -> None:
    """Test CLEAR and RESET are accepted in every reachable step."""
    for step in FilterStep:
        if step == FilterStep.EDITING_TOKEN:
            continue
        assert is_valid_action(step, ActionType.CLEAR)
        assert is_valid_action(step, ActionType.RESET)


def test_editing_token_accepts_nothing() -> None:
    """Test the editing-token step is never a transition source."""
    assert VALID_ACTIONS[FilterStep.EDITING_TOKEN] == []


def test_focus_only_from_idle() -> None:
    """Test FOCUS is only valid while idle."""
    assert is_valid_action(FilterStep.IDLE, ActionType.FOCUS)
    assert not is_valid_action(FilterStep.SELECTING_FIELD, ActionType.FOCUS)


def test_blur_not_valid_in_idle() -> None:
    """Test BLUR needs something to blur."""
    assert not is_valid_action(FilterStep.IDLE, ActionType.BLUR)
    assert is_valid_action(FilterStep.ENTERING_VALUE, ActionType.BLUR)


def test_building_steps() -> None:
    """Test the steps that build an expression."""
    assert BUILDING_STEPS == {
        FilterStep.SELECTING_FIELD,
        FilterStep.SELECTING_OPERATOR,
        FilterStep.ENTERING_VALUE,
    }


def test_step_values_are_kebab_case() -> None:
    """Test the step names hosts see."""
    assert FilterStep.SELECTING_CONNECTOR.value == "selecting-connector"
    assert FilterStep.EDITING_TOKEN.value == "editing-token"
