"""
Steps, action types and the static transition table of the filter grammar.

The grammar builds one expression at a time:

    idle -> selecting-field -> selecting-operator -> entering-value
         -> selecting-connector -> (selecting-field | idle)
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class FilterStep(Enum):
    """Position in the field -> operator -> value -> connector grammar."""

    IDLE = "idle"
    SELECTING_FIELD = "selecting-field"
    SELECTING_OPERATOR = "selecting-operator"
    ENTERING_VALUE = "entering-value"
    SELECTING_CONNECTOR = "selecting-connector"
    # Kept for hosts that name the step; the engine never enters it. Revising a
    # committed token goes through FilterStateMachine.edit_* instead.
    EDITING_TOKEN = "editing-token"


class ActionType(Enum):
    """Actions the state machine understands."""

    FOCUS = "FOCUS"
    BLUR = "BLUR"
    SELECT_FIELD = "SELECT_FIELD"
    SELECT_OPERATOR = "SELECT_OPERATOR"
    CONFIRM_VALUE = "CONFIRM_VALUE"
    SELECT_CONNECTOR = "SELECT_CONNECTOR"
    COMPLETE = "COMPLETE"
    DELETE_LAST = "DELETE_LAST"
    CLEAR = "CLEAR"
    RESET = "RESET"


# Steps that build an expression; in these the last committed expression
# carries the pending connector (if any)
BUILDING_STEPS = frozenset(
    {
        FilterStep.SELECTING_FIELD,
        FilterStep.SELECTING_OPERATOR,
        FilterStep.ENTERING_VALUE,
    }
)

# CLEAR and RESET are accepted in every step
_ALWAYS = [ActionType.CLEAR, ActionType.RESET]

# Valid actions per step, in the order they are offered
# Key: current step, Value: action types that may be applied
VALID_ACTIONS: dict[FilterStep, list[ActionType]] = {
    FilterStep.IDLE: [ActionType.FOCUS, *_ALWAYS],
    FilterStep.SELECTING_FIELD: [
        ActionType.SELECT_FIELD,
        ActionType.BLUR,
        ActionType.DELETE_LAST,
        *_ALWAYS,
    ],
    FilterStep.SELECTING_OPERATOR: [
        ActionType.SELECT_OPERATOR,
        ActionType.BLUR,
        ActionType.DELETE_LAST,
        *_ALWAYS,
    ],
    FilterStep.ENTERING_VALUE: [
        ActionType.CONFIRM_VALUE,
        ActionType.BLUR,
        ActionType.DELETE_LAST,
        *_ALWAYS,
    ],
    FilterStep.SELECTING_CONNECTOR: [
        ActionType.SELECT_CONNECTOR,
        ActionType.COMPLETE,
        ActionType.BLUR,
        ActionType.DELETE_LAST,
        *_ALWAYS,
    ],
    FilterStep.EDITING_TOKEN: [],
}


def is_valid_action(step: FilterStep, action_type: ActionType) -> bool:
    """
    Check if an action type is allowed by the grammar in a step.

    This is the static table only; FilterStateMachine.can_transition() also
    checks that the step holds what the action needs (e.g. a field to attach
    an operator to).

    Args:
        step: Current step
        action_type: Action to check

    Returns:
        True if the grammar allows the action in this step, False otherwise
    """
    allowed = VALID_ACTIONS.get(step)
    if allowed is None:
        logger.warning(f"Unknown step: {step}")
        return False
    return action_type in allowed
