"""
State machine for building filter expressions one token at a time.

This package owns the grammar (field -> operator -> value -> connector), the
step variants that hold the in-progress selection, and the edit operations on
committed expressions.
"""

from .actions import (
    Applied,
    Blur,
    Clear,
    Complete,
    ConfirmValue,
    DeleteLast,
    EditResult,
    FilterAction,
    FilterContext,
    Focus,
    Ignored,
    InvariantViolation,
    Reset,
    SelectConnector,
    SelectField,
    SelectOperator,
    TransitionResult,
)
from .constants import (
    BUILDING_STEPS,
    VALID_ACTIONS,
    ActionType,
    FilterStep,
    is_valid_action,
)
from .machine import DEFAULT_CONNECTOR, FilterStateMachine, assert_well_formed
from .steps import (
    EnteringValue,
    Idle,
    SelectingConnector,
    SelectingField,
    SelectingOperator,
    StepState,
)

__all__ = [
    # Constants
    "BUILDING_STEPS",
    "DEFAULT_CONNECTOR",
    "VALID_ACTIONS",
    "ActionType",
    "FilterStep",
    "is_valid_action",
    # Actions
    "Blur",
    "Clear",
    "Complete",
    "ConfirmValue",
    "DeleteLast",
    "FilterAction",
    "Focus",
    "Reset",
    "SelectConnector",
    "SelectField",
    "SelectOperator",
    # Results
    "Applied",
    "EditResult",
    "Ignored",
    "InvariantViolation",
    "TransitionResult",
    # Steps
    "EnteringValue",
    "FilterContext",
    "Idle",
    "SelectingConnector",
    "SelectingField",
    "SelectingOperator",
    "StepState",
    # Machine
    "FilterStateMachine",
    "assert_well_formed",
]
