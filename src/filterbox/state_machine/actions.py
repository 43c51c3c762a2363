"""Actions, transition results and the flat context view of the machine."""

from dataclasses import dataclass, field
from typing import ClassVar

from ..types import (
    ConditionValue,
    Connector,
    FieldDescriptor,
    Filter,
    OperatorDescriptor,
    ValidationError,
)
from .constants import ActionType, FilterStep


@dataclass(frozen=True)
class Focus:
    type: ClassVar[ActionType] = ActionType.FOCUS


@dataclass(frozen=True)
class Blur:
    type: ClassVar[ActionType] = ActionType.BLUR


@dataclass(frozen=True)
class SelectField:
    type: ClassVar[ActionType] = ActionType.SELECT_FIELD

    field: FieldDescriptor


@dataclass(frozen=True)
class SelectOperator:
    type: ClassVar[ActionType] = ActionType.SELECT_OPERATOR

    operator: OperatorDescriptor


@dataclass(frozen=True)
class ConfirmValue:
    type: ClassVar[ActionType] = ActionType.CONFIRM_VALUE

    value: ConditionValue


@dataclass(frozen=True)
class SelectConnector:
    type: ClassVar[ActionType] = ActionType.SELECT_CONNECTOR

    connector: Connector


@dataclass(frozen=True)
class Complete:
    type: ClassVar[ActionType] = ActionType.COMPLETE


@dataclass(frozen=True)
class DeleteLast:
    type: ClassVar[ActionType] = ActionType.DELETE_LAST


@dataclass(frozen=True)
class Clear:
    type: ClassVar[ActionType] = ActionType.CLEAR


@dataclass(frozen=True)
class Reset:
    type: ClassVar[ActionType] = ActionType.RESET


FilterAction = (
    Focus
    | Blur
    | SelectField
    | SelectOperator
    | ConfirmValue
    | SelectConnector
    | Complete
    | DeleteLast
    | Clear
    | Reset
)


@dataclass(frozen=True)
class FilterContext:
    """Flat, read-only view of the machine's context.

    Attributes:
        completed_expressions: Committed expressions.
        current_field: Field chosen for the expression being built.
        current_operator: Operator chosen for the expression being built.
        pending_connector: Connector chosen before the expression being built.
    """

    completed_expressions: Filter = ()
    current_field: FieldDescriptor | None = None
    current_operator: OperatorDescriptor | None = None
    pending_connector: Connector | None = None


@dataclass(frozen=True)
class Applied:
    """The action was legal and the machine moved to ``step``."""

    action: ActionType
    step: FilterStep

    applied: ClassVar[bool] = True


@dataclass(frozen=True)
class Ignored:
    """The action made no sense in ``step``; nothing changed."""

    action: ActionType
    step: FilterStep
    reason: str

    applied: ClassVar[bool] = False


TransitionResult = Applied | Ignored


@dataclass
class EditResult:
    """Result of editing a committed expression.

    Attributes:
        success: Whether the edit was applied.
        expressions: The committed expressions after the call (unchanged when
            the edit failed).
        errors: Why the edit was rejected.
    """

    success: bool
    expressions: Filter
    errors: list[ValidationError] = field(default_factory=list)


class InvariantViolation(AssertionError):
    """Raised when the engine produces a malformed expression list.

    This signals a bug in the engine itself, never bad user input.
    """
