"""Step variants: one immutable state type per grammar step.

Each variant carries exactly the fields that are meaningful in its step, so the
machine can never hold, say, an operator while still choosing a field.

``field`` and ``operator`` are only None on a building step after CLEAR, which
empties the in-progress context without moving the step.
"""

from dataclasses import dataclass
from typing import ClassVar

from ..types import (
    Connector,
    FieldDescriptor,
    Filter,
    OperatorDescriptor,
)
from .constants import FilterStep


@dataclass(frozen=True)
class Idle:
    """No input in progress."""

    step: ClassVar[FilterStep] = FilterStep.IDLE

    expressions: Filter = ()


@dataclass(frozen=True)
class SelectingField:
    """Choosing the field of a new expression.

    Attributes:
        expressions: Committed expressions. If ``pending_connector`` is set, the
            last one carries it.
        pending_connector: The connector chosen just before entering this step.
    """

    step: ClassVar[FilterStep] = FilterStep.SELECTING_FIELD

    expressions: Filter = ()
    pending_connector: Connector | None = None


@dataclass(frozen=True)
class SelectingOperator:
    """Choosing the operator for ``field``."""

    step: ClassVar[FilterStep] = FilterStep.SELECTING_OPERATOR

    expressions: Filter = ()
    pending_connector: Connector | None = None
    field: FieldDescriptor | None = None


@dataclass(frozen=True)
class EnteringValue:
    """Entering the value for ``field`` and ``operator``."""

    step: ClassVar[FilterStep] = FilterStep.ENTERING_VALUE

    expressions: Filter = ()
    pending_connector: Connector | None = None
    field: FieldDescriptor | None = None
    operator: OperatorDescriptor | None = None


@dataclass(frozen=True)
class SelectingConnector:
    """An expression was just committed; choose AND/OR or finish."""

    step: ClassVar[FilterStep] = FilterStep.SELECTING_CONNECTOR

    expressions: Filter = ()


StepState = Idle | SelectingField | SelectingOperator | EnteringValue | SelectingConnector


def pending_connector_of(state: StepState) -> Connector | None:
    """Get the pending connector of a state (None for steps without one)."""
    if isinstance(state, (SelectingField, SelectingOperator, EnteringValue)):
        return state.pending_connector
    return None


def current_field_of(state: StepState) -> FieldDescriptor | None:
    if isinstance(state, (SelectingOperator, EnteringValue)):
        return state.field
    return None


def current_operator_of(state: StepState) -> OperatorDescriptor | None:
    if isinstance(state, EnteringValue):
        return state.operator
    return None
