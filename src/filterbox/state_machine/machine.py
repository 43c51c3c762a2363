"""
The filter state machine.

FilterStateMachine is the single owner of the grammar step and of the
in-progress selection. Every transition either applies (and returns Applied)
or changes nothing (and returns Ignored with a reason).
"""

import copy
import logging
from collections.abc import Iterable
from dataclasses import replace

from ..schema import FilterSchema
from ..types import (
    CONNECTORS,
    ConditionValue,
    Connector,
    FieldDescriptor,
    Filter,
    FilterExpression,
    OperatorDescriptor,
    check_connector_invariant,
    make_condition,
)
from . import editing
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
from .steps import (
    EnteringValue,
    Idle,
    SelectingConnector,
    SelectingField,
    SelectingOperator,
    StepState,
    current_field_of,
    current_operator_of,
    pending_connector_of,
)

logger = logging.getLogger(__name__)

# Connector attached when committed expressions are loaded into a step that
# is already building the next expression
DEFAULT_CONNECTOR: Connector = "AND"

_BUILDING = (SelectingField, SelectingOperator, EnteringValue)


def assert_well_formed(state: StepState) -> None:
    """Check the connector invariant of a step state.

    Every expression but the last carries a connector. The last carries the
    pending connector while the next expression is being built, and no
    connector otherwise.

    Raises:
        InvariantViolation: If the state breaks the invariant.
    """
    expressions = state.expressions
    pending = pending_connector_of(state)

    if not expressions:
        if pending is not None:
            raise InvariantViolation(
                f"{state.step.value}: pending connector {pending!r} with no expressions"
            )
        return

    for i, expr in enumerate(expressions[:-1]):
        if expr.connector is None:
            raise InvariantViolation(
                f"{state.step.value}: expression {i} has no connector but is not last"
            )

    last = expressions[-1]
    if last.connector != pending:
        raise InvariantViolation(
            f"{state.step.value}: last expression has connector {last.connector!r}, "
            f"expected {pending!r}"
        )
    if state.step in BUILDING_STEPS and pending is None:
        raise InvariantViolation(
            f"{state.step.value}: building after {len(expressions)} expression(s) "
            "without a connector"
        )


def _with_expressions(state: StepState, expressions: Filter) -> StepState:
    """Swap the committed expressions of a state, keeping its pending connector in sync."""
    if isinstance(state, _BUILDING):
        pending = expressions[-1].connector if expressions else None
        return replace(state, expressions=expressions, pending_connector=pending)
    return replace(state, expressions=expressions)


class FilterStateMachine:
    """Builds filter expressions one token at a time.

    Examples:
        >>> machine = FilterStateMachine()
        >>> machine.transition(Focus())
        Applied(action=<ActionType.FOCUS: 'FOCUS'>, step=<FilterStep.SELECTING_FIELD: 'selecting-field'>)
        >>> machine.transition(Complete()).reason
        'COMPLETE is not valid while selecting-field'
    """

    def __init__(self, expressions: Iterable[FilterExpression] = ()) -> None:
        self._state: StepState = Idle()
        self.load_expressions(expressions)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_state(self) -> FilterStep:
        """Get the current grammar step."""
        return self._state.step

    def get_step_state(self) -> StepState:
        """Get the current step variant with the fields valid in that step."""
        return self._state

    def get_context(self) -> FilterContext:
        """Get a flat snapshot of the committed and in-progress context."""
        return FilterContext(
            completed_expressions=self._state.expressions,
            current_field=current_field_of(self._state),
            current_operator=current_operator_of(self._state),
            pending_connector=pending_connector_of(self._state),
        )

    @property
    def expressions(self) -> Filter:
        """Committed expressions, exactly as held (including a pending connector)."""
        return self._state.expressions

    def get_filter(self) -> Filter:
        """Get the committed filter as seen from outside.

        While the next expression is being built, the last committed
        expression carries the pending connector; the filter drops it so it
        always ends without a connector.
        """
        return editing.with_trailing_connector(self._state.expressions, None)

    def get_available_actions(self) -> list[ActionType]:
        """List the action types that would apply in the current step."""
        return [
            action_type
            for action_type in VALID_ACTIONS[self._state.step]
            if self._missing_context(action_type) is None
        ]

    def can_transition(self, action: FilterAction) -> bool:
        """Check whether ``action`` would apply, without applying it."""
        return self._reject_reason(action) is None

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(self, action: FilterAction) -> TransitionResult:
        """Apply an action.

        Args:
            action: The action to apply.

        Returns:
            Applied with the new step, or Ignored with the reason the action
            made no sense. An ignored action changes nothing.
        """
        reason = self._reject_reason(action)
        if reason is not None:
            logger.debug(f"Ignored {action.type.value} in {self._state.step.value}: {reason}")
            return Ignored(action=action.type, step=self._state.step, reason=reason)

        new_state = self._next_state(action)
        assert_well_formed(new_state)
        self._state = new_state
        logger.debug(f"Applied {action.type.value}, now {new_state.step.value}")
        return Applied(action=action.type, step=new_state.step)

    def reset(self) -> None:
        """Return to idle with no expressions."""
        self._state = Idle()

    def clear(self) -> None:
        """Drop all expressions and the in-progress selection, keeping the step."""
        self._state = type(self._state)()

    def load_expressions(self, expressions: Iterable[FilterExpression]) -> None:
        """Replace the committed expressions.

        The step and in-progress selection are kept. The input is deep-copied
        so the machine never shares mutable values with the caller.

        Args:
            expressions: Expressions to load; the last must have no connector.

        Raises:
            ValueError: If the expressions break the connector invariant.
        """
        loaded: Filter = tuple(copy.deepcopy(list(expressions)))
        problem = check_connector_invariant(loaded)
        if problem is not None:
            raise ValueError(f"Cannot load expressions: {problem}")

        state = self._state
        if isinstance(state, _BUILDING) and loaded:
            pending = state.pending_connector or DEFAULT_CONNECTOR
            loaded = editing.with_trailing_connector(loaded, pending)
        new_state = _with_expressions(state, loaded)
        assert_well_formed(new_state)
        self._state = new_state

    # =========================================================================
    # Editing committed expressions
    # =========================================================================

    def edit_value(
        self, index: int, value: ConditionValue, schema: FilterSchema | None = None
    ) -> EditResult:
        """Replace the value of a committed expression."""
        return self._apply_edit(
            editing.edit_value(self._state.expressions, index, value, schema)
        )

    def edit_operator(
        self,
        index: int,
        operator: OperatorDescriptor,
        schema: FilterSchema | None = None,
    ) -> EditResult:
        """Replace the operator of a committed expression."""
        return self._apply_edit(
            editing.edit_operator(self._state.expressions, index, operator, schema)
        )

    def edit_field(
        self,
        index: int,
        field: FieldDescriptor,
        operator: OperatorDescriptor,
        value: ConditionValue,
        schema: FilterSchema | None = None,
    ) -> EditResult:
        """Replace the field, operator and value of a committed expression."""
        return self._apply_edit(
            editing.edit_field(
                self._state.expressions, index, field, operator, value, schema
            )
        )

    def edit_connector(self, index: int, connector: Connector) -> EditResult:
        """Change the connector after a committed expression."""
        return self._apply_edit(
            editing.edit_connector(self._state.expressions, index, connector)
        )

    def delete_expression(self, index: int) -> EditResult:
        """Delete a committed expression, fixing up the trailing connector."""
        return self._apply_edit(
            editing.delete_expression(
                self._state.expressions, index, pending_connector_of(self._state)
            )
        )

    def _apply_edit(self, result: EditResult) -> EditResult:
        if result.success:
            new_state = _with_expressions(self._state, result.expressions)
            assert_well_formed(new_state)
            self._state = new_state
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _missing_context(self, action_type: ActionType) -> str | None:
        """Explain why the current step cannot take an action type, if it cannot."""
        state = self._state
        if not is_valid_action(state.step, action_type):
            return f"{action_type.value} is not valid while {state.step.value}"

        if action_type == ActionType.SELECT_OPERATOR and current_field_of(state) is None:
            return "no field selected"
        if action_type == ActionType.CONFIRM_VALUE and (
            current_field_of(state) is None or current_operator_of(state) is None
        ):
            return "no field and operator selected"
        if action_type == ActionType.SELECT_CONNECTOR and not state.expressions:
            return "no expression to connect"
        if action_type == ActionType.DELETE_LAST and not state.expressions:
            if isinstance(state, (SelectingField, SelectingConnector)):
                return "nothing to delete"
        return None

    def _reject_reason(self, action: FilterAction) -> str | None:
        reason = self._missing_context(action.type)
        if reason is not None:
            return reason
        if isinstance(action, SelectConnector) and action.connector not in CONNECTORS:
            return f"invalid connector {action.connector!r}"
        return None

    def _next_state(self, action: FilterAction) -> StepState:
        """Compute the state an accepted action leads to."""
        state = self._state
        expressions = state.expressions

        if isinstance(action, Focus):
            if expressions:
                # Continuing an existing filter joins it with the default connector
                return SelectingField(
                    expressions=editing.with_trailing_connector(
                        expressions, DEFAULT_CONNECTOR
                    ),
                    pending_connector=DEFAULT_CONNECTOR,
                )
            return SelectingField()

        if isinstance(action, Blur):
            return Idle(expressions=editing.with_trailing_connector(expressions, None))

        if isinstance(action, SelectField):
            assert isinstance(state, SelectingField)
            return SelectingOperator(
                expressions=expressions,
                pending_connector=state.pending_connector,
                field=action.field,
            )

        if isinstance(action, SelectOperator):
            assert isinstance(state, SelectingOperator)
            return EnteringValue(
                expressions=expressions,
                pending_connector=state.pending_connector,
                field=state.field,
                operator=action.operator,
            )

        if isinstance(action, ConfirmValue):
            assert isinstance(state, EnteringValue)
            assert state.field is not None and state.operator is not None
            condition = make_condition(state.field, state.operator, action.value)
            return SelectingConnector(
                expressions=expressions + (FilterExpression(condition=condition),)
            )

        if isinstance(action, SelectConnector):
            return SelectingField(
                expressions=editing.with_trailing_connector(expressions, action.connector),
                pending_connector=action.connector,
            )

        if isinstance(action, Complete):
            return Idle(expressions=expressions)

        if isinstance(action, DeleteLast):
            return self._deleted_last()

        if isinstance(action, Clear):
            return type(state)()

        if isinstance(action, Reset):
            return Idle()

        raise TypeError(f"Unknown action: {action!r}")

    def _deleted_last(self) -> StepState:
        """Undo the last forward transition."""
        state = self._state
        expressions = state.expressions

        if isinstance(state, SelectingConnector):
            last = expressions[-1]
            remaining = expressions[:-1]
            return EnteringValue(
                expressions=remaining,
                pending_connector=remaining[-1].connector if remaining else None,
                field=last.condition.field,
                operator=last.condition.operator,
            )

        if isinstance(state, EnteringValue):
            return SelectingOperator(
                expressions=expressions,
                pending_connector=state.pending_connector,
                field=state.field,
            )

        if isinstance(state, SelectingOperator):
            return SelectingField(
                expressions=expressions, pending_connector=state.pending_connector
            )

        if isinstance(state, SelectingField):
            # Only the connector changed on the way in; strip it again
            return SelectingConnector(
                expressions=editing.with_trailing_connector(expressions, None)
            )

        raise TypeError(f"DELETE_LAST has no inverse in {state.step.value}")
