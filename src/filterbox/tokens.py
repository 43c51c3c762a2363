"""Projection of committed and in-progress state into display tokens."""

from collections.abc import Sequence

from .state_machine import FilterContext, FilterStateMachine
from .types import ConnectorValue, FilterExpression, TokenData

PENDING_INDEX = -1


def project_tokens(
    expressions: Sequence[FilterExpression],
    context: FilterContext | None = None,
) -> tuple[TokenData, ...]:
    """Project expressions and the in-progress selection into tokens.

    Each committed expression yields field, operator and value tokens, then a
    connector token when it has a connector. The in-progress selection yields a
    field token and, once chosen, an operator token, both pending.

    This is a pure function: equal inputs always give equal tokens.

    Args:
        expressions: Committed expressions.
        context: Machine context holding the in-progress field/operator. Its
            ``completed_expressions`` are ignored in favor of ``expressions``.

    Returns:
        Tokens in display order with consecutive positions.

    Examples:
        >>> [t.id for t in project_tokens(machine.expressions, machine.get_context())]
        ['0-field', '0-operator', '0-value', '0-connector', 'pending-field']
    """
    tokens: list[TokenData] = []

    for i, expr in enumerate(expressions):
        condition = expr.condition
        slots = [
            ("field", condition.field),
            ("operator", condition.operator),
            ("value", condition.value),
        ]
        if expr.connector is not None:
            slots.append(
                ("connector", ConnectorValue(key=expr.connector, label=expr.connector))
            )
        for token_type, value in slots:
            tokens.append(
                TokenData(
                    id=f"{i}-{token_type}",
                    type=token_type,  # type: ignore[arg-type]
                    value=value,
                    position=len(tokens),
                    expression_index=i,
                    is_pending=False,
                )
            )

    if context is not None and context.current_field is not None:
        tokens.append(
            TokenData(
                id="pending-field",
                type="field",
                value=context.current_field,
                position=len(tokens),
                expression_index=PENDING_INDEX,
                is_pending=True,
            )
        )
        if context.current_operator is not None:
            tokens.append(
                TokenData(
                    id="pending-operator",
                    type="operator",
                    value=context.current_operator,
                    position=len(tokens),
                    expression_index=PENDING_INDEX,
                    is_pending=True,
                )
            )

    return tuple(tokens)


def project_machine(machine: FilterStateMachine) -> tuple[TokenData, ...]:
    """Project the tokens for a machine's current state."""
    return project_tokens(machine.expressions, machine.get_context())
