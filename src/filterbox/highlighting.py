"""Styled rendering of projected tokens.

This module turns the tokens from project_tokens() into (text, style_key)
pairs and rich Text, used by the command-line tool.
"""

from collections.abc import Sequence

from rich.text import Text

from .types import (
    ConditionValue,
    ConnectorValue,
    FieldDescriptor,
    OperatorDescriptor,
    TokenData,
)


def token_text(token: TokenData, use_symbols: bool = False) -> str:
    """Get the text shown for a token.

    Args:
        token: The token to render.
        use_symbols: Show operator symbols instead of labels where available.

    Returns:
        The field/operator/connector label, or the value's display string.
    """
    value = token.value
    if isinstance(value, ConditionValue):
        return value.display
    if isinstance(value, OperatorDescriptor) and use_symbols and value.symbol:
        return value.symbol
    if isinstance(value, (FieldDescriptor, OperatorDescriptor, ConnectorValue)):
        return value.label
    return str(value)


def tokenize_for_display(
    tokens: Sequence[TokenData], use_symbols: bool = False
) -> list[tuple[str, str]]:
    """Turn projected tokens into (text, style_key) pairs.

    Args:
        tokens: Tokens from project_tokens().
        use_symbols: Show operator symbols instead of labels where available.

    Returns:
        List of (text, style_key) tuples where style_key is one of:
        - "field", "operator", "value", "connector" for committed tokens
        - "pending" for in-progress tokens
        - "whitespace" for the separators between tokens
    """
    pairs: list[tuple[str, str]] = []
    for token in tokens:
        if pairs:
            pairs.append((" ", "whitespace"))
        style_key = "pending" if token.is_pending else token.type
        pairs.append((token_text(token, use_symbols), style_key))
    return pairs


# Token type to Rich style mapping
TOKEN_STYLES: dict[str, str] = {
    "field": "bold #87D7FF",
    "operator": "#AF87D7",
    "value": "#00D7AF",
    "connector": "bold #87AFFF",
    "pending": "italic #808080",
    "whitespace": "",
}


def render_tokens(tokens: Sequence[TokenData], use_symbols: bool = False) -> Text:
    """Render projected tokens as styled rich Text."""
    text = Text()
    for chunk, style_key in tokenize_for_display(tokens, use_symbols):
        text.append(chunk, style=TOKEN_STYLES.get(style_key, ""))
    return text
