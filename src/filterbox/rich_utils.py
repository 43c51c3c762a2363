"""Rich console output for the filterbox command-line tool."""

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .highlighting import render_tokens
from .serialization import SerializationError
from .types import TokenData, ValidationResult

console = Console()
error_console = Console(stderr=True)

_STATUS_ICONS = {
    "info": "ℹ️",
    "success": "✅",
    "warning": "⚠️",
    "error": "❌",
}

_STATUS_STYLES = {
    "info": "blue",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def print_status(message: str, status_type: str = "info") -> None:
    """Print a status message with appropriate styling.

    Errors and warnings go to stderr, everything else to stdout.
    """
    icon = _STATUS_ICONS.get(status_type, "ℹ️")
    style = _STATUS_STYLES.get(status_type, "white")
    target = error_console if status_type in ("error", "warning") else console
    target.print(f"[{style}]{icon} {escape(message)}[/{style}]", highlight=False)


def print_tokens(tokens: Sequence[TokenData], use_symbols: bool = False) -> None:
    """Print projected tokens as one styled line."""
    console.print(render_tokens(tokens, use_symbols), soft_wrap=True)


def print_serialization_errors(errors: Sequence[SerializationError]) -> None:
    """Print entries that could not be decoded."""
    for error in errors:
        where = f"entry {error.index}" if error.index is not None else "input"
        print_status(f"Skipped {where}: {error.message}", "warning")


def print_validation_result(result: ValidationResult) -> None:
    """Print validation errors and warnings as a table."""
    if result.valid and not result.warnings:
        print_status("Filter is valid", "success")
        return

    table = Table(title="Validation", show_lines=False)
    table.add_column("Level", style="bold")
    table.add_column("Expression")
    table.add_column("Field")
    table.add_column("Message")

    for error in result.errors:
        table.add_row(
            "[red]error[/red]",
            _format_index(error.expression_index),
            escape(error.field or ""),
            escape(error.message),
        )
    for warning in result.warnings:
        table.add_row(
            "[yellow]warning[/yellow]",
            _format_index(warning.expression_index),
            escape(warning.field or ""),
            escape(warning.message),
        )
    console.print(table)


def _format_index(index: int | None) -> str:
    return "" if index is None else str(index + 1)
