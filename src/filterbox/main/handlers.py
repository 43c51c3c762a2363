"""Command handlers for the filterbox CLI tool."""

import argparse
import logging
import sys
from typing import NoReturn

from ..config import SchemaConfigError, load_schema
from ..rich_utils import (
    print_serialization_errors,
    print_status,
    print_tokens,
    print_validation_result,
)
from ..schema import FilterSchema
from ..serialization import (
    DeserializeResult,
    DisplayFormatOptions,
    from_json,
    from_query_string,
    to_display_string,
    to_json,
    to_query_string,
)
from ..tokens import project_tokens
from ..validation import validate_expressions, validate_schema

logger = logging.getLogger(__name__)


def _load_schema_or_exit(path: str | None) -> FilterSchema:
    """Load the schema, exiting with status 2 if it cannot be loaded."""
    try:
        return load_schema(path)
    except (FileNotFoundError, SchemaConfigError) as e:
        print_status(str(e), "error")
        sys.exit(2)


def _read_filter_or_exit(file: str, schema: FilterSchema) -> DeserializeResult:
    """Read and decode a JSON filter file ('-' for stdin)."""
    try:
        if file == "-":
            text = sys.stdin.read()
        else:
            with open(file, encoding="utf-8") as f:
                text = f.read()
    except OSError as e:
        print_status(f"Could not read {file}: {e}", "error")
        sys.exit(2)

    result = from_json(text, schema)
    logger.debug(
        f"Decoded {len(result.expressions)} expression(s), skipped {len(result.errors)}"
    )
    print_serialization_errors(result.errors)
    return result


def handle_check_schema_command(args: argparse.Namespace) -> NoReturn:
    """Handle the 'check-schema' command."""
    schema = _load_schema_or_exit(args.schema_path)
    result = validate_schema(schema)
    if result.valid:
        print_status(f"Schema OK: {len(schema.fields)} field(s)", "success")
        sys.exit(0)
    print_validation_result(result)
    sys.exit(1)


def handle_display_command(args: argparse.Namespace) -> NoReturn:
    """Handle the 'display' command."""
    schema = _load_schema_or_exit(args.schema)
    result = _read_filter_or_exit(args.file, schema)
    if args.plain:
        print(
            to_display_string(
                result.expressions, DisplayFormatOptions(use_symbols=args.symbols)
            )
        )
    else:
        print_tokens(project_tokens(result.expressions), use_symbols=args.symbols)
    sys.exit(0 if result.ok else 1)


def handle_from_query_command(args: argparse.Namespace) -> NoReturn:
    """Handle the 'from-query' command."""
    schema = _load_schema_or_exit(args.schema)
    result = from_query_string(args.query, schema)
    print_serialization_errors(result.errors)
    print(to_json(result.expressions, schema, indent=2))
    sys.exit(0 if result.ok else 1)


def handle_to_query_command(args: argparse.Namespace) -> NoReturn:
    """Handle the 'to-query' command."""
    schema = _load_schema_or_exit(args.schema)
    result = _read_filter_or_exit(args.file, schema)
    print(to_query_string(result.expressions))
    sys.exit(0 if result.ok else 1)


def handle_validate_command(args: argparse.Namespace) -> NoReturn:
    """Handle the 'validate' command."""
    schema = _load_schema_or_exit(args.schema)
    decoded = _read_filter_or_exit(args.file, schema)
    result = validate_expressions(decoded.expressions, schema)
    print_validation_result(result)
    sys.exit(0 if result.valid and decoded.ok else 1)
