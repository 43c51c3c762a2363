"""Argument parser creation for the filterbox CLI tool."""

import argparse

from .. import __version__


def _add_schema_option(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "-s",
        "--schema",
        help="Path to the YAML schema file (default: $FILTERBOX_SCHEMA or "
        "~/.config/filterbox/schema.yml)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        description="filterbox - build, check and convert structured filters",
        prog="filterbox",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug messages to stderr",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(
        dest="command", help="Available commands", required=True
    )

    # =========================================================================
    # SUBCOMMANDS (keep sorted alphabetically)
    # =========================================================================

    # --- check-schema ---
    check_schema_parser = subparsers.add_parser(
        "check-schema",
        help="Check a schema file for configuration mistakes",
    )
    check_schema_parser.add_argument(
        "schema_path",
        nargs="?",
        help="Path to the schema file (default: $FILTERBOX_SCHEMA or "
        "~/.config/filterbox/schema.yml)",
    )

    # --- display ---
    display_parser = subparsers.add_parser(
        "display",
        help="Print a serialized filter as a human-readable line",
    )
    display_parser.add_argument("file", help="JSON filter file ('-' for stdin)")
    # Options for 'display' (keep sorted alphabetically by long option name)
    display_parser.add_argument(
        "-p",
        "--plain",
        action="store_true",
        help="Print the plain display string instead of styled tokens",
    )
    _add_schema_option(display_parser)
    display_parser.add_argument(
        "--symbols",
        action="store_true",
        help="Show operator symbols (=, >, ...) instead of labels",
    )

    # --- from-query ---
    from_query_parser = subparsers.add_parser(
        "from-query",
        help="Decode a query string (field=value&...) into a JSON filter",
    )
    from_query_parser.add_argument("query", help="The query string, e.g. 'status=active'")
    _add_schema_option(from_query_parser)

    # --- to-query ---
    to_query_parser = subparsers.add_parser(
        "to-query",
        help="Encode a JSON filter as a query string",
    )
    to_query_parser.add_argument("file", help="JSON filter file ('-' for stdin)")
    _add_schema_option(to_query_parser)

    # --- validate ---
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a JSON filter against the schema",
    )
    validate_parser.add_argument("file", help="JSON filter file ('-' for stdin)")
    _add_schema_option(validate_parser)

    return parser
