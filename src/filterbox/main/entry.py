"""Main entry point for the filterbox CLI tool."""

import logging
import sys
from typing import NoReturn

from .handlers import (
    handle_check_schema_command,
    handle_display_command,
    handle_from_query_command,
    handle_to_query_command,
    handle_validate_command,
)
from .parser import create_parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the filterbox CLI tool."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # =========================================================================
    # COMMAND HANDLERS (keep sorted alphabetically to match parser order)
    # =========================================================================

    # --- check-schema ---
    if args.command == "check-schema":
        handle_check_schema_command(args)

    # --- display ---
    if args.command == "display":
        handle_display_command(args)

    # --- from-query ---
    if args.command == "from-query":
        handle_from_query_command(args)

    # --- to-query ---
    if args.command == "to-query":
        handle_to_query_command(args)

    # --- validate ---
    if args.command == "validate":
        handle_validate_command(args)

    parser.print_help()
    sys.exit(1)
