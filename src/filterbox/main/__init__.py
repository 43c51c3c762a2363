"""Command-line entry point for filterbox."""

from .entry import main
from .parser import create_parser

__all__ = ["create_parser", "main"]
