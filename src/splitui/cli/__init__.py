"""Command-line interface."""

from splitui.cli.main import main

__all__ = ["main"]
