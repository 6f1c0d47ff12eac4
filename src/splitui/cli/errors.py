"""CLI error handling.

Turns SplitUIError into a readable message with recovery hints.
"""

import sys
from typing import NoReturn

from rich.console import Console
from rich.text import Text

from splitui.foundation.errors import SplitUIError


def handle_error(error: SplitUIError) -> NoReturn:
    """Report an error on stderr and exit with status 1.

    Raises:
        SystemExit: Always exits with code 1
    """
    print_error(error, Console(stderr=True))
    sys.exit(1)


def print_error(error: SplitUIError, console: Console) -> None:
    """Print an error ID, message and numbered recovery hints."""
    header = Text()
    header.append(error.error_id, style="bold red")
    header.append(f" {error.message}")
    console.print(header)

    hints = error.recovery_hints
    if hints:
        console.print("\n[bold]What you can do:[/]")
        for i, hint in enumerate(hints, 1):
            console.print(f"  {i}. {hint}")
