"""Console helpers for the command-line tools."""

import functools
import sys
from typing import Any, Callable, TypeVar

from rich.console import Console
from rich.markup import escape

from .logger import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Status messages go to stderr so stdout only carries tool output.
status_console = Console(stderr=True, highlight=False)


def info(message: str) -> None:
    """Print an informational message."""
    status_console.print(f"[cyan]{escape(message)}[/cyan]")


def success(message: str) -> None:
    """Print a success message."""
    status_console.print(f"[bold green]{escape(message)}[/bold green]")


def error(message: str) -> None:
    """Print an error message."""
    status_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def handle_errors(func: F) -> F:
    """
    Turn uncaught exceptions into a single diagnostic and a non-zero exit.

    SystemExit (including click's own exits) passes through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            error("Interrupted")
            sys.exit(130)
        except Exception as e:
            logger.debug("Unhandled error", exc_info=True)
            error(str(e) or e.__class__.__name__)
            sys.exit(1)

    return wrapper  # type: ignore[return-value]
