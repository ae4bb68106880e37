"""
Standardized error handling and exit codes for the dproj CLI.

Every failure surfaces here exactly once: as a message on stderr with
optional guidance, and a process exit code.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

from dproj.core.errors import CommandNotFoundError, OverrideRejectedError

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Process exit statuses of dproj itself. Docker pass-through keeps docker's status."""

    SUCCESS = 0

    GENERAL_ERROR = 1
    """Script, Docker or other runtime failure."""

    USER_ERROR = 2
    """Project declaration or command-line error (actionable by user)."""

    SIGINT = 130
    """Interrupted with Ctrl+C (128 + SIGINT)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Report a failure on stderr.

    ``problem`` is the one-line error, ``reason`` an optional dimmed detail
    line and ``solution`` a command the user can run next.

    Example:
        >>> print_error(
        ...     "Not in a dproj project",
        ...     reason="No dockerproject.lua found in this directory or its parents",
        ...     solution="dproj project init",
        ... )
    """
    console.print(f"[red]Error:[/red] {escape(problem)}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}")


def print_not_in_project_error() -> None:
    """Print error when a command needs a project and there is none."""
    print_error(
        "Not in a dproj project",
        reason="No dockerproject.lua found in this directory or its parents",
        solution="dproj project init  # or cd into a project",
    )


def print_override_rejected_error(error: OverrideRejectedError) -> None:
    """Print error when a project task shadows a protected built-in."""
    print_error(
        error.message,
        reason=f"The project declares a task named '{error.command}'",
        solution="rename the task in dockerproject.lua",
    )


def print_command_not_found_error(error: CommandNotFoundError) -> None:
    """Print error for an unknown command."""
    print_error(
        error.message,
        solution="dproj --help  # or dproj project tasks",
    )
