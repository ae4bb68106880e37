"""
Command dispatch between built-in commands and project tasks.

resolve_command() is a pure decision over one invocation:

    UNRESOLVED -> BUILTIN_ONLY       no task by that name, built-in exists
               -> PROJECT_TASK       task exists, and either no built-in by
                                     that name or the built-in is overridable
               -> OVERRIDE_REJECTED  task shadows a protected built-in
               -> NOT_FOUND          neither a task nor a built-in

A rejected override never falls back to the built-in.
"""

import logging
from collections.abc import Collection
from enum import Enum

from dproj.core.errors import CommandNotFoundError, OverrideRejectedError
from dproj.core.project.models import Project

logger = logging.getLogger(__name__)

# Built-in commands a project task may replace.
OVERRIDABLE_COMMANDS: tuple[str, ...] = (
    "build",
    "deploy",
    "export",
    "logs",
    "restart",
    "run",
    "start",
    "stats",
    "stop",
)


class DispatchState(str, Enum):
    """Resolution state of an invoked command name."""

    UNRESOLVED = "unresolved"
    BUILTIN_ONLY = "builtin_only"
    PROJECT_TASK = "project_task"
    OVERRIDE_REJECTED = "override_rejected"
    NOT_FOUND = "not_found"


def resolve_command(
    command: str,
    builtins: Collection[str],
    project: Project | None,
    overridable: Collection[str] = OVERRIDABLE_COMMANDS,
) -> DispatchState:
    """
    Decide what an invoked command name refers to.

    Args:
        command: First positional CLI argument
        builtins: Names of built-in commands
        project: Active project, or None
        overridable: Built-in names a project task may shadow

    Returns:
        A terminal DispatchState
    """
    is_builtin = command in builtins
    is_task = project is not None and project.command_exists(command)

    if not is_task:
        state = DispatchState.BUILTIN_ONLY if is_builtin else DispatchState.NOT_FOUND
    elif not is_builtin or command in overridable:
        state = DispatchState.PROJECT_TASK
    else:
        state = DispatchState.OVERRIDE_REJECTED

    logger.debug("Dispatch %s -> %s", command, state.value)
    return state


def check_dispatch(
    state: DispatchState,
    command: str,
    overridable: Collection[str] = OVERRIDABLE_COMMANDS,
) -> None:
    """
    Raise the error matching a failed resolution.

    Raises:
        OverrideRejectedError: For OVERRIDE_REJECTED
        CommandNotFoundError: For NOT_FOUND
    """
    if state == DispatchState.OVERRIDE_REJECTED:
        raise OverrideRejectedError(command, tuple(sorted(overridable)))
    if state == DispatchState.NOT_FOUND:
        raise CommandNotFoundError(command)


def run_task(project: Project, args: list[str]) -> None:
    """
    Run the project task named by args[0].

    Raises:
        CommandNotFoundError: If the project has no such task
        ScriptError: If the task fails
    """
    if not project.exec(args):
        raise CommandNotFoundError(args[0])
