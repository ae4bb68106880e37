"""
Invocation flow: load the project, resolve the command, run it.

This is the only place that turns errors into exit codes for
project tasks. Built-in commands are handed to the Typer app.
"""

import logging
import sys
from pathlib import Path

import typer
import typer.main

from dproj.cli.argv import split_command
from dproj.cli.context import AppContext, new_runner, setup_logging
from dproj.cli.errors import (
    ExitCode,
    print_command_not_found_error,
    print_error,
    print_override_rejected_error,
)
from dproj.core.config import DprojConfig, load_config, load_layered_env
from dproj.core.dispatch import DispatchState, check_dispatch, resolve_command, run_task
from dproj.core.errors import (
    CommandNotFoundError,
    DockerError,
    MalformedProjectError,
    OverrideRejectedError,
    ProjectError,
    ScriptError,
)
from dproj.core.project.loader import load_project
from dproj.core.project.locator import find_project_root
from dproj.core.project.models import Project
from dproj.core.project.recent import record_project

logger = logging.getLogger(__name__)


def builtin_commands(app: typer.Typer) -> set[str]:
    """Names of the commands registered on the Typer app."""
    group = typer.main.get_command(app)
    return set(getattr(group, "commands", {}))


def _remember(project: Project, config: DprojConfig) -> None:
    if not config.recent.enabled:
        return
    try:
        record_project(project, project.root)
    except OSError as e:
        logger.warning("Could not update recent projects index: %s", e)


def _load_app_context(config: DprojConfig, debug: bool, cwd: Path | None = None) -> AppContext:
    runner = new_runner(config)
    app_ctx = AppContext(config=config, runner=runner, debug=debug)

    app_ctx.project = load_project(cwd, runner=runner, engine_factory=app_ctx.engine)
    return app_ctx


def _run_project_task(project: Project, args: list[str]) -> int:
    try:
        run_task(project, args)
    except ScriptError as e:
        print_error(f"Task '{args[0]}' failed", reason=e.message)
        return ExitCode.GENERAL_ERROR
    except DockerError as e:
        print_error(f"Task '{args[0]}' failed", reason=e.message)
        return ExitCode.GENERAL_ERROR
    except CommandNotFoundError as e:
        print_command_not_found_error(e)
        return ExitCode.USER_ERROR
    return ExitCode.SUCCESS


def run_cli(app: typer.Typer, argv: list[str], cwd: Path | None = None) -> int:
    """
    Run one dproj invocation.

    Args:
        app: The Typer app holding the built-in commands
        argv: Normalized arguments (without the program name)
        cwd: Directory the project is searched from (defaults to cwd)

    Returns:
        Process exit code
    """
    root_options, command_args = split_command(argv)

    # Precedence: OS env > project .env > user .env
    load_layered_env(project_dir=find_project_root(cwd) or cwd)
    config = load_config()
    debug = "--debug" in root_options or config.debug
    setup_logging(debug)

    try:
        app_ctx = _load_app_context(config, debug, cwd)
    except MalformedProjectError as e:
        print_error("Malformed dockerproject.lua", reason=e.message)
        return ExitCode.USER_ERROR
    except ProjectError as e:
        print_error("Failed to load project", reason=e.message)
        return ExitCode.USER_ERROR
    except DockerError as e:
        print_error("Failed to load project", reason=e.message)
        return ExitCode.GENERAL_ERROR

    if app_ctx.project is not None:
        _remember(app_ctx.project, config)

    if not command_args or command_args[0].startswith("-"):
        return _run_builtin(app, argv, app_ctx)

    command = command_args[0]
    state = resolve_command(command, builtin_commands(app), app_ctx.project)
    try:
        check_dispatch(state, command)
    except OverrideRejectedError as e:
        print_override_rejected_error(e)
        return ExitCode.USER_ERROR
    except CommandNotFoundError as e:
        print_command_not_found_error(e)
        return ExitCode.USER_ERROR

    if state == DispatchState.PROJECT_TASK and app_ctx.project is not None:
        return _run_project_task(app_ctx.project, command_args)

    return _run_builtin(app, argv, app_ctx)


def _run_builtin(app: typer.Typer, argv: list[str], app_ctx: AppContext) -> int:
    try:
        app(args=argv, prog_name="dproj", obj=app_ctx)
    except SystemExit as e:
        if e.code is None:
            return ExitCode.SUCCESS
        if isinstance(e.code, int):
            return e.code
        sys.stderr.write(f"{e.code}\n")
        return ExitCode.GENERAL_ERROR
    return ExitCode.SUCCESS
