"""
dproj CLI - Main application entry point.

This module sets up the Typer CLI application: the project commands, the
docker pass-through commands and the version command. Project tasks are
resolved before Typer sees the arguments (see dproj.cli.dispatch).
"""

import sys

import typer
from rich.console import Console

from dproj import __version__
from dproj.cli import docker, project
from dproj.cli.argv import preprocess_argv
from dproj.cli.context import get_app_context, setup_logging
from dproj.cli.dispatch import run_cli
from dproj.cli.errors import ExitCode, print_error
from dproj.core.errors import CommandError, DprojError

PANEL_PROJECT = "Projects"

app = typer.Typer(
    name="dproj",
    help="Docker with projects: scoped resources and scriptable project tasks",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    dproj - Docker projects.

    Inside a directory holding a dockerproject.lua (or below it), resources
    created through dproj are labeled with the project's identity, listings
    are filtered to the project, and the project's Lua tasks become
    top-level commands.

    Quick Start:
        dproj project init           # Create dockerproject.lua here
        dproj project tasks          # Show the project's tasks
        dproj <task> [args...]       # Run a task
        dproj ps                     # Containers of this project
    """
    app_ctx = get_app_context(ctx)
    if debug and not app_ctx.debug:
        app_ctx.debug = True
        setup_logging(True)


app.add_typer(project.app, name="project", rich_help_panel=PANEL_PROJECT)


@app.command(rich_help_panel=PANEL_PROJECT)
def version(ctx: typer.Context) -> None:
    """Show dproj and Docker versions."""
    console.print(f"dproj version {__version__}")
    try:
        returncode = get_app_context(ctx).runner.run(["version"])
    except CommandError as e:
        print_error(e.message, solution="install docker or set DPROJ_DOCKER_BINARY")
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e
    raise typer.Exit(returncode)


docker.register(app)


def cli_main() -> None:
    """
    Main CLI entry point.

    The argv preprocessor normalizes common patterns first (e.g.
    ``dproj --version``, ``dproj help project``).
    """
    try:
        code = run_cli(app, preprocess_argv(sys.argv[1:]))
    except KeyboardInterrupt:
        code = ExitCode.SIGINT
    except DprojError as e:
        print_error(e.message)
        code = ExitCode.GENERAL_ERROR
    sys.exit(int(code))
