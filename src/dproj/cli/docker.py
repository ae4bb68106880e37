"""
Docker pass-through commands.

Every docker CLI command is a dproj built-in: its arguments are forwarded
untouched to the docker binary, with project labels added to creation
commands and a project filter added to listing commands.
"""

from collections.abc import Callable

import typer

from dproj.cli.context import get_app_context
from dproj.cli.errors import ExitCode, print_error
from dproj.core.docker.commands import DOCKER_COMMANDS
from dproj.core.errors import CommandError

PANEL_DOCKER = "Docker Commands"

# Everything after the command name belongs to docker, --help included.
PASSTHROUGH_SETTINGS = {
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "help_option_names": [],
}


def run_docker(ctx: typer.Context, args: list[str]) -> None:
    """Run `docker ARGS` for the current invocation and exit with its status."""
    app_ctx = get_app_context(ctx)
    try:
        returncode = app_ctx.runner.run(args)
    except CommandError as e:
        print_error(e.message, solution="install docker or set DPROJ_DOCKER_BINARY")
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e
    raise typer.Exit(returncode)


def _passthrough(name: str) -> Callable[[typer.Context], None]:
    def command(ctx: typer.Context) -> None:
        run_docker(ctx, [name, *ctx.args])

    command.__name__ = f"docker_{name}"
    command.__doc__ = f"Run docker {name}."
    return command


def register(app: typer.Typer) -> None:
    """Add one pass-through command per docker CLI command to `app`."""
    for name in DOCKER_COMMANDS:
        app.command(
            name=name,
            context_settings=PASSTHROUGH_SETTINGS,
            add_help_option=False,
            rich_help_panel=PANEL_DOCKER,
        )(_passthrough(name))
