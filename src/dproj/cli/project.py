"""
Project commands: init, ls, tasks.
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from dproj.cli.context import get_app_context
from dproj.cli.errors import ExitCode, print_error, print_not_in_project_error
from dproj.core.errors import ProjectInitError
from dproj.core.project.init import init_project
from dproj.core.project.recent import load_recent_projects

console = Console()

app = typer.Typer(
    name="project",
    help="Manage Docker projects",
    no_args_is_help=True,
)


@app.command()
def init(
    directory: Path | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="Directory to initialize (defaults to the current directory)",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Project name (defaults to the directory name)",
    ),
) -> None:
    """
    Initialize a project in a directory.

    Writes a dockerproject.lua with a new project id and sample tasks.

    Examples:
        dproj project init
        dproj project init --dir ./api --name api
    """
    target = Path.cwd() if directory is None else Path.cwd() / directory
    try:
        root, _project_id, project_name = init_project(target, name)
    except ProjectInitError as e:
        print_error(f"Failed to initialize project: {e.message}")
        raise typer.Exit(ExitCode.USER_ERROR) from e

    console.print(f"project {project_name} created in {root}")


@app.command(name="ls")
def list_projects(
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only display root directories",
    ),
    output_format: str = typer.Option(
        "table",
        "--format",
        help="'table', 'json' or a template using {id} {name} {root} {timestamp}",
    ),
) -> None:
    """
    List recently used projects, most recent first.

    Examples:
        dproj project ls
        dproj project ls -q
        dproj project ls --format "{name}: {root}"
    """
    projects = load_recent_projects()

    if quiet:
        for project in projects:
            typer.echo(project.root)
        return

    if output_format == "json":
        typer.echo(json.dumps([p.model_dump() for p in projects], indent=2))
        return

    if output_format != "table":
        for project in projects:
            try:
                typer.echo(output_format.format(**project.model_dump()))
            except (KeyError, IndexError, ValueError) as e:
                print_error(
                    f"Invalid format: {output_format}",
                    reason=f"unknown or malformed field: {e}",
                    solution="use {id}, {name}, {root} or {timestamp}",
                )
                raise typer.Exit(ExitCode.USER_ERROR) from e
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("PROJECT NAME")
    table.add_column("ROOT DIRECTORY")
    for project in projects:
        table.add_row(project.name, project.root)
    console.print(table)


@app.command()
def tasks(ctx: typer.Context) -> None:
    """
    Show the tasks of the current project.
    """
    project = get_app_context(ctx).project
    if project is None:
        print_not_in_project_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    if not len(project.tasks):
        console.print(f"[dim]Project {project.name} declares no tasks[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("TASK", style="cyan")
    table.add_column("DESCRIPTION")
    for task in project.tasks:
        table.add_row(task.name, task.short_description)
    console.print(table)
