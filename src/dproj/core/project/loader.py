"""
Project loading.

load_project() finds the marker file above a directory, executes it in a
fresh Sandbox with a `project` table pre-populated with `root`, then reads
back the project's id, name and tasks.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TextIO

from dproj.core.docker.commands import DockerCommandRunner
from dproj.core.docker.engine import EngineClient
from dproj.core.errors import MalformedProjectError, ProjectLoadError, ScriptError
from dproj.core.project.locator import MARKER_FILE, find_project_root
from dproj.core.project.models import Project
from dproj.core.project.tasks import parse_tasks
from dproj.core.script.api import DockerApi
from dproj.core.script.runtime import Sandbox
from dproj.core.script.values import ValueKind, kind_of, type_name

logger = logging.getLogger(__name__)


def _read_identity(project_table: Any, field: str) -> str:
    value = project_table[field]
    if kind_of(value) != ValueKind.STRING:
        raise MalformedProjectError(
            f"project.{field} should be a string (got {type_name(value)})"
        )
    if not value:
        raise MalformedProjectError(f"project.{field} can't be empty")
    return value


def load_project(
    start_dir: Path | str | None = None,
    runner: DockerCommandRunner | None = None,
    engine_factory: Callable[[], EngineClient] | None = None,
    output: TextIO | None = None,
) -> Project | None:
    """
    Load the project governing start_dir.

    Args:
        start_dir: Directory to search from (defaults to cwd)
        runner: Docker CLI runner for docker.cmd/silentCmd; it is bound to
            the loaded project so script commands are scoped
        engine_factory: EngineClient factory for list/inspect calls
        output: Stream for script `print` output

    Returns:
        The loaded Project, or None when start_dir is not inside a project

    Raises:
        ProjectLoadError: If the marker file fails to parse or execute
        MalformedProjectError: If id/name/tasks are missing or malformed
    """
    root = find_project_root(start_dir)
    if root is None:
        logger.debug("No %s found above %s", MARKER_FILE, start_dir or Path.cwd())
        return None

    marker = root / MARKER_FILE
    if not marker.is_file():
        return None
    logger.debug("Project root: %s", root)

    runner = runner or DockerCommandRunner()
    api = DockerApi(runner, engine_factory or EngineClient)
    sandbox = Sandbox(api=api, base_dir=root, output=output)
    sandbox.set_global("project", {"root": str(root)})

    try:
        sandbox.execute_file(marker)
    except ScriptError as e:
        raise ProjectLoadError(str(marker), e.message) from e

    project_table = sandbox.get_global("project")
    if kind_of(project_table) != ValueKind.TABLE:
        raise MalformedProjectError(
            f"project should be a table (got {type_name(project_table)})"
        )

    try:
        project = Project(
            root=root,
            id=_read_identity(project_table, "id"),
            name=_read_identity(project_table, "name"),
            tasks=parse_tasks(project_table["tasks"]),
            sandbox=sandbox,
        )
    except UnicodeDecodeError as e:
        raise MalformedProjectError(f"project holds a string that is not valid UTF-8 ({e})") from e
    runner.project = project
    logger.debug(
        "Loaded project %s (%s) with %d task(s)", project.name, project.id, len(project.tasks)
    )
    return project
