"""
Project initialization.

Writes a bootstrap dockerproject.lua with a fresh id, the project name
and a sample task catalog.
"""

import logging
import re
import uuid
from pathlib import Path

from dproj.core.errors import ProjectInitError
from dproj.core.project.locator import MARKER_FILE, is_project_root

logger = logging.getLogger(__name__)

PROJECT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9.-]+$")

PROJECT_FILE_SAMPLE = """\
-- Docker project configuration

project.id = "{id}"
project.name = "{name}"

-- functions

-- says hello from the project root
function hello(args)
    print("hello from " .. project.name .. " (" .. project.root .. ")")
end

-- lists containers of this project
function status(args)
    for _, container in ipairs(docker.container.list("-a -f label=project.id:" .. project.id)) do
        print(container.name, container.status)
    end
end

-- tasks

project.tasks = {{
    hello = {{hello, "Say hello"}},
    status = {{
        func = status,
        short = "Show project containers",
        desc = "Lists all containers created in this project, running or not.",
    }},
}}
"""


def validate_project_name(name: str) -> None:
    """
    Check a project name.

    Raises:
        ProjectInitError: If the name is not made of letters, digits, '.' and '-'
    """
    if not PROJECT_NAME_PATTERN.match(name):
        raise ProjectInitError(
            f"invalid project name '{name}' (only letters, digits, '.' and '-' are allowed)"
        )


def init_project(directory: Path | str, name: str | None = None) -> tuple[Path, str, str]:
    """
    Initialize a project in a directory.

    Args:
        directory: Target directory (must exist)
        name: Project name (defaults to the directory's base name)

    Returns:
        (root, id, name) of the new project

    Raises:
        ProjectInitError: If the directory is missing, already a project root,
            or the name is invalid
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        raise ProjectInitError(f"{root} is not a directory")
    if is_project_root(root):
        raise ProjectInitError("target directory already is the root of a Docker project")

    project_name = name if name is not None else root.name
    validate_project_name(project_name)

    project_id = str(uuid.uuid4())
    marker = root / MARKER_FILE
    marker.write_text(PROJECT_FILE_SAMPLE.format(id=project_id, name=project_name))
    logger.debug("Wrote %s", marker)
    return root, project_id, project_name
