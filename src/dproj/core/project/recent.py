"""
Recent-projects side index.

A JSON array of {id, name, root, timestamp} records kept in the Docker
config directory, one entry per project id, most recent first.
"""

import json
import logging
import time
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from dproj.core.config import get_docker_config_dir, load_config
from dproj.core.project.models import RecentProject
from dproj.core.project.scoping import ProjectIdentity

logger = logging.getLogger(__name__)

RECENT_FILE_NAME = "dproj-recent.json"

_RECENT_LIST = TypeAdapter(list[RecentProject])


def get_recent_file() -> Path:
    """
    Get path to the recent-projects index.

    Returns:
        recent.path from config when set, else $DOCKER_CONFIG/dproj-recent.json
        (~/.docker/dproj-recent.json without DOCKER_CONFIG)
    """
    config = load_config()
    if config.recent.path:
        return Path(config.recent.path).expanduser()
    return get_docker_config_dir() / RECENT_FILE_NAME


def load_recent_projects(path: Path | None = None) -> list[RecentProject]:
    """
    Load the recent-projects index, most recent first.

    A missing or corrupt file reads as an empty index.
    """
    path = path or get_recent_file()
    if not path.exists():
        return []
    try:
        with path.open() as f:
            data = json.load(f)
        projects = _RECENT_LIST.validate_python(data)
    except (json.JSONDecodeError, OSError, ValidationError) as e:
        logger.debug("Ignoring unreadable recent-projects index %s: %s", path, e)
        return []
    return sorted(projects, key=lambda p: p.timestamp, reverse=True)


def save_recent_projects(projects: list[RecentProject], path: Path | None = None) -> None:
    """Write the index, sorted by timestamp, most recent first."""
    path = path or get_recent_file()
    ordered = sorted(projects, key=lambda p: p.timestamp, reverse=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        json.dump([p.model_dump() for p in ordered], f, indent=2)


def record_project(
    project: ProjectIdentity,
    root: Path | str,
    timestamp: int | None = None,
    path: Path | None = None,
) -> list[RecentProject]:
    """
    Insert or refresh a project in the recent-projects index.

    Entries are deduplicated by project id: recording an existing id
    replaces its entry.

    Args:
        project: Project to record
        root: Project root directory
        timestamp: Unix seconds (defaults to now)
        path: Index file (defaults to get_recent_file())

    Returns:
        The updated index
    """
    entry = RecentProject(
        id=project.id,
        name=project.name,
        root=str(root),
        timestamp=int(time.time()) if timestamp is None else timestamp,
    )
    projects = [p for p in load_recent_projects(path) if p.id != entry.id]
    projects.append(entry)
    save_recent_projects(projects, path)
    return sorted(projects, key=lambda p: p.timestamp, reverse=True)
