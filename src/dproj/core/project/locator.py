"""
Project root discovery.
"""

import os
from pathlib import Path

MARKER_FILE = "dockerproject.lua"


def is_project_root(path: Path) -> bool:
    """Whether `path` directly contains the project marker file."""
    return (path / MARKER_FILE).is_file()


def find_project_root(start_dir: Path | str | None = None) -> Path | None:
    """
    Find the project root by walking up from start_dir.

    The first directory (start_dir included) containing the marker file
    wins, so nested projects are never merged.

    Args:
        start_dir: Directory to start from (defaults to cwd). It does not
            need to exist; it is normalized before the search.

    Returns:
        Path to the project root, or None if not in a project
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(os.path.abspath(os.path.normpath(start_dir)))

    while True:
        if is_project_root(current):
            return current
        if current == current.parent:
            return None
        current = current.parent
