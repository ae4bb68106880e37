"""
.env file loading.

Two layers are read before configuration is built:

    $XDG_CONFIG_HOME/dproj/.env          user defaults
    <project root>/.env, .env.local      project values, override user values

Variables already set in the process environment always win, so an
exported DOCKER_HOST is never replaced by a file.
"""

import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

PROJECT_ENV_FILES = (".env", ".env.local")


def get_user_env_path() -> Path:
    """Path of the user-level .env file."""
    return get_xdg_config_home() / "dproj" / ".env"


def read_env_file(path: Path) -> dict[str, str]:
    """Variables defined in a .env file. Entries without a value are skipped."""
    if not path.is_file():
        return {}
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def merge_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """Read .env files in order, later files overriding earlier ones."""
    merged: dict[str, str] = {}
    for path in paths:
        merged.update(read_env_file(Path(path)))
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Export user and project .env values into os.environ.

    Args:
        project_dir: Directory holding the project .env files (the project
            root, defaults to cwd)
        user_env_paths: Explicit user .env files
        project_env_paths: Explicit project .env files

    Returns:
        The variables that were exported
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_user_env_path()]
    if project_env_paths is None:
        project_env_paths = [project_dir / name for name in PROJECT_ENV_FILES]

    layered = merge_env_files([*user_env_paths, *project_env_paths])
    exported = {key: value for key, value in layered.items() if key not in os.environ}
    os.environ.update(exported)
    return exported
