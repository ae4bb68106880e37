"""
Pytest configuration and shared fixtures.

Provides isolated config/env directories, project directories with a
dockerproject.lua, and mock Docker collaborators used across the test suite.
"""

import os
import textwrap
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

from dproj.core.config import clear_cache
from dproj.core.docker.commands import DockerCommandRunner
from dproj.core.docker.engine import EngineClient

# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Keep every test away from the real user configuration.

    Points XDG_CONFIG_HOME and DOCKER_CONFIG into tmp_path, removes dproj
    env overrides and resets the config cache around each test.
    """
    config_home = tmp_path / "xdg"
    docker_config = tmp_path / "docker-config"
    config_home.mkdir()
    docker_config.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("DOCKER_CONFIG", str(docker_config))
    for name in list(os.environ):
        if name.startswith("DPROJ_"):
            monkeypatch.delenv(name)
    monkeypatch.delenv("DOCKER_HOST", raising=False)

    previous_cwd = os.getcwd()
    clear_cache()
    yield
    clear_cache()
    os.chdir(previous_cwd)


@pytest.fixture
def docker_config_dir(tmp_path):
    """The DOCKER_CONFIG directory of the isolated environment."""
    return tmp_path / "docker-config"


@pytest.fixture
def user_config_dir(tmp_path):
    """Provide the $XDG_CONFIG_HOME/dproj directory."""
    config_dir = tmp_path / "xdg" / "dproj"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


# ==============================================================================
# Project Fixtures
# ==============================================================================

SAMPLE_PROJECT = """
project.id = "0c7e4f7a-1111-4a4a-9c9c-000000000001"
project.name = "web"

function build(args)
    print("building", #args)
end

function hello(args)
    print("hello", table.concat(args, ","))
end

project.tasks = {
    build = {build, "Build the images"},
    hello = {func = hello, short = "Say hello", desc = "Prints its arguments"},
}
"""


@pytest.fixture
def write_project(tmp_path) -> Callable[..., Path]:
    """
    Factory writing a dockerproject.lua.

    Usage:
        root = write_project(source)             # in tmp_path / "project"
        root = write_project(source, "other")    # in tmp_path / "other"
    """

    def _write(source: str = SAMPLE_PROJECT, dirname: str = "project") -> Path:
        root = tmp_path / dirname
        root.mkdir(parents=True, exist_ok=True)
        (root / "dockerproject.lua").write_text(textwrap.dedent(source))
        return root

    return _write


@pytest.fixture
def project_dir(write_project) -> Path:
    """Provide a project root holding the sample dockerproject.lua."""
    return write_project()


# ==============================================================================
# Docker Fixtures
# ==============================================================================


@pytest.fixture
def mock_runner():
    """A DockerCommandRunner double that never starts a process."""
    runner = Mock(spec=DockerCommandRunner)
    runner.project = None
    runner.capture.return_value = ("", "")
    return runner


@pytest.fixture
def mock_engine():
    """An EngineClient double usable as a context manager."""
    engine = MagicMock(spec=EngineClient)
    engine.__enter__.return_value = engine
    engine.list_containers.return_value = []
    engine.list_images.return_value = []
    engine.list_volumes.return_value = []
    engine.list_networks.return_value = []
    engine.list_services.return_value = []
    engine.list_secrets.return_value = []
    return engine


@pytest.fixture
def engine_factory(mock_engine):
    """Engine factory always returning mock_engine."""
    return Mock(return_value=mock_engine)
