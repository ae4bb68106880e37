"""
Tests for project initialization.
"""

import uuid

import pytest

from dproj.core.errors import ProjectInitError
from dproj.core.project.init import init_project, validate_project_name
from dproj.core.project.loader import load_project
from dproj.core.project.locator import MARKER_FILE


class TestValidateProjectName:
    """Project name rules."""

    @pytest.mark.parametrize("name", ["web", "my-app", "v1.2", "A0"])
    def test_valid(self, name):
        """Letters, digits, dots and hyphens are accepted."""
        validate_project_name(name)

    @pytest.mark.parametrize("name", ["", "my app", "a/b", "a_b", "é"])
    def test_invalid(self, name):
        """Other characters are rejected."""
        with pytest.raises(ProjectInitError, match="invalid project name"):
            validate_project_name(name)


class TestInitProject:
    """Writing the bootstrap project file."""

    def test_creates_marker(self, tmp_path):
        """init writes the marker with id and name."""
        root, project_id, name = init_project(tmp_path, "web")

        assert root == tmp_path.resolve()
        assert name == "web"
        uuid.UUID(project_id)
        content = (tmp_path / MARKER_FILE).read_text()
        assert f'project.id = "{project_id}"' in content
        assert 'project.name = "web"' in content

    def test_name_defaults_to_directory(self, tmp_path):
        """The name defaults to the directory name."""
        target = tmp_path / "shop-api"
        target.mkdir()
        _root, _id, name = init_project(target)
        assert name == "shop-api"

    def test_fresh_ids(self, tmp_path):
        """Each project gets its own id."""
        first = tmp_path / "a"
        second = tmp_path / "b"
        first.mkdir()
        second.mkdir()
        assert init_project(first)[1] != init_project(second)[1]

    def test_already_a_project(self, tmp_path):
        """An existing marker is not overwritten."""
        init_project(tmp_path, "web")
        with pytest.raises(ProjectInitError, match="already"):
            init_project(tmp_path, "web")

    def test_missing_directory(self, tmp_path):
        """The target must be a directory."""
        with pytest.raises(ProjectInitError, match="not a directory"):
            init_project(tmp_path / "missing", "web")

    def test_invalid_name_writes_nothing(self, tmp_path):
        """An invalid name leaves the directory untouched."""
        with pytest.raises(ProjectInitError):
            init_project(tmp_path, "bad name")
        assert not (tmp_path / MARKER_FILE).exists()

    def test_generated_project_loads(self, tmp_path, mock_runner, engine_factory):
        """The bootstrap marker loads as a project."""
        root, project_id, _name = init_project(tmp_path, "web")

        project = load_project(root, runner=mock_runner, engine_factory=engine_factory)

        assert project.id == project_id
        assert project.name == "web"
        assert project.tasks.names == ["hello", "status"]
        assert project.tasks.get("status").description.startswith("Lists all containers")

    def test_generated_status_task_lists_project_containers(
        self, tmp_path, mock_runner, engine_factory, mock_engine
    ):
        """The sample status task lists this project's containers."""
        root, project_id, _name = init_project(tmp_path, "web")
        project = load_project(root, runner=mock_runner, engine_factory=engine_factory)

        project.exec(["status"])

        kwargs = mock_engine.list_containers.call_args.kwargs
        assert kwargs["all"] is True
        assert kwargs["filters"] == {"label": [f"project.id:{project_id}"]}
