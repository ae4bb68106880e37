"""
Tests for project scoping of Docker resources.
"""

from dataclasses import dataclass

import pytest

from dproj.core.project.scoping import (
    apply_project_labels,
    project_filter_expression,
    project_labels,
    scope_docker_args,
)


@dataclass
class Identity:
    id: str = "42"
    name: str = "web"


@pytest.fixture
def project():
    return Identity()


class TestLabels:
    """Presence-only project labels."""

    def test_project_labels(self, project):
        """Both labels carry their value in the key."""
        assert project_labels(project) == {"project.id:42": "", "project.name:web": ""}

    def test_apply_in_place(self, project):
        """Labels are added to the given dict."""
        labels = {"tier": "front"}
        result = apply_project_labels(labels, project)
        assert result is labels
        assert labels == {"tier": "front", "project.id:42": "", "project.name:web": ""}

    def test_apply_twice_is_idempotent(self, project):
        """Applying twice changes nothing."""
        labels: dict[str, str] = {}
        apply_project_labels(labels, project)
        apply_project_labels(labels, project)
        assert labels == {"project.id:42": "", "project.name:web": ""}

    def test_overwrites_existing_value(self, project):
        """Project labels always have an empty value."""
        labels = {"project.id:42": "something"}
        apply_project_labels(labels, project)
        assert labels["project.id:42"] == ""

    def test_no_project(self):
        """Without a project the labels are untouched."""
        labels = {"tier": "front"}
        assert apply_project_labels(labels, None) == {"tier": "front"}


class TestFilterExpression:
    """Filter selecting a project's resources."""

    def test_expression(self, project):
        """The filter matches the id label."""
        assert project_filter_expression(project) == "label=project.id:42"

    def test_no_project(self):
        """Without a project there is no filter."""
        assert project_filter_expression(None) is None


class TestScopeDockerArgs:
    """Scoping flags inserted into docker command lines."""

    def test_run_gets_labels(self, project):
        """run is labeled right after the command."""
        assert scope_docker_args(["run", "-d", "nginx"], project) == [
            "run",
            "--label",
            "project.id:42",
            "--label",
            "project.name:web",
            "-d",
            "nginx",
        ]

    def test_two_word_creation_command(self, project):
        """Two-word creation commands are labeled after both words."""
        result = scope_docker_args(["volume", "create", "data"], project)
        assert result[:2] == ["volume", "create"]
        assert result[-1] == "data"
        assert "project.id:42" in result

    def test_build_context_stays_last(self, project):
        """The build context is not displaced."""
        result = scope_docker_args(["build", "-t", "web", "."], project)
        assert result[-1] == "."
        assert result.count("--label") == 2

    def test_listing_gets_filter(self, project):
        """ps gets the project filter."""
        assert scope_docker_args(["ps", "-a"], project) == [
            "ps",
            "--filter",
            "label=project.id:42",
            "-a",
        ]

    def test_two_word_listing(self, project):
        """Two-word listings are filtered after both words."""
        result = scope_docker_args(["image", "ls"], project)
        assert result == ["image", "ls", "--filter", "label=project.id:42"]

    def test_prune_is_scoped(self, project):
        """prune only touches project resources."""
        result = scope_docker_args(["volume", "prune", "-f"], project)
        assert "label=project.id:42" in result

    def test_listing_scope_disabled(self, project):
        """Listings can be left unfiltered."""
        assert scope_docker_args(["ps"], project, scope_listing=False) == ["ps"]

    def test_creation_labeled_when_listing_disabled(self, project):
        """Creation is labeled even when listings are not filtered."""
        result = scope_docker_args(["create", "alpine"], project, scope_listing=False)
        assert "--label" in result

    def test_other_commands_untouched(self, project):
        """Other commands pass through."""
        assert scope_docker_args(["exec", "-it", "c", "sh"], project) == ["exec", "-it", "c", "sh"]

    def test_no_project(self):
        """Without a project nothing changes."""
        assert scope_docker_args(["run", "alpine"], None) == ["run", "alpine"]

    def test_input_not_mutated(self, project):
        """The caller's list is left alone."""
        args = ["ps"]
        scope_docker_args(args, project)
        assert args == ["ps"]
