"""
Project scoping of Docker resources.

Resources created inside a project carry two presence-only labels,
`project.id:<ID>` and `project.name:<NAME>` (empty values). Listing and
cleanup commands filter on `label=project.id:<ID>`.

The project is always passed explicitly; with no project every helper
here is a no-op.
"""

from collections.abc import Sequence
from typing import Protocol

LABEL_ID_PREFIX = "project.id:"
LABEL_NAME_PREFIX = "project.name:"

# Docker command paths that create labelable resources.
CREATION_COMMANDS: frozenset[tuple[str, ...]] = frozenset(
    {
        ("run",),
        ("create",),
        ("build",),
        ("container", "run"),
        ("container", "create"),
        ("image", "build"),
        ("builder", "build"),
        ("volume", "create"),
        ("network", "create"),
    }
)

# Docker command paths that list or prune resources.
LISTING_COMMANDS: frozenset[tuple[str, ...]] = frozenset(
    {
        ("ps",),
        ("images",),
        ("container", "ls"),
        ("container", "list"),
        ("container", "ps"),
        ("container", "prune"),
        ("image", "ls"),
        ("image", "list"),
        ("image", "prune"),
        ("volume", "ls"),
        ("volume", "list"),
        ("volume", "prune"),
        ("network", "ls"),
        ("network", "list"),
        ("network", "prune"),
    }
)


class ProjectIdentity(Protocol):
    """Anything carrying a project id and name."""

    id: str
    name: str


def project_labels(project: ProjectIdentity) -> dict[str, str]:
    """Return the two scoping labels of a project."""
    return {
        f"{LABEL_ID_PREFIX}{project.id}": "",
        f"{LABEL_NAME_PREFIX}{project.name}": "",
    }


def apply_project_labels(
    labels: dict[str, str], project: ProjectIdentity | None
) -> dict[str, str]:
    """
    Insert the project's scoping labels into `labels` (in place).

    Applying twice leaves each label present once with an empty value.

    Returns:
        The same dict, for chaining
    """
    if project is None:
        return labels
    labels.update(project_labels(project))
    return labels


def project_filter_expression(project: ProjectIdentity | None) -> str | None:
    """
    Return the filter selecting the project's resources, or None outside a project.

    Example:
        >>> project_filter_expression(None) is None
        True
    """
    if project is None:
        return None
    return f"label={LABEL_ID_PREFIX}{project.id}"


def _command_path(args: Sequence[str], table: frozenset[tuple[str, ...]]) -> int:
    """Length of the leading command path of `args` found in `table`, 0 if none."""
    if len(args) >= 2 and (args[0], args[1]) in table:
        return 2
    if args and (args[0],) in table:
        return 1
    return 0


def scope_docker_args(
    args: Sequence[str],
    project: ProjectIdentity | None,
    scope_listing: bool = True,
) -> list[str]:
    """
    Add scoping flags to a docker command line (without the binary).

    Creation commands get `--label` flags for both project labels and
    listing/cleanup commands get a `--filter` on the project id. Flags are
    inserted right after the command path so positional arguments (image
    names, build contexts) keep their meaning.

    Example:
        >>> class P: id, name = "42", "web"
        >>> scope_docker_args(["volume", "create", "data"], P())
        ['volume', 'create', '--label', 'project.id:42', '--label', 'project.name:web', 'data']
    """
    result = list(args)
    if project is None:
        return result

    if depth := _command_path(result, CREATION_COMMANDS):
        flags: list[str] = []
        for label in project_labels(project):
            flags += ["--label", label]
        return result[:depth] + flags + result[depth:]

    if scope_listing and (depth := _command_path(result, LISTING_COMMANDS)):
        expression = project_filter_expression(project)
        return result[:depth] + ["--filter", str(expression)] + result[depth:]

    return result
