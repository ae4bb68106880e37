"""
Project data models.

A Project is the loaded form of a dockerproject.lua file: its identity,
its root directory and the catalog of tasks it declares. Task functions
live inside the Sandbox that executed the marker file and can only be
called through it.
"""

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from dproj.core.script.runtime import Sandbox

logger = logging.getLogger(__name__)


class TaskShape(str, Enum):
    """Declaration form a task was parsed from."""

    BARE = "bare"  # name = func
    SEQ1 = "seq1"  # name = {func}
    SEQ2 = "seq2"  # name = {func, "description"}
    SEQ3 = "seq3"  # name = {func, "short", "long"}
    KEYED = "keyed"  # name = {func = f, short = "...", desc = "..."}


@dataclass(frozen=True)
class Task:
    """A project-defined command."""

    name: str
    short_description: str
    description: str
    function: Any = field(repr=False, compare=False)
    shape: TaskShape = TaskShape.BARE


class TaskCatalog:
    """Tasks of a project, keyed by name and iterated in name order."""

    def __init__(self, tasks: list[Task] | None = None) -> None:
        self._tasks: dict[str, Task] = {}
        for task in tasks or []:
            self._tasks[task.name] = task

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        for name in sorted(self._tasks):
            yield self._tasks[name]

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, name: str) -> Task | None:
        return self._tasks.get(name)

    @property
    def names(self) -> list[str]:
        return sorted(self._tasks)


def quote_task_arg(arg: str) -> str:
    """
    Quote a task argument containing whitespace, escaping inner quotes.

    Example:
        >>> quote_task_arg("two words")
        '"two words"'
        >>> quote_task_arg("plain")
        'plain'
    """
    if any(ch.isspace() for ch in arg):
        return '"' + arg.replace('"', '\\"') + '"'
    return arg


@dataclass
class Project:
    """
    A loaded project.

    Attributes:
        root: Directory containing the marker file
        id: Stable project identifier
        name: Human-readable project name
        tasks: Declared tasks
        sandbox: Sandbox that executed the marker file and owns task functions
    """

    root: Path
    id: str
    name: str
    tasks: TaskCatalog = field(default_factory=TaskCatalog)
    sandbox: "Sandbox | None" = field(default=None, repr=False, compare=False)

    def command_exists(self, name: str) -> bool:
        """Whether `name` is a declared task."""
        return name in self.tasks

    def exec(self, args: list[str]) -> bool:
        """
        Run the task named by args[0] with args[1:] as its arguments.

        The task runs with the project root as working directory; the
        previous working directory is restored whatever the outcome.

        Returns:
            False if no such task exists, True once the task has run

        Raises:
            ValueError: If args is empty
            ScriptError: If the task raises an error
        """
        if not args:
            raise ValueError("at least one argument required (task name)")

        task = self.tasks.get(args[0])
        if task is None:
            return False
        if self.sandbox is None:
            raise RuntimeError(f"project {self.name} has no sandbox to run tasks in")

        task_args = [quote_task_arg(arg) for arg in args[1:]]
        previous_cwd = os.getcwd()
        logger.debug("Running task %s in %s with %s", task.name, self.root, task_args)
        os.chdir(self.root)
        try:
            self.sandbox.call(task.function, task_args)
        finally:
            os.chdir(previous_cwd)
        return True


class RecentProject(BaseModel):
    """Entry of the recent-projects index."""

    id: str = Field(..., description="Project identifier")
    name: str = Field(..., description="Project name")
    root: str = Field(..., description="Project root directory")
    timestamp: int = Field(..., description="Last use, in Unix seconds")
