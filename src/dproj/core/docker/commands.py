"""
Docker CLI invocation.

Built-in dproj commands and the script functions docker.cmd/docker.silentCmd
all shell out to the docker binary through DockerCommandRunner, which
applies project scoping to the command line before running it.
"""

import logging
import subprocess
from collections.abc import Sequence

from dproj.core.errors import CommandError
from dproj.core.project.scoping import ProjectIdentity, scope_docker_args

logger = logging.getLogger(__name__)

# Top-level commands of the docker CLI, exposed as dproj built-ins.
DOCKER_COMMANDS: tuple[str, ...] = (
    "attach",
    "build",
    "builder",
    "commit",
    "config",
    "container",
    "context",
    "cp",
    "create",
    "deploy",
    "diff",
    "events",
    "exec",
    "export",
    "history",
    "image",
    "images",
    "import",
    "info",
    "inspect",
    "kill",
    "load",
    "login",
    "logout",
    "logs",
    "manifest",
    "network",
    "node",
    "pause",
    "plugin",
    "port",
    "ps",
    "pull",
    "push",
    "rename",
    "restart",
    "rm",
    "rmi",
    "run",
    "save",
    "search",
    "secret",
    "service",
    "stack",
    "start",
    "stats",
    "stop",
    "swarm",
    "system",
    "tag",
    "top",
    "trust",
    "unpause",
    "update",
    "volume",
    "wait",
)


class DockerCommandRunner:
    """
    Runs docker CLI commands, scoped to the current project.

    Args:
        binary: docker executable
        project: Current project, or None outside a project
        scope_listing: Whether listing/cleanup commands are filtered
    """

    def __init__(
        self,
        binary: str = "docker",
        project: ProjectIdentity | None = None,
        scope_listing: bool = True,
    ) -> None:
        self.binary = binary
        self.project = project
        self.scope_listing = scope_listing

    def command_line(self, args: Sequence[str]) -> list[str]:
        """Full argv for `args`, including the binary and scoping flags."""
        return [self.binary] + scope_docker_args(args, self.project, self.scope_listing)

    def run(self, args: Sequence[str]) -> int:
        """
        Run a docker command with inherited standard streams.

        Returns:
            The process exit status

        Raises:
            CommandError: If the docker binary cannot be started
        """
        cmd = self.command_line(args)
        logger.debug("Running %s", cmd)
        try:
            result = subprocess.run(cmd)
        except OSError as e:
            raise CommandError(
                list(args), None, message=f"failed to run {self.binary}: {e}"
            ) from e
        return result.returncode

    def check(self, args: Sequence[str]) -> None:
        """
        Run a docker command interactively, failing on non-zero exit.

        Raises:
            CommandError: If the command fails
        """
        returncode = self.run(args)
        if returncode != 0:
            raise CommandError(list(args), returncode)

    def capture(self, args: Sequence[str]) -> tuple[str, str]:
        """
        Run a docker command with captured output.

        Returns:
            (stdout, stderr), both stripped

        Raises:
            CommandError: If the command fails, carrying its stderr
        """
        cmd = self.command_line(args)
        logger.debug("Running (captured) %s", cmd)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise CommandError(
                list(args), None, message=f"failed to run {self.binary}: {e}"
            ) from e
        if result.returncode != 0:
            raise CommandError(list(args), result.returncode, stderr=result.stderr)
        return result.stdout.strip(), result.stderr.strip()
