"""
Per-invocation CLI state.

The current project is passed explicitly to commands through the Typer
context object; there is no module-level "current project".
"""

import logging
import sys
from dataclasses import dataclass

import typer

from dproj.core.config import DprojConfig, load_config
from dproj.core.docker.commands import DockerCommandRunner
from dproj.core.docker.engine import EngineClient
from dproj.core.project.models import Project


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the CLI.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@dataclass
class AppContext:
    """State shared by all commands of one invocation."""

    config: DprojConfig
    runner: DockerCommandRunner
    project: Project | None = None
    debug: bool = False

    def engine(self) -> EngineClient:
        """New Engine API client for the configured endpoint."""
        return EngineClient(self.config.docker.host, timeout=self.config.docker.timeout)


def new_runner(config: DprojConfig) -> DockerCommandRunner:
    return DockerCommandRunner(
        binary=config.docker.binary,
        scope_listing=config.scoping.scope_listing,
    )


def get_app_context(ctx: typer.Context) -> AppContext:
    """
    Return the invocation's AppContext, creating a project-less one if needed.

    cli_main() passes a fully populated context; commands invoked directly
    (tests, completion) get one built from configuration alone.
    """
    root = ctx.find_root()
    if not isinstance(root.obj, AppContext):
        config = load_config()
        root.obj = AppContext(config=config, runner=new_runner(config), debug=config.debug)
    return root.obj
