"""
Configuration data models for dproj.

These models define the structure of ~/.config/dproj/config.json,
with validation and type safety via Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DockerConfig(BaseModel):
    """
    How dproj reaches Docker.

    The docker binary runs built-in commands and `docker.cmd` calls,
    the Engine API serves list/inspect calls made by project scripts.
    """
    binary: str = Field(
        default="docker",
        description="Docker CLI executable used for built-in commands"
    )
    host: Optional[str] = Field(
        default=None,
        description="Engine endpoint (unix:///path or tcp://host:port), DOCKER_HOST style"
    )
    timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Engine API request timeout in seconds"
    )


class ScopingConfig(BaseModel):
    """Project scoping of Docker resources."""
    scope_listing: bool = Field(
        default=True,
        description="Filter listing/cleanup commands to the current project"
    )


class RecentConfig(BaseModel):
    """Recent-projects side index."""
    enabled: bool = Field(
        default=True,
        description="Record projects in the recent-projects index on each invocation"
    )
    path: Optional[str] = Field(
        default=None,
        description="Index file location (defaults to the Docker config directory)"
    )


class DprojConfig(BaseModel):
    """
    Top-level dproj configuration.

    Loaded from defaults, user config, and env vars.

    Example:
        >>> config = DprojConfig(docker=DockerConfig(binary="/usr/local/bin/docker"))
        >>> config.scoping.scope_listing
        True
    """
    docker: DockerConfig = Field(
        default_factory=DockerConfig,
        description="Docker CLI and Engine access"
    )
    scoping: ScopingConfig = Field(
        default_factory=ScopingConfig,
        description="Project scoping behavior"
    )
    recent: RecentConfig = Field(
        default_factory=RecentConfig,
        description="Recent-projects index"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )
