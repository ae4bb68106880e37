"""
Configuration models and loading.

This module provides Pydantic models for dproj configuration
with multi-layer merging: defaults < user < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_docker_config_dir,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import DockerConfig, DprojConfig, RecentConfig, ScopingConfig

__all__ = [
    # Models
    "DockerConfig",
    "DprojConfig",
    "RecentConfig",
    "ScopingConfig",
    # Loader functions
    "clear_cache",
    "get_docker_config_dir",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
