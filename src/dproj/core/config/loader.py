"""
Settings resolution for dproj.

Three layers, later ones winning:
    built-in defaults, the user's config.json, DPROJ_* / DOCKER_HOST variables

The resolved DprojConfig is memoized for the lifetime of the process.
"""

import copy
import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .models import DprojConfig

_cached: DprojConfig | None = None

DEFAULTS: dict[str, Any] = {
    "docker": {"binary": "docker", "host": None, "timeout": 60.0},
    "scoping": {"scope_listing": True},
    "recent": {"enabled": True, "path": None},
    "debug": False,
}

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


def get_xdg_config_home() -> Path:
    """$XDG_CONFIG_HOME, or ~/.config when unset."""
    configured = os.environ.get("XDG_CONFIG_HOME")
    return Path(configured) if configured else Path.home() / ".config"


def get_user_config_path() -> Path:
    """Location of the user's dproj config.json."""
    return get_xdg_config_home() / "dproj" / "config.json"


def get_docker_config_dir() -> Path:
    """
    Directory of the docker CLI's own configuration.

    Follows the docker client: $DOCKER_CONFIG when set, ~/.docker otherwise.
    """
    configured = os.environ.get("DOCKER_CONFIG")
    return Path(configured) if configured else Path.home() / ".docker"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Return ``base`` updated with ``override``, recursing into nested tables.

    Neither argument is modified.

    Example:
        >>> deep_merge({"docker": {"binary": "docker"}}, {"docker": {"timeout": 5}})
        {'docker': {'binary': 'docker', 'timeout': 5}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Read a JSON object from ``path``.

    A missing file, unreadable content or a top-level value that is not an
    object all yield None. Parse failures are reported as a warning and the
    file is otherwise ignored.
    """
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        print(f"Warning: ignoring unreadable config {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


def _as_bool(name: str, raw: str) -> bool | None:
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    print(f"Warning: {name}={raw!r} is not a boolean, ignoring")
    return None


def _as_timeout(name: str, raw: str) -> float | None:
    try:
        seconds = float(raw)
    except ValueError:
        print(f"Warning: {name}={raw!r} is not a number, ignoring")
        return None
    if seconds <= 0:
        print(f"Warning: {name} must be positive, got {seconds}, ignoring")
        return None
    return seconds


def _as_text(name: str, raw: str) -> str | None:
    return raw or None


# variable -> (setting path, converter)
ENV_OVERRIDES: dict[str, tuple[tuple[str, ...], Callable[[str, str], Any]]] = {
    "DPROJ_DOCKER_BINARY": (("docker", "binary"), _as_text),
    "DOCKER_HOST": (("docker", "host"), _as_text),
    "DPROJ_ENGINE_TIMEOUT": (("docker", "timeout"), _as_timeout),
    "DPROJ_SCOPE_LISTING": (("scoping", "scope_listing"), _as_bool),
    "DPROJ_RECENT": (("recent", "enabled"), _as_bool),
    "DPROJ_DEBUG": (("debug",), _as_bool),
}


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Overlay the variables in ENV_OVERRIDES onto a settings dict.

    Values that fail conversion are reported and skipped, leaving the
    lower layer in effect.
    """
    result = copy.deepcopy(config_dict)
    for name, (setting, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(name)
        if raw is None:
            continue
        value = convert(name, raw)
        if value is None:
            continue
        *parents, leaf = setting
        target = result
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = value
    return result


def get_default_config() -> dict[str, Any]:
    """A fresh copy of the built-in defaults."""
    return copy.deepcopy(DEFAULTS)


def load_config(use_cache: bool = True) -> DprojConfig:
    """
    Resolve and validate the dproj settings.

    Args:
        use_cache: Reuse the settings resolved earlier in this process

    Raises:
        pydantic.ValidationError: A layer supplied a value the models reject
    """
    global _cached

    if use_cache and _cached is not None:
        return _cached

    settings = get_default_config()
    user_settings = load_json_file(get_user_config_path())
    if user_settings:
        settings = deep_merge(settings, user_settings)

    _cached = DprojConfig(**apply_env_overrides(settings))
    return _cached


def clear_cache() -> None:
    """Forget the memoized settings so the next load_config re-reads them."""
    global _cached
    _cached = None
