"""
Unit tests for configuration loading.

Tests config merging, environment variable overrides, caching, XDG
directory handling and layered .env files.
"""

import json
import os

import pytest
from pydantic import ValidationError

from dproj.core.config import (
    DprojConfig,
    clear_cache,
    get_docker_config_dir,
    get_user_config_path,
    load_config,
    load_layered_env,
)
from dproj.core.config.loader import (
    apply_env_overrides,
    deep_merge,
    get_default_config,
    load_json_file,
)

# ==============================================================================
# Helper Functions Tests
# ==============================================================================


class TestDeepMerge:
    """Test the deep_merge helper function."""

    def test_nested_merge(self):
        """Nested dicts are merged, not replaced."""
        base = {"a": 1, "b": {"x": 10, "y": 20}}
        override = {"b": {"y": 30}, "c": 3}
        assert deep_merge(base, override) == {"a": 1, "b": {"x": 10, "y": 30}, "c": 3}

    def test_base_not_mutated(self):
        """Merging leaves the base dict untouched."""
        base = {"docker": {"binary": "docker"}}
        deep_merge(base, {"docker": {"binary": "podman"}})
        assert base == {"docker": {"binary": "docker"}}


class TestLoadJsonFile:
    """Test JSON file loading."""

    def test_missing_file(self, tmp_path):
        """A missing file yields None."""
        assert load_json_file(tmp_path / "nope.json") is None

    def test_invalid_json_warns(self, tmp_path, capsys):
        """Unparseable JSON prints a warning and yields None."""
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_json_file(path) is None
        assert "Warning" in capsys.readouterr().out

    def test_non_object_ignored(self, tmp_path):
        """A top-level array is ignored."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert load_json_file(path) is None


class TestPaths:
    """Test config directory resolution."""

    def test_user_config_under_xdg(self, tmp_path):
        """The user config lives under XDG_CONFIG_HOME."""
        assert get_user_config_path() == tmp_path / "xdg" / "dproj" / "config.json"

    def test_docker_config_from_env(self, tmp_path):
        """DOCKER_CONFIG selects the docker config directory."""
        assert get_docker_config_dir() == tmp_path / "docker-config"

    def test_docker_config_default(self, monkeypatch, tmp_path):
        """Without DOCKER_CONFIG it is ~/.docker."""
        monkeypatch.delenv("DOCKER_CONFIG")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_docker_config_dir() == tmp_path / ".docker"


# ==============================================================================
# Environment Overrides
# ==============================================================================


class TestEnvOverrides:
    """Test environment variable overrides."""

    def test_binary_and_host(self, monkeypatch):
        """Binary and host come from the environment."""
        monkeypatch.setenv("DPROJ_DOCKER_BINARY", "/usr/local/bin/docker")
        monkeypatch.setenv("DOCKER_HOST", "tcp://10.0.0.1:2375")
        result = apply_env_overrides(get_default_config())
        assert result["docker"]["binary"] == "/usr/local/bin/docker"
        assert result["docker"]["host"] == "tcp://10.0.0.1:2375"

    def test_timeout(self, monkeypatch):
        """DPROJ_ENGINE_TIMEOUT sets the engine timeout."""
        monkeypatch.setenv("DPROJ_ENGINE_TIMEOUT", "5")
        assert apply_env_overrides(get_default_config())["docker"]["timeout"] == 5.0

    def test_invalid_timeout_ignored(self, monkeypatch, capsys):
        """A non-numeric timeout is reported and skipped."""
        monkeypatch.setenv("DPROJ_ENGINE_TIMEOUT", "soon")
        assert apply_env_overrides(get_default_config())["docker"]["timeout"] == 60.0
        assert "DPROJ_ENGINE_TIMEOUT" in capsys.readouterr().out

    def test_non_positive_timeout_ignored(self, monkeypatch):
        """A zero timeout is skipped."""
        monkeypatch.setenv("DPROJ_ENGINE_TIMEOUT", "0")
        assert apply_env_overrides(get_default_config())["docker"]["timeout"] == 60.0

    @pytest.mark.parametrize(
        "raw,expected",
        [("0", False), ("false", False), ("no", False), ("1", True), ("YES", True)],
    )
    def test_boolean_values(self, monkeypatch, raw, expected):
        """Boolean variables accept the usual spellings."""
        monkeypatch.setenv("DPROJ_SCOPE_LISTING", raw)
        result = apply_env_overrides(get_default_config())
        assert result["scoping"]["scope_listing"] is expected

    def test_invalid_boolean_ignored(self, monkeypatch):
        """An unrecognized boolean is skipped."""
        monkeypatch.setenv("DPROJ_RECENT", "maybe")
        assert apply_env_overrides(get_default_config())["recent"]["enabled"] is True

    def test_debug(self, monkeypatch):
        """DPROJ_DEBUG enables debug."""
        monkeypatch.setenv("DPROJ_DEBUG", "1")
        assert apply_env_overrides(get_default_config())["debug"] is True


# ==============================================================================
# load_config
# ==============================================================================


class TestLoadConfig:
    """Test the full config loading chain."""

    def test_defaults(self):
        """Without files or variables the defaults apply."""
        config = load_config()
        assert isinstance(config, DprojConfig)
        assert config.docker.binary == "docker"
        assert config.docker.host is None
        assert config.scoping.scope_listing is True
        assert config.recent.enabled is True
        assert config.debug is False

    def test_user_config_merged(self, user_config_dir):
        """User config overrides only the keys it sets."""
        (user_config_dir / "config.json").write_text(
            json.dumps({"docker": {"timeout": 10}, "recent": {"enabled": False}})
        )
        config = load_config()
        assert config.docker.timeout == 10
        assert config.docker.binary == "docker"
        assert config.recent.enabled is False

    def test_env_beats_user_config(self, user_config_dir, monkeypatch):
        """Environment variables win over the user config."""
        (user_config_dir / "config.json").write_text(json.dumps({"docker": {"binary": "a"}}))
        monkeypatch.setenv("DPROJ_DOCKER_BINARY", "b")
        assert load_config().docker.binary == "b"

    def test_cached(self, monkeypatch):
        """Config is cached until clear_cache."""
        first = load_config()
        monkeypatch.setenv("DPROJ_DOCKER_BINARY", "other")
        assert load_config() is first
        clear_cache()
        assert load_config().docker.binary == "other"

    def test_invalid_timeout_in_file(self, user_config_dir):
        """Invalid file values fail validation."""
        (user_config_dir / "config.json").write_text(json.dumps({"docker": {"timeout": -1}}))
        with pytest.raises(ValidationError):
            load_config()


# ==============================================================================
# Layered .env files
# ==============================================================================


class TestLayeredEnv:
    """Test precedence of .env files against the process environment."""

    def test_project_overrides_user(self, tmp_path, monkeypatch):
        """Project .env values override user ones."""
        monkeypatch.delenv("DPROJ_TEST_LAYER", raising=False)
        user_env = tmp_path / "user.env"
        project_env = tmp_path / "project.env"
        user_env.write_text("DPROJ_TEST_LAYER=user\n")
        project_env.write_text("DPROJ_TEST_LAYER=project\n")

        load_layered_env(user_env_paths=[user_env], project_env_paths=[project_env])
        try:
            assert os.environ["DPROJ_TEST_LAYER"] == "project"
        finally:
            os.environ.pop("DPROJ_TEST_LAYER", None)

    def test_process_env_wins(self, tmp_path, monkeypatch):
        """Variables already set are never replaced."""
        monkeypatch.setenv("DPROJ_TEST_LAYER", "shell")
        project_env = tmp_path / "project.env"
        project_env.write_text("DPROJ_TEST_LAYER=project\n")

        load_layered_env(user_env_paths=[], project_env_paths=[project_env])
        assert os.environ["DPROJ_TEST_LAYER"] == "shell"

    def test_local_file_overrides_env_file(self, tmp_path, monkeypatch):
        """.env.local overrides .env."""
        monkeypatch.delenv("DPROJ_TEST_LAYER", raising=False)
        (tmp_path / ".env").write_text("DPROJ_TEST_LAYER=shared\n")
        (tmp_path / ".env.local").write_text("DPROJ_TEST_LAYER=local\n")

        try:
            exported = load_layered_env(project_dir=tmp_path)
            assert exported == {"DPROJ_TEST_LAYER": "local"}
            assert os.environ["DPROJ_TEST_LAYER"] == "local"
        finally:
            os.environ.pop("DPROJ_TEST_LAYER", None)

    def test_user_env_under_xdg(self, user_config_dir, monkeypatch):
        """The user .env is read from the XDG config directory."""
        monkeypatch.delenv("DPROJ_TEST_LAYER", raising=False)
        (user_config_dir / ".env").write_text("DPROJ_TEST_LAYER=user\n")

        try:
            load_layered_env(project_env_paths=[])
            assert os.environ["DPROJ_TEST_LAYER"] == "user"
        finally:
            os.environ.pop("DPROJ_TEST_LAYER", None)

    def test_missing_files_ignored(self, tmp_path):
        """Missing files export nothing."""
        assert load_layered_env(project_dir=tmp_path / "nowhere") == {}
