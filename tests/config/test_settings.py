"""Tests for layered configuration."""

import pytest
import yaml
from infraplan.config import load_settings
from infraplan.utils.errors import ConfigError


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Isolate HOME and the working directory."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("INFRAPLAN_HOME", raising=False)
    monkeypatch.chdir(project)
    return home, project


def write_yaml(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadSettings:
    """Test config layering and validation."""

    def test_defaults(self, workspace):
        settings = load_settings()
        assert settings.parallelism == 10
        assert settings.provider_timeout == 60
        assert settings.retry.max_attempts == 3
        assert settings.provider.name == "local"
        assert settings.state_path == "infraplan.state.json"

    def test_layers_override_in_order(self, workspace, tmp_path):
        home, project = workspace
        write_yaml(home / ".infraplan" / "config.yaml", {"parallelism": 4, "retry": {"max_attempts": 5}})
        write_yaml(project / ".infraplan" / "config.yaml", {"parallelism": 2})
        explicit = write_yaml(tmp_path / "ci.yaml", {"state_path": "ci.state.json"})

        settings = load_settings(str(explicit))
        assert settings.parallelism == 2
        assert settings.retry.max_attempts == 5
        assert settings.retry.initial_delay == 1.0
        assert settings.state_path == "ci.state.json"

    def test_overrides_ignore_none(self, workspace):
        settings = load_settings(overrides={"parallelism": 3, "state_path": None, "provider": {"name": None}})
        assert settings.parallelism == 3
        assert settings.state_path == "infraplan.state.json"
        assert settings.provider.name == "local"

    def test_missing_explicit_file(self, workspace, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_invalid_value(self, workspace):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(overrides={"parallelism": 0})

    def test_unknown_key(self, workspace, tmp_path):
        explicit = write_yaml(tmp_path / "bad.yaml", {"paralellism": 4})
        with pytest.raises(ConfigError):
            load_settings(str(explicit))

    def test_broken_user_config_is_ignored(self, workspace):
        home, _ = workspace
        path = home / ".infraplan" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("parallelism: [unclosed", encoding="utf-8")
        assert load_settings().parallelism == 10

    def test_infraplan_home_override(self, workspace, tmp_path, monkeypatch):
        custom = tmp_path / "custom"
        write_yaml(custom / "config.yaml", {"parallelism": 7})
        monkeypatch.setenv("INFRAPLAN_HOME", str(custom))
        assert load_settings().parallelism == 7
