"""Test config loading and parsing."""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from eventbus import EventbusConfigurationError
from eventbus.config import Config, _deep_update, default_config, load_config, reload_config


class TestDeepUpdate:
    """Test deep dictionary merge."""

    def test_deep_update_simple(self):
        # Arrange
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}

        # Act
        result = _deep_update(base, override)

        # Assert
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_deep_update_nested(self):
        # Arrange
        base = {"bus_names": {"main": "m", "plugin": "p"}, "log_level": "INFO"}
        override = {"bus_names": {"plugin": "plugins"}}

        # Act
        result = _deep_update(base, override)

        # Assert
        assert result == {"bus_names": {"main": "m", "plugin": "plugins"}, "log_level": "INFO"}

    def test_deep_update_preserves_base(self):
        # Arrange
        base = {"a": 1}
        override = {"b": 2}

        # Act
        _deep_update(base, override)

        # Assert
        assert base == {"a": 1}  # Original unchanged

    def test_deep_update_non_dict_replaces_dict(self):
        result = _deep_update({"a": {"x": 1}}, {"a": "scalar"})
        assert result == {"a": "scalar"}


class TestLoadConfig:
    """Test config file loading."""

    def test_load_config_from_yaml(self):
        # Arrange
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("log_level: debug\n")
            f.write("bus_names:\n")
            f.write("  main: appEventbus\n")
            path = f.name

        try:
            # Act
            config = load_config(path)

            # Assert
            assert config["log_level"] == "debug"
            assert config["bus_names"] == {"main": "appEventbus"}
        finally:
            Path(path).unlink()

    def test_load_config_missing_file(self):
        # Arrange
        path = "/nonexistent/config.yaml"

        # Act
        with patch("eventbus.config.loader.logger") as mock_logger:
            config = load_config(path)

        # Assert
        assert config == {}
        mock_logger.warning.assert_called_once()

    def test_load_config_empty_file(self, tmp_path):
        # Arrange
        path = tmp_path / "config.yaml"
        path.write_text("")

        # Act
        config = load_config(path)

        # Assert
        assert config == {}

    def test_load_config_list_is_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with patch("eventbus.config.loader.logger") as mock_logger:
            assert load_config(path) == {}
        mock_logger.warning.assert_called_once()

    def test_load_config_invalid_yaml(self, tmp_path):
        # Arrange
        import yaml

        path = tmp_path / "config.yaml"
        path.write_text("not: a: valid: yaml:")

        # Act & Assert
        with pytest.raises(yaml.YAMLError):
            load_config(path)


class TestReloadConfig:
    """Test reload_config()."""

    def test_reload_config_updates_global(self, tmp_path, cfg_reset):
        # Arrange
        path = tmp_path / "config.yaml"
        path.write_text("defer_delay_seconds: 0.5\nwarn_on_guarded: false\n")

        # Act
        with patch("eventbus.config.loader.load_config_with_env", wraps=load_config) as mock_load:
            result = reload_config(path)

        # Assert
        mock_load.assert_called_once_with(path)
        assert result is cfg_reset
        assert cfg_reset.defer_delay_seconds == 0.5
        assert cfg_reset.warn_on_guarded is False

    def test_reload_config_keeps_defaults_for_missing_keys(self, tmp_path, cfg_reset, monkeypatch):
        # Arrange
        monkeypatch.delenv("EVENTBUS_LOG_LEVEL", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("bus_names:\n  plugin: plugins\n")

        # Act
        reload_config(path)

        # Assert
        assert cfg_reset.get("bus_names.plugin") == "plugins"
        assert cfg_reset.get("bus_names.main") == "mainEventbus"
        assert cfg_reset.raw["log_level"] == "INFO"
        assert cfg_reset.raw["defer_delay_seconds"] == 0.0

    def test_reload_config_missing_file_installs_defaults(self, tmp_path, cfg_reset):
        with patch("eventbus.config.loader.logger"):
            reload_config(tmp_path / "absent.yaml")
        assert cfg_reset.raw == default_config()

    def test_default_config_is_fresh_each_call(self):
        first = default_config()
        first["bus_names"]["main"] = "changed"
        assert default_config()["bus_names"]["main"] == "mainEventbus"


class TestConfig:
    """Test Config accessor class."""

    def test_config_get_simple(self):
        # Arrange
        config = Config({"key": "value"})

        # Act
        result = config.get("key")

        # Assert
        assert result == "value"

    def test_config_get_nested(self):
        # Arrange
        config = Config({"bus_names": {"main": "appEventbus"}})

        # Act
        result = config.get("bus_names.main")

        # Assert
        assert result == "appEventbus"

    def test_config_get_default(self):
        config = Config({})
        assert config.get("missing", "default") == "default"

    def test_config_get_missing_no_default(self):
        config = Config({})
        assert config.get("missing") is None

    def test_config_getitem(self):
        config = Config({"key": "value"})
        assert config["key"] == "value"

    def test_config_contains(self):
        # Arrange
        config = Config({"key": "value"})

        # Act & Assert
        assert "key" in config
        assert "missing" not in config

    def test_config_reload(self):
        # Arrange
        config = Config({"old": "value"})

        # Act
        config.reload({"new": "value"})

        # Assert
        assert config.get("new") == "value"
        assert config.get("old") is None

    def test_config_raw_property(self):
        data = {"key": "value"}
        config = Config(data)
        assert config.raw == data

    def test_config_none_defaults_to_empty(self):
        config = Config(None)
        assert config.raw == {}

    def test_log_level_default(self, monkeypatch):
        monkeypatch.delenv("EVENTBUS_LOG_LEVEL", raising=False)
        assert Config({}).log_level == "INFO"

    def test_log_level_is_upper_cased(self, monkeypatch):
        monkeypatch.delenv("EVENTBUS_LOG_LEVEL", raising=False)
        assert Config({"log_level": "debug"}).log_level == "DEBUG"

    def test_log_level_env_override(self, monkeypatch):
        monkeypatch.setenv("EVENTBUS_LOG_LEVEL", "warning")
        assert Config({"log_level": "debug"}).log_level == "WARNING"

    def test_warn_on_guarded_default(self, monkeypatch):
        monkeypatch.delenv("EVENTBUS_WARN_ON_GUARDED", raising=False)
        assert Config({}).warn_on_guarded is True

    def test_warn_on_guarded_false(self, monkeypatch):
        monkeypatch.delenv("EVENTBUS_WARN_ON_GUARDED", raising=False)
        assert Config({"warn_on_guarded": False}).warn_on_guarded is False

    @pytest.mark.parametrize(("env", "expected"), [("0", False), ("no", False), ("TRUE", True), ("maybe", False)])
    def test_warn_on_guarded_env(self, monkeypatch, env, expected):
        # "maybe" is not a bool, so the config value wins
        monkeypatch.setenv("EVENTBUS_WARN_ON_GUARDED", env)
        assert Config({"warn_on_guarded": False}).warn_on_guarded is expected

    def test_defer_delay_default(self):
        assert Config({}).defer_delay_seconds == 0.0

    def test_defer_delay_custom(self):
        assert Config({"defer_delay_seconds": 2}).defer_delay_seconds == 2.0

    def test_bus_names_default(self):
        assert Config({}).bus_names == {
            "main": "mainEventbus",
            "plugin": "pluginEventbus",
            "test": "testEventbus",
            "aux": "auxEventbus",
        }

    def test_bus_names_override(self):
        names = Config({"bus_names": {"main": "app"}}).bus_names
        assert names["main"] == "app"
        assert names["plugin"] == "pluginEventbus"


class TestConfigValidation:
    """Test reload() validation."""

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.delenv("EVENTBUS_LOG_LEVEL", raising=False)
        with pytest.raises(EventbusConfigurationError) as exc_info:
            Config({}).reload({"log_level": "loud"})
        assert exc_info.value.code == "invalid_log_level"

    @pytest.mark.parametrize("delay", [-1, "soon", True])
    def test_invalid_defer_delay(self, delay):
        with pytest.raises(EventbusConfigurationError) as exc_info:
            Config({}).reload({"defer_delay_seconds": delay})
        assert exc_info.value.code == "invalid_defer_delay"

    def test_invalid_bus_names(self):
        with pytest.raises(EventbusConfigurationError) as exc_info:
            Config({}).reload({"bus_names": ["main"]})
        assert exc_info.value.code == "invalid_bus_names"

    def test_validation_can_be_skipped(self):
        config = Config({})
        config.reload({"bus_names": ["main"]}, validate=False)
        assert config.bus_names["main"] == "mainEventbus"
