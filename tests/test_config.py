"""Tests for configuration loading and validation."""

from unittest.mock import patch

import pytest

from altaframework.config import Config
from altaframework.exceptions import ConfigurationError, ErrorCategory


def _bare_config(settings):
    with patch.object(Config, '__init__', lambda self, **kw: None):
        config = Config.__new__(Config)
        config.settings = settings
        return config


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    # setenv first so teardown also undoes anything load_dotenv writes
    for var in ("DISCORD_TOKEN", "ALTA_PREFIX"):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


class TestConfigProperties:
    """Property defaults and overrides."""

    def test_defaults(self):
        config = _bare_config({})
        assert config.token == ""
        assert config.prefix == ""
        assert config.owner_ids == []
        assert config.intents_message_content is True
        assert config.builtin_commands is True
        assert config.logging_level == "INFO"
        assert config.logging_backup_count == 5

    def test_values_from_settings(self):
        config = _bare_config({
            "token": "yaml-token",
            "prefix": "?",
            "owner_ids": [123456789012345678, "42"],
            "builtin_commands": False,
            "logging": {"level": "DEBUG", "subsystem_levels": {"commands": "WARNING"}},
        })
        assert config.token == "yaml-token"
        assert config.prefix == "?"
        assert config.owner_ids == ["123456789012345678", "42"]
        assert config.builtin_commands is False
        assert config.logging_level == "DEBUG"
        assert config.logging_subsystem_levels == {"commands": "WARNING"}

    def test_env_overrides_settings(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "env-token")
        monkeypatch.setenv("ALTA_PREFIX", "$")
        config = _bare_config({"token": "yaml-token", "prefix": "?"})
        assert config.token == "env-token"
        assert config.prefix == "$"

    def test_owner_ids_wrong_type_is_empty(self):
        assert _bare_config({"owner_ids": "42"}).owner_ids == []
        assert _bare_config({"owner_ids": None}).owner_ids == []


class TestValidate:
    """Fatal startup checks."""

    def test_missing_token_raises(self):
        config = _bare_config({"prefix": "!"})
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()
        assert exc_info.value.setting_name == "token"
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE
        assert not exc_info.value.is_retryable

    def test_missing_prefix_raises(self):
        config = _bare_config({"token": "t"})
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()
        assert exc_info.value.setting_name == "prefix"

    def test_valid_config_passes(self):
        config = _bare_config({"token": "t", "prefix": "!", "owner_ids": [42]})
        config.validate()


def test_loads_yaml_from_config_dir(tmp_path):
    (tmp_path / "settings.yaml").write_text(
        "token: from-file\nprefix: '!'\nowner_ids:\n  - 42\n"
    )
    config = Config(config_dir=tmp_path)
    assert config.token == "from-file"
    assert config.prefix == "!"
    assert config.owner_ids == ["42"]


def test_missing_settings_file_gives_empty_settings(tmp_path):
    config = Config(config_dir=tmp_path)
    assert config.settings == {}


def test_env_file_is_loaded(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("DISCORD_TOKEN=dotenv-token\n")
    config = Config(config_dir=tmp_path)
    assert config.token == "dotenv-token"
