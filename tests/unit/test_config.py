"""Unit tests for release configuration loading."""

import pytest
import yaml

from unshackle.config import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_START_MESSAGE,
    UnshackleConfig,
    get_config_path,
    load_config,
    save_config,
    unset_config,
)


@pytest.mark.cli_unit
class TestLoadConfig:
    """Tests for config precedence and sources."""

    def test_defaults(self):
        config = load_config()

        assert config.resume_from is None
        assert config.log_level == DEFAULT_LOG_LEVEL
        assert config.start_message == DEFAULT_START_MESSAGE
        assert config.shell is None
        assert config.get_source("log_level") == "default"

    def test_config_file(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("log_level: debug\nstart_message: Shipping 2.0\n")

        config = load_config()

        assert config.log_level == "debug"
        assert config.start_message == "Shipping 2.0"
        assert config.get_source("start_message") == "config file"
        assert config.get_source("resume_from") == "default"

    def test_environment_overrides_file(self, monkeypatch):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("resume_from: build\n")
        monkeypatch.setenv("UNSHACKLE_FROM", "publish")

        config = load_config()

        assert config.resume_from == "publish"
        assert config.get_source("resume_from") == "environment"

    def test_broken_config_file_is_ignored(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("log_level: [unterminated\n")

        config = load_config()

        assert config.log_level == DEFAULT_LOG_LEVEL

    def test_non_mapping_config_file_is_ignored(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("- just\n- a list\n")

        assert load_config().log_level == DEFAULT_LOG_LEVEL


@pytest.mark.cli_unit
class TestUnshackleConfig:
    def test_set_value_tracks_source(self):
        config = UnshackleConfig()

        config.set_value("resume_from", "tag", "command line")

        assert config.resume_from == "tag"
        assert config.get_source("resume_from") == "command line"

    def test_set_unknown_key(self):
        with pytest.raises(KeyError):
            UnshackleConfig().set_value("colour", "blue", "command line")

    def test_to_dict(self):
        assert UnshackleConfig(shell="/bin/bash").to_dict() == {
            "resume_from": None,
            "log_level": DEFAULT_LOG_LEVEL,
            "start_message": DEFAULT_START_MESSAGE,
            "shell": "/bin/bash",
        }


@pytest.mark.cli_unit
class TestSaveConfig:
    def test_save_creates_file(self):
        save_config("resume_from", "publish")

        assert yaml.safe_load(get_config_path().read_text()) == {"resume_from": "publish"}

    def test_save_keeps_other_keys(self):
        save_config("resume_from", "publish")
        save_config("log_level", "info")

        assert yaml.safe_load(get_config_path().read_text()) == {
            "resume_from": "publish",
            "log_level": "info",
        }

    def test_unset(self):
        save_config("resume_from", "publish")

        assert unset_config("resume_from") is True
        assert unset_config("resume_from") is False
        assert load_config().resume_from is None

    def test_unset_without_file(self):
        assert unset_config("shell") is False
