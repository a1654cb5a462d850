"""
Tests for whowlang configuration loading.
"""

import logging

import pytest

from whowlang import config as config_module
from whowlang.config import ConfigError, WhowlangConfig, get_config, write_default_config


class TestDefaults:
    """Test built-in defaults."""

    def test_defaults(self):
        """Without files or env vars the defaults apply."""
        config = WhowlangConfig(search_paths=[])
        assert config.to_dict() == {
            "log_level": "WARNING",
            "json_indent": 2,
            "sort_keys": False,
            "output_format": "plain",
            "encodings": ["utf-8-sig", "utf-8", "latin-1"],
            "config_file": None,
        }
        assert config.config_path is None


class TestConfigFiles:
    """Test YAML config files."""

    def test_load_yaml(self, tmp_path):
        """Values from the YAML file override defaults."""
        path = tmp_path / "whowlang.yaml"
        path.write_text("json_indent: 4\noutput_format: typed\nsort_keys: true\n", encoding="utf-8")
        config = WhowlangConfig(path)
        assert config.json_indent == 4
        assert config.output_format == "typed"
        assert config.sort_keys is True
        assert config.config_path == path

    def test_search_paths_first_match(self, tmp_path):
        """The first existing file in the search path wins."""
        first = tmp_path / "first.yaml"
        second = tmp_path / "second.yaml"
        second.write_text("json_indent: 8\n", encoding="utf-8")
        config = WhowlangConfig(search_paths=[first, second])
        assert config.json_indent == 8
        assert config.config_path == second

    def test_local_config_follows_working_directory(self, tmp_path, monkeypatch):
        """The local config file is looked up in the working directory at load time."""
        assert not config_module.LOCAL_CONFIG_PATH.is_absolute()
        monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [config_module.LOCAL_CONFIG_PATH])

        project = tmp_path / "project"
        project.mkdir()
        (project / "whowlang.yaml").write_text("json_indent: 5\n", encoding="utf-8")
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()

        monkeypatch.chdir(project)
        assert WhowlangConfig().json_indent == 5

        monkeypatch.chdir(elsewhere)
        config = WhowlangConfig()
        assert config.json_indent == 2
        assert config.config_path is None

    def test_missing_explicit_file(self, tmp_path):
        """An explicit path that does not exist is an error."""
        with pytest.raises(ConfigError):
            WhowlangConfig(tmp_path / "nope.yaml")

    def test_broken_yaml_warns(self, tmp_path, caplog):
        """Unreadable YAML is skipped with a warning."""
        path = tmp_path / "bad.yaml"
        path.write_text("json_indent: [unclosed\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="whowlang.config"):
            config = WhowlangConfig(search_paths=[path])
        assert config.json_indent == 2
        assert "Failed to load config" in caplog.text

    def test_non_mapping_yaml_ignored(self, tmp_path):
        """A YAML list at the top level is ignored."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        config = WhowlangConfig(search_paths=[path])
        assert config.config_path is None

    def test_write_default_config(self, tmp_path):
        """The written default file loads back to the defaults."""
        path = write_default_config(tmp_path / "sub" / "config.yaml")
        assert path.exists()
        config = WhowlangConfig(path)
        assert config.json_indent == 2
        assert config.encodings == ["utf-8-sig", "utf-8", "latin-1"]
        assert config.output_format == "plain"


class TestValidation:
    """Test value validation."""

    def test_bad_indent(self, tmp_path):
        """Non-integer indentation is rejected."""
        path = tmp_path / "c.yaml"
        path.write_text("json_indent: wide\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            WhowlangConfig(path).json_indent

    def test_negative_indent(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("json_indent: -1\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            WhowlangConfig(path).json_indent

    def test_null_indent(self, tmp_path):
        """null indentation means compact output."""
        path = tmp_path / "c.yaml"
        path.write_text("json_indent: null\n", encoding="utf-8")
        assert WhowlangConfig(path).json_indent is None

    def test_bad_output_format(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("output_format: xml\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            WhowlangConfig(path).output_format

    def test_bad_log_level(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("log_level: chatty\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            WhowlangConfig(path).log_level

    @pytest.mark.parametrize("raw, expected", [
        ("\"false\"", False),
        ("\"No\"", False),
        ("\"0\"", False),
        ("\"TRUE\"", True),
        ("\"yes\"", True),
        ("1", True),
        ("0", False),
    ])
    def test_sort_keys_strings(self, tmp_path, raw, expected):
        """Quoted yes/no style strings are read as booleans, not by truthiness."""
        path = tmp_path / "c.yaml"
        path.write_text(f"sort_keys: {raw}\n", encoding="utf-8")
        assert WhowlangConfig(path).sort_keys is expected

    def test_bad_sort_keys(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("sort_keys: sometimes\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            WhowlangConfig(path).sort_keys

    def test_single_encoding_string(self, tmp_path):
        """A single encoding may be given as a string."""
        path = tmp_path / "c.yaml"
        path.write_text("encodings: latin-1\n", encoding="utf-8")
        assert WhowlangConfig(path).encodings == ["latin-1"]


class TestEnvironment:
    """Test environment variable overrides."""

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Environment variables beat the config file."""
        path = tmp_path / "c.yaml"
        path.write_text("json_indent: 4\nlog_level: ERROR\n", encoding="utf-8")
        monkeypatch.setenv("WHOWLANG_JSON_INDENT", "1")
        monkeypatch.setenv("WHOWLANG_LOG_LEVEL", "debug")
        monkeypatch.setenv("WHOWLANG_ENCODINGS", "utf-8, latin-1")
        config = WhowlangConfig(path)
        assert config.json_indent == 1
        assert config.log_level == "DEBUG"
        assert config.encodings == ["utf-8", "latin-1"]

    def test_env_sort_keys_false(self, monkeypatch):
        """WHOWLANG_SORT_KEYS=false turns sorting off."""
        monkeypatch.setenv("WHOWLANG_SORT_KEYS", "false")
        assert WhowlangConfig(search_paths=[]).sort_keys is False
        monkeypatch.setenv("WHOWLANG_SORT_KEYS", "yes")
        assert WhowlangConfig(search_paths=[]).sort_keys is True

    def test_env_compact_indent(self, monkeypatch):
        monkeypatch.setenv("WHOWLANG_JSON_INDENT", "none")
        assert WhowlangConfig(search_paths=[]).json_indent is None


class TestGlobalConfig:
    """Test the cached global instance."""

    def test_get_config_cached(self):
        """get_config returns the same instance until a path is given."""
        assert get_config() is get_config()

    def test_get_config_reload(self, tmp_path):
        """Passing a path reloads the global config."""
        path = tmp_path / "c.yaml"
        path.write_text("sort_keys: true\n", encoding="utf-8")
        config = get_config(path)
        assert config.sort_keys is True
        assert config_module._config is config
