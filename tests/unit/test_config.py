"""
Unit tests for configuration.

Tests EngineConfig environment handling and ConnectOptions parsing.
"""

import pytest

from jsondb_engine.config import ConnectOptions, EngineConfig
from jsondb_engine.exceptions import ConfigurationError


@pytest.mark.unit
class TestEngineConfig:
    """Test EngineConfig defaults and environment variables."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.data_dir == "data"
        assert config.write_sync is True
        assert config.indent_space == 2
        config.validate()

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("JSONDB_DATA_DIR", "/srv/jsondb")
        monkeypatch.setenv("JSONDB_WRITE_SYNC", "false")
        monkeypatch.setenv("JSONDB_INDENT_SPACE", "4")

        config = EngineConfig()

        assert config.data_dir == "/srv/jsondb"
        assert config.write_sync is False
        assert config.indent_space == 4

    def test_direct_parameters_override_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JSONDB_WRITE_SYNC", "false")
        config = EngineConfig(data_dir=tmp_path, write_sync=True, indent_space=0)
        assert config.data_dir == str(tmp_path)
        assert config.write_sync is True
        assert config.indent_space == 0

    def test_invalid_boolean_environment(self, monkeypatch):
        monkeypatch.setenv("JSONDB_WRITE_SYNC", "sometimes")
        with pytest.raises(ConfigurationError, match="JSONDB_WRITE_SYNC"):
            EngineConfig()

    def test_invalid_integer_environment(self, monkeypatch):
        monkeypatch.setenv("JSONDB_INDENT_SPACE", "two")
        with pytest.raises(ConfigurationError, match="must be an integer"):
            EngineConfig()

    @pytest.mark.parametrize("indent", [-1, 11])
    def test_validate_indent_range(self, indent):
        with pytest.raises(ConfigurationError, match="indent_space"):
            EngineConfig(indent_space=indent).validate()

    def test_default_connect_options(self):
        options = EngineConfig(write_sync=False, indent_space=4).default_connect_options()
        assert options == ConnectOptions(write_sync=False, indent_space=4)


@pytest.mark.unit
class TestConnectOptions:
    """Test ConnectOptions parsing."""

    def test_defaults(self):
        options = ConnectOptions()
        assert options.write_sync is True
        assert options.indent_space == 2

    def test_camel_case_aliases(self):
        options = ConnectOptions.parse({"writeSync": False, "indentSpace": 4})
        assert options.write_sync is False
        assert options.indent_space == 4

    def test_snake_case_names(self):
        options = ConnectOptions.parse({"write_sync": False})
        assert options.write_sync is False
        assert options.indent_space == 2

    def test_none_returns_defaults(self):
        defaults = ConnectOptions(write_sync=False, indent_space=3)
        assert ConnectOptions.parse(None, defaults) is defaults

    def test_unset_values_come_from_defaults(self):
        defaults = ConnectOptions(write_sync=False, indent_space=3)
        options = ConnectOptions.parse({"indentSpace": 1}, defaults)
        assert options.write_sync is False
        assert options.indent_space == 1

    def test_instance_passes_through(self):
        options = ConnectOptions(indent_space=0)
        assert ConnectOptions.parse(options) is options

    @pytest.mark.parametrize(
        "raw",
        [
            {"writeSync": "yes"},
            {"indentSpace": "2"},
            {"indentSpace": -1},
            {"indentSpace": 99},
            {"unknown": True},
        ],
    )
    def test_invalid_options(self, raw):
        with pytest.raises(ConfigurationError, match="Invalid connect option"):
            ConnectOptions.parse(raw)

    def test_non_mapping_options(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            ConnectOptions.parse([("writeSync", True)])
