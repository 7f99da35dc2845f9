"""Tests for hierarchical configuration lookup."""

import json
import os

import pytest

from servicekit.core.config import Configuration, ConfigurationError


class TestConfigurationLookup:
    def test_nested_mapping_flattens_to_colon_keys(self, configuration):
        assert configuration.get_value("CorsPolicy:Methods") == "GET, POST"

    def test_lookup_is_case_insensitive(self, configuration):
        assert configuration.get_value("corspolicy:methods") == "GET, POST"

    def test_missing_key_returns_default(self, configuration):
        assert configuration.get_value("CorsPolicy:Missing") is None
        assert configuration.get_value("CorsPolicy:Missing", "x") == "x"

    def test_lists_flatten_with_indexes(self):
        config = Configuration.from_mapping({"Hosts": ["a", "b"]})
        assert config.get_value("Hosts:1") == "b"

    def test_get_section(self, configuration):
        section = configuration.get_section("CorsPolicy")
        assert section.get_value("Methods") == "GET, POST"
        assert len(section) == 2

    def test_typed_values(self):
        config = Configuration({"Flag": "Yes", "Port": " 9000 ", "Native": True})
        assert config.get_bool("Flag") is True
        assert config.get_bool("Native") is True
        assert config.get_bool("Missing", True) is True
        assert config.get_int("Port") == 9000
        assert config.get_int("Missing", 8080) == 8080

    def test_invalid_typed_values_raise(self):
        config = Configuration({"Flag": "maybe", "Port": "eighty"})
        with pytest.raises(ConfigurationError):
            config.get_bool("Flag")
        with pytest.raises(ConfigurationError):
            config.get_int("Port")


class TestConfigurationSources:
    def test_from_env_translates_double_underscore(self):
        config = Configuration.from_env(environ={"CorsPolicy__Origins": "https://a.com"})
        assert config.get_value("CorsPolicy:Origins") == "https://a.com"

    def test_from_env_with_prefix(self):
        environ = {"APP_CorsPolicy__Methods": "GET", "CorsPolicy__Methods": "PUT"}
        config = Configuration.from_env(prefix="APP_", environ=environ)
        assert config.get_value("CorsPolicy:Methods") == "GET"
        assert len(config) == 1

    def test_from_env_loads_dotenv_file(self, tmp_path):
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text("SERVICEKIT_TEST_CorsPolicy__Methods=DELETE\n")

        try:
            config = Configuration.from_env(prefix="SERVICEKIT_TEST_", dotenv_path=dotenv_file)
        finally:
            os.environ.pop("SERVICEKIT_TEST_CorsPolicy__Methods", None)

        assert config.get_value("CorsPolicy:Methods") == "DELETE"

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "appsettings.json"
        path.write_text(json.dumps({"CorsPolicy": {"Origins": "https://a.com"}}))
        config = Configuration.from_json_file(path)
        assert config.get_value("CorsPolicy:Origins") == "https://a.com"

    def test_from_json_file_rejects_non_object(self, tmp_path):
        path = tmp_path / "appsettings.json"
        path.write_text("[]")
        with pytest.raises(ConfigurationError):
            Configuration.from_json_file(path)

    def test_merged_later_sources_win(self):
        base = Configuration.from_mapping({"CorsPolicy": {"Origins": "https://a.com", "Methods": "GET"}})
        override = Configuration.from_env(environ={"CORSPOLICY__ORIGINS": "https://b.com"})
        config = Configuration.merged(base, override)
        assert config.get_value("CorsPolicy:Origins") == "https://b.com"
        assert config.get_value("CorsPolicy:Methods") == "GET"
