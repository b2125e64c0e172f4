"""Unit tests for configuration loading."""

import json
from pathlib import Path

import pydantic
import pytest
from structlog.testing import capture_logs

from locale_sync.config import RateLimiting, Settings, find_config, load_config
from locale_sync.config.loader import build_settings, env_overrides
from locale_sync.errors import ConfigurationError


class TestSettings:
    """Test settings defaults and validation."""

    def test_defaults(self):
        """Test the built-in defaults."""
        settings = Settings()

        assert settings.locales_path == "./src/i18n/locales"
        assert settings.default_source_lang == "en"
        assert settings.translation_service == "google-free"
        assert settings.exclude_files == []
        assert settings.rate_limiting == RateLimiting(batch_size=25, delay_between_batches=1000, delay_between_keys=100)

    @pytest.mark.parametrize("values", [
        {"batch_size": 0},
        {"delay_between_batches": -1},
        {"delay_between_keys": "fast"},
    ])
    def test_invalid_rate_limiting(self, values):
        """Test out-of-range or non-numeric throttling values are refused."""
        with pytest.raises(pydantic.ValidationError):
            RateLimiting(**values)

    def test_invalid_fields(self):
        """Test an empty source language or a non-list exclusion is refused."""
        with pytest.raises(pydantic.ValidationError):
            Settings(default_source_lang="")
        with pytest.raises(pydantic.ValidationError):
            Settings(exclude_files="meta.json")

    def test_assignment_is_validated(self):
        """Test later assignments go through the same checks."""
        rate = RateLimiting()

        with pytest.raises(pydantic.ValidationError):
            rate.batch_size = 0

    def test_camel_case_aliases(self):
        """Test camelCase keys populate the snake_case fields."""
        settings = Settings.model_validate({
            "localesPath": "i18n",
            "rateLimiting": {"batchSize": 3, "delayBetweenKeys": 0},
        })

        assert settings.locales_path == "i18n"
        assert settings.rate_limiting.batch_size == 3
        assert settings.rate_limiting.delay_between_keys == 0

    def test_unknown_keys_ignored_and_logged(self):
        """Test keys such as filePattern are dropped with a debug entry."""
        with capture_logs() as logs:
            settings = Settings.model_validate({"filePattern": "{lang}.json", "localesPath": "i18n"})

        assert settings.locales_path == "i18n"
        assert logs[0]["event"] == "Ignoring unknown config keys"
        assert logs[0]["keys"] == ["filePattern"]

    def test_resolve_relative_path(self, temp_dir):
        """Test relative locale paths resolve against the given base."""
        settings = Settings(locales_path="locales")

        assert settings.resolve_locales_path(temp_dir) == (temp_dir / "locales").resolve()

    def test_resolve_absolute_path(self, temp_dir):
        """Test absolute locale paths ignore the base."""
        settings = Settings(locales_path=str(temp_dir))

        assert settings.resolve_locales_path(Path("/elsewhere")) == temp_dir.resolve()


class TestConfigFiles:
    """Test reading JSON and YAML config files."""

    def test_find_config_order(self, temp_dir):
        """Test candidate files are tried in priority order."""
        (temp_dir / "translation.config.json").write_text("{}")
        (temp_dir / "i18n.config.yaml").write_text("{}")

        assert find_config(temp_dir) == temp_dir / "i18n.config.yaml"

    def test_find_config_none(self, temp_dir):
        """Test no candidate yields None."""
        assert find_config(temp_dir) is None

    def test_json_camel_case(self, temp_dir):
        """Test a camelCase JSON file with an unknown key."""
        path = temp_dir / "i18n.config.json"
        path.write_text(json.dumps({
            "localesPath": "./locales",
            "defaultSourceLang": "uk",
            "filePattern": "{lang}.json",
            "excludeFiles": ["meta.json"],
            "rateLimiting": {"batchSize": 10, "delayBetweenBatches": 250},
        }))

        settings = load_config(config_file=path, environ={})

        assert settings.locales_path == "./locales"
        assert settings.default_source_lang == "uk"
        assert settings.exclude_files == ["meta.json"]
        assert settings.rate_limiting.batch_size == 10
        assert settings.rate_limiting.delay_between_batches == 250
        assert settings.rate_limiting.delay_between_keys == 100

    def test_yaml_snake_case(self, temp_dir):
        """Test a snake_case YAML file found by directory search."""
        (temp_dir / "i18n.config.yml").write_text(
            "locales_path: i18n\n"
            "rate_limiting:\n"
            "  batch_size: 5\n"
        )

        settings = load_config(directory=temp_dir, environ={})

        assert settings.locales_path == "i18n"
        assert settings.rate_limiting.batch_size == 5

    def test_no_file_uses_defaults(self, temp_dir):
        """Test defaults apply without a config file."""
        assert load_config(directory=temp_dir, environ={}) == Settings()

    def test_missing_explicit_file(self, temp_dir):
        """Test an explicit path that does not exist is an error."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file=temp_dir / "nope.json", environ={})

        assert exc_info.value.context["config_key"] == "config_file"

    def test_unparsable_file(self, temp_dir):
        """Test broken JSON is a configuration error."""
        path = temp_dir / "i18n.config.json"
        path.write_text("{oops")

        with pytest.raises(ConfigurationError):
            load_config(config_file=path, environ={})

    def test_non_mapping_file(self, temp_dir):
        """Test a YAML list at the top level is refused."""
        path = temp_dir / "i18n.config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_config(config_file=path, environ={})

    def test_invalid_values_rejected(self, temp_dir):
        """Test a validation failure names the offending key in snake_case."""
        path = temp_dir / "i18n.config.json"
        path.write_text(json.dumps({"rateLimiting": {"batchSize": -3}}))

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file=path, environ={})

        assert exc_info.value.context["config_key"] == "rate_limiting.batch_size"
        assert isinstance(exc_info.value.__cause__, pydantic.ValidationError)

    def test_rate_limiting_must_be_mapping(self):
        """Test a scalar rate limiting section is refused."""
        with pytest.raises(ConfigurationError) as exc_info:
            build_settings({"rateLimiting": 5})

        assert exc_info.value.context["config_key"] == "rate_limiting"


class TestEnvironmentOverrides:
    """Test LOCALE_SYNC_* variables."""

    def test_overrides_collected(self):
        """Test each variable lands at its field path."""
        overrides = env_overrides({
            "LOCALE_SYNC_LOCALES_PATH": "/srv/locales",
            "LOCALE_SYNC_SOURCE_LANG": "de",
            "LOCALE_SYNC_BATCH_SIZE": "7",
            "LOCALE_SYNC_BATCH_DELAY_MS": "0",
            "UNRELATED": "x",
        })

        assert overrides == {
            "locales_path": "/srv/locales",
            "default_source_lang": "de",
            "rate_limiting": {"batch_size": "7", "delay_between_batches": "0"},
        }

    def test_overrides_applied(self, temp_dir):
        """Test string values are coerced by validation."""
        settings = load_config(directory=temp_dir, environ={
            "LOCALE_SYNC_BATCH_SIZE": "7",
            "LOCALE_SYNC_BATCH_DELAY_MS": "0",
        })

        assert settings.rate_limiting.batch_size == 7
        assert settings.rate_limiting.delay_between_batches == 0
        assert settings.rate_limiting.delay_between_keys == 100

    def test_env_beats_file(self, temp_dir):
        """Test environment values win over the config file."""
        path = temp_dir / "i18n.config.json"
        path.write_text(json.dumps({
            "defaultSourceLang": "uk",
            "rateLimiting": {"batchSize": 10, "delayBetweenKeys": 5},
        }))

        settings = load_config(config_file=path, environ={
            "LOCALE_SYNC_SOURCE_LANG": "pl",
            "LOCALE_SYNC_BATCH_SIZE": "3",
        })

        assert settings.default_source_lang == "pl"
        assert settings.rate_limiting.batch_size == 3
        assert settings.rate_limiting.delay_between_keys == 5

    def test_empty_values_ignored(self):
        """Test empty variables do not override anything."""
        assert env_overrides({"LOCALE_SYNC_SOURCE_LANG": ""}) == {}

    def test_bad_integer(self, temp_dir):
        """Test a non-numeric batch size names its field."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(directory=temp_dir, environ={"LOCALE_SYNC_BATCH_SIZE": "many"})

        assert exc_info.value.context["config_key"] == "rate_limiting.batch_size"
