# tests/unit/config/test_unit_settings.py — v3
"""Tests for config/settings.py — defaults, YAML loading, local overrides."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from receipt_renamer.config.settings import (
    LOCAL_CONFIG_FILENAME,
    ConfigurationError,
    Settings,
    expand_env_var,
    load_settings,
    read_local_fragment,
    read_yaml_config,
    save_local_fragment,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for var in (
        "ANTHROPIC_API_KEY", "OPENAI_API_KEY", "ANALYZER_PROVIDER",
        "ANALYZER_API_KEY", "ANALYZER_MODEL", "MAX_CONCURRENCY",
        "NAMING_TEMPLATE_FRAGMENT", "CACHE_TTL_DAYS", "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    # Keep a developer's .env out of the tests.
    monkeypatch.chdir(tmp_path)


def _write_yaml(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Defaults and validation
# ---------------------------------------------------------------------------

class TestSettingsDefaults:
    def test_defaults(self):
        s = Settings()
        assert s.max_concurrency == 3
        assert s.cache_enabled is True
        assert s.cache_ttl_days == 0
        assert s.naming_template_fragment == "{{Service}}"
        assert s.target_extension == ".pdf"
        assert s.pattern_history_max_items == 20
        assert s.log_format == "text"

    @pytest.mark.parametrize("value", [0, -4])
    def test_non_positive_concurrency_means_one(self, value):
        assert Settings(max_concurrency=value).max_concurrency == 1

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            Settings(cache_ttl_days=-1)

    def test_extension_normalized(self):
        assert Settings(target_extension="PDF").target_extension == ".PDF"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENCY", "8")
        assert Settings().max_concurrency == 8


# ---------------------------------------------------------------------------
# Analyzer resolution
# ---------------------------------------------------------------------------

class TestResolveAnalyzer:
    def test_anthropic_preferred(self):
        s = Settings(anthropic_api_key="a", openai_api_key="o")
        assert s.resolve_analyzer() == ("anthropic", "claude-sonnet-4-20250514", "a")

    def test_openai_detected(self):
        s = Settings(openai_api_key="o")
        assert s.resolve_analyzer() == ("openai", "gpt-4o", "o")

    def test_explicit_provider_uses_its_key(self):
        s = Settings(analyzer_provider="OpenAI", anthropic_api_key="a", openai_api_key="o")
        assert s.resolve_analyzer()[0::2] == ("openai", "o")

    def test_explicit_key_and_model(self):
        s = Settings(analyzer_provider="anthropic", analyzer_api_key="x", analyzer_model="m")
        assert s.resolve_analyzer() == ("anthropic", "m", "x")

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            Settings().resolve_analyzer()

    def test_compatible_endpoint_needs_no_key(self):
        s = Settings(analyzer_provider="openai", analyzer_base_url="http://localhost:1234/v1")
        assert s.resolve_analyzer() == ("openai", "gpt-4o", "")

    def test_custom_provider_needs_model(self):
        s = Settings(analyzer_provider="acme", analyzer_api_key="k")
        with pytest.raises(ConfigurationError, match="No model"):
            s.resolve_analyzer()


# ---------------------------------------------------------------------------
# YAML config
# ---------------------------------------------------------------------------

class TestYamlConfig:
    def test_flattening(self, tmp_path: Path):
        path = _write_yaml(tmp_path / "config.yaml", {
            "analyzer": {"provider": "openai", "max_workers": 5},
            "cache": {"enabled": False, "ttl_days": 30},
            "naming": {"template_fragment": "paid-{{Service}}"},
            "logging": {"level": "DEBUG"},
        })
        values = read_yaml_config(path)
        assert values == {
            "analyzer_provider": "openai",
            "max_concurrency": 5,
            "cache_enabled": False,
            "cache_ttl_days": 30,
            "naming_template_fragment": "paid-{{Service}}",
            "log_level": "DEBUG",
        }

    def test_env_reference_expanded(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MY_KEY", "secret")
        path = _write_yaml(tmp_path / "c.yaml", {"analyzer": {"api_key": "${MY_KEY}"}})
        assert read_yaml_config(path)["analyzer_api_key"] == "secret"

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("analyzer: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            read_yaml_config(path)

    def test_non_mapping(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            read_yaml_config(path)

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            read_yaml_config(tmp_path / "absent.yaml")

    def test_expand_env_var_passthrough(self):
        assert expand_env_var("plain") == "plain"


# ---------------------------------------------------------------------------
# load_settings() and local overrides
# ---------------------------------------------------------------------------

class TestLoadSettings:
    def test_yaml_beats_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENCY", "8")
        path = _write_yaml(tmp_path / "c.yaml", {"analyzer": {"max_workers": 2}})
        assert load_settings(config_file=path).max_concurrency == 2

    def test_overrides_beat_yaml(self, tmp_path: Path):
        path = _write_yaml(tmp_path / "c.yaml", {"analyzer": {"max_workers": 2}})
        assert load_settings(config_file=path, max_concurrency=6).max_concurrency == 6

    def test_none_overrides_ignored(self, tmp_path: Path):
        path = _write_yaml(tmp_path / "c.yaml", {"analyzer": {"max_workers": 2}})
        assert load_settings(config_file=path, max_concurrency=None).max_concurrency == 2

    def test_local_fragment_applied(self, tmp_path: Path):
        save_local_fragment(tmp_path, "{{Service}}_paid")
        config = _write_yaml(tmp_path / "c.yaml", {"naming": {"template_fragment": "x-{{Service}}"}})
        s = load_settings(config_file=config, directory=tmp_path)
        assert s.naming_template_fragment == "{{Service}}_paid"

    def test_explicit_fragment_beats_local(self, tmp_path: Path):
        save_local_fragment(tmp_path, "{{Service}}_paid")
        config = _write_yaml(tmp_path / "c.yaml", {})
        s = load_settings(config_file=config, directory=tmp_path, naming_template_fragment="cli")
        assert s.naming_template_fragment == "cli"

    def test_invalid_local_fragment_ignored(self, tmp_path: Path):
        _write_yaml(tmp_path / LOCAL_CONFIG_FILENAME, {"naming": {"template_fragment": "{{Bad}}"}})
        config = _write_yaml(tmp_path / "c.yaml", {})
        s = load_settings(config_file=config, directory=tmp_path)
        assert s.naming_template_fragment == "{{Service}}"

    def test_invalid_yaml_value_raises_configuration_error(self, tmp_path: Path):
        config = _write_yaml(tmp_path / "c.yaml", {"cache": {"ttl_days": -1}})
        with pytest.raises(ConfigurationError, match="cache_ttl_days must be >= 0"):
            load_settings(config_file=config)

    def test_invalid_override_raises_configuration_error(self, tmp_path: Path):
        config = _write_yaml(tmp_path / "c.yaml", {})
        with pytest.raises(ConfigurationError, match="target_extension"):
            load_settings(config_file=config, target_extension="  ")


class TestLocalFragmentFile:
    def test_roundtrip_preserves_other_keys(self, tmp_path: Path):
        _write_yaml(tmp_path / LOCAL_CONFIG_FILENAME, {"other": {"keep": True}})
        path = save_local_fragment(tmp_path, "{{Service}}")
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["other"] == {"keep": True}
        assert read_local_fragment(tmp_path) == "{{Service}}"

    def test_missing_file(self, tmp_path: Path):
        assert read_local_fragment(tmp_path) == ""

    def test_unreadable_file(self, tmp_path: Path):
        (tmp_path / LOCAL_CONFIG_FILENAME).write_text("naming: [", encoding="utf-8")
        assert read_local_fragment(tmp_path) == ""
