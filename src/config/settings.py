# src/config/settings.py — v2
"""Typed configuration loaded from environment, .env and YAML.

Resolution order (highest first):
  1. Explicit overrides passed to load_settings()
  2. Per-directory local file (.receipt-renamer.yaml, template fragment only)
  3. Global YAML file (~/.config/receipt-renamer/config.yaml)
  4. Environment variables and .env
  5. Field defaults
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/receipt-renamer/config.yaml")
LOCAL_CONFIG_FILENAME = ".receipt-renamer.yaml"

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
}

# YAML section/key -> Settings field.
_YAML_KEYS: dict[tuple[str, str], str] = {
    ("analyzer", "provider"): "analyzer_provider",
    ("analyzer", "model"): "analyzer_model",
    ("analyzer", "base_url"): "analyzer_base_url",
    ("analyzer", "api_key"): "analyzer_api_key",
    ("analyzer", "max_workers"): "max_concurrency",
    ("cache", "enabled"): "cache_enabled",
    ("cache", "ttl_days"): "cache_ttl_days",
    ("cache", "root"): "cache_root",
    ("naming", "template_fragment"): "naming_template_fragment",
    ("naming", "target_extension"): "target_extension",
    ("logging", "level"): "log_level",
    ("logging", "format"): "log_format",
    ("logging", "file"): "log_file",
}


class ConfigurationError(Exception):
    """Raised when configuration is missing or internally inconsistent."""


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Analyzer ===
    analyzer_provider: str = ""
    analyzer_model: str = ""
    analyzer_base_url: str = ""
    analyzer_api_key: str = ""
    analyzer_max_tokens: int = 1024
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # === Worker pool ===
    max_concurrency: int = 3

    # === Cache ===
    cache_enabled: bool = True
    cache_ttl_days: int = 0
    cache_root: Path = Path("~/.cache/receipt-renamer/analysis")

    # === Naming ===
    naming_template_fragment: str = "{{Service}}"
    target_extension: str = ".pdf"
    pattern_history_file: Path = Path(
        "~/.config/receipt-renamer/service_pattern_history.json"
    )
    pattern_history_max_items: int = 20

    # === Run ===
    dry_run: bool = False

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("max_concurrency")
    @classmethod
    def clamp_concurrency(cls, v: int) -> int:  # noqa: N805
        """Non-positive worker counts mean one worker."""
        return max(1, v)

    @field_validator("cache_ttl_days")
    @classmethod
    def validate_ttl(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("cache_ttl_days must be >= 0")
        return v

    @field_validator("target_extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:  # noqa: N805
        v = v.strip()
        if not v:
            raise ValueError("target_extension must not be empty")
        return v if v.startswith(".") else f".{v}"

    @field_validator("analyzer_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:  # noqa: N805
        return v.strip().lower()

    # --- Helpers ---

    def resolve_analyzer(self) -> tuple[str, str, str]:
        """Resolve (provider, model, api_key) for the analyzer.

        An explicit analyzer_api_key wins; otherwise the provider's own key
        is used, and with no provider configured ANTHROPIC_API_KEY is tried
        before OPENAI_API_KEY.

        Raises:
            ConfigurationError: If no API key can be found.
        """
        provider = self.analyzer_provider
        api_key = self.analyzer_api_key

        if not api_key:
            if provider:
                api_key = self._provider_key(provider)
            elif self.anthropic_api_key:
                provider, api_key = "anthropic", self.anthropic_api_key
            elif self.openai_api_key:
                provider, api_key = "openai", self.openai_api_key

        if not provider:
            provider = "anthropic"

        if not api_key and not (provider == "openai" and self.analyzer_base_url):
            raise ConfigurationError(
                "No API key found: set ANTHROPIC_API_KEY or OPENAI_API_KEY, "
                "or analyzer.api_key in the config file"
            )

        model = self.analyzer_model or DEFAULT_MODELS.get(provider, "")
        if not model:
            raise ConfigurationError(
                f"No model configured for analyzer provider {provider!r}"
            )
        return provider, model, api_key

    def _provider_key(self, provider: str) -> str:
        if provider == "anthropic":
            return self.anthropic_api_key
        if provider == "openai":
            return self.openai_api_key
        return ""

    def with_local_overrides(self, directory: Path) -> Settings:
        """Return settings with the directory's local fragment applied.

        An invalid fragment in the local file is logged and ignored.
        """
        from receipt_renamer.naming.template import (
            TemplateSyntaxError,
            build_full_template,
            parse_template,
        )

        fragment = read_local_fragment(directory)
        if not fragment:
            return self
        try:
            parse_template(build_full_template(fragment))
        except TemplateSyntaxError as e:
            logger.warning(
                "Invalid template fragment in %s: %s (using configured fragment)",
                Path(directory) / LOCAL_CONFIG_FILENAME, e,
            )
            return self
        return self.model_copy(update={"naming_template_fragment": fragment})


def load_settings(
    config_file: Path | str | None = None,
    directory: Path | str | None = None,
    **overrides: Any,
) -> Settings:
    """Load settings from env/.env, the YAML config file and overrides.

    Args:
        config_file: YAML config path. Defaults to DEFAULT_CONFIG_PATH if
            that file exists.
        directory: Working directory whose local override file is applied.
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the YAML file cannot be read or a value
            fails validation.
    """
    values = read_yaml_config(config_file)
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
    if directory is not None and overrides.get("naming_template_fragment") is None:
        settings = settings.with_local_overrides(Path(directory))
    return settings


def read_yaml_config(config_file: Path | str | None = None) -> dict[str, Any]:
    """Read and flatten the YAML config file into Settings field values."""
    if config_file is None:
        path = DEFAULT_CONFIG_PATH.expanduser()
        if not path.is_file():
            return {}
    else:
        path = Path(config_file).expanduser()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    values: dict[str, Any] = {}
    for (section, key), field_name in _YAML_KEYS.items():
        block = data.get(section)
        if isinstance(block, dict) and block.get(key) not in (None, ""):
            values[field_name] = block[key]

    for field_name in ("analyzer_api_key", "analyzer_base_url"):
        if field_name in values:
            values[field_name] = expand_env_var(str(values[field_name]))
    return values


def expand_env_var(value: str) -> str:
    """Expand a whole-value ${VAR} reference from the environment."""
    if value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    return value


def read_local_fragment(directory: Path) -> str:
    """Return naming.template_fragment from the directory's local file, or ''."""
    path = Path(directory) / LOCAL_CONFIG_FILENAME
    if not path.is_file():
        return ""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load local config %s: %s", path, e)
        return ""
    naming = data.get("naming") if isinstance(data, dict) else None
    if not isinstance(naming, dict):
        return ""
    return str(naming.get("template_fragment") or "")


def save_local_fragment(directory: Path, fragment: str) -> Path:
    """Persist a template fragment to the directory's local override file.

    Other keys already present in the file are preserved.
    """
    path = Path(directory) / LOCAL_CONFIG_FILENAME
    data: dict[str, Any] = {}
    if path.is_file():
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                data = loaded
        except yaml.YAMLError:
            logger.warning("Overwriting unreadable local config %s", path)

    naming = data.get("naming")
    if not isinstance(naming, dict):
        naming = {}
    naming["template_fragment"] = fragment
    data["naming"] = naming

    header = (
        "# Local overrides for receipt-renamer\n"
        f"# Takes precedence over {DEFAULT_CONFIG_PATH}\n\n"
    )
    path.write_text(
        header + yaml.safe_dump(data, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    return path
