# src/analyzer/analyzer_factory.py — v1
"""Factory: instantiate the receipt analyzer from settings.

Backends are registered by provider name and imported lazily so that an
unused provider's SDK never has to be importable.
"""

from __future__ import annotations

import importlib
import logging

from receipt_renamer.analyzer.base_analyzer import BaseAnalyzer
from receipt_renamer.config.settings import Settings

logger = logging.getLogger(__name__)

# Registry of provider name → analyzer class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "receipt_renamer.analyzer.adapters.anthropic_adapter.AnthropicAnalyzer",
    "openai": "receipt_renamer.analyzer.adapters.openai_adapter.OpenAIAnalyzer",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_analyzer(settings: Settings) -> BaseAnalyzer:
    """Instantiate the configured analyzer.

    Args:
        settings: Application settings (provider, model, keys, endpoint).

    Returns:
        Configured BaseAnalyzer instance.

    Raises:
        ConfigurationError: If no API key is available.
        UnsupportedProviderError: If the provider is not registered.
    """
    provider, model, api_key = settings.resolve_analyzer()
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported analyzer provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    analyzer_cls = _import_class(_PROVIDER_REGISTRY[provider])
    kwargs: dict[str, object] = {
        "model": model,
        "api_key": api_key,
        "max_tokens": settings.analyzer_max_tokens,
    }
    if provider == "openai" and settings.analyzer_base_url:
        kwargs["base_url"] = settings.analyzer_base_url

    logger.debug("Creating analyzer: provider=%s, model=%s", provider, model)
    return analyzer_cls(**kwargs)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom analyzer backend.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseAnalyzer.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered analyzer provider: %s → %s", name, class_path)


def available_providers() -> list[str]:
    return sorted(_PROVIDER_REGISTRY)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
