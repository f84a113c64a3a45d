"""Declarative registry of resource providers."""

from typing import Optional
from .base import Provider
from .http import HttpProvider
from .local import LocalProvider
from ..config.settings import ProviderSettings
from ..registry.registry import SchemaRegistry
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("providers.registry")

SUPPORTED_PROVIDERS = {
    "local": {
        "class": LocalProvider,
        "description": "In-memory simulated cloud; state-only dry runs",
        "requires": [],
    },
    "http": {
        "class": HttpProvider,
        "description": "REST resource API reached with requests",
        "requires": ["base_url"],
    },
}


def get_provider(settings: ProviderSettings, registry: Optional[SchemaRegistry] = None) -> Provider:
    """
    Instantiate the configured provider.

    Args:
        settings: Provider section of the configuration
        registry: Schema registry (used by the local provider for outputs)

    Returns:
        Provider instance

    Raises:
        ConfigError: If the provider is unknown or misconfigured
    """
    entry = SUPPORTED_PROVIDERS.get(settings.name)
    if entry is None:
        raise ConfigError(
            f"Unknown provider '{settings.name}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_PROVIDERS))}"
        )

    missing = [key for key in entry["requires"] if not getattr(settings, key)]
    if missing:
        raise ConfigError(f"Provider '{settings.name}' requires: {', '.join(missing)}")

    if settings.name == "http":
        provider = HttpProvider(base_url=settings.base_url, default_timeout=settings.timeout)
    else:
        provider = LocalProvider(registry=registry)

    logger.debug(f"Using provider '{settings.name}'")
    return provider
