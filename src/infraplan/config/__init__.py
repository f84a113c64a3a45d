"""Configuration module: load and validate infraplan settings."""

from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import ValidationError
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config, _deep_merge
from .paths import get_user_config_path, get_project_config_path
from .settings import Settings, RetrySettings, ProviderSettings

logger = get_logger("config")


def load_settings(config_path: Optional[str] = None,
                  overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Load layered configuration and validate it.

    Args:
        config_path: Optional explicit config file (--config)
        overrides: Values from CLI flags; None entries are ignored

    Returns:
        Validated Settings

    Raises:
        ConfigError: If a file cannot be read or a value is invalid
    """
    config = load_config(Path(config_path) if config_path else None)
    if overrides:
        _deep_merge(config, _drop_none(overrides))

    try:
        settings = Settings(**config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")

    logger.debug(
        f"Settings: parallelism={settings.parallelism}, provider={settings.provider.name}, "
        f"state_path={settings.state_path}"
    )
    return settings


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key, value in values.items():
        if isinstance(value, dict):
            value = _drop_none(value)
            if value:
                cleaned[key] = value
        elif value is not None:
            cleaned[key] = value
    return cleaned


__all__ = [
    "Settings",
    "RetrySettings",
    "ProviderSettings",
    "load_settings",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]
