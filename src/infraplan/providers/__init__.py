"""Resource providers: the APIs that create, update and delete resources."""

from .base import Provider
from .local import LocalProvider
from .http import HttpProvider
from .registry import SUPPORTED_PROVIDERS, get_provider

__all__ = [
    "Provider",
    "LocalProvider",
    "HttpProvider",
    "SUPPORTED_PROVIDERS",
    "get_provider",
]
