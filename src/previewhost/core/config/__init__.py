"""Layered YAML configuration for previewhost."""

from .base import BaseDomainConfig
from .domains import LoggingConfig
from .manager import ENV_PREFIX, ConfigManager, clear_all_caches

__all__ = [
    "BaseDomainConfig",
    "ConfigManager",
    "ENV_PREFIX",
    "LoggingConfig",
    "clear_all_caches",
]
