"""Layered configuration: bundled defaults, project YAML, environment overrides."""
from __future__ import annotations

from .base import BaseDomainConfig
from .cache import clear_all_caches, get_cached_config
from .manager import ConfigManager

__all__ = [
    "BaseDomainConfig",
    "ConfigManager",
    "get_cached_config",
    "clear_all_caches",
]
