"""Domain-specific configuration accessors."""
from __future__ import annotations

from .importing import ImportConfig, RegistryConfig
from .logging import LoggingConfig

__all__ = ["ImportConfig", "RegistryConfig", "LoggingConfig"]
