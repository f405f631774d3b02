"""Domain-specific configuration for stdlib logging.

Controls whether contentpack installs a file handler on the root logger,
at which level, and where the log file lives.
"""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Optional

from ..base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def stdlib_enabled(self) -> bool:
        std = self.section.get("stdlib") or {}
        return bool(std.get("enabled", False))

    @cached_property
    def stdlib_level(self) -> str:
        std = self.section.get("stdlib") or {}
        return str(std.get("level", "INFO") or "INFO")

    @cached_property
    def stdlib_path_template(self) -> str:
        std = self.section.get("stdlib") or {}
        return str(std.get("path", "") or "")

    def resolve_stdlib_log_path(self) -> Optional[Path]:
        if not (self.stdlib_enabled and self.stdlib_path_template):
            return None
        from contentpack.core.utils.paths import resolve_relative

        return resolve_relative(self.repo_root, self.stdlib_path_template)


__all__ = ["LoggingConfig"]
