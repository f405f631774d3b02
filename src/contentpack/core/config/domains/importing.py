"""Domain-specific configuration for package installs.

Reads the ``import`` section (defaults for ``ImportOptions``) and the
``registry`` section (location of the persisted package registry).
"""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Optional

from ..base import BaseDomainConfig


class ImportConfig(BaseDomainConfig):
    """Typed access to the ``import`` section.

    Usage:
        cfg = ImportConfig(repo_root=Path("/path/to/project"))
        cfg.auto_save_threshold  # 1024
    """

    def _config_section(self) -> str:
        return "import"

    @cached_property
    def import_mode(self):
        from contentpack.core.policies import ImportMode

        raw = self.section.get("mode")
        return ImportMode.from_string(raw) if raw else None

    @cached_property
    def id_conflict_policy(self):
        from contentpack.core.policies import IdConflictPolicy

        return IdConflictPolicy.from_string(self.section.get("idConflictPolicy") or "fail")

    @cached_property
    def access_control_handling(self):
        from contentpack.core.policies import AccessControlHandling

        return AccessControlHandling.from_string(self.section.get("accessControlHandling") or "ignore")

    @cached_property
    def cug_handling(self):
        from contentpack.core.policies import AccessControlHandling

        raw = self.section.get("cugHandling")
        return AccessControlHandling.from_string(raw) if raw else None

    @cached_property
    def dependency_handling(self):
        from contentpack.core.policies import DependencyHandling

        return DependencyHandling.from_string(self.section.get("dependencyHandling") or "ignore")

    @cached_property
    def auto_save_threshold(self) -> Optional[int]:
        raw = self.section.get("autoSaveThreshold")
        if raw is None:
            return None
        value = int(raw)
        return value if value > 0 else None

    @cached_property
    def strict(self) -> bool:
        return bool(self.section.get("strict", False))

    @cached_property
    def dry_run(self) -> bool:
        return bool(self.section.get("dryRun", False))

    @cached_property
    def overwrite_primary_types_of_folders(self) -> bool:
        return bool(self.section.get("overwritePrimaryTypesOfFolders", True))


class RegistryConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "registry"

    @cached_property
    def path(self) -> Path:
        from contentpack.core.utils.paths import resolve_relative

        raw = str(self.section.get("path") or ".contentpack/registry.yaml")
        return resolve_relative(self.repo_root, raw)


__all__ = ["ImportConfig", "RegistryConfig"]
