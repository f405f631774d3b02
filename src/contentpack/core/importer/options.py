"""Options for a single install run."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from contentpack.core.policies import (
    AccessControlHandling,
    DependencyHandling,
    IdConflictPolicy,
    ImportMode,
)

if TYPE_CHECKING:
    from contentpack.core.filter import WorkspaceFilter
    from .listener import ProgressListener


@dataclass
class ImportOptions:
    """Options for a single install run.

    ``filter`` overrides the package's own workspace filter when set.
    ``import_mode`` overrides the mode of every filter root when set;
    otherwise each root keeps its declared mode. ``cug_handling`` of ``None``
    follows ``access_control_handling``. An ``auto_save_threshold`` of
    ``None`` or ``<= 0`` commits once at the end of the run.
    """

    filter: Optional["WorkspaceFilter"] = None
    import_mode: Optional[ImportMode] = None
    id_conflict_policy: IdConflictPolicy = IdConflictPolicy.FAIL
    access_control_handling: AccessControlHandling = AccessControlHandling.IGNORE
    cug_handling: Optional[AccessControlHandling] = None
    dependency_handling: DependencyHandling = DependencyHandling.IGNORE
    auto_save_threshold: Optional[int] = None
    strict: bool = False
    dry_run: bool = False
    overwrite_primary_types_of_folders: bool = True
    listener: Optional["ProgressListener"] = field(default=None, repr=False)

    @property
    def effective_cug_handling(self) -> AccessControlHandling:
        return self.cug_handling if self.cug_handling is not None else self.access_control_handling

    @property
    def batches_commits(self) -> bool:
        return self.auto_save_threshold is not None and self.auto_save_threshold > 0

    def copy(self, **changes: Any) -> "ImportOptions":
        return replace(self, **changes)

    @classmethod
    def from_config(
        cls,
        repo_root: Optional[Path] = None,
        *,
        config: Optional[Dict[str, Any]] = None,
        **overrides: Any,
    ) -> "ImportOptions":
        """Build options from the ``import`` config section, then apply ``overrides``."""
        from contentpack.core.config.domains import ImportConfig

        cfg = ImportConfig(repo_root=repo_root, config=config)
        opts = cls(
            import_mode=cfg.import_mode,
            id_conflict_policy=cfg.id_conflict_policy,
            access_control_handling=cfg.access_control_handling,
            cug_handling=cfg.cug_handling,
            dependency_handling=cfg.dependency_handling,
            auto_save_threshold=cfg.auto_save_threshold,
            strict=cfg.strict,
            dry_run=cfg.dry_run,
            overwrite_primary_types_of_folders=cfg.overwrite_primary_types_of_folders,
        )
        return opts.copy(**overrides) if overrides else opts


__all__ = [
    "ImportMode",
    "IdConflictPolicy",
    "AccessControlHandling",
    "DependencyHandling",
    "ImportOptions",
]
