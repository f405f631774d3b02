"""Project path resolution.

Resolution priority for the project root:
1. ``CONTENTPACK_PROJECT_ROOT`` environment variable
2. The current working directory
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

PROJECT_ROOT_ENV = "CONTENTPACK_PROJECT_ROOT"
PROJECT_CONFIG_DIR = ".contentpack"


class ProjectPathError(ValueError):
    """Raised when path resolution fails."""


def resolve_project_root() -> Path:
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        path = Path(env_root).expanduser().resolve()
        if not path.exists():
            raise ProjectPathError(f"{PROJECT_ROOT_ENV} points at missing path: {path}")
        return path
    return Path.cwd().resolve()


def get_project_config_dir(repo_root: Optional[Path] = None, create: bool = False) -> Path:
    """Return ``<repo_root>/.contentpack``, optionally creating it."""
    from contentpack.core.utils.io import ensure_directory

    root = repo_root or resolve_project_root()
    project_dir = root / PROJECT_CONFIG_DIR
    if create:
        ensure_directory(project_dir)
    return project_dir


def resolve_relative(repo_root: Path, value: str) -> Path:
    """Resolve ``value`` against ``repo_root`` unless it is already absolute."""
    p = Path(value).expanduser()
    if not p.is_absolute():
        p = repo_root / p
    return p.resolve()


__all__ = [
    "PROJECT_ROOT_ENV",
    "PROJECT_CONFIG_DIR",
    "ProjectPathError",
    "resolve_project_root",
    "get_project_config_dir",
    "resolve_relative",
]
