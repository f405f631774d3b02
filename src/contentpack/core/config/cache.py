"""Centralized configuration caching.

Provides a single source of truth for loaded configuration across all domain
configs. Cache keys include the project root and a fingerprint of the
``CONTENTPACK_*`` environment so overrides set by tests or long-running
processes are picked up.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional

_config_cache: Dict[str, Dict[str, Any]] = {}


def _normalize_repo_root(repo_root: Optional[Path]) -> Path:
    if repo_root is None:
        from contentpack.core.utils.paths import resolve_project_root

        return resolve_project_root()
    return Path(repo_root).expanduser().resolve()


def _cache_key(repo_root: Optional[Path]) -> str:
    base = str(_normalize_repo_root(repo_root))
    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith("CONTENTPACK_")
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]

    from contentpack.core.utils.io import iter_yaml_files
    from contentpack.core.utils.paths import get_project_config_dir

    files: list[tuple[str, int, int]] = []
    for p in iter_yaml_files(get_project_config_dir(Path(base)) / "config"):
        st = p.stat()
        files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
    files_fp = hashlib.sha256(repr(files).encode("utf-8")).hexdigest()[:12]
    return f"{base}:{env_fp}:{files_fp}"


def get_cached_config(repo_root: Optional[Path] = None) -> Dict[str, Any]:
    """Get cached configuration, loading it on first access.

    Returns:
        Configuration dict (shared; do not mutate).
    """
    key = _cache_key(repo_root)
    if key not in _config_cache:
        from .manager import ConfigManager

        manager = ConfigManager(repo_root=_normalize_repo_root(repo_root))
        _config_cache[key] = manager.load_config()
    return _config_cache[key]


def clear_all_caches() -> None:
    """Clear all configuration caches (useful for tests)."""
    _config_cache.clear()
    from contentpack.data import clear_caches

    clear_caches()


__all__ = ["get_cached_config", "clear_all_caches"]
