"""
contentpack configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from contentpack.core.utils.io import iter_yaml_files, read_yaml
from contentpack.core.utils.merge import deep_merge
from contentpack.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "CONTENTPACK_"


class ConfigManager:
    """Load and merge contentpack configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: CONTENTPACK_<SECTION>__<KEY>
    2. Project config: <repo_root>/.contentpack/config/*.yaml (alphabetical order)
    3. Bundled defaults: contentpack.data/config/*.yaml (alphabetical order)

    Environment keys are matched case-insensitively against existing keys, so
    ``CONTENTPACK_IMPORT__AUTOSAVETHRESHOLD=1`` overrides ``import.autoSaveThreshold``.
    """

    ARRAY_APPEND_MARKER = object()

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        from contentpack.core.utils.paths import get_project_config_dir, resolve_project_root

        self.repo_root = repo_root or resolve_project_root()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = get_project_config_dir(self.repo_root) / "config"

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        """Merge all YAML files of ``directory`` into ``cfg``. Invalid YAML raises."""
        for path in iter_yaml_files(directory):
            module_cfg = read_yaml(path, default={}, raise_on_error=True) or {}
            if not isinstance(module_cfg, dict):
                raise ValueError(f"Config file must contain a mapping: {path}")
            cfg = deep_merge(cfg, module_cfg)
        return cfg

    # ---- environment overrides -------------------------------------------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_null(self, v: str) -> Optional[bool]:
        return True if v.strip().lower() in {"null", "none", "~"} else None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        if self._as_null(value):
            return None
        for caster in (self._as_bool, self._as_int, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[Union[str, object]]:
        segs = raw.split("__") if "__" in raw else raw.split("_")
        processed: List[Union[str, object]] = []
        for seg in segs:
            if seg == "":
                return []
            if seg.upper() == "APPEND":
                processed.append(self.ARRAY_APPEND_MARKER)
            else:
                processed.append(seg.lower())
        return processed

    def _iter_env_overrides(self) -> Iterator[Tuple[List[Union[str, object]], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            # PROJECT_ROOT selects the project, it is not a config key.
            if not raw or raw == "PROJECT_ROOT":
                continue
            path = self._parse_env_key(raw)
            if not path:
                logger.warning("Ignoring malformed environment override %s", key)
                continue
            yield path, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, object]], value: Any) -> None:
        cur: Any = root
        for i, part in enumerate(path):
            is_last = i == len(path) - 1
            if part is self.ARRAY_APPEND_MARKER:
                if not is_last or not isinstance(cur, list):
                    raise ValueError("APPEND may only target an existing list")
                cur.append(value)
                return
            if not isinstance(cur, dict):
                raise ValueError("Path traverses non-dict container")
            lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            key = lower_map.get(str(part).lower(), part)
            if is_last:
                cur[key] = value
                return
            nxt = path[i + 1]
            if key not in cur or cur[key] is None:
                cur[key] = [] if nxt is self.ARRAY_APPEND_MARKER else {}
            cur = cur[key]

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            self._set_nested(cfg, path, typed_value)

    # ---- public API ------------------------------------------------------

    def load_config(self) -> Dict[str, Any]:
        """Load the merged configuration (defaults → project → environment)."""
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        self.apply_env_overrides(cfg)
        return cfg


__all__ = ["ConfigManager", "ENV_PREFIX"]
