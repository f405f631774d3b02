"""I/O utilities for writing test files.

All functions create parent directories automatically if they don't exist.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml


def write_yaml_file(
    path: Path,
    data: Any,
    *,
    sort_keys: bool = False,
) -> Path:
    """Write data to a YAML file, creating parent directories if needed.

    Examples:
        >>> write_yaml_file(tmp_path / "package.yaml", {"group": "acme", "name": "site"})
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = yaml.safe_dump(data, default_flow_style=False, sort_keys=sort_keys, allow_unicode=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_descriptor_file(directory: Path, name: str, nodes: List[Dict[str, Any]]) -> Path:
    """Write a ``{nodes: [...]}`` descriptor document into an archive directory."""
    return write_yaml_file(Path(directory) / f"{name}.yaml", {"nodes": nodes})


__all__ = ["write_yaml_file", "write_descriptor_file"]
