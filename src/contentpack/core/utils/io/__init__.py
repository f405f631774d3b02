"""I/O utilities for contentpack.

- Core: atomic writes, directory management
- YAML: read/write with locking
"""
from __future__ import annotations

from .core import (
    PathLike,
    atomic_write,
    ensure_directory,
    ensure_parent_dir,
)
from .yaml import (
    iter_yaml_files,
    read_yaml,
    write_yaml,
)

__all__ = [
    # core
    "PathLike",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write",
    # yaml
    "read_yaml",
    "write_yaml",
    "iter_yaml_files",
]
