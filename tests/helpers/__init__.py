"""Test helper modules for the contentpack test suite.

- content: builders for repositories, archives and workspace filters
- io_utils: writers for YAML fixtures (archives, package and filter definitions)
- cache_utils: cache reset utilities for test isolation
"""
from __future__ import annotations

from helpers.cache_utils import reset_contentpack_caches
from helpers.content import archive, folder_repository, props, site_filter
from helpers.io_utils import write_descriptor_file, write_yaml_file

__all__ = [
    "reset_contentpack_caches",
    "archive",
    "folder_repository",
    "props",
    "site_filter",
    "write_descriptor_file",
    "write_yaml_file",
]
