"""Builders for repositories, archives and filters used across unit tests."""
from __future__ import annotations

from typing import Iterable, Optional

from contentpack.core.filter import FilterSet, WorkspaceFilter
from contentpack.core.importer import ContentDescriptor, MemoryArchive, MemoryRepository
from contentpack.core.importer.descriptors import FOLDER_TYPE, UNSTRUCTURED_TYPE
from contentpack.core.policies import ImportMode


def folder_repository() -> MemoryRepository:
    """Committed repository holding ``/content`` and ``/content/site``."""
    repo = MemoryRepository()
    repo.create("/content", FOLDER_TYPE)
    repo.create("/content/site", UNSTRUCTURED_TYPE)
    repo.commit()
    repo.commit_count = 0
    return repo


def archive(*descriptors: ContentDescriptor) -> MemoryArchive:
    return MemoryArchive(descriptors)


def site_filter(
    mode: ImportMode = ImportMode.REPLACE,
    root: str = "/content/site",
    excludes: Iterable[str] = (),
) -> WorkspaceFilter:
    fs = FilterSet(root, import_mode=mode)
    excludes = list(excludes)
    if excludes:
        fs.add_include(f"{root}(/.*)?")
    for pattern in excludes:
        fs.add_exclude(pattern)
    return WorkspaceFilter([fs])


def props(repo: MemoryRepository, path: str) -> Optional[dict]:
    node = repo.find(path)
    return None if node is None else node.properties


__all__ = ["folder_repository", "archive", "site_filter", "props"]
