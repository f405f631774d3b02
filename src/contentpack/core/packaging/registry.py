"""Registries of available and installed packages.

``PackageRegistry`` keeps everything in memory. ``FSPackageRegistry`` adds
YAML persistence so the installed state survives between processes.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from contentpack.core.exceptions import PackageNotFoundError
from contentpack.core.utils.io import read_yaml, write_yaml

from .ids import Dependency, PackageId
from .metadata import PackageMetadata, metadata_from_dict

logger = logging.getLogger(__name__)

IdLike = Union[PackageId, str]


@dataclass
class RegistryEntry:
    metadata: PackageMetadata
    installed: bool
    sequence: int

    @property
    def id(self) -> PackageId:
        return self.metadata.id


class PackageRegistry:
    """Package metadata keyed by ``PackageId`` plus an installed marker.

    Version lookups return the highest version satisfying a dependency's
    range; among equal versions the most recently registered entry wins.
    """

    def __init__(self, packages: Iterable[PackageMetadata] = ()) -> None:
        self._entries: Dict[PackageId, RegistryEntry] = {}
        self._counter = itertools.count()
        for meta in packages:
            self.register(meta)

    # ---- mutation --------------------------------------------------------

    def register(self, metadata: PackageMetadata, *, installed: bool = False) -> RegistryEntry:
        previous = self._entries.get(metadata.id)
        entry = RegistryEntry(
            metadata=metadata,
            installed=installed or (previous.installed if previous else False),
            sequence=next(self._counter),
        )
        self._entries[metadata.id] = entry
        self._changed()
        return entry

    def unregister(self, package_id: IdLike) -> None:
        pid = self._entry(package_id).id
        del self._entries[pid]
        self._changed()

    def mark_installed(self, package_id: IdLike) -> None:
        entry = self._entry(package_id)
        entry.installed = True
        logger.info("Marked %s as installed", entry.id)
        self._changed()

    def mark_uninstalled(self, package_id: IdLike) -> None:
        entry = self._entry(package_id)
        entry.installed = False
        logger.info("Marked %s as uninstalled", entry.id)
        self._changed()

    def _changed(self) -> None:
        """Hook for persistent subclasses."""

    # ---- queries ---------------------------------------------------------

    def _entry(self, package_id: IdLike) -> RegistryEntry:
        pid = PackageId.coerce(package_id)
        entry = self._entries.get(pid)
        if entry is None:
            raise PackageNotFoundError(f"Package not registered: {pid}", context={"package": str(pid)})
        return entry

    def __contains__(self, package_id: object) -> bool:
        if isinstance(package_id, str):
            package_id = PackageId.from_string(package_id)
        return package_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, package_id: IdLike) -> PackageMetadata:
        return self._entry(package_id).metadata

    def is_installed(self, package_id: IdLike) -> bool:
        pid = PackageId.coerce(package_id)
        entry = self._entries.get(pid)
        return bool(entry and entry.installed)

    def installed(self) -> List[PackageId]:
        return sorted(e.id for e in self._entries.values() if e.installed)

    def available(self) -> List[PackageId]:
        return sorted(self._entries)

    def _best(self, dependency: Dependency, entries: Iterable[RegistryEntry]) -> Optional[PackageId]:
        candidates = [e for e in entries if dependency.matches(e.id)]
        if not candidates:
            return None
        best = candidates[0]
        for entry in candidates[1:]:
            cmp = entry.id.version.compare(best.id.version)
            if cmp > 0 or (cmp == 0 and entry.sequence > best.sequence):
                best = entry
        return best.id

    def find_installed(self, dependency: Dependency) -> Optional[PackageId]:
        return self._best(dependency, (e for e in self._entries.values() if e.installed))

    def find_available(self, dependency: Dependency) -> Optional[PackageId]:
        return self._best(dependency, self._entries.values())

    def usage(self, package_id: IdLike) -> List[PackageId]:
        """Installed packages that declare a dependency satisfied by ``package_id``."""
        pid = PackageId.coerce(package_id)
        users = [
            e.id
            for e in self._entries.values()
            if e.installed and e.id != pid and any(d.matches(pid) for d in e.metadata.dependencies)
        ]
        return sorted(users)


class FSPackageRegistry(PackageRegistry):
    """Registry persisted to a YAML file after every change.

    File shape::

        packages:
          - installed: true
            metadata: {group: acme, name: site, version: "1.0", ...}
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._loading = True
        super().__init__()
        data = read_yaml(self.path, default={}, raise_on_error=False) or {}
        for item in data.get("packages") or []:
            meta = metadata_from_dict(item.get("metadata") or {}, source=str(self.path))
            self.register(meta, installed=bool(item.get("installed")))
        self._loading = False

    @classmethod
    def from_config(cls, repo_root: Optional[Path] = None) -> "FSPackageRegistry":
        from contentpack.core.config.domains import RegistryConfig

        return cls(RegistryConfig(repo_root=repo_root).path)

    def _changed(self) -> None:
        if self._loading:
            return
        ordered = sorted(self._entries.values(), key=lambda e: e.sequence)
        payload: Dict[str, Any] = {
            "packages": [
                {"installed": e.installed, "metadata": e.metadata.to_dict()} for e in ordered
            ]
        }
        write_yaml(self.path, payload)
        logger.debug("Persisted registry with %d package(s) to %s", len(ordered), self.path)


__all__ = ["RegistryEntry", "PackageRegistry", "FSPackageRegistry"]
