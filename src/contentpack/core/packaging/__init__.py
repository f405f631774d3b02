"""Package identities, registries, dependency resolution and installs."""
from __future__ import annotations

from .ids import Dependency, PackageId
from .manager import InstallResult, MemoryPackageSource, PackageManager, PackageSource
from .metadata import PackageMetadata, load_package_metadata, metadata_from_dict
from .registry import FSPackageRegistry, PackageRegistry
from .resolver import DependencyReport, DependencyResolver
from .version import Version, VersionRange

__all__ = [
    "Dependency",
    "PackageId",
    "InstallResult",
    "MemoryPackageSource",
    "PackageManager",
    "PackageSource",
    "PackageMetadata",
    "load_package_metadata",
    "metadata_from_dict",
    "FSPackageRegistry",
    "PackageRegistry",
    "DependencyReport",
    "DependencyResolver",
    "Version",
    "VersionRange",
]
