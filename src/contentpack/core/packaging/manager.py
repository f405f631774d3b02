"""Install and uninstall packages into a repository."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Protocol, Union

from contentpack.core.exceptions import PackageNotFoundError
from contentpack.core.filter import FilterSet
from contentpack.core.importer import Archive, Importer, ImportOptions, ImportReport, Repository
from contentpack.core.utils import contentpath

from .ids import PackageId
from .metadata import PackageMetadata
from .registry import PackageRegistry
from .resolver import DependencyReport, DependencyResolver

logger = logging.getLogger(__name__)


class PackageSource(Protocol):
    def open_archive(self, package_id: PackageId) -> Archive: ...


class MemoryPackageSource:
    """Archives keyed by package id."""

    def __init__(self, archives: Optional[Mapping[PackageId, Archive]] = None) -> None:
        self._archives: Dict[PackageId, Archive] = dict(archives or {})

    def add(self, package_id: Union[PackageId, str], archive: Archive) -> None:
        self._archives[PackageId.coerce(package_id)] = archive

    def open_archive(self, package_id: PackageId) -> Archive:
        try:
            return self._archives[package_id]
        except KeyError:
            raise PackageNotFoundError(
                f"No archive for package {package_id}", context={"package": str(package_id)}
            ) from None


@dataclass
class InstallResult:
    package_id: PackageId
    order: List[PackageId] = field(default_factory=list)
    reports: Dict[PackageId, ImportReport] = field(default_factory=dict)
    completed: List[PackageId] = field(default_factory=list)
    failed: Optional[PackageId] = None
    dependencies: Optional[DependencyReport] = None

    @property
    def ok(self) -> bool:
        return self.failed is None and len(self.completed) == len(self.order)

    @property
    def has_errors(self) -> bool:
        return any(r.has_errors for r in self.reports.values())


class PackageManager:
    """Ties registry, resolver and importer together.

    A package is marked installed only after its import run finished without
    errors; the first failing package stops the remaining installs.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        repository: Repository,
        source: PackageSource,
        options: Optional[ImportOptions] = None,
    ) -> None:
        self.registry = registry
        self.repository = repository
        self.source = source
        self.options = options or ImportOptions()
        self.resolver = DependencyResolver(registry)

    def _options_for(self, meta: PackageMetadata, options: ImportOptions) -> ImportOptions:
        if options.filter is not None or not len(meta.filter):
            return options
        return options.copy(filter=meta.filter)

    def install(
        self, package_id: Union[PackageId, str], *, options: Optional[ImportOptions] = None
    ) -> InstallResult:
        opts = options or self.options
        pid = PackageId.coerce(package_id)
        meta = self.registry.get(pid)
        plan = self.resolver.resolve_install_order(meta, opts.dependency_handling)
        result = InstallResult(pid, order=list(plan.order), dependencies=plan)
        logger.info("Installing %s (order: %s)", pid, ", ".join(str(p) for p in plan.order))

        for step in plan.order:
            step_meta = self.registry.get(step)
            archive = self.source.open_archive(step)
            report = Importer(self._options_for(step_meta, opts)).run(archive, self.repository)
            result.reports[step] = report
            if report.has_errors:
                logger.error("Install of %s finished with %d error(s)", step, len(report.errors))
                result.failed = step
                break
            if not opts.dry_run:
                self.registry.mark_installed(step)
            result.completed.append(step)
        return result

    def uninstall(
        self, package_id: Union[PackageId, str], *, options: Optional[ImportOptions] = None
    ) -> InstallResult:
        opts = options or self.options
        pid = PackageId.coerce(package_id)
        if not self.registry.is_installed(pid):
            raise PackageNotFoundError(f"Package {pid} is not installed", context={"package": str(pid)})
        plan = self.resolver.resolve_uninstall_order(pid, opts.dependency_handling)
        result = InstallResult(pid, order=list(plan.order), dependencies=plan)
        logger.info("Uninstalling %s (order: %s)", pid, ", ".join(str(p) for p in plan.order))

        for step in plan.order:
            meta = self.registry.get(step)
            report = ImportReport()
            wsf = opts.filter if opts.filter is not None else meta.filter
            for fs in wsf:
                self._remove_covered(fs, fs.root, report)
            if opts.dry_run:
                self.repository.refresh(keep_changes=False)
            else:
                self.repository.commit()
                report.commits = 1
                self.registry.mark_uninstalled(step)
            result.reports[step] = report
            result.completed.append(step)
        return result

    def _remove_covered(self, fs: FilterSet, path: str, report: ImportReport) -> None:
        node = self.repository.find(path)
        if node is None:
            return
        if fs.covers(path) and path != contentpath.ROOT:
            self.repository.remove(path)
            report.removed_paths.append(path)
            logger.debug("Removed %s", path)
            return
        for child in node.children:
            self._remove_covered(fs, contentpath.join(path, child), report)


__all__ = ["PackageSource", "MemoryPackageSource", "InstallResult", "PackageManager"]
