"""Install and uninstall ordering across package dependencies.

Install order lists dependencies before dependents (leaves first); uninstall
order lists dependents before the packages they rely on. ``STRICT`` never
schedules anything beyond the requested package, ``REQUIRED`` and
``BEST_EFFORT`` recurse through the registry and differ only in how they treat
cycles and unresolvable dependencies.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

from contentpack.core.exceptions import CyclicDependencyError, DependencyUnresolvedError
from contentpack.core.policies import DependencyHandling

from .ids import Dependency, PackageId
from .metadata import PackageMetadata
from .registry import PackageRegistry

logger = logging.getLogger(__name__)


@dataclass
class DependencyReport:
    """Outcome of a resolution.

    ``order`` is the execution order, ``unresolved`` maps a package to the
    dependencies that could not be satisfied and ``cycles`` holds every cycle
    that was broken under ``BEST_EFFORT``.
    """

    order: List[PackageId] = field(default_factory=list)
    unresolved: Dict[PackageId, List[Dependency]] = field(default_factory=dict)
    cycles: List[List[PackageId]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.unresolved and not self.cycles

    def __iter__(self):
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)


class DependencyResolver:
    def __init__(self, registry: PackageRegistry) -> None:
        self.registry = registry

    def usage(self, package_id: Union[PackageId, str]) -> List[PackageId]:
        return self.registry.usage(package_id)

    def check_installed(self, metadata: PackageMetadata) -> List[Dependency]:
        """Dependencies of ``metadata`` without an installed, satisfying package."""
        return [d for d in metadata.dependencies if self.registry.find_installed(d) is None]

    # ---- install ---------------------------------------------------------

    def resolve_install_order(
        self,
        metadata: PackageMetadata,
        policy: DependencyHandling = DependencyHandling.REQUIRED,
    ) -> DependencyReport:
        policy = DependencyHandling.from_string(policy)
        report = DependencyReport()

        if policy is DependencyHandling.IGNORE:
            report.order.append(metadata.id)
            return report

        if policy is DependencyHandling.STRICT:
            missing = self.check_installed(metadata)
            if missing:
                raise DependencyUnresolvedError(
                    f"Package {metadata.id} requires uninstalled dependencies: "
                    + ", ".join(str(d) for d in missing),
                    package=str(metadata.id),
                    unresolved=[str(d) for d in missing],
                )
            report.order.append(metadata.id)
            return report

        required = policy is DependencyHandling.REQUIRED
        done: Set[PackageId] = set()
        stack: List[PackageMetadata] = []

        def visit(meta: PackageMetadata) -> None:
            stack.append(meta)
            for dep in meta.dependencies:
                in_progress = self._find_on_stack(dep, stack)
                if in_progress is not None:
                    self._on_cycle(stack, in_progress, report, required)
                    continue
                if self.registry.find_installed(dep) is not None:
                    continue
                candidate = self.registry.find_available(dep)
                if candidate is None:
                    report.unresolved.setdefault(meta.id, []).append(dep)
                    if required:
                        raise DependencyUnresolvedError(
                            f"Dependency {dep} of {meta.id} is not available",
                            package=str(meta.id),
                            unresolved=[str(dep)],
                        )
                    logger.warning("Dependency %s of %s is not available; skipping", dep, meta.id)
                    continue
                if candidate in done:
                    continue
                visit(self.registry.get(candidate))
            stack.pop()
            done.add(meta.id)
            report.order.append(meta.id)

        visit(metadata)
        logger.debug("Install order for %s: %s", metadata.id, [str(p) for p in report.order])
        return report

    @staticmethod
    def _find_on_stack(dep: Dependency, stack: List[PackageMetadata]) -> Optional[int]:
        for idx, meta in enumerate(stack):
            if dep.matches(meta.id):
                return idx
        return None

    @staticmethod
    def _on_cycle(
        stack: List[PackageMetadata],
        start: int,
        report: DependencyReport,
        required: bool,
    ) -> None:
        cycle = [m.id for m in stack[start:]] + [stack[start].id]
        if required:
            raise CyclicDependencyError([str(p) for p in cycle])
        logger.warning("Ignoring dependency cycle %s", " -> ".join(str(p) for p in cycle))
        report.cycles.append(cycle)

    # ---- uninstall -------------------------------------------------------

    def resolve_uninstall_order(
        self,
        package_id: Union[PackageId, str],
        policy: DependencyHandling = DependencyHandling.REQUIRED,
    ) -> DependencyReport:
        policy = DependencyHandling.from_string(policy)
        target = PackageId.coerce(package_id)
        report = DependencyReport()

        if policy is DependencyHandling.IGNORE:
            report.order.append(target)
            return report

        if policy is DependencyHandling.STRICT:
            users = self.usage(target)
            if users:
                raise DependencyUnresolvedError(
                    f"Package {target} is still used by " + ", ".join(str(u) for u in users),
                    package=str(target),
                    unresolved=[str(u) for u in users],
                )
            report.order.append(target)
            return report

        required = policy is DependencyHandling.REQUIRED
        done: Set[PackageId] = set()
        stack: List[PackageId] = []

        def visit(pid: PackageId) -> None:
            stack.append(pid)
            for user in self.usage(pid):
                if user in stack:
                    start = stack.index(user)
                    cycle = stack[start:] + [user]
                    if required:
                        raise CyclicDependencyError([str(p) for p in cycle])
                    logger.warning("Ignoring dependency cycle %s", " -> ".join(str(p) for p in cycle))
                    report.cycles.append(cycle)
                    continue
                if user not in done:
                    visit(user)
            stack.pop()
            done.add(pid)
            report.order.append(pid)

        visit(target)
        logger.debug("Uninstall order for %s: %s", target, [str(p) for p in report.order])
        return report


__all__ = ["DependencyReport", "DependencyResolver"]
