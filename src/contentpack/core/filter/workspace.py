"""Workspace filter: the ordered filter sets that scope an install.

Lookups use the longest enclosing root: when several filter sets could apply
to a path, the one whose root is the deepest ancestor (or the path itself)
wins, both for coverage and for the import mode.
"""
from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from contentpack.core.exceptions import FilterConfigurationError
from contentpack.core.policies import ImportMode
from contentpack.core.utils import contentpath

from .path_filter import FilterSet


class WorkspaceFilter:
    """Ordered list of sealed ``FilterSet`` objects.

    Filter sets may overlap only when a later set is strictly nested below an
    earlier one; any other overlap raises ``FilterConfigurationError``.
    """

    def __init__(self, filter_sets: Iterable[FilterSet] = ()) -> None:
        self._sets: List[FilterSet] = []
        for fs in filter_sets:
            self.add(fs)

    @classmethod
    def include_all(cls, root: str = "/", mode: ImportMode = ImportMode.REPLACE) -> "WorkspaceFilter":
        return cls([FilterSet(root, import_mode=mode)])

    def __iter__(self) -> Iterator[FilterSet]:
        return iter(self._sets)

    def __len__(self) -> int:
        return len(self._sets)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkspaceFilter):
            return NotImplemented
        return self._sets == other._sets

    def __repr__(self) -> str:
        return f"WorkspaceFilter({self._sets!r})"

    @property
    def filter_sets(self) -> List[FilterSet]:
        return list(self._sets)

    @property
    def roots(self) -> List[str]:
        return [fs.root for fs in self._sets]

    def add(self, filter_set: FilterSet) -> "WorkspaceFilter":
        for existing in self._sets:
            if existing.root == filter_set.root or contentpath.is_ancestor(filter_set.root, existing.root):
                raise FilterConfigurationError(
                    f"Filter root {filter_set.root} overlaps {existing.root}; "
                    "a later root must be strictly nested below an earlier one",
                    context={"root": filter_set.root, "conflicts_with": existing.root},
                )
        self._sets.append(filter_set.seal())
        return self

    def root_for(self, path: str) -> Optional[FilterSet]:
        """Filter set whose root is the deepest enclosing root of ``path``."""
        best: Optional[FilterSet] = None
        for fs in self._sets:
            if fs.is_under_root(path):
                if best is None or contentpath.depth(fs.root) > contentpath.depth(best.root):
                    best = fs
        return best

    def covers(self, path: str) -> bool:
        fs = self.root_for(path)
        return fs is not None and fs.covers(path)

    def mode_for(self, path: str) -> Optional[ImportMode]:
        """Import mode at ``path``, or None when no filter root encloses it."""
        fs = self.root_for(path)
        return fs.import_mode if fs is not None else None

    def is_ancestor_of_any_root(self, path: str) -> bool:
        return any(fs.is_ancestor(path) for fs in self._sets)

    def should_descend(self, path: str) -> bool:
        """False when the subtree at ``path`` can be skipped entirely."""
        return self.covers(path) or self.is_ancestor_of_any_root(path)

    def with_mode(self, mode: ImportMode) -> "WorkspaceFilter":
        return WorkspaceFilter(fs.with_mode(mode) for fs in self._sets)


__all__ = ["WorkspaceFilter"]
