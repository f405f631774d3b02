"""Path filters and filter sets.

A ``PathFilter`` is an anchored regular expression with a polarity. A
``FilterSet`` is an ordered list of path filters rooted at a path, carrying
the import mode that applies below that root.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Pattern

from contentpack.core.exceptions import FilterConfigurationError
from contentpack.core.policies import ImportMode
from contentpack.core.utils import contentpath


@dataclass(frozen=True)
class PathFilter:
    """Regex pattern plus polarity, matched against the full path."""

    pattern: str
    include: bool = True
    _regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            regex = re.compile(self.pattern)
        except re.error as exc:
            raise FilterConfigurationError(
                f"Invalid filter pattern '{self.pattern}': {exc}",
                context={"pattern": self.pattern},
            ) from exc
        object.__setattr__(self, "_regex", regex)

    def matches(self, path: str) -> bool:
        return self._regex.fullmatch(path) is not None

    @property
    def is_absolute(self) -> bool:
        return self.pattern.startswith("/")


class FilterSet:
    """Ordered path filters anchored at ``root``.

    ``is_under_root`` only looks at the root; ``covers`` also applies the
    include/exclude rules. When no rule matches, the default polarity is the
    opposite of the first rule (include when there are no rules).
    """

    def __init__(
        self,
        root: str = "/",
        entries: Optional[Iterable[PathFilter]] = None,
        import_mode: ImportMode = ImportMode.REPLACE,
    ) -> None:
        root = root or contentpath.ROOT
        if not root.startswith("/"):
            raise FilterConfigurationError(
                f"Filter root must be an absolute path: '{root}'", context={"root": root}
            )
        self._root = contentpath.normalize(root)
        self._entries: List[PathFilter] = list(entries or [])
        self._import_mode = ImportMode.from_string(import_mode)
        self._sealed = False

    def __repr__(self) -> str:
        return f"FilterSet(root={self._root!r}, mode={self._import_mode.value}, entries={self._entries!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterSet):
            return NotImplemented
        return (
            self._root == other._root
            and self._entries == other._entries
            and self._import_mode == other._import_mode
        )

    def __hash__(self) -> int:
        return hash((self._root, tuple(self._entries), self._import_mode))

    @property
    def root(self) -> str:
        return self._root

    @property
    def import_mode(self) -> ImportMode:
        return self._import_mode

    @property
    def entries(self) -> List[PathFilter]:
        return list(self._entries)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_mutable(self) -> None:
        if self._sealed:
            raise FilterConfigurationError(f"Filter set at {self._root} is sealed")

    def add_include(self, pattern: str) -> "FilterSet":
        self._check_mutable()
        self._entries.append(PathFilter(pattern, True))
        return self

    def add_exclude(self, pattern: str) -> "FilterSet":
        self._check_mutable()
        self._entries.append(PathFilter(pattern, False))
        return self

    def set_import_mode(self, mode: ImportMode) -> "FilterSet":
        self._check_mutable()
        self._import_mode = ImportMode.from_string(mode)
        return self

    def seal(self) -> "FilterSet":
        self._sealed = True
        return self

    def with_mode(self, mode: ImportMode) -> "FilterSet":
        return FilterSet(self._root, self._entries, mode).seal()

    def is_under_root(self, path: str) -> bool:
        return contentpath.is_same_or_ancestor(self._root, path)

    def covers(self, path: str) -> bool:
        path = contentpath.normalize(path)
        if not self.is_under_root(path):
            return False
        if not self._entries:
            return True
        result = not self._entries[0].include
        for entry in self._entries:
            if entry.matches(path):
                result = entry.include
        return result

    def is_ancestor(self, path: str) -> bool:
        """True when ``path`` is the root, an ancestor of the root, or ``/``."""
        path = contentpath.normalize(path)
        return path == self._root or contentpath.is_ancestor(path, self._root)


__all__ = ["PathFilter", "FilterSet"]
