"""Package identities and dependency specifications."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from .version import EMPTY, INFINITE, Version, VersionRange


@dataclass(frozen=True)
class PackageId:
    """``group:name:version``; an empty version means unversioned.

    Equality compares all three fields textually; ordering sorts by group,
    then name, then semantic version.
    """

    group: str
    name: str
    version: Version = field(default=EMPTY)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Package name must not be empty")
        object.__setattr__(self, "group", self.group or "")
        object.__setattr__(self, "version", Version.create(self.version))

    @classmethod
    def from_string(cls, text: str) -> "PackageId":
        text = (text or "").strip()
        if not text:
            raise ValueError("Empty package id")
        segs = text.split(":")
        if len(segs) == 1:
            return cls("", segs[0])
        if len(segs) == 2:
            return cls(segs[0], segs[1])
        if len(segs) == 3:
            return cls(segs[0], segs[1], Version(segs[2]))
        raise ValueError(f"Malformed package id '{text}' (expected group:name:version)")

    @classmethod
    def coerce(cls, value: Union["PackageId", str]) -> "PackageId":
        return value if isinstance(value, PackageId) else cls.from_string(value)

    @property
    def key(self) -> str:
        """``group:name`` without the version."""
        return f"{self.group}:{self.name}"

    def _order(self):
        return (self.group, self.name)

    def __lt__(self, other: "PackageId") -> bool:
        if not isinstance(other, PackageId):
            return NotImplemented
        if self._order() != other._order():
            return self._order() < other._order()
        return self.version < other.version

    def __le__(self, other: "PackageId") -> bool:
        return self == other or self < other

    def __gt__(self, other: "PackageId") -> bool:
        if not isinstance(other, PackageId):
            return NotImplemented
        return other < self

    def __ge__(self, other: "PackageId") -> bool:
        return self == other or self > other

    def __str__(self) -> str:
        if self.version.is_empty:
            return f"{self.group}:{self.name}"
        return f"{self.group}:{self.name}:{self.version}"


@dataclass(frozen=True)
class Dependency:
    """``group:name[:range]`` requirement on another package."""

    group: str
    name: str
    range: VersionRange = field(default=INFINITE)

    @classmethod
    def of(cls, package_id: PackageId) -> "Dependency":
        """Dependency on exactly ``package_id`` (any version when unversioned)."""
        if package_id.version.is_empty:
            return cls(package_id.group, package_id.name)
        return cls(package_id.group, package_id.name, VersionRange.exactly(package_id.version))

    @classmethod
    def from_string(cls, text: str) -> "Dependency":
        text = (text or "").strip()
        if not text:
            raise ValueError("Empty dependency")
        segs = text.split(":", 2)
        if len(segs) == 1:
            group, _, name = segs[0].rpartition("/")
            return cls(group, name)
        if len(segs) == 2:
            return cls(segs[0], segs[1])
        return cls(segs[0], segs[1], VersionRange.from_string(segs[2]))

    @classmethod
    def parse(cls, text: Union[str, Iterable[str], None]) -> List["Dependency"]:
        """Parse a comma separated list; commas inside a version range are kept."""
        if text is None:
            return []
        if not isinstance(text, str):
            return [cls.from_string(item) for item in text if str(item).strip()]
        deps: List[Dependency] = []
        in_range = False
        start = 0
        prev = ""
        for i, ch in enumerate(text):
            if ch == "," and not in_range:
                chunk = text[start:i].strip()
                if chunk:
                    deps.append(cls.from_string(chunk))
                start = i + 1
            elif ch in "[(" and prev == ":":
                in_range = True
            elif ch in "])":
                in_range = False
            prev = ch
        tail = text[start:].strip()
        if tail:
            deps.append(cls.from_string(tail))
        return deps

    @property
    def key(self) -> str:
        return f"{self.group}:{self.name}"

    def matches(self, package_id: PackageId) -> bool:
        return (
            self.group == package_id.group
            and self.name == package_id.name
            and self.range.is_in_range(package_id.version)
        )

    def __str__(self) -> str:
        rng = str(self.range)
        return f"{self.group}:{self.name}:{rng}" if rng else f"{self.group}:{self.name}"


__all__ = ["PackageId", "Dependency"]
