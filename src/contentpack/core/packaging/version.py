"""Package versions and version ranges.

Versions are dot-separated segments; the first ``-`` splits off a qualifier
(``1.2-SNAPSHOT``). Numeric segments compare numerically, trailing zero
segments are insignificant for ordering (``1.0`` sorts equal to ``1.0.0``)
and a qualified version sorts before its release (``1.0-rc1 < 1.0``).
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple, Union

_TOKEN_RE = re.compile(r"\d+|[^\d.\-_]+")


def _qualifier_key(qualifier: str) -> Tuple[Tuple[int, int, str], ...]:
    key = []
    for token in _TOKEN_RE.findall(qualifier.lower()):
        if token.isdigit():
            key.append((1, int(token), ""))
        else:
            key.append((0, 0, token))
    return tuple(key)


class Version:
    """Immutable version value. Equality is textual, ordering is semantic."""

    __slots__ = ("_text", "_release", "_qualifier")

    def __init__(self, text: str = "") -> None:
        text = (text or "").strip()
        self._text = text
        release: List[int] = []
        qualifier = ""
        head, sep, tail = text.partition("-")
        segments = head.split(".") if head else []
        for idx, seg in enumerate(segments):
            if seg.isdigit():
                release.append(int(seg))
                continue
            # first non-numeric segment starts the qualifier
            qualifier = ".".join(segments[idx:])
            break
        if sep:
            qualifier = f"{qualifier}-{tail}" if qualifier else tail
        while release and release[-1] == 0:
            release.pop()
        self._release = tuple(release)
        self._qualifier = qualifier

    @classmethod
    def create(cls, value: Union["Version", str, int, float, None]) -> "Version":
        if isinstance(value, Version):
            return value
        if value is None:
            return EMPTY
        return cls(str(value))

    @property
    def is_empty(self) -> bool:
        return not self._text

    @property
    def segments(self) -> List[str]:
        head = self._text.split("-", 1)[0]
        return head.split(".") if head else []

    @property
    def qualifier(self) -> str:
        return self._qualifier

    def _key(self) -> Tuple:
        # (release, has-no-qualifier, qualifier tokens)
        return (self._release, 0 if self._qualifier else 1, _qualifier_key(self._qualifier))

    def compare(self, other: "Version") -> int:
        a, b = self._key(), other._key()
        return (a > b) - (a < b)

    def __lt__(self, other: "Version") -> bool:
        return self.compare(other) < 0

    def __le__(self, other: "Version") -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: "Version") -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: "Version") -> bool:
        return self.compare(other) >= 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._text == other._text

    def __hash__(self) -> int:
        return hash(self._text)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Version({self._text!r})"


EMPTY = Version("")


class VersionRange:
    """Interval of versions; ``None`` bounds are open-ended."""

    __slots__ = ("low", "low_inclusive", "high", "high_inclusive")

    def __init__(
        self,
        low: Optional[Version] = None,
        low_inclusive: bool = False,
        high: Optional[Version] = None,
        high_inclusive: bool = False,
    ) -> None:
        if low is not None and high is not None:
            cmp = low.compare(high)
            if cmp > 0 or (cmp == 0 and not (low_inclusive and high_inclusive)):
                raise ValueError(f"Empty version range: low {low} is not below high {high}")
        self.low = low
        self.low_inclusive = low_inclusive
        self.high = high
        self.high_inclusive = high_inclusive

    @classmethod
    def exactly(cls, version: Union[Version, str]) -> "VersionRange":
        v = Version.create(version)
        return cls(v, True, v, True)

    @classmethod
    def from_string(cls, text: Optional[str]) -> "VersionRange":
        """Parse ``[1.0,2.0)``, ``(1.0,]``, a bare minimum ``1.0``, or ``""`` (any)."""
        text = (text or "").strip()
        if not text:
            return INFINITE
        if "," not in text:
            if text[0] == "[" and text[-1] == "]":
                return cls.exactly(text[1:-1].strip())
            return cls(Version(text), True, None, False)
        if text[0] not in "[(":
            raise ValueError(f"Range must start with '[' or '(': {text}")
        if text[-1] not in "])":
            raise ValueError(f"Range must end with ']' or ')': {text}")
        low_text, _, high_text = text[1:-1].partition(",")
        low_text, high_text = low_text.strip(), high_text.strip()
        return cls(
            Version(low_text) if low_text else None,
            text[0] == "[",
            Version(high_text) if high_text else None,
            text[-1] == "]",
        )

    @property
    def is_infinite(self) -> bool:
        return self.low is None and self.high is None

    def is_in_range(self, version: Union[Version, str]) -> bool:
        v = Version.create(version)
        if self.low is not None:
            cmp = v.compare(self.low)
            if cmp < 0 or (cmp == 0 and not self.low_inclusive):
                return False
        if self.high is not None:
            cmp = v.compare(self.high)
            if cmp > 0 or (cmp == 0 and not self.high_inclusive):
                return False
        return True

    __contains__ = is_in_range

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def __str__(self) -> str:
        if self.is_infinite:
            return ""
        if self.high is None and self.low_inclusive:
            return str(self.low)
        if (
            self.low is not None
            and self.high is not None
            and self.low_inclusive
            and self.high_inclusive
            and self.low == self.high
        ):
            return f"[{self.low}]"
        return "{}{},{}{}".format(
            "[" if self.low_inclusive else "(",
            self.low if self.low is not None else "",
            self.high if self.high is not None else "",
            "]" if self.high_inclusive else ")",
        )

    def __repr__(self) -> str:
        return f"VersionRange({str(self)!r})"


INFINITE = VersionRange()


__all__ = ["Version", "VersionRange", "EMPTY", "INFINITE"]
