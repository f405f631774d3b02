"""Access control lists and the policy merge applied during installs.

Three list kinds exist: ``ACL`` (hierarchy scoped, attached to a node),
``CUG`` (closed user group) and ``PRINCIPAL`` (entries of a single principal,
not bound to the hierarchy). All of them merge with the same rules.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from contentpack.core.policies import AccessControlHandling


class AccessControlKind(Enum):
    ACL = "acl"
    CUG = "cug"
    PRINCIPAL = "principal-acl"


@dataclass(frozen=True)
class AccessControlEntry:
    principal: str
    privileges: FrozenSet[str] = field(default_factory=frozenset)
    allow: bool = True
    restrictions: Tuple[Tuple[str, Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "privileges", frozenset(self.privileges))
        restrictions = self.restrictions
        if isinstance(restrictions, Mapping):
            restrictions = restrictions.items()
        normalized = ((str(k), tuple(v) if isinstance(v, list) else v) for k, v in restrictions)
        object.__setattr__(self, "restrictions", tuple(sorted(normalized)))

    @property
    def slot(self) -> Tuple[str, bool, Tuple[Tuple[str, Any], ...]]:
        """Everything but the privileges: entries sharing a slot update each other."""
        return (self.principal, self.allow, self.restrictions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccessControlEntry":
        return cls(
            principal=str(data["principal"]),
            privileges=frozenset(str(p) for p in data.get("privileges") or ()),
            allow=bool(data.get("allow", True)),
            restrictions=tuple((data.get("restrictions") or {}).items()),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "principal": self.principal,
            "privileges": sorted(self.privileges),
            "allow": self.allow,
        }
        if self.restrictions:
            out["restrictions"] = dict(self.restrictions)
        return out


@dataclass(frozen=True)
class AccessControlList:
    kind: AccessControlKind = AccessControlKind.ACL
    entries: Tuple[AccessControlEntry, ...] = ()
    principal: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))
        if self.kind is AccessControlKind.PRINCIPAL and not self.principal:
            raise ValueError("Principal-scoped access control lists need a principal")

    def __len__(self) -> int:
        return len(self.entries)

    def principals(self) -> List[str]:
        seen: List[str] = []
        for e in self.entries:
            if e.principal not in seen:
                seen.append(e.principal)
        return seen

    def with_entries(self, entries: Iterable[AccessControlEntry]) -> "AccessControlList":
        return AccessControlList(self.kind, tuple(entries), self.principal)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccessControlList":
        kind = AccessControlKind(str(data.get("kind") or AccessControlKind.ACL.value).lower())
        entries = tuple(AccessControlEntry.from_dict(e) for e in data.get("entries") or ())
        return cls(kind, entries, data.get("principal"))


def _merge(live: AccessControlList, incoming: AccessControlList) -> AccessControlList:
    result = list(live.entries)
    for entry in incoming.entries:
        if entry in result:
            continue
        for idx, current in enumerate(result):
            if current.slot == entry.slot:
                result[idx] = entry
                break
        else:
            result.append(entry)
    return live.with_entries(result)


def _merge_preserve(live: AccessControlList, incoming: AccessControlList) -> AccessControlList:
    result = list(live.entries)
    existing_principals = set(live.principals())
    for entry in incoming.entries:
        if entry in result or entry.principal in existing_principals:
            continue
        result.append(entry)
    return live.with_entries(result)


def merge_access_control(
    live: Optional[AccessControlList],
    incoming: AccessControlList,
    handling: AccessControlHandling,
) -> Optional[AccessControlList]:
    """Return the list that should be in place after the install.

    ``None`` means no list at all. ``IGNORE`` returns ``live`` as is.
    """
    handling = AccessControlHandling.from_string(handling)
    if handling is AccessControlHandling.IGNORE:
        return live
    if handling is AccessControlHandling.CLEAR:
        return None
    if handling is AccessControlHandling.OVERWRITE or live is None:
        return incoming
    if handling is AccessControlHandling.MERGE:
        return _merge(live, incoming)
    return _merge_preserve(live, incoming)


__all__ = [
    "AccessControlKind",
    "AccessControlEntry",
    "AccessControlList",
    "merge_access_control",
]
