"""Content descriptors read from an archive and the kind each one resolves to."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from contentpack.core.utils import contentpath

if TYPE_CHECKING:
    from .access_control import AccessControlList

FOLDER_TYPE = "folder"
ORDERED_FOLDER_TYPE = "ordered-folder"
FILE_TYPE = "file"
RESOURCE_TYPE = "resource"
UNSTRUCTURED_TYPE = "unstructured"

ACL_TYPE = "acl"
CUG_TYPE = "cug"
PRINCIPAL_ACL_TYPE = "principal-acl"

FOLDER_TYPES = frozenset({FOLDER_TYPE, ORDERED_FOLDER_TYPE})
POLICY_TYPES = frozenset({ACL_TYPE, CUG_TYPE, PRINCIPAL_ACL_TYPE})


class ContentKind(Enum):
    FILE = "file"
    FOLDER = "folder"
    GENERIC = "generic"
    POLICY = "policy"

    @classmethod
    def of(cls, descriptor: "ContentDescriptor") -> "ContentKind":
        if descriptor.access_control is not None or descriptor.primary_type in POLICY_TYPES:
            return cls.POLICY
        if descriptor.primary_type in FOLDER_TYPES:
            return cls.FOLDER
        if descriptor.primary_type == FILE_TYPE:
            return cls.FILE
        return cls.GENERIC


@dataclass(frozen=True)
class ContentDescriptor:
    """One node of serialized content.

    Policy descriptors carry an ``access_control`` list; their path is the
    policy node below the node the list applies to.
    """

    path: str
    primary_type: str = UNSTRUCTURED_TYPE
    mixins: FrozenSet[str] = field(default_factory=frozenset)
    properties: Mapping[str, Any] = field(default_factory=dict)
    identifier: Optional[str] = None
    ordered_child_names: Optional[Tuple[str, ...]] = None
    access_control: Optional["AccessControlList"] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", contentpath.normalize(self.path))
        object.__setattr__(self, "mixins", frozenset(self.mixins or ()))
        object.__setattr__(self, "properties", dict(self.properties or {}))
        if self.ordered_child_names is not None:
            object.__setattr__(self, "ordered_child_names", tuple(self.ordered_child_names))

    @property
    def name(self) -> str:
        return contentpath.name(self.path)

    @property
    def kind(self) -> ContentKind:
        return ContentKind.of(self)


def node(
    path: str,
    primary_type: str = UNSTRUCTURED_TYPE,
    *,
    properties: Optional[Dict[str, Any]] = None,
    mixins: Iterable[str] = (),
    identifier: Optional[str] = None,
    order: Optional[Iterable[str]] = None,
) -> ContentDescriptor:
    """Shorthand for building descriptors in code."""
    return ContentDescriptor(
        path,
        primary_type,
        frozenset(mixins),
        properties or {},
        identifier,
        tuple(order) if order is not None else None,
    )


__all__ = [
    "FOLDER_TYPE",
    "ORDERED_FOLDER_TYPE",
    "FILE_TYPE",
    "RESOURCE_TYPE",
    "UNSTRUCTURED_TYPE",
    "ACL_TYPE",
    "CUG_TYPE",
    "PRINCIPAL_ACL_TYPE",
    "FOLDER_TYPES",
    "POLICY_TYPES",
    "ContentKind",
    "ContentDescriptor",
    "node",
]
