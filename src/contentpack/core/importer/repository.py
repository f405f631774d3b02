"""Repository collaborator: the live content tree an install writes into.

``Repository`` is the interface the engine talks to. ``MemoryRepository`` is
a complete in-memory implementation with node-type definitions, protected
properties and commit/refresh semantics, used for tests and dry runs.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Protocol, Tuple

from contentpack.core.exceptions import (
    CommitError,
    ConstraintViolationError,
    ReferentialIntegrityError,
)
from contentpack.core.utils import contentpath

from .access_control import AccessControlKind, AccessControlList
from .descriptors import (
    FILE_TYPE,
    FOLDER_TYPE,
    ORDERED_FOLDER_TYPE,
    RESOURCE_TYPE,
    UNSTRUCTURED_TYPE,
)

logger = logging.getLogger(__name__)

AclKey = Tuple[str, AccessControlKind, Optional[str]]


@dataclass(frozen=True)
class NodeTypeDefinition:
    """Constraints of a primary node type.

    ``allowed_child_types`` of ``None`` allows any child type.
    ``mandatory_children`` maps child names to the type they must have.
    """

    name: str
    default_child_type: Optional[str] = None
    allowed_child_types: Optional[FrozenSet[str]] = None
    mandatory_children: Mapping[str, str] = field(default_factory=dict)
    protected_properties: FrozenSet[str] = frozenset()
    folder: bool = False

    def allows_child(self, type_name: str) -> bool:
        return self.allowed_child_types is None or type_name in self.allowed_child_types


AUTO_CREATED_PROPERTIES = frozenset({"created", "createdBy"})

DEFAULT_NODE_TYPES: Tuple[NodeTypeDefinition, ...] = (
    NodeTypeDefinition(
        FOLDER_TYPE,
        default_child_type=FOLDER_TYPE,
        allowed_child_types=frozenset({FOLDER_TYPE, ORDERED_FOLDER_TYPE, FILE_TYPE, UNSTRUCTURED_TYPE}),
        protected_properties=AUTO_CREATED_PROPERTIES,
        folder=True,
    ),
    NodeTypeDefinition(
        ORDERED_FOLDER_TYPE,
        default_child_type=FOLDER_TYPE,
        allowed_child_types=frozenset({FOLDER_TYPE, ORDERED_FOLDER_TYPE, FILE_TYPE, UNSTRUCTURED_TYPE}),
        protected_properties=AUTO_CREATED_PROPERTIES,
        folder=True,
    ),
    NodeTypeDefinition(
        FILE_TYPE,
        allowed_child_types=frozenset({RESOURCE_TYPE, UNSTRUCTURED_TYPE}),
        mandatory_children={"content": RESOURCE_TYPE},
        protected_properties=AUTO_CREATED_PROPERTIES,
    ),
    NodeTypeDefinition(RESOURCE_TYPE, allowed_child_types=frozenset()),
    NodeTypeDefinition(UNSTRUCTURED_TYPE, default_child_type=UNSTRUCTURED_TYPE),
)


@dataclass
class LiveNode:
    """Snapshot of a node as the repository holds it."""

    path: str
    primary_type: str
    mixins: FrozenSet[str] = frozenset()
    properties: Dict[str, Any] = field(default_factory=dict)
    identifier: Optional[str] = None
    children: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return contentpath.name(self.path)


@dataclass
class DetachedNode:
    """A subtree removed from the tree so it can be attached again elsewhere."""

    name: str
    nodes: Dict[str, "_StoredNode"]
    access_control: Dict[AclKey, AccessControlList]


class Repository(Protocol):
    def find(self, path: str) -> Optional[LiveNode]: ...

    def create(
        self,
        path: str,
        primary_type: str,
        mixins: Iterable[str] = (),
        identifier: Optional[str] = None,
    ) -> LiveNode: ...

    def remove(self, path: str) -> None: ...

    def set_primary_type(self, path: str, primary_type: str) -> None: ...

    def set_property(self, path: str, name: str, value: Any) -> None: ...

    def remove_property(self, path: str, name: str) -> None: ...

    def add_mixin(self, path: str, mixin: str) -> None: ...

    def remove_mixin(self, path: str, mixin: str) -> None: ...

    def reorder_children(self, path: str, names: Iterable[str]) -> None: ...

    def detach(self, path: str) -> DetachedNode: ...

    def attach(self, parent_path: str, detached: DetachedNode) -> None: ...

    def get_access_control(
        self, path: str, kind: AccessControlKind, principal: Optional[str] = None
    ) -> Optional[AccessControlList]: ...

    def set_access_control(self, path: str, acl: AccessControlList) -> None: ...

    def remove_access_control(
        self, path: str, kind: AccessControlKind, principal: Optional[str] = None
    ) -> None: ...

    def find_by_identifier(self, identifier: str) -> Optional[str]: ...

    def is_protected(self, path: str, name: str) -> bool: ...

    def node_type(self, name: str) -> NodeTypeDefinition: ...

    def commit(self) -> None: ...

    def refresh(self, keep_changes: bool) -> None: ...


@dataclass
class _StoredNode:
    primary_type: str
    mixins: set = field(default_factory=set)
    properties: Dict[str, Any] = field(default_factory=dict)
    identifier: Optional[str] = None
    children: List[str] = field(default_factory=list)


class MemoryRepository:
    """In-memory content tree.

    Every mutation bumps ``pending_changes``; ``commit()`` snapshots the tree
    and ``refresh(keep_changes=False)`` rolls back to the last snapshot.
    ``fail_commits`` makes that many upcoming commits raise ``CommitError``.
    """

    def __init__(
        self,
        node_types: Iterable[NodeTypeDefinition] = DEFAULT_NODE_TYPES,
        *,
        root_type: str = UNSTRUCTURED_TYPE,
    ) -> None:
        self._types: Dict[str, NodeTypeDefinition] = {t.name: t for t in node_types}
        self._nodes: Dict[str, _StoredNode] = {contentpath.ROOT: _StoredNode(root_type)}
        self._acls: Dict[AclKey, AccessControlList] = {}
        self._saved: Tuple[Dict[str, _StoredNode], Dict[AclKey, AccessControlList]] = self._snapshot()
        self.pending_changes = 0
        self.commit_count = 0
        self.refresh_count = 0
        self.fail_commits = 0

    # ---- helpers ---------------------------------------------------------

    def _snapshot(self):
        return copy.deepcopy(self._nodes), dict(self._acls)

    def _get(self, path: str) -> _StoredNode:
        path = contentpath.normalize(path)
        stored = self._nodes.get(path)
        if stored is None:
            raise ConstraintViolationError(f"No node at {path}", path=path)
        return stored

    def _touch(self) -> None:
        self.pending_changes += 1

    def _subtree(self, path: str) -> List[str]:
        path = contentpath.normalize(path)
        return [p for p in self._nodes if contentpath.is_same_or_ancestor(path, p)]

    def register_node_type(self, definition: NodeTypeDefinition) -> None:
        self._types[definition.name] = definition

    def node_type(self, name: str) -> NodeTypeDefinition:
        return self._types.get(name) or NodeTypeDefinition(name)

    # ---- reads -----------------------------------------------------------

    def find(self, path: str) -> Optional[LiveNode]:
        path = contentpath.normalize(path)
        stored = self._nodes.get(path)
        if stored is None:
            return None
        return LiveNode(
            path=path,
            primary_type=stored.primary_type,
            mixins=frozenset(stored.mixins),
            properties=dict(stored.properties),
            identifier=stored.identifier,
            children=list(stored.children),
        )

    def exists(self, path: str) -> bool:
        return contentpath.normalize(path) in self._nodes

    def find_by_identifier(self, identifier: str) -> Optional[str]:
        for path, stored in self._nodes.items():
            if stored.identifier == identifier:
                return path
        return None

    def is_protected(self, path: str, name: str) -> bool:
        stored = self._nodes.get(contentpath.normalize(path))
        if stored is None:
            return False
        if name in self.node_type(stored.primary_type).protected_properties:
            return True
        return any(name in self.node_type(m).protected_properties for m in stored.mixins)

    def paths(self) -> List[str]:
        return sorted(self._nodes)

    # ---- writes ----------------------------------------------------------

    def create(
        self,
        path: str,
        primary_type: str,
        mixins: Iterable[str] = (),
        identifier: Optional[str] = None,
    ) -> LiveNode:
        path = contentpath.normalize(path)
        if path in self._nodes:
            raise ConstraintViolationError(f"Node already exists at {path}", path=path)
        parent_path = contentpath.parent(path)
        parent = self._nodes.get(parent_path)
        if parent is None:
            raise ConstraintViolationError(f"Parent {parent_path} of {path} does not exist", path=path)
        parent_type = self.node_type(parent.primary_type)
        if not parent_type.allows_child(primary_type):
            raise ConstraintViolationError(
                f"Type {primary_type} is not allowed below {parent.primary_type} at {path}",
                path=path,
                context={"type": primary_type, "parent_type": parent.primary_type},
            )
        if identifier is not None:
            holder = self.find_by_identifier(identifier)
            if holder is not None:
                raise ReferentialIntegrityError(
                    f"Identifier {identifier} already taken by {holder}",
                    path=path,
                    context={"identifier": identifier, "holder": holder},
                )
        self._nodes[path] = _StoredNode(primary_type, set(mixins), {}, identifier, [])
        parent.children.append(contentpath.name(path))
        self._touch()
        return self.find(path)  # type: ignore[return-value]

    def remove(self, path: str) -> None:
        path = contentpath.normalize(path)
        if path == contentpath.ROOT:
            raise ConstraintViolationError("The root node cannot be removed", path=path)
        self._get(path)
        for p in self._subtree(path):
            del self._nodes[p]
        for key in [k for k in self._acls if contentpath.is_same_or_ancestor(path, k[0])]:
            del self._acls[key]
        parent = self._nodes[contentpath.parent(path)]
        parent.children.remove(contentpath.name(path))
        self._touch()

    def set_primary_type(self, path: str, primary_type: str) -> None:
        self._get(path).primary_type = primary_type
        self._touch()

    def set_property(self, path: str, name: str, value: Any) -> None:
        if self.is_protected(path, name):
            raise ConstraintViolationError(f"Property {name} is protected", path=path)
        self._get(path).properties[name] = value
        self._touch()

    def remove_property(self, path: str, name: str) -> None:
        if self.is_protected(path, name):
            raise ConstraintViolationError(f"Property {name} is protected", path=path)
        self._get(path).properties.pop(name, None)
        self._touch()

    def add_mixin(self, path: str, mixin: str) -> None:
        self._get(path).mixins.add(mixin)
        self._touch()

    def remove_mixin(self, path: str, mixin: str) -> None:
        self._get(path).mixins.discard(mixin)
        self._touch()

    def reorder_children(self, path: str, names: Iterable[str]) -> None:
        """Listed children first in the given order, the rest keep their order."""
        stored = self._get(path)
        wanted = [n for n in names if n in stored.children]
        rest = [n for n in stored.children if n not in wanted]
        stored.children = wanted + rest
        self._touch()

    def detach(self, path: str) -> DetachedNode:
        path = contentpath.normalize(path)
        self._get(path)
        base_len = len(path)
        nodes = {p[base_len:] or "": copy.deepcopy(self._nodes[p]) for p in self._subtree(path)}
        acls = {
            (k[0][base_len:], k[1], k[2]): v
            for k, v in self._acls.items()
            if contentpath.is_same_or_ancestor(path, k[0])
        }
        self.remove(path)
        return DetachedNode(contentpath.name(path), nodes, acls)

    def attach(self, parent_path: str, detached: DetachedNode) -> None:
        target = contentpath.join(parent_path, detached.name)
        if target in self._nodes:
            raise ConstraintViolationError(f"Node already exists at {target}", path=target)
        parent = self._get(parent_path)
        for rel, stored in sorted(detached.nodes.items()):
            self._nodes[target + rel] = copy.deepcopy(stored)
        for (rel, kind, principal), acl in detached.access_control.items():
            self._acls[(target + rel, kind, principal)] = acl
        parent.children.append(detached.name)
        self._touch()

    # ---- access control --------------------------------------------------

    def get_access_control(
        self, path: str, kind: AccessControlKind, principal: Optional[str] = None
    ) -> Optional[AccessControlList]:
        return self._acls.get((contentpath.normalize(path), kind, principal))

    def set_access_control(self, path: str, acl: AccessControlList) -> None:
        self._get(path)
        self._acls[(contentpath.normalize(path), acl.kind, acl.principal)] = acl
        self._touch()

    def remove_access_control(
        self, path: str, kind: AccessControlKind, principal: Optional[str] = None
    ) -> None:
        self._acls.pop((contentpath.normalize(path), kind, principal), None)
        self._touch()

    # ---- persistence -----------------------------------------------------

    def commit(self) -> None:
        if self.fail_commits > 0:
            self.fail_commits -= 1
            raise CommitError("Commit rejected by repository", context={"pending": self.pending_changes})
        self._saved = self._snapshot()
        self.commit_count += 1
        logger.debug("Committed %d pending change(s)", self.pending_changes)
        self.pending_changes = 0

    def refresh(self, keep_changes: bool) -> None:
        self.refresh_count += 1
        if keep_changes:
            return
        nodes, acls = self._saved
        self._nodes = copy.deepcopy(nodes)
        self._acls = dict(acls)
        self.pending_changes = 0


__all__ = [
    "NodeTypeDefinition",
    "DEFAULT_NODE_TYPES",
    "AUTO_CREATED_PROPERTIES",
    "LiveNode",
    "DetachedNode",
    "Repository",
    "MemoryRepository",
]
