"""Archive collaborators: ordered streams of content descriptors.

Entries always come in pre-order (a path before its descendants).
``MemoryArchive`` holds descriptors built in code; ``YamlArchive`` reads a
directory of YAML descriptor documents.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence, TypeVar, Union

import yaml

from contentpack.core.exceptions import ContentPackError, ParseError, ReferentialIntegrityError
from contentpack.core.schemas.validation import collect_errors
from contentpack.core.utils import contentpath

from .access_control import AccessControlKind, AccessControlList
from .descriptors import ACL_TYPE, CUG_TYPE, PRINCIPAL_ACL_TYPE, UNSTRUCTURED_TYPE, ContentDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnreadableEntry:
    """Placeholder for a document that could not be parsed (non-strict archives)."""

    path: str
    error: ParseError


ArchiveEntry = Union[ContentDescriptor, UnreadableEntry]
E = TypeVar("E")


class Archive(Protocol):
    def open(self, strict: bool = False) -> None: ...

    def entries(self) -> Iterator[ArchiveEntry]: ...

    def get_sub_archive(self, subpath: str, recursive: bool = True) -> "Archive": ...

    def close(self) -> None: ...


def preorder(entries: Iterable[E]) -> List[E]:
    """Order entries so every path precedes its descendants.

    Siblings keep their relative input order; an entry whose parent is
    missing hangs below its nearest present ancestor.
    """
    items = list(entries)
    seen: Dict[str, E] = {}
    for item in items:
        if item.path in seen:
            raise ParseError(f"Duplicate entry for {item.path}", path=item.path)
        seen[item.path] = item
    children: Dict[Optional[str], List[E]] = {}
    for item in items:
        anchor = next((a for a in reversed(contentpath.ancestors(item.path)) if a in seen), None)
        children.setdefault(anchor, []).append(item)

    ordered: List[E] = []
    pending = list(reversed(children.get(None, [])))
    while pending:
        item = pending.pop()
        ordered.append(item)
        pending.extend(reversed(children.get(item.path, [])))
    return ordered


def check_unique_identifiers(descriptors: Iterable[ContentDescriptor]) -> None:
    holders: Dict[str, str] = {}
    for d in descriptors:
        if not d.identifier:
            continue
        other = holders.get(d.identifier)
        if other is not None:
            raise ReferentialIntegrityError(
                f"Identifier {d.identifier} used by both {other} and {d.path}",
                path=d.path,
                context={"identifier": d.identifier, "holder": other},
            )
        holders[d.identifier] = d.path


class _BaseArchive:
    def __init__(self) -> None:
        self.is_open = False
        self.open_count = 0
        self.close_count = 0
        self.strict = False

    def open(self, strict: bool = False) -> None:
        self.strict = strict
        self.is_open = True
        self.open_count += 1

    def close(self) -> None:
        self.is_open = False
        self.close_count += 1

    def _check_open(self) -> None:
        if not self.is_open:
            raise ContentPackError(f"{type(self).__name__} is not open")

    def __enter__(self):
        self.open(self.strict)
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class MemoryArchive(_BaseArchive):
    def __init__(self, descriptors: Iterable[ContentDescriptor] = ()) -> None:
        super().__init__()
        items = list(descriptors)
        check_unique_identifiers(items)
        self._descriptors: List[ContentDescriptor] = preorder(items)

    def __len__(self) -> int:
        return len(self._descriptors)

    def entries(self) -> Iterator[ArchiveEntry]:
        self._check_open()
        return iter(list(self._descriptors))

    def get_sub_archive(self, subpath: str, recursive: bool = True) -> "MemoryArchive":
        subpath = contentpath.normalize(subpath)
        selected = []
        for d in self._descriptors:
            if d.path == subpath:
                selected.append(d)
            elif recursive and contentpath.is_ancestor(subpath, d.path):
                selected.append(d)
            elif not recursive and contentpath.parent(d.path) == subpath and d.path != subpath:
                selected.append(d)
        return MemoryArchive(selected)


_POLICY_TYPES = {
    AccessControlKind.ACL: ACL_TYPE,
    AccessControlKind.CUG: CUG_TYPE,
    AccessControlKind.PRINCIPAL: PRINCIPAL_ACL_TYPE,
}


def descriptor_from_dict(data: Mapping[str, Any]) -> ContentDescriptor:
    """Build a descriptor from one YAML document node; raises ``ParseError``."""
    path = str(data.get("path") or "")
    issues = collect_errors(data, "descriptor")
    if issues:
        raise ParseError(
            f"Malformed descriptor at {path or '<unknown>'}: " + "; ".join(issues),
            path=path or None,
            context={"issues": issues},
        )
    acl_data = data.get("acl")
    acl: Optional[AccessControlList] = None
    primary_type = str(data.get("type") or "")
    if acl_data is not None:
        try:
            acl = AccessControlList.from_dict(acl_data)
        except ValueError as exc:
            raise ParseError(f"Malformed access control list at {path}: {exc}", path=path) from exc
        primary_type = primary_type or _POLICY_TYPES[acl.kind]
    order: Optional[Sequence[str]] = data.get("order")
    return ContentDescriptor(
        path=path,
        primary_type=primary_type or UNSTRUCTURED_TYPE,
        mixins=frozenset(data.get("mixins") or ()),
        properties=dict(data.get("properties") or {}),
        identifier=data.get("identifier"),
        ordered_child_names=tuple(order) if order is not None else None,
        access_control=acl,
    )


class YamlArchive(_BaseArchive):
    """Directory of ``*.yaml``/``*.yml`` descriptor documents.

    A document is either one descriptor mapping or ``{nodes: [...]}``. In
    strict mode the first malformed document raises ``ParseError`` from
    ``open``; otherwise it is yielded as an ``UnreadableEntry`` at the path
    the document would have described.
    """

    def __init__(self, directory: Path, *, subpath: Optional[str] = None, recursive: bool = True) -> None:
        super().__init__()
        self.directory = Path(directory)
        self._subpath = contentpath.normalize(subpath) if subpath else None
        self._recursive = recursive
        self._entries: Optional[List[ArchiveEntry]] = None

    def _document_path(self, file: Path) -> str:
        rel = file.relative_to(self.directory).with_suffix("")
        return contentpath.normalize("/" + rel.as_posix())

    def _read_file(self, file: Path) -> List[ArchiveEntry]:
        fallback = self._document_path(file)
        try:
            with open(file, "r", encoding="utf-8") as fh:
                doc = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            return [UnreadableEntry(fallback, ParseError(f"Cannot read {file}: {exc}", path=fallback))]
        if doc is None:
            return []
        nodes = doc.get("nodes") if isinstance(doc, dict) and "nodes" in doc else [doc]
        if not isinstance(nodes, list):
            return [UnreadableEntry(fallback, ParseError(f"'nodes' must be a list in {file}", path=fallback))]
        out: List[ArchiveEntry] = []
        for item in nodes:
            if not isinstance(item, dict):
                out.append(UnreadableEntry(fallback, ParseError(f"Descriptor must be a mapping in {file}", path=fallback)))
                continue
            try:
                out.append(descriptor_from_dict(item))
            except ParseError as exc:
                path = exc.path or fallback
                out.append(UnreadableEntry(path, ParseError(str(exc), path=path, context=exc.context)))
        return out

    def _load(self) -> List[ArchiveEntry]:
        files = sorted(
            p for p in self.directory.rglob("*") if p.is_file() and p.suffix in (".yaml", ".yml")
        )
        loaded: List[ArchiveEntry] = []
        for file in files:
            loaded.extend(self._read_file(file))
        if self._subpath is not None:
            loaded = [e for e in loaded if self._selected(e.path)]
        # the first document for a path wins
        unique: Dict[str, ArchiveEntry] = {}
        for entry in loaded:
            if entry.path in unique:
                logger.warning("Ignoring duplicate descriptor for %s", entry.path)
                continue
            unique[entry.path] = entry
        return preorder(unique.values())

    def _selected(self, path: str) -> bool:
        assert self._subpath is not None
        if path == self._subpath:
            return True
        if self._recursive:
            return contentpath.is_ancestor(self._subpath, path)
        return contentpath.parent(path) == self._subpath

    def open(self, strict: bool = False) -> None:
        if not self.directory.is_dir():
            raise ParseError(f"Archive directory not found: {self.directory}")
        super().open(strict)
        self._entries = self._load()
        if strict:
            check_unique_identifiers(e for e in self._entries if isinstance(e, ContentDescriptor))
            for entry in self._entries:
                if isinstance(entry, UnreadableEntry):
                    raise entry.error

    def close(self) -> None:
        super().close()
        self._entries = None

    def entries(self) -> Iterator[ArchiveEntry]:
        self._check_open()
        return iter(list(self._entries or ()))

    def get_sub_archive(self, subpath: str, recursive: bool = True) -> "YamlArchive":
        return YamlArchive(self.directory, subpath=subpath, recursive=recursive)


__all__ = [
    "Archive",
    "ArchiveEntry",
    "UnreadableEntry",
    "MemoryArchive",
    "YamlArchive",
    "preorder",
    "check_unique_identifiers",
    "descriptor_from_dict",
]
