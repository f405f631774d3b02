"""Merge engine: applies an archive's descriptor stream to a live repository.

Descriptors arrive in pre-order. For each one the engine resolves the import
mode from the workspace filter, looks up the live node, settles identifier
conflicts, then creates or updates the node according to the mode. Nodes
imported under REPLACE stay "open" until their subtree has been streamed;
closing them removes live children the archive did not contain and applies
the declared child order.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from contentpack.core.exceptions import (
    ConstraintViolationError,
    ContentPackError,
    ParseError,
    ProtectedAttributeSkipped,
    ReferentialIntegrityError,
)
from contentpack.core.filter import WorkspaceFilter
from contentpack.core.policies import AccessControlHandling, IdConflictPolicy, ImportMode
from contentpack.core.utils import contentpath

from .access_control import AccessControlKind, merge_access_control
from .archive import Archive, ArchiveEntry, UnreadableEntry
from .autosave import AutoSave
from .descriptors import ContentDescriptor, ContentKind
from .idcache import IdentifierCache
from .listener import (
    ACTION_ADDED,
    ACTION_DELETED,
    ACTION_NOP,
    ACTION_UPDATED,
    ImportReport,
    ListenerMode,
    LoggingListener,
)
from .node_types import NodeTypeArbiter
from .options import ImportOptions
from .repository import LiveNode, Repository
from .stash import ChildNodeStash

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    path: str
    cleanup: bool
    order: Optional[Tuple[str, ...]]
    seen: Set[str] = field(default_factory=set)


class Importer:
    """Merge archives into a repository according to ``ImportOptions``.

    Usage:
        report = Importer(ImportOptions(filter=wsf)).run(archive, repository)
        if report.has_errors:
            ...
    """

    def __init__(self, options: Optional[ImportOptions] = None) -> None:
        self.options = options or ImportOptions()

    def effective_filter(self) -> WorkspaceFilter:
        wsf = self.options.filter if self.options.filter is not None else WorkspaceFilter.include_all()
        if self.options.import_mode is not None:
            wsf = wsf.with_mode(self.options.import_mode)
        return wsf

    def run(self, archive: Archive, repository: Repository) -> ImportReport:
        run = _ImportRun(self.options, self.effective_filter(), repository)
        try:
            archive.open(self.options.strict)
            run.walk(archive.entries())
            run.finish()
        finally:
            archive.close()
        return run.report


class _ImportRun:
    """State of a single ``Importer.run`` call."""

    def __init__(self, options: ImportOptions, wsf: WorkspaceFilter, repository: Repository) -> None:
        self.options = options
        self.filter = wsf
        self.repository = repository
        self.report = ImportReport()
        self.listener = options.listener or LoggingListener()
        self.autosave = AutoSave(options.auto_save_threshold, dry_run=options.dry_run)
        self.ids = IdentifierCache(repository)
        self.arbiter = NodeTypeArbiter(
            repository,
            overwrite_primary_types_of_folders=options.overwrite_primary_types_of_folders,
        )
        self.created: Set[str] = set()
        self.imported_ids: Dict[str, str] = {}
        self.pending_slots: Dict[str, int] = {}
        self.frames: List[_Frame] = []
        self._handlers: Dict[ContentKind, Callable[[ContentDescriptor], bool]] = {
            ContentKind.FILE: self._import_node,
            ContentKind.FOLDER: self._import_node,
            ContentKind.GENERIC: self._import_node,
            ContentKind.POLICY: self._import_policy,
        }

    # ---- reporting -------------------------------------------------------

    def _message(self, action: str, path: str) -> None:
        self.listener.on_message(ListenerMode.PATHS, action, path)
        if action in (ACTION_ADDED, ACTION_UPDATED):
            self.report.installed_or_updated_paths.append(path)
        elif action == ACTION_DELETED:
            self.report.removed_paths.append(path)

    def _diagnostic(self, path: str, name: str) -> None:
        diag = ProtectedAttributeSkipped(path, name)
        logger.warning("%s", diag)
        self.report.diagnostics.append(diag)
        self.listener.on_message(ListenerMode.TEXT, ACTION_NOP, str(diag))

    def _record_error(self, path: str, error: ContentPackError) -> None:
        logger.error("Error while importing %s: %s", path, error)
        self.report.errors.append((path, error))
        self.listener.on_error(ListenerMode.PATHS, path, error)

    # ---- traversal -------------------------------------------------------

    def walk(self, entries: Iterable[ArchiveEntry]) -> None:
        skip_below: Optional[str] = None
        for entry in entries:
            path = entry.path
            if skip_below is not None and contentpath.is_ancestor(skip_below, path):
                continue
            skip_below = None
            self._close_frames(path)
            self._mark_seen(path)

            if isinstance(entry, UnreadableEntry):
                if self.options.strict:
                    raise entry.error
                self._record_error(path, entry.error)
                skip_below = path
                continue

            if not self.filter.should_descend(path):
                logger.debug("Skipping %s: outside the workspace filter", path)
                skip_below = path
                continue

            try:
                descend = self._handlers[ContentKind.of(entry)](entry)
            except ContentPackError as exc:
                if self.options.strict:
                    raise
                self._record_error(path, exc)
                descend = False
            if not descend:
                skip_below = path
        self._close_frames(None)

    def finish(self) -> None:
        try:
            self.autosave.finish(self.repository)
        except ContentPackError as exc:
            if self.options.strict:
                raise
            self._record_error(contentpath.ROOT, exc)
        self.report.commits = self.autosave.commits
        logger.info(
            "Import finished: %d path(s) installed or updated, %d removed, %d error(s), %d commit(s)",
            len(self.report.installed_or_updated_paths),
            len(self.report.removed_paths),
            len(self.report.errors),
            self.report.commits,
        )

    def _mark_seen(self, path: str) -> None:
        """Record the child of the open frame that ``path`` lies in.

        Descriptors deeper than one level below the frame make the live node
        between them an implicit intermediary, which cleanup must keep.
        """
        if not self.frames:
            return
        frame = self.frames[-1]
        if not contentpath.is_ancestor(frame.path, path):
            return
        relative = path[len(frame.path):] if frame.path != contentpath.ROOT else path
        frame.seen.add(relative.strip("/").split("/", 1)[0])

    def _open_frame(self, descriptor: ContentDescriptor, mode: ImportMode, created: bool) -> None:
        cleanup = mode is ImportMode.REPLACE and not created
        order = None
        if descriptor.ordered_child_names is not None and (
            created or mode in (ImportMode.REPLACE, ImportMode.UPDATE)
        ):
            order = descriptor.ordered_child_names
        if cleanup or order is not None:
            self.frames.append(_Frame(descriptor.path, cleanup, order))

    def _close_frames(self, next_path: Optional[str]) -> None:
        while self.frames and (
            next_path is None or not contentpath.is_ancestor(self.frames[-1].path, next_path)
        ):
            frame = self.frames.pop()
            try:
                self._finalize(frame)
            except ContentPackError as exc:
                if self.options.strict:
                    raise
                self._record_error(frame.path, exc)

    def _finalize(self, frame: _Frame) -> None:
        node = self.repository.find(frame.path)
        if node is None:
            return
        changed = False
        if frame.cleanup:
            mandatory = set(self.repository.node_type(node.primary_type).mandatory_children)
            for child in node.children:
                if child in frame.seen or child in mandatory:
                    continue
                child_path = contentpath.join(frame.path, child)
                if not self._removable(child_path):
                    continue
                self._remove(child_path)
                changed = True
        if frame.order is not None:
            current = self.repository.find(frame.path).children  # type: ignore[union-attr]
            wanted = [n for n in frame.order if n in current]
            if current[: len(wanted)] != wanted:
                self.repository.reorder_children(frame.path, wanted)
                changed = True
        if changed:
            self.autosave.modified(self.repository)

    def _removable(self, path: str) -> bool:
        """Children absent from the archive are only removed inside REPLACE scope."""
        return (
            self.filter.covers(path)
            and not self.filter.is_ancestor_of_any_root(path)
            and self.filter.mode_for(path) is ImportMode.REPLACE
        )

    # ---- primitives ------------------------------------------------------

    def _remove(self, path: str) -> None:
        self.repository.remove(path)
        self.ids.removed(path)
        self.autosave.removed(path)
        self._message(ACTION_DELETED, path)

    def _ensure_parent(self, path: str) -> None:
        parent = contentpath.parent(path)
        if self.repository.find(parent) is not None:
            return
        for ancestor in contentpath.ancestors(path):
            if self.repository.find(ancestor) is not None:
                continue
            type_name = self.arbiter.intermediary_type(ancestor)
            self.repository.create(ancestor, type_name)
            self.created.add(ancestor)
            logger.debug("Created intermediary %s (%s)", ancestor, type_name)
            self._message(ACTION_ADDED, ancestor)
            self.autosave.modified(self.repository)

    def _apply_properties(
        self,
        path: str,
        properties: Mapping[str, Any],
        existing: Optional[Mapping[str, Any]],
        overwrite: bool,
    ) -> bool:
        changed = False
        for name, value in properties.items():
            if self.repository.is_protected(path, name):
                self._diagnostic(path, name)
                continue
            if existing is not None and name in existing:
                if not overwrite or existing[name] == value:
                    continue
            self.repository.set_property(path, name, value)
            changed = True
        return changed

    def _create(self, descriptor: ContentDescriptor, identifier: Optional[str]) -> None:
        path = descriptor.path
        self._ensure_parent(path)
        self.repository.create(path, descriptor.primary_type, descriptor.mixins, identifier)
        self.created.add(path)
        self.ids.created(path, identifier)
        self.autosave.resolved(path)
        self._apply_properties(path, descriptor.properties, None, True)
        for child in self.repository.node_type(descriptor.primary_type).mandatory_children:
            child_path = contentpath.join(path, child)
            if self.repository.find(child_path) is None:
                self.autosave.add_missing(child_path)
        slot = self.pending_slots.pop(path, None)
        if slot is not None:
            parent = contentpath.parent(path)
            siblings = [n for n in self.repository.find(parent).children if n != descriptor.name]  # type: ignore[union-attr]
            siblings.insert(slot, descriptor.name)
            self.repository.reorder_children(parent, siblings)

    def _slot_of(self, path: str) -> Optional[int]:
        """Position of ``path`` among its siblings."""
        parent = self.repository.find(contentpath.parent(path))
        name = contentpath.name(path)
        if parent is None or name not in parent.children:
            return None
        return parent.children.index(name)

    # ---- identifier conflicts --------------------------------------------

    def _resolve_identifier(
        self, descriptor: ContentDescriptor, existing: Optional[LiveNode]
    ) -> Tuple[Optional[str], Optional[LiveNode]]:
        """Return the identifier to create the node with, and the live node at its path."""
        ident = descriptor.identifier
        path = descriptor.path
        if not ident:
            return None, existing
        previous = self.imported_ids.get(ident)
        if previous is not None and previous != path:
            raise ReferentialIntegrityError(
                f"Identifier {ident} of {path} is already used by {previous} in the same archive",
                path=path,
                context={"identifier": ident, "holder": previous},
            )
        self.imported_ids[ident] = path
        if existing is not None and existing.identifier == ident:
            return ident, existing
        holder = self.ids.lookup(ident)
        if holder is None or holder == path:
            return ident, existing

        policy = self.options.id_conflict_policy
        logger.warning(
            "Node %s uses identifier %s already taken by %s; resolving with %s",
            path,
            ident,
            holder,
            policy.value,
        )
        if policy is IdConflictPolicy.FAIL:
            raise ReferentialIntegrityError(
                f"Identifier {ident} of {path} is already taken by {holder}",
                path=path,
                context={"identifier": ident, "holder": holder},
            )
        sibling = contentpath.parent(holder) == contentpath.parent(path)
        if policy is IdConflictPolicy.FORCE_REMOVE_CONFLICTING_ID or (
            policy is IdConflictPolicy.LEGACY and sibling
        ):
            if contentpath.is_ancestor(holder, path):
                raise ReferentialIntegrityError(
                    f"Cannot remove {holder}: it holds identifier {ident} and is an ancestor of {path}",
                    path=path,
                    context={"identifier": ident, "holder": holder},
                )
            if policy is IdConflictPolicy.LEGACY and existing is None:
                # the new node takes over the sibling's position
                slot = self._slot_of(holder)
                if slot is not None:
                    self.pending_slots[path] = slot
            self._remove(holder)
            self.autosave.modified(self.repository)
            return ident, existing

        # CREATE_NEW_ID, and LEGACY for conflicts outside the sibling list
        if existing is not None:
            return existing.identifier, existing
        fresh = str(uuid.uuid4())
        logger.info("Creating %s with new identifier %s instead of %s", path, fresh, ident)
        return fresh, existing

    # ---- handlers --------------------------------------------------------

    def _import_node(self, descriptor: ContentDescriptor) -> bool:
        path = descriptor.path
        existing = self.repository.find(path)

        if not self.filter.covers(path):
            # ancestor of a filter root: left alone, created only when missing
            if existing is None:
                self._ensure_parent(path)
                self.repository.create(path, descriptor.primary_type, descriptor.mixins)
                self.created.add(path)
                self._message(ACTION_ADDED, path)
                self.autosave.modified(self.repository)
            return True

        mode = self.filter.mode_for(path) or ImportMode.REPLACE
        identifier, existing = self._resolve_identifier(descriptor, existing)

        if existing is None:
            parent = contentpath.parent(path)
            if mode.properties_only and parent not in self.created and self.repository.find(parent) is not None:
                logger.info("Not adding %s: %s keeps the structure of existing nodes", path, mode.value)
                self._message(ACTION_NOP, path)
                return False
            self._create(descriptor, identifier)
            self._message(ACTION_ADDED, path)
            self.autosave.modified(self.repository)
            self._open_frame(descriptor, mode, created=True)
            return True

        if mode is ImportMode.REPLACE and identifier and existing.identifier != identifier:
            self._replace_structurally(descriptor, existing, identifier)
            self._message(ACTION_UPDATED, path)
            self.autosave.modified(self.repository)
            self._open_frame(descriptor, mode, created=False)
            return True

        changed = self._update(descriptor, existing, mode)
        self._message(ACTION_UPDATED if changed else ACTION_NOP, path)
        if changed:
            self.autosave.modified(self.repository)
        self._open_frame(descriptor, mode, created=False)
        return True

    def _update(self, descriptor: ContentDescriptor, existing: LiveNode, mode: ImportMode) -> bool:
        path = descriptor.path
        repo = self.repository
        changed = False

        new_type = self.arbiter.primary_type_for(existing, descriptor.primary_type, mode)
        if new_type != existing.primary_type:
            repo.set_primary_type(path, new_type)
            changed = True

        for mixin in sorted(descriptor.mixins - existing.mixins):
            repo.add_mixin(path, mixin)
            changed = True
        if mode is ImportMode.REPLACE:
            for mixin in sorted(existing.mixins - descriptor.mixins):
                repo.remove_mixin(path, mixin)
                changed = True

        if self._apply_properties(path, descriptor.properties, existing.properties, mode.overwrites_properties):
            changed = True
        if mode is ImportMode.REPLACE:
            for name in sorted(existing.properties):
                if name in descriptor.properties or repo.is_protected(path, name):
                    continue
                repo.remove_property(path, name)
                changed = True
        return changed

    def _replace_structurally(
        self, descriptor: ContentDescriptor, existing: LiveNode, identifier: str
    ) -> None:
        """Remove and recreate a node whose identifier changes, keeping the children it must keep."""
        path = descriptor.path
        keep = set(self.repository.node_type(descriptor.primary_type).mandatory_children)
        for child in existing.children:
            child_path = contentpath.join(path, child)
            if not self.filter.covers(child_path) or self.filter.is_ancestor_of_any_root(child_path):
                keep.add(child)
        logger.info(
            "Replacing %s: identifier changes from %s to %s", path, existing.identifier, identifier
        )
        stash = ChildNodeStash(self.repository, path)
        stash.stash([c for c in existing.children if c in keep])
        slot = self._slot_of(path)
        if slot is not None:
            self.pending_slots[path] = slot
        self.repository.remove(path)
        self.ids.removed(path)
        self.autosave.removed(path)
        self._create(descriptor, identifier)
        for recovered in stash.recover():
            self.autosave.resolved(recovered)

    def _import_policy(self, descriptor: ContentDescriptor) -> bool:
        path = descriptor.path
        if not self.filter.covers(path):
            return False
        incoming = descriptor.access_control
        if incoming is None:
            raise ParseError(f"Policy node {path} carries no access control list", path=path)

        if incoming.kind is AccessControlKind.CUG:
            handling = self.options.effective_cug_handling
        else:
            handling = self.options.access_control_handling
        if handling is AccessControlHandling.IGNORE:
            logger.debug("Ignoring access control at %s", path)
            self._message(ACTION_NOP, path)
            return False

        target = contentpath.parent(path)
        if self.repository.find(target) is None:
            raise ConstraintViolationError(
                f"Cannot apply access control at {path}: {target} does not exist", path=path
            )
        live = self.repository.get_access_control(target, incoming.kind, incoming.principal)
        result = merge_access_control(live, incoming, handling)
        if result == live:
            self._message(ACTION_NOP, path)
            return False
        if result is None:
            self.repository.remove_access_control(target, incoming.kind, incoming.principal)
            self._message(ACTION_DELETED, path)
        else:
            self.repository.set_access_control(target, result)
            self._message(ACTION_ADDED if live is None else ACTION_UPDATED, path)
        self.autosave.modified(self.repository)
        return False


__all__ = ["Importer"]
