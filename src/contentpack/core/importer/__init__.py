"""Merge engine and its collaborators."""
from __future__ import annotations

from .access_control import (
    AccessControlEntry,
    AccessControlKind,
    AccessControlList,
    merge_access_control,
)
from .archive import Archive, MemoryArchive, UnreadableEntry, YamlArchive
from .autosave import AutoSave
from .descriptors import ContentDescriptor, ContentKind, node
from .engine import Importer
from .idcache import IdentifierCache
from .listener import (
    ImportReport,
    ListenerMode,
    LoggingListener,
    ProgressListener,
    RecordingListener,
)
from .node_types import NodeTypeArbiter
from .options import (
    AccessControlHandling,
    DependencyHandling,
    IdConflictPolicy,
    ImportMode,
    ImportOptions,
)
from .repository import LiveNode, MemoryRepository, NodeTypeDefinition, Repository
from .stash import ChildNodeStash

__all__ = [
    "AccessControlEntry",
    "AccessControlKind",
    "AccessControlList",
    "merge_access_control",
    "Archive",
    "MemoryArchive",
    "UnreadableEntry",
    "YamlArchive",
    "AutoSave",
    "ContentDescriptor",
    "ContentKind",
    "node",
    "Importer",
    "IdentifierCache",
    "ImportReport",
    "ListenerMode",
    "LoggingListener",
    "ProgressListener",
    "RecordingListener",
    "NodeTypeArbiter",
    "AccessControlHandling",
    "DependencyHandling",
    "IdConflictPolicy",
    "ImportMode",
    "ImportOptions",
    "LiveNode",
    "MemoryRepository",
    "NodeTypeDefinition",
    "Repository",
    "ChildNodeStash",
]
