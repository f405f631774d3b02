from __future__ import annotations

import logging

from contentpack.core.policies import ImportMode
from contentpack.core.utils import contentpath

from .descriptors import FOLDER_TYPE
from .repository import LiveNode, Repository

logger = logging.getLogger(__name__)


class NodeTypeArbiter:
    """Picks primary types for intermediary nodes and for replaced folders."""

    def __init__(self, repository: Repository, *, overwrite_primary_types_of_folders: bool = True) -> None:
        self.repository = repository
        self.overwrite_primary_types_of_folders = overwrite_primary_types_of_folders

    def intermediary_type(self, path: str) -> str:
        """Type for a node created only because a descendant needs it."""
        parent = self.repository.find(contentpath.parent(path))
        if parent is None:
            return FOLDER_TYPE
        parent_def = self.repository.node_type(parent.primary_type)
        candidate = parent_def.default_child_type
        if candidate and parent_def.allows_child(candidate):
            return candidate
        logger.debug(
            "Default child type %s of %s not usable at %s; using %s",
            candidate,
            parent.primary_type,
            path,
            FOLDER_TYPE,
        )
        return FOLDER_TYPE

    def is_folder(self, type_name: str) -> bool:
        return self.repository.node_type(type_name).folder

    def primary_type_for(self, existing: LiveNode, incoming_type: str, mode: ImportMode) -> str:
        """Type an existing node ends up with after being updated under ``mode``."""
        if mode is not ImportMode.REPLACE:
            return existing.primary_type
        if not self.overwrite_primary_types_of_folders and self.is_folder(existing.primary_type):
            return existing.primary_type
        return incoming_type


__all__ = ["NodeTypeArbiter"]
