from __future__ import annotations

import logging
from typing import Iterable, List

from contentpack.core.utils import contentpath

from .repository import DetachedNode, Repository

logger = logging.getLogger(__name__)


class ChildNodeStash:
    """Holds children of a node while the node itself is removed and recreated."""

    def __init__(self, repository: Repository, path: str) -> None:
        self.repository = repository
        self.path = contentpath.normalize(path)
        self._held: List[DetachedNode] = []

    def __len__(self) -> int:
        return len(self._held)

    def stash(self, names: Iterable[str]) -> List[str]:
        stashed: List[str] = []
        for child in names:
            child_path = contentpath.join(self.path, child)
            if self.repository.find(child_path) is None:
                continue
            self._held.append(self.repository.detach(child_path))
            stashed.append(child_path)
            logger.debug("Stashed %s", child_path)
        return stashed

    def recover(self) -> List[str]:
        """Attach held children below the (new) node; children already present win."""
        recovered: List[str] = []
        for detached in self._held:
            child_path = contentpath.join(self.path, detached.name)
            if self.repository.find(child_path) is not None:
                logger.debug("Dropping stashed %s: replaced by new content", child_path)
                continue
            self.repository.attach(self.path, detached)
            recovered.append(child_path)
            logger.debug("Recovered %s", child_path)
        self._held.clear()
        return recovered


__all__ = ["ChildNodeStash"]
