"""Batched commits for install runs."""
from __future__ import annotations

import logging
from typing import Optional, Set

from contentpack.core.exceptions import CommitError
from contentpack.core.utils import contentpath

from .repository import Repository

logger = logging.getLogger(__name__)


class AutoSave:
    """Counts pending mutations and commits when the threshold is reached.

    Threshold commits are deferred while mandatory items registered through
    ``add_missing`` are still absent. A failed commit is retried once after
    ``refresh(keep_changes=True)``. In dry-run mode nothing is committed and
    ``finish`` reverts the session instead.
    """

    def __init__(self, threshold: Optional[int] = None, *, dry_run: bool = False) -> None:
        self.threshold = threshold if threshold and threshold > 0 else None
        self.dry_run = dry_run
        self.pending = 0
        self.commits = 0
        self.missing: Set[str] = set()

    def add_missing(self, path: str) -> None:
        self.missing.add(contentpath.normalize(path))

    def resolved(self, path: str) -> None:
        self.missing.discard(contentpath.normalize(path))

    def removed(self, path: str) -> None:
        """Drop missing markers at or below a removed subtree."""
        self.missing = {p for p in self.missing if not contentpath.is_same_or_ancestor(path, p)}

    def modified(self, repository: Repository, count: int = 1) -> bool:
        """Record ``count`` mutations; returns True when a batch was committed."""
        self.pending += count
        if self.threshold is None or self.pending < self.threshold:
            return False
        if self.missing:
            logger.debug(
                "Deferring commit of %d change(s): %d mandatory item(s) missing",
                self.pending,
                len(self.missing),
            )
            return False
        return self.save(repository)

    def save(self, repository: Repository) -> bool:
        if self.dry_run:
            self.pending = 0
            return False
        try:
            repository.commit()
        except CommitError as exc:
            logger.warning("Commit failed (%s); refreshing and retrying once", exc)
            repository.refresh(keep_changes=True)
            repository.commit()
        self.commits += 1
        logger.info("Committed batch of %d change(s)", self.pending)
        self.pending = 0
        return True

    def finish(self, repository: Repository) -> None:
        """Final commit of the run (or revert in dry-run mode)."""
        if self.missing:
            logger.warning("Committing with missing mandatory items: %s", sorted(self.missing))
        if self.dry_run:
            repository.refresh(keep_changes=False)
            logger.info("Dry run: reverted %d pending change(s)", self.pending)
            self.pending = 0
            return
        self.save(repository)


__all__ = ["AutoSave"]
