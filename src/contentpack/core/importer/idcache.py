from __future__ import annotations

from typing import Dict, Optional

from contentpack.core.utils import contentpath

from .repository import Repository


class IdentifierCache:
    """Per-run cache of identifier -> path lookups.

    Negative lookups are cached too; ``created`` and ``removed`` keep the
    cache consistent with the mutations the engine issues.
    """

    def __init__(self, repository: Repository) -> None:
        self._repository = repository
        self._paths: Dict[str, Optional[str]] = {}
        self.hits = 0
        self.misses = 0

    def lookup(self, identifier: str) -> Optional[str]:
        if identifier in self._paths:
            self.hits += 1
            return self._paths[identifier]
        self.misses += 1
        path = self._repository.find_by_identifier(identifier)
        self._paths[identifier] = path
        return path

    def created(self, path: str, identifier: Optional[str]) -> None:
        if identifier:
            self._paths[identifier] = contentpath.normalize(path)

    def removed(self, path: str) -> None:
        """Forget every cached identifier held at or below ``path``."""
        for ident, cached in list(self._paths.items()):
            if cached is not None and contentpath.is_same_or_ancestor(path, cached):
                del self._paths[ident]

    def clear(self) -> None:
        self._paths.clear()


__all__ = ["IdentifierCache"]
