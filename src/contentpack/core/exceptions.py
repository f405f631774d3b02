from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence


class ContentPackError(Exception):
    """Base exception for contentpack."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class FilterConfigurationError(ContentPackError, ValueError):
    """Raised when a workspace filter definition is malformed."""

    def __init__(
        self,
        message: str = "",
        *,
        issues: Sequence[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if issues:
            ctx["issues"] = list(issues)
        ContentPackError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)

    @property
    def issues(self) -> List[str]:
        return list(self.context.get("issues", []))


class PathError(ContentPackError):
    """Base for errors bound to a single content path."""

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if path:
            ctx["path"] = path
        super().__init__(message, context=ctx)

    @property
    def path(self) -> Optional[str]:
        return self.context.get("path")


class ReferentialIntegrityError(PathError):
    """Raised when an identifier or reference conflict is not resolved by policy."""


class ConstraintViolationError(PathError):
    """Raised by the repository when a type or property constraint is violated."""


class ParseError(PathError):
    """Raised when a descriptor in an archive cannot be read."""


class CommitError(ContentPackError):
    """Raised when the repository fails to persist pending changes."""


class DependencyUnresolvedError(ContentPackError):
    """Raised when declared dependencies cannot be satisfied."""

    def __init__(
        self,
        message: str = "",
        *,
        package: Optional[str] = None,
        unresolved: Sequence[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if package:
            ctx["package"] = package
        if unresolved:
            ctx["unresolved"] = list(unresolved)
        super().__init__(message, context=ctx)

    @property
    def unresolved(self) -> List[str]:
        return list(self.context.get("unresolved", []))


class CyclicDependencyError(ContentPackError):
    """Raised when REQUIRED dependency resolution runs into a cycle."""

    def __init__(self, cycle: Sequence[str], *, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        ctx["cycle"] = list(cycle)
        super().__init__("Cyclic dependency: " + " -> ".join(cycle), context=ctx)

    @property
    def cycle(self) -> List[str]:
        return list(self.context.get("cycle", []))


class PackageDefinitionError(ContentPackError, ValueError):
    """Raised when a package definition document is malformed."""

    def __init__(
        self,
        message: str = "",
        *,
        issues: Sequence[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if issues:
            ctx["issues"] = list(issues)
        ContentPackError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)

    @property
    def issues(self) -> List[str]:
        return list(self.context.get("issues", []))


class PackageNotFoundError(ContentPackError, LookupError):
    """Raised when a package id is not known to the registry."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ContentPackError.__init__(self, message, context=context)
        LookupError.__init__(self, message)


@dataclass(frozen=True)
class ProtectedAttributeSkipped:
    """Non-fatal diagnostic: a protected property of the archive was not applied."""

    path: str
    name: str

    def __str__(self) -> str:
        return f"Protected property {self.name} skipped at {self.path}"


__all__ = [
    "ContentPackError",
    "FilterConfigurationError",
    "PathError",
    "ReferentialIntegrityError",
    "ConstraintViolationError",
    "ParseError",
    "CommitError",
    "DependencyUnresolvedError",
    "CyclicDependencyError",
    "PackageDefinitionError",
    "PackageNotFoundError",
    "ProtectedAttributeSkipped",
]
