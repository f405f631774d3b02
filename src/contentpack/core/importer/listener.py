"""Progress reporting for install runs."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from contentpack.core.exceptions import ContentPackError, ProtectedAttributeSkipped

logger = logging.getLogger(__name__)

ACTION_ADDED = "A"
ACTION_UPDATED = "U"
ACTION_DELETED = "D"
ACTION_ERROR = "E"
ACTION_NOP = "-"


class ListenerMode(Enum):
    PATHS = "paths"
    TEXT = "text"


class ProgressListener(Protocol):
    def on_message(self, mode: ListenerMode, action: str, path: str) -> None: ...

    def on_error(self, mode: ListenerMode, path: str, error: Exception) -> None: ...


class LoggingListener:
    """Forward progress to a logger (``contentpack.core.importer.listener`` by default)."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def on_message(self, mode: ListenerMode, action: str, path: str) -> None:
        if mode is ListenerMode.TEXT:
            self.log.info("%s", path)
        else:
            self.log.debug("%s %s", action, path)

    def on_error(self, mode: ListenerMode, path: str, error: Exception) -> None:
        self.log.error("E %s (%s)", path, error)


class RecordingListener:
    """Keeps every callback; handy in tests and for building summaries."""

    def __init__(self) -> None:
        self.messages: List[Tuple[ListenerMode, str, str]] = []
        self.errors: List[Tuple[ListenerMode, str, Exception]] = []

    def on_message(self, mode: ListenerMode, action: str, path: str) -> None:
        self.messages.append((mode, action, path))

    def on_error(self, mode: ListenerMode, path: str, error: Exception) -> None:
        self.errors.append((mode, path, error))

    def actions(self, action: str) -> List[str]:
        return [p for m, a, p in self.messages if m is ListenerMode.PATHS and a == action]


@dataclass
class ImportReport:
    installed_or_updated_paths: List[str] = field(default_factory=list)
    removed_paths: List[str] = field(default_factory=list)
    errors: List[Tuple[str, ContentPackError]] = field(default_factory=list)
    diagnostics: List[ProtectedAttributeSkipped] = field(default_factory=list)
    commits: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def error_paths(self) -> List[str]:
        return [p for p, _ in self.errors]

    def to_dict(self) -> dict:
        return {
            "installedOrUpdated": list(self.installed_or_updated_paths),
            "removed": list(self.removed_paths),
            "errors": [dict(e.to_json_error(), path=p) for p, e in self.errors],
            "diagnostics": [str(d) for d in self.diagnostics],
            "commits": self.commits,
        }


__all__ = [
    "ACTION_ADDED",
    "ACTION_UPDATED",
    "ACTION_DELETED",
    "ACTION_ERROR",
    "ACTION_NOP",
    "ListenerMode",
    "ProgressListener",
    "LoggingListener",
    "RecordingListener",
    "ImportReport",
]
