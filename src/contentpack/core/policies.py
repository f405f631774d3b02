"""Install policies.

Every enum parses case-insensitively from configuration strings via
``from_string``; unknown values raise ``ValueError``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Type, TypeVar

E = TypeVar("E", bound="_ParsableEnum")


class _ParsableEnum(Enum):
    @classmethod
    def from_string(cls: Type[E], value: Any) -> E:
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("-", "_")
        for member in cls:
            if member.value == text:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown {cls.__name__} '{value}' (expected one of: {allowed})")


class ImportMode(_ParsableEnum):
    """How incoming content reconciles with existing content below a filter root."""

    REPLACE = "replace"
    UPDATE = "update"
    MERGE = "merge"
    UPDATE_PROPERTIES = "update_properties"
    MERGE_PROPERTIES = "merge_properties"

    @property
    def overwrites_properties(self) -> bool:
        return self in (ImportMode.REPLACE, ImportMode.UPDATE, ImportMode.UPDATE_PROPERTIES)

    @property
    def properties_only(self) -> bool:
        return self in (ImportMode.UPDATE_PROPERTIES, ImportMode.MERGE_PROPERTIES)


class IdConflictPolicy(_ParsableEnum):
    FAIL = "fail"
    CREATE_NEW_ID = "create_new_id"
    FORCE_REMOVE_CONFLICTING_ID = "force_remove_conflicting_id"
    LEGACY = "legacy"


class AccessControlHandling(_ParsableEnum):
    IGNORE = "ignore"
    OVERWRITE = "overwrite"
    MERGE = "merge"
    MERGE_PRESERVE = "merge_preserve"
    CLEAR = "clear"


class DependencyHandling(_ParsableEnum):
    IGNORE = "ignore"
    STRICT = "strict"
    REQUIRED = "required"
    BEST_EFFORT = "best_effort"


__all__ = [
    "ImportMode",
    "IdConflictPolicy",
    "AccessControlHandling",
    "DependencyHandling",
]
