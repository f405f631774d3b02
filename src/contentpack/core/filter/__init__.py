"""Workspace filters: which paths an install touches and in which import mode."""
from __future__ import annotations

from .loader import filter_from_dict, filter_to_dict, load_filter
from .path_filter import FilterSet, PathFilter
from .workspace import WorkspaceFilter

__all__ = [
    "PathFilter",
    "FilterSet",
    "WorkspaceFilter",
    "filter_from_dict",
    "filter_to_dict",
    "load_filter",
]
