"""Load workspace filters from YAML definition documents.

Document shape::

    filters:
      - root: /content/site
        mode: merge
        rules:
          - include: /content/site(/.*)?
          - exclude: /content/site/tmp(/.*)?
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from contentpack.core.exceptions import FilterConfigurationError
from contentpack.core.policies import ImportMode
from contentpack.core.schemas.validation import collect_errors
from contentpack.core.utils.io import read_yaml

from .path_filter import FilterSet, PathFilter
from .workspace import WorkspaceFilter


def filter_from_dict(data: Mapping[str, Any]) -> WorkspaceFilter:
    """Build a ``WorkspaceFilter`` from a parsed definition document."""
    issues = collect_errors(data, "filter")
    if issues:
        raise FilterConfigurationError("Invalid filter definition", issues=issues)

    wsf = WorkspaceFilter()
    for item in data.get("filters") or []:
        entries: List[PathFilter] = []
        for rule in item.get("rules") or []:
            if "include" in rule:
                entries.append(PathFilter(str(rule["include"]), True))
            else:
                entries.append(PathFilter(str(rule["exclude"]), False))
        mode = ImportMode.from_string(item.get("mode") or ImportMode.REPLACE)
        wsf.add(FilterSet(str(item["root"]), entries, mode))
    return wsf


def filter_to_dict(wsf: WorkspaceFilter) -> Dict[str, Any]:
    """Inverse of ``filter_from_dict``; ``mode`` is omitted for REPLACE roots."""
    filters: List[Dict[str, Any]] = []
    for fs in wsf:
        item: Dict[str, Any] = {"root": fs.root}
        if fs.import_mode is not ImportMode.REPLACE:
            item["mode"] = fs.import_mode.value
        if fs.entries:
            item["rules"] = [
                {"include" if e.include else "exclude": e.pattern} for e in fs.entries
            ]
        filters.append(item)
    return {"filters": filters}


def load_filter(path: Path) -> WorkspaceFilter:
    """Read and validate a filter definition file."""
    try:
        data = read_yaml(path, raise_on_error=True)
    except FileNotFoundError:
        raise
    except (OSError, yaml.YAMLError) as exc:
        raise FilterConfigurationError(
            f"Cannot read filter definition {path}: {exc}", context={"file": str(path)}
        ) from exc
    if not isinstance(data, Mapping):
        raise FilterConfigurationError(
            f"Filter definition {path} must be a mapping", context={"file": str(path)}
        )
    return filter_from_dict(data)


__all__ = ["filter_from_dict", "filter_to_dict", "load_filter"]
