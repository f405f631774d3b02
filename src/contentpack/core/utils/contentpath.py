"""Helpers for absolute, slash-separated content paths ("/a/b/c")."""
from __future__ import annotations

from typing import List

ROOT = "/"


def normalize(path: str) -> str:
    """Collapse duplicate slashes and strip a trailing slash (except for root)."""
    if not path:
        return ROOT
    parts = [p for p in path.split("/") if p]
    return "/" + "/".join(parts)


def parent(path: str) -> str:
    path = normalize(path)
    if path == ROOT:
        return ROOT
    idx = path.rfind("/")
    return path[:idx] or ROOT


def name(path: str) -> str:
    path = normalize(path)
    return path[path.rfind("/") + 1:]


def join(base: str, child: str) -> str:
    base = normalize(base)
    if base == ROOT:
        return "/" + child.strip("/")
    return base + "/" + child.strip("/")


def depth(path: str) -> int:
    path = normalize(path)
    return 0 if path == ROOT else path.count("/")


def is_ancestor(ancestor: str, path: str) -> bool:
    """True when ``ancestor`` lies strictly above ``path``."""
    ancestor = normalize(ancestor)
    path = normalize(path)
    if ancestor == path:
        return False
    if ancestor == ROOT:
        return True
    return path.startswith(ancestor + "/")


def is_same_or_ancestor(ancestor: str, path: str) -> bool:
    return normalize(ancestor) == normalize(path) or is_ancestor(ancestor, path)


def ancestors(path: str) -> List[str]:
    """Ancestors of ``path`` from the root down, excluding ``path`` itself."""
    path = normalize(path)
    out: List[str] = []
    cur = path
    while cur != ROOT:
        cur = parent(cur)
        out.append(cur)
    out.reverse()
    return out


__all__ = [
    "ROOT",
    "normalize",
    "parent",
    "name",
    "join",
    "depth",
    "is_ancestor",
    "is_same_or_ancestor",
    "ancestors",
]
