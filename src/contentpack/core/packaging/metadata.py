from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

import yaml

from contentpack.core.exceptions import PackageDefinitionError
from contentpack.core.filter import WorkspaceFilter, filter_from_dict, filter_to_dict
from contentpack.core.schemas.validation import collect_errors
from contentpack.core.utils.io import read_yaml

from .ids import Dependency, PackageId
from .version import Version

PACKAGE_FILENAME = "package.yaml"


@dataclass(frozen=True)
class PackageMetadata:
    id: PackageId
    dependencies: Tuple[Dependency, ...] = ()
    filter: WorkspaceFilter = field(default_factory=WorkspaceFilter, compare=False)
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", tuple(self.dependencies))

    @classmethod
    def create(
        cls,
        package_id: Any,
        dependencies: Sequence[Any] = (),
        filter: Optional[WorkspaceFilter] = None,
        description: str = "",
    ) -> "PackageMetadata":
        """Convenience constructor accepting string ids and dependencies."""
        deps = [d if isinstance(d, Dependency) else Dependency.from_string(d) for d in dependencies]
        return cls(PackageId.coerce(package_id), tuple(deps), filter or WorkspaceFilter(), description)

    def to_dict(self) -> dict:
        data: dict = {"group": self.id.group, "name": self.id.name}
        if not self.id.version.is_empty:
            data["version"] = str(self.id.version)
        if self.description:
            data["description"] = self.description
        if self.dependencies:
            data["dependencies"] = [str(d) for d in self.dependencies]
        if len(self.filter):
            data["filter"] = filter_to_dict(self.filter)
        return data


def metadata_from_dict(data: Mapping[str, Any], *, source: str = "<memory>") -> PackageMetadata:
    issues = collect_errors(data, "package")
    if issues:
        raise PackageDefinitionError(
            f"Invalid package definition {source}", issues=issues, context={"file": source}
        )

    try:
        dependencies = [Dependency.from_string(str(d)) for d in data.get("dependencies") or []]
        package_id = PackageId(
            str(data.get("group") or ""),
            str(data["name"]),
            Version.create(str(data.get("version") or "")),
        )
    except ValueError as exc:
        raise PackageDefinitionError(
            f"Invalid package definition {source}: {exc}", context={"file": source}
        ) from exc

    raw_filter = data.get("filter")
    wsf = filter_from_dict(raw_filter) if raw_filter else WorkspaceFilter()
    return PackageMetadata(
        id=package_id,
        dependencies=tuple(dependencies),
        filter=wsf,
        description=str(data.get("description") or ""),
    )


def load_package_metadata(path: Path) -> PackageMetadata:
    """Load a package definition from a file or a directory holding ``package.yaml``."""
    path = Path(path)
    if path.is_dir():
        path = path / PACKAGE_FILENAME
    try:
        data = read_yaml(path, raise_on_error=True)
    except FileNotFoundError:
        raise
    except (OSError, yaml.YAMLError) as exc:
        raise PackageDefinitionError(
            f"Cannot read package definition {path}: {exc}", context={"file": str(path)}
        ) from exc
    if not isinstance(data, Mapping):
        raise PackageDefinitionError(
            f"Package definition {path} must be a mapping", context={"file": str(path)}
        )
    return metadata_from_dict(data, source=str(path))


__all__ = [
    "PACKAGE_FILENAME",
    "PackageMetadata",
    "metadata_from_dict",
    "load_package_metadata",
]
