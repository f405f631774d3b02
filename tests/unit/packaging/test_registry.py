"""Tests for package metadata and registries."""
from __future__ import annotations

from pathlib import Path

import pytest


class TestPackageMetadata:
    def test_from_dict_with_dependencies_and_filter(self) -> None:
        from contentpack.core.packaging import metadata_from_dict
        from contentpack.core.policies import ImportMode

        meta = metadata_from_dict(
            {
                "group": "acme",
                "name": "site",
                "version": 1.2,
                "dependencies": ["acme:core:[1.0,2.0)"],
                "filter": {"filters": [{"root": "/content/site", "mode": "merge"}]},
            }
        )
        assert str(meta.id) == "acme:site:1.2"
        assert [d.key for d in meta.dependencies] == ["acme:core"]
        assert meta.filter.mode_for("/content/site/x") is ImportMode.MERGE

    def test_missing_name_raises_definition_error(self) -> None:
        from contentpack.core.exceptions import PackageDefinitionError
        from contentpack.core.packaging import metadata_from_dict

        with pytest.raises(PackageDefinitionError) as exc:
            metadata_from_dict({"group": "acme"})
        assert exc.value.issues

    def test_bad_dependency_raises_definition_error(self) -> None:
        from contentpack.core.exceptions import PackageDefinitionError
        from contentpack.core.packaging import metadata_from_dict

        with pytest.raises(PackageDefinitionError):
            metadata_from_dict({"group": "acme", "name": "site", "dependencies": ["acme:core:[2.0,1.0]"]})

    def test_load_from_directory(self, tmp_path: Path) -> None:
        from contentpack.core.packaging import load_package_metadata
        from helpers.io_utils import write_yaml_file

        write_yaml_file(tmp_path / "pkg" / "package.yaml", {"group": "acme", "name": "site", "version": "2.0"})
        meta = load_package_metadata(tmp_path / "pkg")
        assert str(meta.id) == "acme:site:2.0"

    def test_to_dict_round_trip(self) -> None:
        from contentpack.core.packaging import PackageMetadata, metadata_from_dict

        meta = PackageMetadata.create("acme:site:1.0", ["acme:core:1.0"], description="Site")
        again = metadata_from_dict(meta.to_dict())
        assert again == meta


class TestPackageRegistry:
    def test_highest_satisfying_version_wins(self) -> None:
        from contentpack.core.packaging import Dependency, PackageMetadata, PackageRegistry

        registry = PackageRegistry(
            PackageMetadata.create(pid) for pid in ["acme:core:1.0", "acme:core:1.5", "acme:core:2.0"]
        )
        found = registry.find_available(Dependency.from_string("acme:core:[1.0,2.0)"))
        assert str(found) == "acme:core:1.5"

    def test_equal_versions_prefer_most_recent_registration(self) -> None:
        """1.0 and 1.0.0 compare equal; the later registration is chosen."""
        from contentpack.core.packaging import Dependency, PackageMetadata, PackageRegistry

        registry = PackageRegistry()
        registry.register(PackageMetadata.create("acme:core:1.0.0"))
        registry.register(PackageMetadata.create("acme:core:1.0"))
        assert str(registry.find_available(Dependency.from_string("acme:core"))) == "acme:core:1.0"

        registry.register(PackageMetadata.create("acme:core:1.0.0"))
        assert str(registry.find_available(Dependency.from_string("acme:core"))) == "acme:core:1.0.0"

    def test_find_installed_ignores_available_packages(self) -> None:
        from contentpack.core.packaging import Dependency, PackageMetadata, PackageRegistry

        registry = PackageRegistry([PackageMetadata.create("acme:core:1.0")])
        dep = Dependency.from_string("acme:core")
        assert registry.find_installed(dep) is None
        registry.mark_installed("acme:core:1.0")
        assert str(registry.find_installed(dep)) == "acme:core:1.0"

    def test_reregistering_keeps_installed_flag(self) -> None:
        from contentpack.core.packaging import PackageMetadata, PackageRegistry

        registry = PackageRegistry([PackageMetadata.create("acme:core:1.0")])
        registry.mark_installed("acme:core:1.0")
        registry.register(PackageMetadata.create("acme:core:1.0", description="again"))
        assert registry.is_installed("acme:core:1.0")

    def test_unknown_package_raises(self) -> None:
        from contentpack.core.exceptions import PackageNotFoundError
        from contentpack.core.packaging import PackageRegistry

        with pytest.raises(PackageNotFoundError):
            PackageRegistry().get("acme:missing:1.0")
        with pytest.raises(PackageNotFoundError):
            PackageRegistry().unregister("acme:missing:1.0")

    def test_unregister_drops_package_from_lookups(self) -> None:
        from contentpack.core.packaging import Dependency, PackageMetadata, PackageRegistry

        registry = PackageRegistry(
            [PackageMetadata.create("acme:core:1.0"), PackageMetadata.create("acme:core:2.0")]
        )
        registry.mark_installed("acme:core:2.0")
        registry.unregister("acme:core:2.0")

        assert "acme:core:2.0" not in registry
        assert len(registry) == 1
        assert registry.installed() == []
        assert str(registry.find_available(Dependency.from_string("acme:core"))) == "acme:core:1.0"

    def test_usage_lists_installed_dependents(self) -> None:
        from contentpack.core.packaging import PackageMetadata, PackageRegistry

        registry = PackageRegistry(
            [
                PackageMetadata.create("acme:core:1.0"),
                PackageMetadata.create("acme:site:1.0", ["acme:core:[1.0,2.0)"]),
                PackageMetadata.create("acme:blog:1.0", ["acme:core"]),
            ]
        )
        registry.mark_installed("acme:site:1.0")
        assert [str(p) for p in registry.usage("acme:core:1.0")] == ["acme:site:1.0"]


class TestFSPackageRegistry:
    def test_state_survives_reload(self, tmp_path: Path) -> None:
        from contentpack.core.packaging import FSPackageRegistry, PackageMetadata

        path = tmp_path / "registry.yaml"
        registry = FSPackageRegistry(path)
        registry.register(PackageMetadata.create("acme:core:1.0"))
        registry.register(PackageMetadata.create("acme:site:1.0", ["acme:core:1.0"]))
        registry.mark_installed("acme:core:1.0")

        reloaded = FSPackageRegistry(path)
        assert [str(p) for p in reloaded.available()] == ["acme:core:1.0", "acme:site:1.0"]
        assert [str(p) for p in reloaded.installed()] == ["acme:core:1.0"]
        assert [d.key for d in reloaded.get("acme:site:1.0").dependencies] == ["acme:core"]

    def test_from_config_uses_project_relative_path(self, isolated_project_env: Path) -> None:
        from contentpack.core.packaging import FSPackageRegistry, PackageMetadata

        registry = FSPackageRegistry.from_config(isolated_project_env)
        registry.register(PackageMetadata.create("acme:core:1.0"))
        assert (isolated_project_env / ".contentpack" / "registry.yaml").exists()
