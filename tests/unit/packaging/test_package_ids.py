"""Tests for package ids and dependency specifications."""
from __future__ import annotations

import pytest


class TestPackageId:
    def test_parse_full_id(self) -> None:
        from contentpack.core.packaging import PackageId, Version

        pid = PackageId.from_string("acme:site:1.2")
        assert pid.group == "acme"
        assert pid.name == "site"
        assert pid.version == Version("1.2")
        assert str(pid) == "acme:site:1.2"
        assert pid.key == "acme:site"

    def test_unversioned_id_omits_version(self) -> None:
        from contentpack.core.packaging import PackageId

        pid = PackageId.from_string("acme:site")
        assert pid.version.is_empty
        assert str(pid) == "acme:site"

    def test_empty_name_or_too_many_segments_raise(self) -> None:
        from contentpack.core.packaging import PackageId

        with pytest.raises(ValueError):
            PackageId("acme", "")
        with pytest.raises(ValueError):
            PackageId.from_string("a:b:c:d")

    def test_ordering_uses_semantic_versions(self) -> None:
        from contentpack.core.packaging import PackageId

        ids = [PackageId.from_string(s) for s in ["acme:b:1", "acme:a:1.10", "acme:a:1.9"]]
        assert [str(i) for i in sorted(ids)] == ["acme:a:1.9", "acme:a:1.10", "acme:b:1"]


class TestDependency:
    def test_parse_keeps_commas_inside_ranges(self) -> None:
        from contentpack.core.packaging import Dependency

        deps = Dependency.parse("acme:core:[1.0,2.0), acme:util, other:lib:1.5")
        assert [d.key for d in deps] == ["acme:core", "acme:util", "other:lib"]
        assert str(deps[0].range) == "[1.0,2.0)"
        assert deps[1].range.is_infinite

    def test_parse_accepts_lists(self) -> None:
        from contentpack.core.packaging import Dependency

        deps = Dependency.parse(["acme:a", " ", "acme:b:[1]"])
        assert [str(d) for d in deps] == ["acme:a", "acme:b:[1]"]

    def test_slash_form_for_single_segment(self) -> None:
        from contentpack.core.packaging import Dependency

        dep = Dependency.from_string("acme/site")
        assert dep.group == "acme"
        assert dep.name == "site"

    def test_matches_group_name_and_range(self) -> None:
        from contentpack.core.packaging import Dependency, PackageId

        dep = Dependency.from_string("acme:core:[1.0,2.0)")
        assert dep.matches(PackageId.from_string("acme:core:1.4"))
        assert not dep.matches(PackageId.from_string("acme:core:2.0"))
        assert not dep.matches(PackageId.from_string("other:core:1.4"))

    def test_of_package_id_pins_the_version(self) -> None:
        from contentpack.core.packaging import Dependency, PackageId

        dep = Dependency.of(PackageId.from_string("acme:core:1.4"))
        assert str(dep) == "acme:core:[1.4]"
        assert Dependency.of(PackageId.from_string("acme:core")).range.is_infinite
