"""Tests for path filters, filter sets and the workspace filter."""
from __future__ import annotations

import pytest


class TestPathFilter:
    def test_pattern_must_match_the_whole_path(self) -> None:
        """Patterns are anchored: a prefix match is not enough."""
        from contentpack.core.filter import PathFilter

        pf = PathFilter("/content/site")
        assert pf.matches("/content/site")
        assert not pf.matches("/content/site/page")

    def test_invalid_regex_raises_configuration_error(self) -> None:
        from contentpack.core.exceptions import FilterConfigurationError
        from contentpack.core.filter import PathFilter

        with pytest.raises(FilterConfigurationError):
            PathFilter("/content/(unclosed")


class TestFilterSet:
    def test_no_rules_covers_everything_below_root(self) -> None:
        from contentpack.core.filter import FilterSet

        fs = FilterSet("/content/site")
        assert fs.covers("/content/site")
        assert fs.covers("/content/site/a/b")
        assert not fs.covers("/content/other")
        assert not fs.covers("/content")

    def test_default_polarity_is_opposite_of_first_rule(self) -> None:
        """A leading exclude makes unmatched paths included, and vice versa."""
        from contentpack.core.filter import FilterSet

        exclude_first = FilterSet("/a").add_exclude("/a/tmp(/.*)?")
        assert exclude_first.covers("/a/page")
        assert not exclude_first.covers("/a/tmp/x")

        include_first = FilterSet("/a").add_include("/a/keep(/.*)?")
        assert include_first.covers("/a/keep/x")
        assert not include_first.covers("/a/other")

    def test_last_matching_rule_wins(self) -> None:
        from contentpack.core.filter import FilterSet

        fs = (
            FilterSet("/a")
            .add_include("/a(/.*)?")
            .add_exclude("/a/b(/.*)?")
            .add_include("/a/b/c(/.*)?")
        )
        assert fs.covers("/a/x")
        assert not fs.covers("/a/b/y")
        assert fs.covers("/a/b/c/z")

    def test_root_must_be_absolute(self) -> None:
        from contentpack.core.exceptions import FilterConfigurationError
        from contentpack.core.filter import FilterSet

        with pytest.raises(FilterConfigurationError):
            FilterSet("content")

    def test_sealed_set_rejects_changes(self) -> None:
        from contentpack.core.exceptions import FilterConfigurationError
        from contentpack.core.filter import FilterSet
        from contentpack.core.policies import ImportMode

        fs = FilterSet("/a").seal()
        with pytest.raises(FilterConfigurationError):
            fs.add_include("/a/b")
        with pytest.raises(FilterConfigurationError):
            fs.set_import_mode(ImportMode.MERGE)
        assert fs.import_mode is ImportMode.REPLACE

    def test_import_mode_can_change_until_sealed(self) -> None:
        from contentpack.core.filter import FilterSet
        from contentpack.core.policies import ImportMode

        fs = FilterSet("/a").set_import_mode("update").add_exclude("/a/tmp")
        assert fs.import_mode is ImportMode.UPDATE
        assert fs.seal().with_mode(ImportMode.MERGE).import_mode is ImportMode.MERGE
        assert fs.import_mode is ImportMode.UPDATE

    def test_is_ancestor_includes_root_and_above(self) -> None:
        from contentpack.core.filter import FilterSet

        fs = FilterSet("/content/site")
        assert fs.is_ancestor("/")
        assert fs.is_ancestor("/content")
        assert fs.is_ancestor("/content/site")
        assert not fs.is_ancestor("/content/site/page")
        assert not fs.is_ancestor("/other")


class TestWorkspaceFilter:
    def test_deepest_root_decides_mode_and_coverage(self) -> None:
        """A nested root overrides the enclosing root below it."""
        from contentpack.core.filter import FilterSet, WorkspaceFilter
        from contentpack.core.policies import ImportMode

        wsf = WorkspaceFilter(
            [
                FilterSet("/content", import_mode=ImportMode.REPLACE),
                FilterSet("/content/shared", import_mode=ImportMode.MERGE),
            ]
        )
        assert wsf.mode_for("/content/page") is ImportMode.REPLACE
        assert wsf.mode_for("/content/shared") is ImportMode.MERGE
        assert wsf.mode_for("/content/shared/x") is ImportMode.MERGE
        assert wsf.mode_for("/elsewhere") is None

    def test_overlapping_roots_raise(self) -> None:
        """A later root may only be strictly nested below earlier ones."""
        from contentpack.core.exceptions import FilterConfigurationError
        from contentpack.core.filter import FilterSet, WorkspaceFilter

        wsf = WorkspaceFilter([FilterSet("/content/site")])
        with pytest.raises(FilterConfigurationError):
            wsf.add(FilterSet("/content/site"))
        with pytest.raises(FilterConfigurationError):
            wsf.add(FilterSet("/content"))

    def test_added_sets_are_sealed(self) -> None:
        from contentpack.core.filter import FilterSet, WorkspaceFilter

        fs = FilterSet("/a")
        WorkspaceFilter([fs])
        assert fs.sealed

    def test_should_descend_through_ancestors_of_roots(self) -> None:
        from contentpack.core.filter import WorkspaceFilter

        wsf = WorkspaceFilter.include_all("/content/site")
        assert wsf.should_descend("/")
        assert wsf.should_descend("/content")
        assert wsf.should_descend("/content/site/page")
        assert not wsf.should_descend("/apps")
        assert not wsf.should_descend("/content/other")

    def test_with_mode_overrides_every_root(self) -> None:
        from contentpack.core.filter import FilterSet, WorkspaceFilter
        from contentpack.core.policies import ImportMode

        wsf = WorkspaceFilter([FilterSet("/a", import_mode=ImportMode.MERGE), FilterSet("/b")])
        forced = wsf.with_mode(ImportMode.UPDATE)
        assert forced.mode_for("/a/x") is ImportMode.UPDATE
        assert forced.mode_for("/b") is ImportMode.UPDATE
        # the original is untouched
        assert wsf.mode_for("/a/x") is ImportMode.MERGE

    def test_excluded_path_is_not_covered(self) -> None:
        from helpers.content import site_filter

        wsf = site_filter(excludes=["/content/site/tmp(/.*)?"])
        assert wsf.covers("/content/site/page")
        assert not wsf.covers("/content/site/tmp")
        assert not wsf.covers("/content/site/tmp/x")
