"""Tests for identifier conflicts between archive content and live nodes."""
from __future__ import annotations

import pytest


@pytest.fixture
def repo_with_holder(memory_repository):
    """``/content/site`` children: first, holder (id-1), last."""
    repo = memory_repository
    repo.create("/content/site/first", "unstructured")
    repo.create("/content/site/holder", "unstructured", identifier="id-1")
    repo.create("/content/site/last", "unstructured")
    repo.commit()
    return repo


def _import_new(repo, policy, path="/content/site/new", identifier="id-1"):
    from contentpack.core.filter import WorkspaceFilter
    from contentpack.core.importer import Importer, ImportOptions, MemoryArchive, node

    options = ImportOptions(filter=WorkspaceFilter.include_all(path), id_conflict_policy=policy)
    return Importer(options).run(MemoryArchive([node(path, identifier=identifier)]), repo)


class TestIdConflictPolicy:
    def test_fail_records_referential_error(self, repo_with_holder) -> None:
        from contentpack.core.exceptions import ReferentialIntegrityError
        from contentpack.core.policies import IdConflictPolicy

        before = repo_with_holder.paths()
        report = _import_new(repo_with_holder, IdConflictPolicy.FAIL)
        assert report.error_paths() == ["/content/site/new"]
        error = report.errors[0][1]
        assert isinstance(error, ReferentialIntegrityError)
        assert error.context["holder"] == "/content/site/holder"
        assert repo_with_holder.paths() == before
        assert repo_with_holder.find("/content/site").children == ["first", "holder", "last"]
        assert report.installed_or_updated_paths == []
        assert report.removed_paths == []

    def test_create_new_id_assigns_fresh_identifier(self, repo_with_holder) -> None:
        from contentpack.core.policies import IdConflictPolicy

        report = _import_new(repo_with_holder, IdConflictPolicy.CREATE_NEW_ID)
        assert not report.has_errors
        created = repo_with_holder.find("/content/site/new")
        assert created.identifier not in (None, "id-1")
        assert repo_with_holder.find("/content/site/holder").identifier == "id-1"

    def test_force_remove_deletes_the_holder(self, repo_with_holder) -> None:
        from contentpack.core.policies import IdConflictPolicy

        report = _import_new(repo_with_holder, IdConflictPolicy.FORCE_REMOVE_CONFLICTING_ID)
        assert not report.has_errors
        assert report.removed_paths == ["/content/site/holder"]
        assert repo_with_holder.find("/content/site/new").identifier == "id-1"
        assert repo_with_holder.find("/content/site").children == ["first", "last", "new"]

    def test_legacy_replaces_sibling_in_place(self, repo_with_holder) -> None:
        from contentpack.core.policies import IdConflictPolicy

        report = _import_new(repo_with_holder, IdConflictPolicy.LEGACY)
        assert not report.has_errors
        assert repo_with_holder.find("/content/site/holder") is None
        assert repo_with_holder.find("/content/site/new").identifier == "id-1"
        assert repo_with_holder.find("/content/site").children == ["first", "new", "last"]

    def test_legacy_uses_new_identifier_for_non_siblings(self, repo_with_holder) -> None:
        from contentpack.core.policies import IdConflictPolicy

        report = _import_new(repo_with_holder, IdConflictPolicy.LEGACY, path="/content/site/first/new")
        assert not report.has_errors
        assert repo_with_holder.find("/content/site/holder").identifier == "id-1"
        assert repo_with_holder.find("/content/site/first/new").identifier != "id-1"

    def test_holder_that_is_an_ancestor_cannot_be_removed(self, repo_with_holder) -> None:
        from contentpack.core.exceptions import ReferentialIntegrityError
        from contentpack.core.policies import IdConflictPolicy

        report = _import_new(
            repo_with_holder,
            IdConflictPolicy.FORCE_REMOVE_CONFLICTING_ID,
            path="/content/site/holder/child",
        )
        assert isinstance(report.errors[0][1], ReferentialIntegrityError)
        assert repo_with_holder.find("/content/site/holder") is not None

    def test_same_identifier_at_same_path_is_not_a_conflict(self, repo_with_holder) -> None:
        from contentpack.core.policies import IdConflictPolicy

        report = _import_new(repo_with_holder, IdConflictPolicy.FAIL, path="/content/site/holder")
        assert not report.has_errors
        assert repo_with_holder.find("/content/site/holder").identifier == "id-1"


class TestArchiveIdentifiers:
    def test_duplicate_identifiers_within_an_archive_are_rejected(self) -> None:
        from contentpack.core.exceptions import ReferentialIntegrityError
        from contentpack.core.importer import MemoryArchive, node

        with pytest.raises(ReferentialIntegrityError):
            MemoryArchive([node("/a", identifier="dup"), node("/b", identifier="dup")])
