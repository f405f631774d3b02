"""Tests for the repository, identifier cache, child stash, type arbiter and autosave."""
from __future__ import annotations

import pytest


class TestMemoryRepository:
    def test_create_checks_parent_and_allowed_types(self, memory_repository) -> None:
        from contentpack.core.exceptions import ConstraintViolationError

        with pytest.raises(ConstraintViolationError):
            memory_repository.create("/missing/child", "unstructured")
        with pytest.raises(ConstraintViolationError):
            memory_repository.create("/content/site", "unstructured")
        with pytest.raises(ConstraintViolationError):
            memory_repository.create("/content/raw", "resource")

    def test_folders_accept_unstructured_children(self, memory_repository) -> None:
        memory_repository.create("/content/docs", "folder")
        memory_repository.create("/content/docs/page", "unstructured")
        assert memory_repository.find("/content/docs").children == ["page"]
        assert memory_repository.find("/content").children == ["site", "docs"]

    def test_identifiers_are_unique(self, memory_repository) -> None:
        from contentpack.core.exceptions import ReferentialIntegrityError

        memory_repository.create("/content/site/a", "unstructured", identifier="x")
        with pytest.raises(ReferentialIntegrityError):
            memory_repository.create("/content/site/b", "unstructured", identifier="x")
        assert memory_repository.find_by_identifier("x") == "/content/site/a"

    def test_protected_properties_cannot_be_written(self, memory_repository) -> None:
        from contentpack.core.exceptions import ConstraintViolationError

        memory_repository.create("/content/site/doc", "file")
        assert memory_repository.is_protected("/content/site/doc", "createdBy")
        with pytest.raises(ConstraintViolationError):
            memory_repository.set_property("/content/site/doc", "createdBy", "me")

    def test_refresh_without_keeping_changes_rolls_back(self, memory_repository) -> None:
        memory_repository.create("/content/site/tmp", "unstructured")
        memory_repository.refresh(keep_changes=False)
        assert memory_repository.find("/content/site/tmp") is None
        assert memory_repository.pending_changes == 0

    def test_remove_drops_access_control_in_subtree(self, memory_repository) -> None:
        from contentpack.core.importer import AccessControlKind, AccessControlList

        memory_repository.create("/content/site/a", "unstructured")
        memory_repository.set_access_control("/content/site/a", AccessControlList())
        memory_repository.remove("/content/site")
        assert memory_repository.get_access_control("/content/site/a", AccessControlKind.ACL) is None


class TestIdentifierCache:
    def test_lookups_are_cached_including_misses(self, memory_repository) -> None:
        from contentpack.core.importer import IdentifierCache

        memory_repository.create("/content/site/a", "unstructured", identifier="id-a")
        cache = IdentifierCache(memory_repository)
        assert cache.lookup("id-a") == "/content/site/a"
        assert cache.lookup("id-a") == "/content/site/a"
        assert cache.lookup("nope") is None
        assert cache.lookup("nope") is None
        assert (cache.hits, cache.misses) == (2, 2)

    def test_removed_forgets_subtree(self, memory_repository) -> None:
        from contentpack.core.importer import IdentifierCache

        cache = IdentifierCache(memory_repository)
        cache.created("/content/site/a/b", "id-b")
        cache.removed("/content/site/a")
        assert cache.lookup("id-b") is None
        assert cache.misses == 1


class TestChildNodeStash:
    def test_stash_and_recover(self, memory_repository) -> None:
        from contentpack.core.importer import ChildNodeStash

        repo = memory_repository
        repo.create("/content/site/p", "unstructured")
        repo.create("/content/site/p/keep", "unstructured")
        repo.create("/content/site/p/keep/deep", "unstructured")
        repo.set_property("/content/site/p/keep/deep", "v", 1)

        stash = ChildNodeStash(repo, "/content/site/p")
        assert stash.stash(["keep", "absent"]) == ["/content/site/p/keep"]
        repo.remove("/content/site/p")
        repo.create("/content/site/p", "unstructured")

        assert stash.recover() == ["/content/site/p/keep"]
        assert repo.find("/content/site/p/keep/deep").properties == {"v": 1}

    def test_recover_skips_children_that_were_recreated(self, memory_repository) -> None:
        from contentpack.core.importer import ChildNodeStash

        repo = memory_repository
        repo.create("/content/site/p", "unstructured")
        repo.create("/content/site/p/keep", "unstructured")
        stash = ChildNodeStash(repo, "/content/site/p")
        stash.stash(["keep"])
        repo.create("/content/site/p/keep", "unstructured")
        repo.set_property("/content/site/p/keep", "fresh", True)

        assert stash.recover() == []
        assert repo.find("/content/site/p/keep").properties == {"fresh": True}


class TestNodeTypeArbiter:
    def test_intermediary_type_follows_parent_default(self, memory_repository) -> None:
        from contentpack.core.importer import NodeTypeArbiter

        arbiter = NodeTypeArbiter(memory_repository)
        assert arbiter.intermediary_type("/content/x") == "folder"
        assert arbiter.intermediary_type("/content/site/x") == "unstructured"
        assert arbiter.intermediary_type("/nowhere/x") == "folder"

    def test_primary_type_only_changes_under_replace(self, memory_repository) -> None:
        from contentpack.core.importer import NodeTypeArbiter
        from contentpack.core.policies import ImportMode

        existing = memory_repository.find("/content/site")
        arbiter = NodeTypeArbiter(memory_repository)
        assert arbiter.primary_type_for(existing, "folder", ImportMode.MERGE) == "unstructured"
        assert arbiter.primary_type_for(existing, "folder", ImportMode.REPLACE) == "folder"


class TestAutoSave:
    def test_no_threshold_never_commits_early(self, memory_repository) -> None:
        from contentpack.core.importer import AutoSave

        autosave = AutoSave(None)
        assert not autosave.modified(memory_repository, 100)
        autosave.finish(memory_repository)
        assert autosave.commits == 1

    def test_removed_clears_missing_markers_below(self, memory_repository) -> None:
        from contentpack.core.importer import AutoSave

        autosave = AutoSave(1)
        autosave.add_missing("/content/site/doc/content")
        assert not autosave.modified(memory_repository)
        autosave.removed("/content/site/doc")
        assert autosave.modified(memory_repository)
        assert memory_repository.commit_count == 1
