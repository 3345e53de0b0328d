"""Tests for post-transaction artifact compensation."""

import pytest

from skillmatch.storage.artifacts import InMemoryArtifactStore
from skillmatch.storage.compensation import ArtifactChange, CompensationHandler, Outcome


class FailingDeleteStore(InMemoryArtifactStore):
    def delete(self, locator):
        raise PermissionError(f"read-only volume: {locator}")


@pytest.fixture
def handler(store):
    return CompensationHandler(store)


class TestAfterCommit:
    def test_new_artifact_only(self, handler, store):
        new = store.put(b"r1", "r1.pdf")
        report = handler.after_commit(ArtifactChange(new_locator=new))
        assert report.outcome is Outcome.COMMITTED_NEW
        assert report.deleted == []
        assert store.exists(new)

    def test_replacement_deletes_old(self, handler, store):
        old = store.put(b"old", "me.png")
        new = store.put(b"new", "me.png")
        report = handler.after_commit(ArtifactChange(new_locator=new, old_locator=old))
        assert report.outcome is Outcome.COMMITTED_REPLACED
        assert report.deleted == [old]
        assert store.locators() == [new]

    def test_same_locator_is_not_a_replacement(self, handler, store):
        loc = store.put(b"x", "me.png")
        report = handler.after_commit(ArtifactChange(new_locator=loc, old_locator=loc))
        assert report.outcome is Outcome.COMMITTED_NEW
        assert store.exists(loc)

    def test_missing_old_artifact_is_reported(self, handler, store):
        new = store.put(b"new", "me.png")
        report = handler.after_commit(ArtifactChange(new_locator=new, old_locator="/uploads/gone.png"))
        assert report.missing == ["/uploads/gone.png"]
        assert report.clean


class TestAfterRollback:
    def test_deletes_new_keeps_old(self, handler, store):
        old = store.put(b"old", "me.png")
        new = store.put(b"new", "me.png")
        report = handler.after_rollback(ArtifactChange(new_locator=new, old_locator=old))
        assert report.outcome is Outcome.ROLLED_BACK
        assert report.deleted == [new]
        assert store.locators() == [old]

    def test_nothing_written(self, handler):
        report = handler.after_rollback(ArtifactChange())
        assert report.deleted == [] and report.clean


class TestAfterDelete:
    def test_removes_artifact(self, handler, store):
        loc = store.put(b"r1", "r1.pdf")
        report = handler.after_delete(loc)
        assert report.outcome is Outcome.COMMITTED_REMOVED
        assert report.deleted == [loc]
        assert store.locators() == []


class TestCleanupFailures:
    def test_failures_are_recorded_not_raised(self):
        store = FailingDeleteStore()
        handler = CompensationHandler(store)
        new = store.put(b"new", "cv.pdf")

        report = handler.after_rollback(ArtifactChange(new_locator=new))

        assert not report.clean
        assert report.failures[0].locator == new
        assert "read-only" in report.failures[0].reason
        handler.log_failures(report, "test upload")
