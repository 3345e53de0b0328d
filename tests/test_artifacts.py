"""Tests for the artifact store adapters."""

import re
import tempfile
from pathlib import Path

import pytest

from skillmatch.config import StorageConfig
from skillmatch.errors import StorageUnavailable
from skillmatch.storage import artifacts
from skillmatch.storage.artifacts import (
    DeleteResult,
    InMemoryArtifactStore,
    LocalArtifactStore,
    create_artifact_store,
    make_artifact_name,
)


@pytest.fixture
def local_store():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield LocalArtifactStore(root=tmpdir)


class TestMakeArtifactName:
    def test_format(self):
        name = make_artifact_name("My Resume.PDF", "resumeFile")
        assert re.fullmatch(r"resumeFile-\d+-\d{9}\.pdf", name)

    def test_names_are_unique(self):
        names = {make_artifact_name("cv.pdf") for _ in range(50)}
        assert len(names) == 50

    def test_drops_suspicious_extension(self):
        assert "." not in make_artifact_name("weird.p/df")[5:]

    def test_no_extension(self):
        assert re.fullmatch(r"file-\d+-\d{9}", make_artifact_name("README"))


class TestLocalArtifactStore:
    def test_put_writes_file(self, local_store):
        locator = local_store.put(b"%PDF-1.4 hello", "cv.pdf")
        assert locator.startswith("/uploads/file-")
        assert locator.endswith(".pdf")
        assert local_store.exists(locator)
        assert local_store.path_for(locator).read_bytes() == b"%PDF-1.4 hello"

    def test_put_leaves_no_temp_files(self, local_store):
        local_store.put(b"data", "cv.pdf")
        assert [p.name for p in Path(local_store.root).iterdir() if p.name.startswith(".upload-")] == []

    def test_delete(self, local_store):
        locator = local_store.put(b"data", "cv.pdf")
        assert local_store.delete(locator) is DeleteResult.OK
        assert not local_store.exists(locator)

    def test_delete_missing_is_not_found(self, local_store):
        locator = local_store.put(b"data", "cv.pdf")
        local_store.delete(locator)
        assert local_store.delete(locator) is DeleteResult.NOT_FOUND

    def test_foreign_locators_are_ignored(self, local_store):
        assert local_store.delete("/elsewhere/file.pdf") is DeleteResult.NOT_FOUND
        assert local_store.delete("/uploads/../secret.txt") is DeleteResult.NOT_FOUND
        assert local_store.delete("") is DeleteResult.NOT_FOUND
        assert not local_store.exists("/uploads/..")
        assert local_store.path_for("/uploads/nope.pdf") is None

    def test_locators_lists_stored_files(self, local_store):
        first = local_store.put(b"a", "a.pdf")
        second = local_store.put(b"b", "b.png")
        (Path(local_store.root) / ".upload-partial").write_bytes(b"half")
        assert local_store.locators() == sorted([first, second])
        local_store.delete(first)
        assert local_store.locators() == [second]

    def test_custom_url_prefix(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = LocalArtifactStore(root=tmpdir, url_prefix="files/")
            locator = store.put(b"x", "a.png")
            assert locator.startswith("/files/")
            assert store.exists(locator)

    def test_write_failure_raises_storage_unavailable(self, local_store, monkeypatch):
        def broken_mkstemp(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(artifacts.tempfile, "mkstemp", broken_mkstemp)
        with pytest.raises(StorageUnavailable):
            local_store.put(b"data", "cv.pdf")


class TestInMemoryArtifactStore:
    def test_round_trip(self):
        store = InMemoryArtifactStore()
        locator = store.put(b"abc", "cv.docx")
        assert store.exists(locator)
        assert store.read(locator) == b"abc"
        assert store.locators() == [locator]
        assert store.delete(locator) is DeleteResult.OK
        assert store.delete(locator) is DeleteResult.NOT_FOUND
        assert store.locators() == []


class TestCreateArtifactStore:
    def test_memory_backend(self):
        assert isinstance(create_artifact_store(StorageConfig(backend="memory")), InMemoryArtifactStore)

    def test_local_backend(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = create_artifact_store(StorageConfig(backend="local", upload_dir=tmpdir))
            assert isinstance(store, LocalArtifactStore)

    def test_unknown_backend_falls_back_to_local(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = create_artifact_store(StorageConfig(backend="s3", upload_dir=tmpdir))
            assert isinstance(store, LocalArtifactStore)
