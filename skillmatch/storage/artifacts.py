"""Artifact store adapters - durable put/delete/exists for binary uploads.

Artifacts live outside the relational store and cannot join its
transactions. Callers write content first, persist the returned locator in a
document or profile row, and rely on the compensation handler to remove
whatever the transaction outcome leaves unreferenced.
"""

import enum
import logging
import os
import random
import tempfile
import threading
import time
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol

from skillmatch.config import StorageConfig
from skillmatch.errors import StorageUnavailable

logger = logging.getLogger("skillmatch.storage.artifacts")

TEMP_PREFIX = ".upload-"


class DeleteResult(enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"


class ArtifactStore(Protocol):
    def put(self, data: bytes, suggested_name: str) -> str: ...

    def delete(self, locator: str) -> DeleteResult: ...

    def exists(self, locator: str) -> bool: ...

    def locators(self) -> list[str]: ...


def make_artifact_name(suggested_name: str, prefix: str = "file") -> str:
    """Build a collision-resistant file name: <prefix>-<millis>-<random><ext>."""
    ext = PurePosixPath(suggested_name or "").suffix.lower()
    # Strip anything odd that slipped into the suffix
    if not ext[1:].isalnum():
        ext = ""
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999):09d}"
    return f"{prefix}-{unique_suffix}{ext}"


class LocalArtifactStore:
    """Filesystem-backed store. Locators look like ``/uploads/<name>``."""

    def __init__(self, root: str | Path = "uploads", url_prefix: str = "/uploads", name_prefix: str = "file"):
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.name_prefix = name_prefix
        self.root.mkdir(parents=True, exist_ok=True)

    def _locator_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def _resolve(self, locator: str) -> Optional[Path]:
        """Map a locator back to a path inside root, or None if it does not belong here."""
        if not locator or not locator.startswith(self.url_prefix + "/"):
            return None
        name = locator[len(self.url_prefix) + 1:]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.root / name

    def put(self, data: bytes, suggested_name: str) -> str:
        filename = make_artifact_name(suggested_name, self.name_prefix)
        dest = self.root / filename
        tmp_path = None
        try:
            # Write to a temp file and rename so readers never see a partial artifact
            fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=TEMP_PREFIX)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, dest)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.warning("Could not remove temp upload %s", tmp_path)
            logger.error("Failed to store artifact %s: %s", filename, e)
            raise StorageUnavailable(f"Artifact store unavailable: {e}") from e

        locator = self._locator_for(filename)
        logger.info("Stored artifact %s (%d bytes)", locator, len(data))
        return locator

    def delete(self, locator: str) -> DeleteResult:
        path = self._resolve(locator)
        if path is None:
            logger.warning("Locator %s is not managed by this store, skipping deletion", locator)
            return DeleteResult.NOT_FOUND
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Artifact not found, skipping deletion: %s", locator)
            return DeleteResult.NOT_FOUND
        logger.info("Deleted artifact %s", locator)
        return DeleteResult.OK

    def exists(self, locator: str) -> bool:
        path = self._resolve(locator)
        return path is not None and path.is_file()

    def locators(self) -> list[str]:
        """Every stored artifact, skipping in-flight temp files."""
        return sorted(
            self._locator_for(path.name)
            for path in self.root.iterdir()
            if path.is_file() and not path.name.startswith(TEMP_PREFIX)
        )

    def path_for(self, locator: str) -> Optional[Path]:
        """Filesystem path behind a locator, for serving downloads."""
        path = self._resolve(locator)
        if path is None or not path.is_file():
            return None
        return path


class InMemoryArtifactStore:
    """Dict-backed store with the same contract; content is lost on restart."""

    def __init__(self, url_prefix: str = "/uploads", name_prefix: str = "file"):
        self.url_prefix = "/" + url_prefix.strip("/")
        self.name_prefix = name_prefix
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, data: bytes, suggested_name: str) -> str:
        locator = f"{self.url_prefix}/{make_artifact_name(suggested_name, self.name_prefix)}"
        with self._lock:
            self._blobs[locator] = bytes(data)
        logger.info("Stored artifact %s (%d bytes) in memory", locator, len(data))
        return locator

    def delete(self, locator: str) -> DeleteResult:
        with self._lock:
            if self._blobs.pop(locator, None) is None:
                logger.warning("Artifact not found, skipping deletion: %s", locator)
                return DeleteResult.NOT_FOUND
        logger.info("Deleted artifact %s", locator)
        return DeleteResult.OK

    def exists(self, locator: str) -> bool:
        with self._lock:
            return locator in self._blobs

    def read(self, locator: str) -> Optional[bytes]:
        with self._lock:
            return self._blobs.get(locator)

    def locators(self) -> list[str]:
        with self._lock:
            return sorted(self._blobs)


def create_artifact_store(config: StorageConfig) -> ArtifactStore:
    """Build the artifact store named by config.storage.backend."""
    if config.backend == "memory":
        return InMemoryArtifactStore(url_prefix=config.url_prefix)
    if config.backend != "local":
        logger.warning("Unknown storage backend '%s', using local filesystem", config.backend)
    return LocalArtifactStore(root=config.upload_dir, url_prefix=config.url_prefix)
