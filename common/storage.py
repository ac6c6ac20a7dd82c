"""Content stores for generated artifacts.

Operations never write to a process-wide output directory directly. The
application factory builds one :class:`ContentStore` from configuration
and exposes it through ``app.extensions["content_store"]``; blueprints
hand results to it and return the opaque handle to the client.
"""

from __future__ import annotations

import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Mapping

from .errors import NotFoundAppError
from .io import secure_filename
from .logging import get_logger

logger = get_logger("pdf_toolkit.storage")

_FILE_ID_RE = re.compile(r"^[0-9a-f]{32}$")


@dataclass(frozen=True)
class StoredFile:
    """Handle for an artifact held by a content store."""

    file_id: str
    filename: str
    size_bytes: int
    path: Path | None = None


def _new_file_id() -> str:
    return uuid.uuid4().hex


def _check_file_id(file_id: str) -> str:
    if not file_id or not _FILE_ID_RE.match(file_id):
        raise NotFoundAppError(message="File not found or expired", code="files.not_found")
    return file_id


class ContentStore(ABC):
    """Write-once storage for operation results."""

    @abstractmethod
    def put(self, data: bytes, filename: str) -> StoredFile:
        """Persist ``data`` under a fresh identifier."""

    @abstractmethod
    def get(self, file_id: str) -> tuple[StoredFile, bytes]:
        """Return the handle and bytes for ``file_id``."""


class LocalContentStore(ContentStore):
    """Stores artifacts as ``<file_id>-<filename>`` inside ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def put(self, data: bytes, filename: str) -> StoredFile:
        self.root.mkdir(parents=True, exist_ok=True)
        file_id = _new_file_id()
        safe_name = secure_filename(filename, fallback="download")
        path = self.root / f"{file_id}-{safe_name}"
        path.write_bytes(data)
        logger.info("stored %s (%d bytes) as %s", safe_name, len(data), file_id)
        return StoredFile(file_id=file_id, filename=safe_name, size_bytes=len(data), path=path)

    def get(self, file_id: str) -> tuple[StoredFile, bytes]:
        _check_file_id(file_id)
        matches = sorted(self.root.glob(f"{file_id}-*")) if self.root.exists() else []
        if not matches:
            raise NotFoundAppError(message="File not found or expired", code="files.not_found")
        path = matches[0]
        data = path.read_bytes()
        filename = path.name[len(file_id) + 1 :] or "download"
        return StoredFile(file_id=file_id, filename=filename, size_bytes=len(data), path=path), data


class MemoryContentStore(ContentStore):
    """Process-local store used by tests and single-shot tooling."""

    def __init__(self) -> None:
        self._items: dict[str, tuple[StoredFile, bytes]] = {}
        self._lock = Lock()

    def put(self, data: bytes, filename: str) -> StoredFile:
        file_id = _new_file_id()
        stored = StoredFile(
            file_id=file_id,
            filename=secure_filename(filename, fallback="download"),
            size_bytes=len(data),
        )
        with self._lock:
            self._items[file_id] = (stored, bytes(data))
        return stored

    def get(self, file_id: str) -> tuple[StoredFile, bytes]:
        _check_file_id(file_id)
        with self._lock:
            item = self._items.get(file_id)
        if item is None:
            raise NotFoundAppError(message="File not found or expired", code="files.not_found")
        return item

    def __len__(self) -> int:
        # unlocked read; entries are never evicted, this backend serves tests only
        return len(self._items)


def build_content_store(config: Mapping[str, Any]) -> ContentStore:
    kind = str(config.get("CONTENT_STORE", "local")).lower()
    if kind == "memory":
        return MemoryContentStore()
    if kind != "local":
        raise ValueError(f"Unknown content store backend: {kind}")
    return LocalContentStore(Path(config["OUTPUT_ROOT"]))


def get_content_store(app) -> ContentStore:
    store = app.extensions.get("content_store")
    if store is None:
        store = build_content_store(app.config)
        app.extensions["content_store"] = store
    return store


__all__ = [
    "StoredFile",
    "ContentStore",
    "LocalContentStore",
    "MemoryContentStore",
    "build_content_store",
    "get_content_store",
]
