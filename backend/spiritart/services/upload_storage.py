"""
SpiritArt Backend: Temporary Upload Storage
============================================

What:  Validates uploads and keeps the untouched original around long enough
       for the client to show it next to the generated image.
How:   One `UploadStorage` interface with two strategies, picked by
       UPLOAD_STORAGE:

    disk    DiskUploadStorage     files under UPLOAD_DIR (aiofiles)
    memory  MemoryUploadStorage   bytes held in a process-local dict

Either way the original is served from GET /uploads/<name> and removed by an
event-loop timer UPLOAD_CLEANUP_DELAY seconds after it was stored. The timer
is scheduled as soon as the file is saved, so it fires whether the request
succeeds or fails.

File names are `<uuid hex>-original<ext>`; no user input reaches the path.
"""

import asyncio
import logging
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import aiofiles

from spiritart.exceptions import FileStorageError, InvalidUploadError, NotFoundError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}

MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


@dataclass(frozen=True)
class StoredUpload:
    content: bytes
    media_type: str


def validate_extension(filename: str) -> str:
    """Return the lowercased extension, or raise InvalidUploadError."""
    ext = Path(filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidUploadError(
            "Only JPG and PNG files are allowed!",
            context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
        )
    return ext


def validate_size(content_length: Optional[int], actual_size: int, max_size: int) -> None:
    """
    Reject uploads over `max_size`.

    The declared part size is checked first; the byte count actually read
    is checked as well since clients can misreport it.
    """
    if content_length and content_length > max_size:
        raise InvalidUploadError(
            "File too large",
            context={"max_size": max_size, "reported_size": content_length},
        )
    if actual_size > max_size:
        raise InvalidUploadError(
            "File too large",
            context={"max_size": max_size, "actual_size": actual_size},
        )


def media_type_for(name: str) -> str:
    return MEDIA_TYPES.get(Path(name).suffix.lower(), "application/octet-stream")


def make_upload_name(extension: str) -> str:
    return f"{uuid.uuid4().hex}-original{extension}"


class UploadStorage(ABC):
    """Short-lived storage for original uploads."""

    @abstractmethod
    async def save(self, name: str, content: bytes) -> None:
        """Store `content` under `name`. Raises FileStorageError."""
        ...

    @abstractmethod
    async def read(self, name: str) -> StoredUpload:
        """Fetch a stored upload. Raises NotFoundError if absent or expired."""
        ...

    @abstractmethod
    def discard(self, name: str) -> None:
        """Remove a stored upload. Best effort: never raises."""
        ...

    def schedule_cleanup(self, name: str, delay: float) -> asyncio.TimerHandle:
        """Discard `name` after `delay` seconds on the running event loop."""
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self.discard, name)


class DiskUploadStorage(UploadStorage):
    def __init__(self, root: str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("DiskUploadStorage initialized with root=%s", self.root)

    def _path_for(self, name: str) -> Path:
        path = (self.root / name).resolve()
        # Reject anything that escapes the upload directory
        if path.parent != self.root:
            raise NotFoundError(resource="upload", resource_id=name)
        return path

    async def save(self, name: str, content: bytes) -> None:
        path = self._path_for(name)
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"name": name, "os_error": str(e)},
            ) from e
        logger.info("Saved original upload %s (%d bytes)", name, len(content))

    async def read(self, name: str) -> StoredUpload:
        path = self._path_for(name)
        if not path.is_file():
            raise NotFoundError(resource="upload", resource_id=name)
        async with aiofiles.open(path, "rb") as f:
            content = await f.read()
        return StoredUpload(content=content, media_type=media_type_for(name))

    def discard(self, name: str) -> None:
        try:
            os.remove(self._path_for(name))
            logger.info("Cleaned up temporary file: %s", name)
        except FileNotFoundError:
            logger.debug("Cleanup: file already gone: %s", name)
        except (OSError, NotFoundError) as e:
            logger.warning("Error cleaning up temporary file %s: %s", name, str(e))


class MemoryUploadStorage(UploadStorage):
    """Keeps uploads in process memory; contents are lost on restart."""

    def __init__(self):
        self._items: Dict[str, StoredUpload] = {}

    async def save(self, name: str, content: bytes) -> None:
        self._items[name] = StoredUpload(content=content, media_type=media_type_for(name))
        logger.info("Held original upload %s in memory (%d bytes)", name, len(content))

    async def read(self, name: str) -> StoredUpload:
        item = self._items.get(name)
        if item is None:
            raise NotFoundError(resource="upload", resource_id=name)
        return item

    def discard(self, name: str) -> None:
        if self._items.pop(name, None) is not None:
            logger.info("Cleaned up in-memory upload: %s", name)

    def __len__(self) -> int:
        return len(self._items)


def build_upload_storage(kind: str, upload_dir: str) -> UploadStorage:
    if kind == "memory":
        return MemoryUploadStorage()
    return DiskUploadStorage(upload_dir)
