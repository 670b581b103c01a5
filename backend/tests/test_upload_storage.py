"""
SpiritArt Backend: Upload Storage Tests
========================================

What we test:
    ✅ Extension allow-list (case-insensitive) and size limits
    ✅ Disk and memory strategies save, read and discard
    ✅ Path traversal names are treated as not found
    ✅ Scheduled cleanup removes the upload
"""

import asyncio

import pytest

from spiritart.exceptions import InvalidUploadError, NotFoundError
from spiritart.services.upload_storage import (
    DiskUploadStorage,
    MemoryUploadStorage,
    build_upload_storage,
    make_upload_name,
    validate_extension,
    validate_size,
)

MAX = 4 * 1024 * 1024


class TestValidation:

    @pytest.mark.parametrize(
        "filename, expected",
        [("photo.jpg", ".jpg"), ("photo.JPEG", ".jpeg"), ("shot.Png", ".png")],
    )
    def test_allowed_extensions(self, filename, expected):
        assert validate_extension(filename) == expected

    @pytest.mark.parametrize("filename", ["anim.gif", "doc.pdf", "noext", "", "photo.jpg.exe"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(InvalidUploadError, match="Only JPG and PNG files are allowed!"):
            validate_extension(filename)

    def test_message_prefixed(self):
        with pytest.raises(InvalidUploadError) as exc_info:
            validate_extension("anim.gif")
        assert exc_info.value.message.startswith("File upload error: ")

    def test_size_at_limit_accepted(self):
        validate_size(MAX, MAX, MAX)

    def test_actual_size_over_limit(self):
        with pytest.raises(InvalidUploadError, match="File too large"):
            validate_size(None, MAX + 1, MAX)

    def test_declared_size_over_limit(self):
        with pytest.raises(InvalidUploadError, match="File too large"):
            validate_size(MAX + 1, 10, MAX)

    def test_upload_name_keeps_extension(self):
        name = make_upload_name(".png")
        assert name.endswith("-original.png")
        assert "/" not in name


class TestDiskUploadStorage:

    async def test_save_read_discard(self, tmp_path):
        storage = DiskUploadStorage(str(tmp_path))

        await storage.save("abc-original.jpg", b"jpeg-bytes")
        item = await storage.read("abc-original.jpg")

        assert item.content == b"jpeg-bytes"
        assert item.media_type == "image/jpeg"
        assert (tmp_path / "abc-original.jpg").exists()

        storage.discard("abc-original.jpg")
        assert not (tmp_path / "abc-original.jpg").exists()

    async def test_discard_missing_is_silent(self, tmp_path):
        DiskUploadStorage(str(tmp_path)).discard("never-existed.png")

    async def test_path_traversal_rejected(self, tmp_path):
        storage = DiskUploadStorage(str(tmp_path / "uploads"))
        (tmp_path / "secret.txt").write_text("nope")

        with pytest.raises(NotFoundError):
            await storage.read("../secret.txt")

    async def test_read_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            await DiskUploadStorage(str(tmp_path)).read("missing.png")


class TestMemoryUploadStorage:

    async def test_save_read_discard(self):
        storage = MemoryUploadStorage()

        await storage.save("abc-original.png", b"png-bytes")
        item = await storage.read("abc-original.png")
        assert item.content == b"png-bytes"
        assert item.media_type == "image/png"

        storage.discard("abc-original.png")
        assert len(storage) == 0
        with pytest.raises(NotFoundError):
            await storage.read("abc-original.png")

    async def test_scheduled_cleanup_fires(self):
        storage = MemoryUploadStorage()
        await storage.save("abc-original.png", b"png-bytes")

        storage.schedule_cleanup("abc-original.png", 0.01)
        assert len(storage) == 1

        await asyncio.sleep(0.05)
        assert len(storage) == 0


class TestFactory:

    def test_memory(self):
        assert isinstance(build_upload_storage("memory", "./unused"), MemoryUploadStorage)

    def test_disk(self, tmp_path):
        storage = build_upload_storage("disk", str(tmp_path / "uploads"))
        assert isinstance(storage, DiskUploadStorage)
        assert (tmp_path / "uploads").is_dir()
