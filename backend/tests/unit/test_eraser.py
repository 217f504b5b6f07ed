"""Tests for storage.eraser.Eraser."""

import os
from unittest.mock import patch

import pytest

from storage.eraser import DeleteAllResult
from storage.errors import StorageIOError, StoredFileNotFound


class TestDeleteOne:
    async def test_deletes_file(self, video_storage, place_file, upload_dir):
        place_file("1_abcdef01.mp4")
        await video_storage.eraser.delete_one("1_abcdef01.mp4")
        assert os.listdir(upload_dir) == []

    async def test_missing_is_not_found(self, video_storage):
        with pytest.raises(StoredFileNotFound):
            await video_storage.eraser.delete_one("nope.mp4")

    async def test_second_delete_is_not_found(self, video_storage, place_file):
        place_file("a.mp4")
        await video_storage.eraser.delete_one("a.mp4")
        with pytest.raises(StoredFileNotFound):
            await video_storage.eraser.delete_one("a.mp4")

    @pytest.mark.parametrize("name", ["", ".", "..", "../a.mp4", "sub/a.mp4", "..\\a.mp4", "a\x00b.mp4"])
    async def test_rejects_non_plain_names(self, video_storage, tmp_path, name):
        (tmp_path / "a.mp4").write_bytes(b"x")
        with pytest.raises(StoredFileNotFound):
            await video_storage.eraser.delete_one(name)
        assert (tmp_path / "a.mp4").exists()

    async def test_directory_is_not_found(self, video_storage, upload_dir):
        os.mkdir(os.path.join(upload_dir, "nested"))
        with pytest.raises(StoredFileNotFound):
            await video_storage.eraser.delete_one("nested")

    async def test_permission_error_is_io_failure(self, video_storage, place_file):
        place_file("a.mp4")
        with patch("storage.eraser.os.remove", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(StorageIOError):
                await video_storage.eraser.delete_one("a.mp4")


class TestDeleteAll:
    async def test_empty_directory(self, video_storage):
        assert await video_storage.eraser.delete_all() == DeleteAllResult(deleted=0, failed=0)

    async def test_deletes_everything(self, video_storage, place_file, upload_dir):
        for i in range(5):
            place_file(f"{i}_00000000.mp4")
        assert await video_storage.eraser.delete_all() == DeleteAllResult(deleted=5, failed=0)
        assert os.listdir(upload_dir) == []

    async def test_continues_past_failures(self, video_storage, place_file, upload_dir):
        for name in ("a.mp4", "b.mp4", "c.mp4"):
            place_file(name)
        real_remove = os.remove

        def flaky_remove(path):
            if path.endswith("a.mp4"):
                raise PermissionError(13, "Permission denied", path)
            real_remove(path)

        with patch("storage.eraser.os.remove", side_effect=flaky_remove):
            result = await video_storage.eraser.delete_all()

        assert result == DeleteAllResult(deleted=2, failed=1)
        assert os.listdir(upload_dir) == ["a.mp4"]

    async def test_unreadable_directory(self, video_storage, upload_dir):
        os.rmdir(upload_dir)
        with pytest.raises(StorageIOError):
            await video_storage.eraser.delete_all()
