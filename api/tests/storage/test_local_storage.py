"""Tests for LocalStorageService."""

import io
import re
import threading
from pathlib import Path

import pytest
from starlette.datastructures import Headers, UploadFile

from rizhilu.config.settings import Settings
from rizhilu.storage.service import (
    FileTooLargeError,
    InvalidContentTypeError,
    LocalStorageService,
    TooManyFilesError,
    fix_filename_encoding,
)


def _upload(name: str, content: bytes, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


class TestFilenameEncoding:
    """Tests for repairing mis-decoded UTF-8 file names."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("report.pdf", "report.pdf"),
            ("讲义.pdf", "讲义.pdf"),
            ("讲义.pdf".encode().decode("latin-1"), "讲义.pdf"),
            ("café.txt", "café.txt"),
        ],
    )
    def test_fix_filename_encoding(self, raw: str, expected: str) -> None:
        assert fix_filename_encoding(raw) == expected


class TestValidation:
    def test_size_limit(self, storage: LocalStorageService) -> None:
        """Files above the configured limit are rejected."""
        with pytest.raises(FileTooLargeError) as exc_info:
            storage.validate("text/plain", storage.max_file_size + 1)
        assert exc_info.value.code == "file_too_large"

    def test_size_at_limit_allowed(self, storage: LocalStorageService) -> None:
        storage.validate("text/plain", storage.max_file_size)

    def test_content_type_not_allowed(self, storage: LocalStorageService) -> None:
        with pytest.raises(InvalidContentTypeError) as exc_info:
            storage.validate("application/x-msdownload", 10)
        assert exc_info.value.code == "invalid_content_type"

    def test_missing_content_type(self, storage: LocalStorageService) -> None:
        with pytest.raises(InvalidContentTypeError):
            storage.validate(None, 10)

    def test_file_count(self, storage: LocalStorageService) -> None:
        storage.check_count(5)
        with pytest.raises(TooManyFilesError) as exc_info:
            storage.check_count(6)
        assert exc_info.value.code == "too_many_files"


class TestSaveAndDelete:
    @pytest.mark.asyncio
    async def test_save_writes_unique_file(self, storage: LocalStorageService):
        first = await storage.save(_upload("Slides.PPT", b"one", "text/plain"))
        second = await storage.save(_upload("Slides.PPT", b"two", "text/plain"))

        assert first.filename != second.filename
        assert re.fullmatch(r"\d+-\d+\.ppt", first.filename)
        assert first.original_name == "Slides.PPT"
        assert first.size == 3
        assert (storage.root / first.filename).read_bytes() == b"one"

    @pytest.mark.asyncio
    async def test_save_creates_missing_root(self, tmp_path):
        service = LocalStorageService(Settings(upload_dir=str(tmp_path / "new")))

        stored = await service.save(_upload("a.txt", b"x", "text/plain"))

        assert (tmp_path / "new" / stored.filename).is_file()

    @pytest.mark.asyncio
    async def test_save_rejects_large_file(self, tmp_path):
        service = LocalStorageService(
            Settings(upload_dir=str(tmp_path), upload_max_file_size_mb=0)
        )
        with pytest.raises(FileTooLargeError):
            await service.save(_upload("a.txt", b"x", "text/plain"))
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_delete(self, storage: LocalStorageService):
        stored = await storage.save(_upload("a.txt", b"x", "text/plain"))

        assert storage.resolve(stored.path) is not None
        assert await storage.delete(stored.path) is True
        assert storage.resolve(stored.path) is None
        assert await storage.delete(stored.path) is False

    @pytest.mark.asyncio
    async def test_disk_writes_leave_event_loop_thread(
        self, storage: LocalStorageService, monkeypatch
    ):
        threads: list[threading.Thread] = []
        real_write, real_unlink = Path.write_bytes, Path.unlink

        def write_bytes(self, data):
            threads.append(threading.current_thread())
            return real_write(self, data)

        def unlink(self, missing_ok=False):
            threads.append(threading.current_thread())
            return real_unlink(self, missing_ok=missing_ok)

        monkeypatch.setattr(Path, "write_bytes", write_bytes)
        monkeypatch.setattr(Path, "unlink", unlink)

        stored = await storage.save(_upload("a.txt", b"x", "text/plain"))
        await storage.delete(stored.path)

        assert len(threads) == 2
        assert all(t is not threading.main_thread() for t in threads)
