"""Local disk storage for post attachments.

Handles uploads into the configured upload directory with:
- Size limit and MIME allow-list enforcement
- Unique generated file names (timestamp, random suffix, original extension)
- Repair of UTF-8 file names that arrive decoded as Latin-1
"""

import asyncio
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from rizhilu.config.settings import Settings
from rizhilu.core.exceptions import ForumError


if TYPE_CHECKING:
    from fastapi import UploadFile


logger = structlog.get_logger(__name__)


class StorageError(ForumError):
    """Base error for storage operations."""

    def __init__(self, message: str, code: str = "storage_error") -> None:
        super().__init__(message, code)


class StorageUploadError(StorageError):
    """Error while writing or removing a file."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "upload_error")


class FileTooLargeError(StorageError):
    """Error when file exceeds size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        message = (
            f"File size ({size / 1024 / 1024:.2f} MB) exceeds "
            f"maximum allowed ({max_size / 1024 / 1024:.2f} MB)"
        )
        super().__init__(message, "file_too_large")


class InvalidContentTypeError(StorageError):
    """Error when content type is not allowed."""

    def __init__(self, content_type: str) -> None:
        super().__init__(
            f"Content type '{content_type}' is not allowed", "invalid_content_type"
        )


class TooManyFilesError(StorageError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            f"At most {limit} files per post ({count} given)", "too_many_files"
        )


@dataclass
class StoredFile:
    """A file written to the upload directory."""

    filename: str
    original_name: str
    mimetype: str
    size: int
    path: str


def fix_filename_encoding(name: str) -> str:
    """Undo Latin-1 mojibake on a UTF-8 file name.

    >>> fix_filename_encoding("æ\\x96\\x87æ¡£.pdf")
    '文档.pdf'
    >>> fix_filename_encoding("report.pdf")
    'report.pdf'
    """
    try:
        return name.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return name


class LocalStorageService:
    """Service for storing attachments on local disk."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.root = settings.upload_path

    @property
    def max_file_size(self) -> int:
        """Maximum file size in bytes."""
        return self.settings.upload_max_file_size_mb * 1024 * 1024

    @property
    def max_files(self) -> int:
        return self.settings.upload_max_files_per_post

    @property
    def allowed_types(self) -> list[str]:
        return self.settings.upload_allowed_types

    def ensure_root(self) -> None:
        """Create the upload directory if missing."""
        self.root.mkdir(parents=True, exist_ok=True)

    def _generate_filename(self, original_name: str) -> str:
        """Build a unique stored name: ``{millis}-{random}{ext}``."""
        millis = int(datetime.now(UTC).timestamp() * 1000)
        suffix = secrets.randbelow(10**9)
        return f"{millis}-{suffix}{Path(original_name).suffix.lower()}"

    def validate(self, content_type: str | None, size: int) -> None:
        """Check one upload against the size limit and the allow-list.

        Raises:
            FileTooLargeError: If the file exceeds the size limit
            InvalidContentTypeError: If the MIME type is not allowed
        """
        if size > self.max_file_size:
            raise FileTooLargeError(size, self.max_file_size)
        if content_type not in self.allowed_types:
            raise InvalidContentTypeError(content_type or "unknown")

    def check_count(self, count: int) -> None:
        """Raises TooManyFilesError above the per-post limit."""
        if count > self.max_files:
            raise TooManyFilesError(count, self.max_files)

    async def save(self, upload: "UploadFile") -> StoredFile:
        """Validate and write one upload to disk.

        Raises:
            FileTooLargeError: If the file exceeds the size limit
            InvalidContentTypeError: If the MIME type is not allowed
            StorageUploadError: If writing fails
        """
        content = await upload.read()
        self.validate(upload.content_type, len(content))

        original_name = fix_filename_encoding(upload.filename or "file")
        filename = self._generate_filename(original_name)
        target = self.root / filename

        try:
            self.ensure_root()
            await asyncio.to_thread(target.write_bytes, content)
        except OSError as e:
            logger.exception("file_write_failed", path=str(target), error=str(e))
            raise StorageUploadError(f"Failed to store file: {e}") from e

        logger.info(
            "file_stored",
            filename=filename,
            original_name=original_name,
            content_type=upload.content_type,
            file_size=len(content),
        )
        return StoredFile(
            filename=filename,
            original_name=original_name,
            mimetype=upload.content_type or "application/octet-stream",
            size=len(content),
            path=str(target),
        )

    def resolve(self, path: str) -> Path | None:
        """Path of a stored file, or None if it no longer exists."""
        candidate = Path(path)
        return candidate if candidate.is_file() else None

    async def delete(self, path: str) -> bool:
        """Remove a stored file.

        Returns:
            True if deleted, False if it was already gone.

        Raises:
            StorageUploadError: If removal fails
        """
        target = Path(path)
        if not target.exists():
            logger.warning("delete_file_not_found", path=path)
            return False

        try:
            await asyncio.to_thread(target.unlink)
        except OSError as e:
            logger.exception("file_delete_failed", path=path, error=str(e))
            raise StorageUploadError(f"Failed to delete file: {e}") from e

        logger.info("file_deleted", path=path)
        return True
