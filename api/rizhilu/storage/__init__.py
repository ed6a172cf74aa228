"""Storage module for post attachments on local disk."""

from rizhilu.storage.dependencies import StorageServiceDep, get_storage_service
from rizhilu.storage.service import (
    FileTooLargeError,
    InvalidContentTypeError,
    LocalStorageService,
    StorageError,
    StoredFile,
    StorageUploadError,
    TooManyFilesError,
)


__all__ = [
    "FileTooLargeError",
    "InvalidContentTypeError",
    "LocalStorageService",
    "StorageError",
    "StorageServiceDep",
    "StorageUploadError",
    "StoredFile",
    "TooManyFilesError",
    "get_storage_service",
]
