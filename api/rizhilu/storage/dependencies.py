"""Dependencies for storage module."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from rizhilu.storage.service import LocalStorageService


def get_storage_service(request: Request) -> LocalStorageService:
    """Get storage service from app state."""
    storage = getattr(request.app.state, "storage_service", None)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage service not available",
        )
    return storage


# Type alias for dependency injection
StorageServiceDep = Annotated[LocalStorageService, Depends(get_storage_service)]
