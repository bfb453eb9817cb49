"""Dependencies for storage administration endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from s3_admin.infra.storage.exceptions import UnavailableError
from s3_admin.infra.storage.service import StorageService, get_storage_service


async def require_storage(
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> StorageService:
    """Dependency that requires storage to be available.

    Raises:
        UnavailableError: 503 if storage is not configured or not ready
    """
    if not storage.is_ready:
        raise UnavailableError(
            "Storage service is not available",
            metadata={"is_configured": storage.settings.is_configured},
        )
    return storage


StorageServiceDep = Annotated[StorageService, Depends(require_storage)]

__all__ = ["StorageServiceDep", "require_storage"]
