"""Health check API endpoint.

``/health`` always answers 200 so a load balancer can tell the process is
alive; ``status`` turns to "degraded" when storage is configured but the
provider is not reachable.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from s3_admin.core.settings import get_app_settings
from s3_admin.features.health.schemas import HealthResponse, StorageHealth
from s3_admin.infra.storage.service import StorageService, get_storage_service

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health",
    description="Returns service status, version and storage readiness",
)
async def health_check(
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> HealthResponse:
    settings = storage.settings
    healthy = await storage.health_check()

    degraded = settings.is_configured and not healthy
    return HealthResponse(
        status="degraded" if degraded else "ok",
        timestamp=datetime.now(UTC),
        version=get_app_settings().version,
        storage=StorageHealth(
            configured=settings.is_configured,
            ready=storage.is_ready,
            healthy=healthy,
            account_id_configured=settings.has_account_id,
        ),
    )
