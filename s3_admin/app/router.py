"""Router registry and setup."""

from __future__ import annotations

from typing import TYPE_CHECKING

from s3_admin.core.settings import get_app_settings
from s3_admin.features.health.router import router as health_router
from s3_admin.features.metrics.router import router as metrics_router
from s3_admin.features.storage.router import router as storage_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from s3_admin.core.settings.app import AppSettings


def setup_routers(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Optional application settings override for the API prefix.
    """
    app_settings = app_settings or get_app_settings()

    # Observability endpoints live at the root, outside the API prefix
    app.include_router(metrics_router)
    app.include_router(health_router)

    app.include_router(storage_router, prefix=app_settings.api_prefix)
