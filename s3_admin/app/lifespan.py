"""Application lifespan management.

Startup Order:
1. Core (logging) - always runs first
2. Storage (S3 and S3 Control clients) - conditional on configuration

Shutdown Order: Reverse of startup
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from s3_admin.core.settings import (
    get_app_settings,
    get_logging_settings,
    get_storage_settings,
)
from s3_admin.infra.logging.config import setup_logging
from s3_admin.infra.logging.config import shutdown as shutdown_logging
from s3_admin.infra.storage.service import get_storage_service

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


async def _startup_core() -> None:
    """Configure logging."""
    app = get_app_settings()

    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={
            "service": app.service_name,
            "version": app.version,
            "environment": app.environment,
        },
    )


async def _startup_storage() -> None:
    """Open the storage clients, or continue degraded if that fails."""
    settings = get_storage_settings()

    if not settings.is_configured:
        logger.info("Storage disabled, bucket endpoints will answer 503")
        return

    try:
        await get_storage_service().startup()
        logger.info(
            "Storage service initialized",
            extra={
                "endpoint": settings.endpoint,
                "region": settings.region,
                "account_id_configured": settings.has_account_id,
            },
        )
    except Exception as e:
        if settings.startup_require_storage:
            logger.exception("Storage service required but unavailable, failing startup")
            raise
        logger.warning(
            "Storage service unavailable, continuing in degraded mode",
            extra={"error": str(e)},
        )


async def _shutdown_storage() -> None:
    try:
        await get_storage_service().shutdown()
    except Exception:
        logger.exception("Error shutting down storage service")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    _ = app

    await _startup_core()
    await _startup_storage()

    yield

    logger.info("Application shutting down")
    await _shutdown_storage()
    shutdown_logging()
