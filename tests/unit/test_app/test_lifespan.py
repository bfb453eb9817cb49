"""Tests for application lifespan storage startup."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from s3_admin.app.lifespan import _shutdown_storage, _startup_storage
from s3_admin.core.settings import StorageSettings
from s3_admin.infra.storage.exceptions import UnavailableError


def _service(startup_side_effect=None) -> MagicMock:
    service = MagicMock()
    service.startup = AsyncMock(side_effect=startup_side_effect)
    service.shutdown = AsyncMock()
    return service


@pytest.mark.asyncio
async def test_storage_disabled_skips_startup() -> None:
    """Disabled storage never opens clients."""
    service = _service()

    with (
        patch("s3_admin.app.lifespan.get_storage_settings", return_value=StorageSettings(enabled=False)),
        patch("s3_admin.app.lifespan.get_storage_service", return_value=service),
    ):
        await _startup_storage()

    service.startup.assert_not_awaited()


@pytest.mark.asyncio
async def test_storage_failure_continues_degraded() -> None:
    """A storage startup failure is tolerated by default."""
    service = _service(UnavailableError("no route to host"))

    with (
        patch("s3_admin.app.lifespan.get_storage_settings", return_value=StorageSettings(enabled=True)),
        patch("s3_admin.app.lifespan.get_storage_service", return_value=service),
    ):
        await _startup_storage()

    service.startup.assert_awaited_once()


@pytest.mark.asyncio
async def test_required_storage_failure_fails_startup() -> None:
    """With startup_require_storage the failure propagates."""
    service = _service(UnavailableError("no route to host"))
    settings = StorageSettings(enabled=True, startup_require_storage=True)

    with (
        patch("s3_admin.app.lifespan.get_storage_settings", return_value=settings),
        patch("s3_admin.app.lifespan.get_storage_service", return_value=service),
        pytest.raises(UnavailableError),
    ):
        await _startup_storage()


@pytest.mark.asyncio
async def test_shutdown_storage_closes_service() -> None:
    """Shutdown closes the storage service."""
    service = _service()

    with patch("s3_admin.app.lifespan.get_storage_service", return_value=service):
        await _shutdown_storage()

    service.shutdown.assert_awaited_once()
