"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off real infrastructure
    - Settings Fixtures: StorageSettings with and without an account ID
    - Storage Fixtures: in-memory gateway and a service wired to it
"""

from __future__ import annotations

import os

import pytest

# Ensure tests run without external infrastructure
os.environ.setdefault("STORAGE_ENABLED", "false")
os.environ.setdefault("STORAGE_ACCOUNT_ID", "")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("APP_ENVIRONMENT", "test")

from s3_admin.core.settings import StorageSettings, clear_settings_cache  # noqa: E402
from s3_admin.infra.storage.service import StorageService, reset_storage_service  # noqa: E402
from tests.fixtures.storage_fixtures import ACCOUNT_ID, InMemoryGateway  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Give every test fresh settings caches and a fresh service singleton."""
    clear_settings_cache()
    reset_storage_service()
    yield
    clear_settings_cache()
    reset_storage_service()


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def storage_settings() -> StorageSettings:
    """Storage settings with an account ID configured."""
    return StorageSettings(enabled=True, region="us-east-1", account_id=ACCOUNT_ID)


@pytest.fixture
def storage_settings_no_account() -> StorageSettings:
    """Storage settings without an account ID."""
    return StorageSettings(enabled=True, region="us-east-1", account_id=None)


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def gateway() -> InMemoryGateway:
    """Empty in-memory gateway."""
    return InMemoryGateway()


@pytest.fixture
def storage_service(storage_settings: StorageSettings, gateway: InMemoryGateway) -> StorageService:
    """StorageService wired to the in-memory gateway, account ID configured."""
    return StorageService(storage_settings, gateway=gateway)
