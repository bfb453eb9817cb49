"""Modular Pydantic Settings v2 configuration.

Settings are split by domain (app, logging, storage), immutable once
loaded, and read through LRU-cached loaders:

    from s3_admin.core.settings import get_storage_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files (optional, local/dev)
    3. Environment variables (production)
    4. .env file (development only)
    5. secrets_dir (Kubernetes/Docker secrets)
"""

from __future__ import annotations

from .app import AppSettings
from .loader import (
    clear_settings_cache,
    get_app_settings,
    get_logging_settings,
    get_storage_settings,
)
from .logs import LoggingSettings
from .storage import StorageSettings

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "StorageSettings",
    "clear_settings_cache",
    "get_app_settings",
    "get_logging_settings",
    "get_storage_settings",
]
