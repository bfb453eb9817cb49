"""Test fixtures for pytest.

This module re-exports commonly used test fixtures for easier importing.
"""

from .storage_fixtures import ACCOUNT_ID, FIXED_TIME, FakeBucket, InMemoryGateway, StoredObject

__all__ = [
    "ACCOUNT_ID",
    "FIXED_TIME",
    "FakeBucket",
    "InMemoryGateway",
    "StoredObject",
]
