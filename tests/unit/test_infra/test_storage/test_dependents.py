"""Unit tests for access point clearing."""

import pytest

from s3_admin.infra.storage.dependents import AccessPointResolver, ClearResult
from s3_admin.infra.storage.exceptions import UnavailableError
from tests.fixtures.storage_fixtures import ACCOUNT_ID


class TestAccessPointResolver:
    """Test AccessPointResolver.clear."""

    @pytest.mark.asyncio
    async def test_clears_all_access_points(self, gateway):
        """Test that every attached access point is deleted in order."""
        gateway.add_bucket("demo2", access_points=["ap1", "ap2"])

        result = await AccessPointResolver(gateway).clear("demo2", ACCOUNT_ID)

        assert result.succeeded
        assert result.total == 2
        assert result.cleared == ["ap1", "ap2"]
        assert result.count == 2
        assert gateway.buckets["demo2"].access_points == []

    @pytest.mark.asyncio
    async def test_nothing_attached(self, gateway):
        """Test that a bucket without access points is an empty success."""
        gateway.add_bucket("plain")

        result = await AccessPointResolver(gateway).clear("plain", ACCOUNT_ID)

        assert result == ClearResult()
        assert result.succeeded

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self, gateway):
        """Test fail-stop behaviour on the first failed deletion."""
        gateway.add_bucket("demo3", access_points=["ap1", "ap2", "ap3"])
        gateway.failing_access_points.add("ap2")

        result = await AccessPointResolver(gateway).clear("demo3", ACCOUNT_ID)

        assert not result.succeeded
        assert result.cleared == ["ap1"]
        assert result.failed_name == "ap2"
        assert isinstance(result.error, UnavailableError)
        assert gateway.buckets["demo3"].access_points == ["ap2", "ap3"]
