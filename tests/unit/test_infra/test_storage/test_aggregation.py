"""Unit tests for best-effort bucket aggregates."""

from unittest.mock import patch

import pytest

from s3_admin.infra.storage.aggregation import (
    BucketTotals,
    bucket_totals,
    count_objects,
    total_bytes,
)


class TestBucketTotals:
    """Test listing aggregation."""

    @pytest.mark.asyncio
    async def test_sums_every_page(self, gateway):
        """Test that totals cover objects across several pages."""
        gateway.add_bucket("big", objects={f"k{i:04d}": b"x" * 3 for i in range(2500)})

        totals = await bucket_totals(gateway, "big")

        assert totals == BucketTotals(object_count=2500, total_bytes=7500)
        assert gateway.calls.count("list_objects") == 3

    @pytest.mark.asyncio
    async def test_prefix_filter(self, gateway):
        """Test that only keys under the prefix are aggregated."""
        gateway.add_bucket(
            "docs", objects={"a/1.txt": b"12", "a/2.txt": b"345", "b/3.txt": b"6789"}
        )

        assert await total_bytes(gateway, "docs", prefix="a/") == 5
        assert await count_objects(gateway, "docs", prefix="a/") == 2

    @pytest.mark.asyncio
    async def test_page_failure_yields_zero(self, gateway):
        """Test that a failure on a later page yields 0, never a partial sum."""
        gateway.add_bucket("flaky", objects={f"k{i:04d}": b"x" for i in range(1500)})
        gateway.failing_listings["flaky"] = 1

        assert await total_bytes(gateway, "flaky") == 0
        assert await count_objects(gateway, "flaky") == 0

    @pytest.mark.asyncio
    async def test_missing_bucket_yields_zero(self, gateway):
        """Test that a missing bucket aggregates to zero instead of raising."""
        assert await bucket_totals(gateway, "missing") == BucketTotals(0, 0)

    @pytest.mark.asyncio
    async def test_logs_failure(self, gateway):
        """Test that a failed aggregation is logged as a warning."""
        with patch("s3_admin.infra.storage.aggregation.logger") as mock_logger:
            await bucket_totals(gateway, "missing")

        mock_logger.warning.assert_called_once()
