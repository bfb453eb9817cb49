"""Best-effort bucket aggregates.

These walk every page of a listing and are informational only: a failure on
any page yields 0, never a partial sum and never an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

from .exceptions import StorageError

if TYPE_CHECKING:
    from .protocol import StorageGateway

logger = logging.getLogger(__name__)


class BucketTotals(NamedTuple):
    object_count: int
    total_bytes: int


async def bucket_totals(gateway: StorageGateway, bucket: str, prefix: str = "") -> BucketTotals:
    """Count objects and sum their sizes in a single pass over the listing.

    Args:
        gateway: Storage gateway.
        bucket: Bucket name.
        prefix: Only include keys under this prefix.

    Returns:
        BucketTotals, or ``BucketTotals(0, 0)`` if any page could not be fetched.
    """
    count = 0
    size = 0
    try:
        async for page in gateway.iter_object_pages(bucket, prefix=prefix):
            count += len(page.objects)
            size += sum(obj.size_bytes for obj in page.objects)
    except StorageError as e:
        logger.warning(
            "Could not aggregate bucket contents",
            extra={"bucket": bucket, "error_kind": e.kind.value, "error": e.message},
        )
        return BucketTotals(0, 0)
    return BucketTotals(count, size)


async def total_bytes(gateway: StorageGateway, bucket: str, prefix: str = "") -> int:
    """Sum the sizes of every object in a bucket; 0 on any page failure."""
    return (await bucket_totals(gateway, bucket, prefix)).total_bytes


async def count_objects(gateway: StorageGateway, bucket: str, prefix: str = "") -> int:
    """Count every object in a bucket; 0 on any page failure."""
    return (await bucket_totals(gateway, bucket, prefix)).object_count
