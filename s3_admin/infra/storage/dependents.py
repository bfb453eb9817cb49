"""Access point clearing.

Drives the access points attached to a bucket to zero before a forced
delete. Deletions run one at a time and stop at the first failure, so the
result always names exactly which access point broke the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exceptions import StorageError

if TYPE_CHECKING:
    from .protocol import StorageGateway

logger = logging.getLogger(__name__)


@dataclass
class ClearResult:
    """Progress report of a clearing run.

    Attributes:
        total: Number of access points found attached to the bucket.
        cleared: Names deleted, in deletion order.
        failed_name: Access point whose deletion failed, if any.
        error: The failure that stopped the run, if any.
    """

    total: int = 0
    cleared: list[str] = field(default_factory=list)
    failed_name: str | None = None
    error: StorageError | None = None

    @property
    def count(self) -> int:
        return len(self.cleared)

    @property
    def succeeded(self) -> bool:
        return self.error is None


class AccessPointResolver:
    """Deletes every access point attached to a bucket, sequentially."""

    def __init__(self, gateway: StorageGateway) -> None:
        self._gateway = gateway

    async def clear(self, bucket: str, account_id: str) -> ClearResult:
        """List the bucket's access points and delete them one by one.

        Listing is best effort: if it fails, nothing is attached as far as
        this run can tell, and the result is an empty success.

        Args:
            bucket: Bucket whose access points to delete.
            account_id: Account owning the access points.

        Returns:
            ClearResult; ``succeeded`` is False when a deletion failed.
        """
        access_points = await self._gateway.list_access_points(bucket, account_id)
        result = ClearResult(total=len(access_points))

        for access_point in access_points:
            try:
                await self._gateway.delete_access_point(access_point.name, account_id)
            except StorageError as e:
                result.failed_name = access_point.name
                result.error = e
                logger.warning(
                    "Stopped clearing access points",
                    extra={
                        "bucket": bucket,
                        "access_point": access_point.name,
                        "cleared": result.count,
                        "total": result.total,
                    },
                )
                return result
            result.cleared.append(access_point.name)

        if result.total:
            logger.info(
                "Cleared access points",
                extra={"bucket": bucket, "count": result.count},
            )
        return result
