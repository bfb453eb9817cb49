"""High-level storage service with singleton pattern and full observability.

This module provides the main interface for bucket and object administration:
- Singleton pattern for application-wide access
- Automatic OpenTelemetry spans and Prometheus metrics per operation
- Lifecycle management (startup/shutdown)
- Health check integration
- Bucket deletion through the plain and forced workflows
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from s3_admin.core.settings import get_storage_settings

from .aggregation import bucket_totals, total_bytes
from .exceptions import StorageError, UnavailableError
from .gateway import S3Gateway
from .instrumentation import track_storage_operation
from .orchestrator import BucketDeletionOrchestrator
from .protocol import BucketDetails, PresignMode
from .validation import ensure_valid_bucket_name, ensure_valid_object_key

if TYPE_CHECKING:
    from s3_admin.core.settings.storage import StorageSettings

    from .orchestrator import DeletionOutcome
    from .protocol import (
        BucketInfo,
        CreatedBucket,
        ObjectContent,
        ObjectInfo,
        ObjectPage,
        PresignedUrl,
        StorageGateway,
        UploadResult,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchDeleteFailure:
    key: str
    kind: str
    message: str


@dataclass
class BatchDeleteResult:
    """Per-key results of a batch delete."""

    deleted: list[str] = field(default_factory=list)
    failed: list[BatchDeleteFailure] = field(default_factory=list)


class StorageService:
    """High-level storage service with observability.

    Provides:
    - Singleton pattern for app-wide access
    - Automatic metrics and tracing for all operations
    - Lifecycle management (startup/shutdown)
    - Health check integration

    Example:
        # Get singleton instance
        service = get_storage_service()

        # In lifespan
        await service.startup()

        # Use in routes
        buckets = await service.list_buckets()

        # Shutdown
        await service.shutdown()
    """

    def __init__(
        self,
        settings: StorageSettings | None = None,
        gateway: StorageGateway | None = None,
    ) -> None:
        """Initialize storage service.

        Args:
            settings: Optional settings override. If not provided,
                     loads from environment via get_storage_settings()
            gateway: Optional ready-to-use gateway. If not provided, an
                     S3Gateway is created and opened by startup()
        """
        self._settings = settings or get_storage_settings()
        self._gateway: StorageGateway | None = gateway
        self._owns_gateway = gateway is None
        self._initialized = gateway is not None
        self._orchestrator: BucketDeletionOrchestrator | None = None
        if gateway is not None:
            self._orchestrator = self._build_orchestrator(gateway)

    @property
    def is_ready(self) -> bool:
        """Check if the service is initialized and ready for operations."""
        return self._initialized and self._gateway is not None

    @property
    def settings(self) -> StorageSettings:
        """Get the storage settings."""
        return self._settings

    def _build_orchestrator(self, gateway: StorageGateway) -> BucketDeletionOrchestrator:
        return BucketDeletionOrchestrator(gateway, account_id=self._settings.account_id)

    async def startup(self) -> None:
        """Open the gateway.

        Called during application lifespan startup.

        Raises:
            UnavailableError: If the gateway cannot be initialized
        """
        if self._initialized:
            return

        if not self._settings.is_configured:
            logger.info("Storage not configured, skipping initialization")
            return

        logger.info(
            "Starting storage service",
            extra={
                "endpoint": self._settings.endpoint,
                "region": self._settings.region,
                "account_id_configured": self._settings.has_account_id,
            },
        )

        gateway = S3Gateway(self._settings)
        await gateway.startup()
        self._gateway = gateway
        self._orchestrator = self._build_orchestrator(gateway)
        self._initialized = True

        logger.info("Storage service started successfully")

    async def shutdown(self) -> None:
        """Close the gateway if this service opened it."""
        if not self._initialized:
            logger.debug("Storage service not initialized, nothing to shutdown")
            return

        logger.info("Shutting down storage service")
        if self._owns_gateway and isinstance(self._gateway, S3Gateway):
            await self._gateway.shutdown()
            self._gateway = None
            self._orchestrator = None
        self._initialized = False
        logger.info("Storage service shutdown complete")

    async def health_check(self) -> bool:
        """Check storage service health.

        Returns:
            True if healthy, False otherwise
        """
        if not self.is_ready or self._gateway is None:
            return False
        return await self._gateway.health_check()

    def _ensure_ready(self) -> StorageGateway:
        """Ensure the service is ready and return the gateway.

        Raises:
            UnavailableError: If service is not ready
        """
        if not self.is_ready or self._gateway is None:
            raise UnavailableError(
                "Storage service is not initialized",
                metadata={"is_configured": self._settings.is_configured},
            )
        return self._gateway

    def _ensure_orchestrator(self) -> BucketDeletionOrchestrator:
        self._ensure_ready()
        assert self._orchestrator is not None
        return self._orchestrator

    # ========== Bucket Management ==========

    async def list_buckets(self) -> list[BucketInfo]:
        """List all buckets with region and object presence."""
        gateway = self._ensure_ready()
        async with track_storage_operation("list_buckets") as ctx:
            buckets = await gateway.list_buckets()
            ctx["result_count"] = len(buckets)
            return buckets

    async def create_bucket(self, name: str, region: str | None = None) -> CreatedBucket:
        """Create a bucket.

        Args:
            name: Bucket name
            region: Target region (defaults to the configured region)

        Returns:
            CreatedBucket
        """
        ensure_valid_bucket_name(name)
        gateway = self._ensure_ready()
        async with track_storage_operation("create_bucket", bucket=name):
            return await gateway.create_bucket(name, region or self._settings.region)

    async def get_bucket_details(self, name: str) -> BucketDetails:
        """Exact object count and total size of a bucket.

        Raises:
            InvalidNameError: If the name is not a valid bucket name
            NotFoundError: If the bucket does not exist
        """
        ensure_valid_bucket_name(name)
        gateway = self._ensure_ready()
        async with track_storage_operation("bucket_details", bucket=name) as ctx:
            # Surfaces NotFound before the best-effort walk hides it
            has_objects = await gateway.has_objects(name)
            totals = await bucket_totals(gateway, name)
            ctx["result_count"] = totals.object_count
            return BucketDetails(
                name=name,
                object_count=totals.object_count,
                total_size_bytes=totals.total_bytes,
                has_objects=has_objects,
            )

    async def delete_bucket(self, name: str) -> DeletionOutcome:
        """Delete an empty bucket with no access points attached.

        Raises:
            StorageError: The failure kind of the deletion workflow; a
                HasDependentsError lists the blocking access points
        """
        orchestrator = self._ensure_orchestrator()
        async with track_storage_operation("delete_bucket", bucket=name):
            outcome = await orchestrator.delete_bucket(name)
            error = outcome.to_error()
            if error is not None:
                raise error
            return outcome

    async def force_delete_bucket(self, name: str) -> DeletionOutcome:
        """Delete a bucket after removing all of its access points.

        Raises:
            ConfigMissingError: If no account ID is configured
            StorageError: Any other failure kind of the forced workflow
        """
        orchestrator = self._ensure_orchestrator()
        async with track_storage_operation("force_delete_bucket", bucket=name) as ctx:
            outcome = await orchestrator.force_delete_bucket(name)
            ctx["access_points_removed"] = outcome.removed_access_points
            error = outcome.to_error()
            if error is not None:
                raise error
            return outcome

    async def bucket_size(self, name: str, prefix: str = "") -> int:
        """Total size of a bucket's objects; 0 if it cannot be computed."""
        ensure_valid_bucket_name(name)
        gateway = self._ensure_ready()
        async with track_storage_operation("bucket_size", bucket=name) as ctx:
            size = await total_bytes(gateway, name, prefix=prefix)
            ctx["result_size"] = size
            return size

    # ========== Objects ==========

    async def list_objects(
        self,
        bucket: str,
        prefix: str = "",
        page_size: int = 1000,
        continuation_token: str | None = None,
    ) -> ObjectPage:
        """List one page of objects.

        Args:
            bucket: Bucket name
            prefix: Key prefix filter
            page_size: Maximum results, clamped to [1, 1000]
            continuation_token: Token returned by the previous page

        Returns:
            ObjectPage
        """
        ensure_valid_bucket_name(bucket)
        gateway = self._ensure_ready()
        async with track_storage_operation("list_objects", bucket=bucket) as ctx:
            page = await gateway.list_objects(
                bucket,
                prefix=prefix,
                page_size=page_size,
                continuation_token=continuation_token,
            )
            ctx["result_count"] = len(page.objects)
            return page

    async def upload_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> UploadResult:
        """Upload an object with automatic instrumentation.

        Args:
            bucket: Bucket name
            key: Object key
            data: Object content
            content_type: MIME content type
            metadata: Custom metadata

        Returns:
            UploadResult with etag, size and checksum
        """
        ensure_valid_bucket_name(bucket)
        ensure_valid_object_key(key)
        gateway = self._ensure_ready()
        async with track_storage_operation(
            "upload",
            key=key,
            bucket=bucket,
            size_bytes=len(data),
            content_type=content_type,
        ) as ctx:
            result = await gateway.put_object(
                bucket,
                key,
                data,
                content_type=content_type,
                metadata=metadata,
            )
            ctx["result_size"] = result.size_bytes
            ctx["checksum"] = result.checksum_sha256
            return result

    async def download_object(self, bucket: str, key: str) -> ObjectContent:
        """Open an object for streaming download."""
        ensure_valid_bucket_name(bucket)
        ensure_valid_object_key(key)
        gateway = self._ensure_ready()
        async with track_storage_operation("download", key=key, bucket=bucket) as ctx:
            content = await gateway.get_object(bucket, key)
            if content.content_length is not None:
                ctx["result_size"] = content.content_length
            return content

    async def get_object_metadata(self, bucket: str, key: str) -> ObjectInfo:
        """Fetch object metadata without downloading it."""
        ensure_valid_bucket_name(bucket)
        ensure_valid_object_key(key)
        gateway = self._ensure_ready()
        async with track_storage_operation("head", key=key, bucket=bucket):
            return await gateway.head_object(bucket, key)

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete a single object."""
        ensure_valid_bucket_name(bucket)
        ensure_valid_object_key(key)
        gateway = self._ensure_ready()
        async with track_storage_operation("delete", key=key, bucket=bucket):
            await gateway.delete_object(bucket, key)

    async def delete_objects(self, bucket: str, keys: list[str]) -> BatchDeleteResult:
        """Delete several objects independently.

        Every key is attempted; a failing key is reported in ``failed`` and
        never stops its siblings. Invalid keys fail with ``invalid_name``
        without reaching the provider.

        Args:
            bucket: Bucket name
            keys: Object keys to delete

        Returns:
            BatchDeleteResult, in the order the keys were given
        """
        ensure_valid_bucket_name(bucket)
        gateway = self._ensure_ready()

        async def _delete_one(key: str) -> BatchDeleteFailure | None:
            try:
                ensure_valid_object_key(key)
                await gateway.delete_object(bucket, key)
            except StorageError as e:
                return BatchDeleteFailure(key=key, kind=e.kind.value, message=e.message)
            return None

        async with track_storage_operation("batch_delete", bucket=bucket) as ctx:
            failures = await asyncio.gather(*(_delete_one(key) for key in keys))

            result = BatchDeleteResult()
            for key, failure in zip(keys, failures, strict=True):
                if failure is None:
                    result.deleted.append(key)
                else:
                    result.failed.append(failure)

            ctx["result_count"] = len(result.deleted)
            ctx["failed_count"] = len(result.failed)
            if result.failed:
                logger.warning(
                    "Batch delete finished with failures",
                    extra={
                        "bucket": bucket,
                        "deleted": len(result.deleted),
                        "failed": len(result.failed),
                    },
                )
            return result

    async def generate_download_url(self, bucket: str, key: str) -> PresignedUrl:
        """Presigned GET URL, valid for one hour."""
        ensure_valid_bucket_name(bucket)
        ensure_valid_object_key(key)
        gateway = self._ensure_ready()
        async with track_storage_operation("presign_download", key=key, bucket=bucket):
            return await gateway.presign(bucket, key, PresignMode.READ)

    async def generate_upload_url(self, bucket: str, key: str) -> PresignedUrl:
        """Presigned PUT URL, valid for one hour."""
        ensure_valid_bucket_name(bucket)
        ensure_valid_object_key(key)
        gateway = self._ensure_ready()
        async with track_storage_operation("presign_upload", key=key, bucket=bucket):
            return await gateway.presign(bucket, key, PresignMode.WRITE)


_storage_service: StorageService | None = None


def get_storage_service() -> StorageService:
    """Get the singleton storage service instance.

    Creates the instance on first call. The service must be
    initialized via startup() before use.

    Returns:
        The global StorageService instance
    """
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service


def reset_storage_service() -> None:
    """Reset the singleton instance (for testing only)."""
    global _storage_service
    _storage_service = None
