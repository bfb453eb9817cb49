"""S3-compatible storage gateway.

Implements the StorageGateway protocol for AWS S3, MinIO and other
S3-compatible services using aioboto3. Two clients are held open for the
gateway's lifetime: ``s3`` for buckets and objects, and ``s3control`` for
access points.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import (
    NotEmptyError,
    StorageError,
    UnavailableError,
    classify_provider_error,
)
from .protocol import (
    MAX_PAGE_SIZE,
    PRESIGNED_URL_EXPIRY_SECONDS,
    REGION_UNKNOWN,
    AccessPoint,
    BucketInfo,
    CreatedBucket,
    ObjectContent,
    ObjectInfo,
    ObjectPage,
    PresignedUrl,
    PresignMode,
    UploadResult,
)
from .metrics import storage_presigned_urls_generated
from .validation import ensure_valid_bucket_name, ensure_valid_object_key

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from types import TracebackType

    from s3_admin.core.settings.storage import StorageSettings

logger = logging.getLogger(__name__)

# Region S3 reports as an empty LocationConstraint
LEGACY_DEFAULT_REGION = "us-east-1"

_PRESIGN_METHODS = {
    PresignMode.READ: "get_object",
    PresignMode.WRITE: "put_object",
}


def clamp_page_size(page_size: int) -> int:
    """Bound a requested page size to [1, MAX_PAGE_SIZE]."""
    return max(1, min(MAX_PAGE_SIZE, page_size))


def _strip_etag(etag: str | None) -> str | None:
    return etag.strip('"') if etag else etag


@contextmanager
def _provider_errors(
    operation: str,
    bucket: str | None = None,
    key: str | None = None,
) -> Iterator[None]:
    """Translate provider exceptions raised inside the block into StorageError.

    StorageErrors raised by our own checks pass through untouched.
    """
    try:
        yield
    except StorageError:
        raise
    except (ClientError, BotoCoreError) as e:
        error = classify_provider_error(e, operation=operation, bucket=bucket, key=key)
        log = logger.exception if isinstance(error, UnavailableError) else logger.warning
        log(
            "Storage provider call failed",
            extra={
                "operation": operation,
                "bucket": bucket,
                "key": key,
                "error_kind": error.kind.value,
                "error": str(e),
            },
        )
        raise error from e
    except Exception as e:
        logger.exception(
            "Unexpected error during storage call",
            extra={"operation": operation, "bucket": bucket, "key": key, "error": str(e)},
        )
        raise UnavailableError(
            f"{operation.replace('_', ' ').capitalize()} failed: {e}",
            metadata={"operation": operation, "bucket": bucket, "key": key},
        ) from e


class S3Gateway:
    """S3-compatible storage gateway.

    Attributes:
        settings: Storage configuration settings
        is_ready: Whether both clients are open

    Example:
        gateway = S3Gateway(settings)
        await gateway.startup()
        buckets = await gateway.list_buckets()
        await gateway.shutdown()
    """

    def __init__(
        self,
        settings: StorageSettings,
        session: aioboto3.Session | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            settings: Storage settings with S3 configuration
            session: Optional aioboto3 session (a fresh one is created otherwise)
        """
        self.settings = settings
        self._session = session or aioboto3.Session()
        self._s3: Any = None
        self._s3control: Any = None
        self._s3_context: Any = None
        self._s3control_context: Any = None

    @property
    def is_ready(self) -> bool:
        """Check if the gateway clients are initialized."""
        return self._s3 is not None and self._s3control is not None

    # ========================================================================
    # Lifecycle Management
    # ========================================================================

    async def startup(self) -> None:
        """Open the s3 and s3control clients."""
        if self.is_ready:
            logger.debug("S3 gateway already initialized")
            return

        logger.info(
            "Initializing S3 gateway",
            extra={"endpoint": self.settings.endpoint, "region": self.settings.region},
        )

        boto_config = Config(
            retries={
                "max_attempts": self.settings.max_retries,
                "mode": self.settings.retry_mode,
            },
            connect_timeout=self.settings.timeout,
            read_timeout=self.settings.timeout,
            max_pool_connections=self.settings.max_pool_connections,
        )
        client_config = self.settings.get_boto3_config()
        # S3 Control endpoints are account specific; a custom S3 endpoint does not apply
        control_config = {k: v for k, v in client_config.items() if k != "endpoint_url"}

        try:
            self._s3_context = self._session.client("s3", **client_config, config=boto_config)
            self._s3 = await self._s3_context.__aenter__()
            self._s3control_context = self._session.client(
                "s3control", **control_config, config=boto_config
            )
            self._s3control = await self._s3control_context.__aenter__()
        except Exception as e:
            logger.exception("Failed to initialize S3 gateway", extra={"error": str(e)})
            await self.shutdown()
            raise UnavailableError(
                f"Failed to initialize S3 gateway: {e}",
                metadata={"operation": "startup"},
            ) from e

        logger.info("S3 gateway initialized successfully")

    async def shutdown(self) -> None:
        """Close both clients."""
        for context in (self._s3control_context, self._s3_context):
            if context is None:
                continue
            try:
                await context.__aexit__(None, None, None)
            except Exception as e:
                logger.warning("Error closing S3 client", extra={"error": str(e)})

        self._s3 = self._s3control = None
        self._s3_context = self._s3control_context = None

    async def health_check(self) -> bool:
        """Check connectivity and credentials with a bucket listing.

        Returns:
            True if healthy, False otherwise
        """
        if self._s3 is None:
            return False
        try:
            await self._s3.list_buckets()
        except (ClientError, BotoCoreError) as e:
            logger.warning("S3 health check failed", extra={"error": str(e)})
            return False
        return True

    def _client(self) -> Any:
        if self._s3 is None:
            raise UnavailableError(
                "S3 gateway not initialized. Call startup() first.",
                metadata={"operation": "client"},
            )
        return self._s3

    def _control_client(self) -> Any:
        if self._s3control is None:
            raise UnavailableError(
                "S3 gateway not initialized. Call startup() first.",
                metadata={"operation": "client"},
            )
        return self._s3control

    # ========================================================================
    # Buckets
    # ========================================================================

    async def list_buckets(self) -> list[BucketInfo]:
        """List all buckets, enriched with region and object presence.

        Enrichment runs concurrently, one task per bucket. A bucket whose
        enrichment fails is still returned, with region "unknown" and no
        objects, and never fails its siblings or the listing.

        Returns:
            List of BucketInfo in provider order

        Raises:
            StorageError: If the listing itself fails
        """
        client = self._client()

        with _provider_errors("list_buckets"):
            response = await client.list_buckets()

        raw_buckets = response.get("Buckets", [])
        buckets = await asyncio.gather(*(self._enrich_bucket(raw) for raw in raw_buckets))

        logger.info("Listed buckets", extra={"count": len(buckets)})
        return list(buckets)

    async def _enrich_bucket(self, raw: dict[str, Any]) -> BucketInfo:
        name = raw["Name"]
        creation_date = raw.get("CreationDate")
        client = self._client()
        try:
            location = await client.get_bucket_location(Bucket=name)
            listing = await client.list_objects_v2(Bucket=name, MaxKeys=1)
        except Exception as e:
            logger.warning(
                "Failed to enrich bucket",
                extra={"bucket": name, "error": str(e)},
            )
            return BucketInfo(name=name, creation_date=creation_date, region=REGION_UNKNOWN)

        key_count = int(listing.get("KeyCount", len(listing.get("Contents", []))))
        return BucketInfo(
            name=name,
            creation_date=creation_date,
            region=location.get("LocationConstraint") or LEGACY_DEFAULT_REGION,
            object_count=key_count,
            has_objects=key_count > 0,
        )

    async def create_bucket(self, name: str, region: str) -> CreatedBucket:
        """Create a new bucket.

        Args:
            name: Bucket name (validated before any provider call)
            region: Target region

        Returns:
            CreatedBucket

        Raises:
            InvalidNameError: If the name breaks a naming rule
            AlreadyExistsError: If the name is taken, including by the caller
            UnavailableError: On any other provider failure
        """
        ensure_valid_bucket_name(name)
        client = self._client()

        kwargs: dict[str, Any] = {"Bucket": name}
        # us-east-1 rejects an explicit location constraint
        if region != LEGACY_DEFAULT_REGION:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}

        with _provider_errors("create_bucket", bucket=name):
            await client.create_bucket(**kwargs)

        logger.info("Bucket created", extra={"bucket": name, "region": region})
        return CreatedBucket(name=name, region=region)

    async def has_objects(self, bucket: str) -> bool:
        """Presence-only check via a listing capped at one key."""
        client = self._client()
        with _provider_errors("has_objects", bucket=bucket):
            response = await client.list_objects_v2(Bucket=bucket, MaxKeys=1)
        return int(response.get("KeyCount", len(response.get("Contents", [])))) > 0

    async def delete_bucket_raw(self, name: str, *, check_empty: bool = True) -> None:
        """Delete a bucket without touching its access points.

        Args:
            name: Bucket name
            check_empty: Run the one-key emptiness listing first; callers that
                have just checked pass False

        Raises:
            NotEmptyError: If the bucket still contains objects
            HasDependentsError: If the provider refuses because access points are attached
            StorageError: Any other classified provider failure
        """
        if check_empty and await self.has_objects(name):
            raise NotEmptyError(metadata={"bucket": name, "operation": "delete_bucket"})

        client = self._client()
        with _provider_errors("delete_bucket", bucket=name):
            await client.delete_bucket(Bucket=name)

        logger.info("Bucket deleted", extra={"bucket": name})

    # ========================================================================
    # Objects
    # ========================================================================

    async def list_objects(
        self,
        bucket: str,
        prefix: str = "",
        page_size: int = MAX_PAGE_SIZE,
        continuation_token: str | None = None,
    ) -> ObjectPage:
        """Fetch one page of objects.

        Args:
            bucket: Bucket name
            prefix: Filter by key prefix
            page_size: Requested page size, clamped to [1, 1000]
            continuation_token: Token from the previous page

        Returns:
            ObjectPage
        """
        client = self._client()
        kwargs: dict[str, Any] = {
            "Bucket": bucket,
            "Prefix": prefix,
            "MaxKeys": clamp_page_size(page_size),
        }
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token

        with _provider_errors("list_objects", bucket=bucket):
            response = await client.list_objects_v2(**kwargs)

        objects = [
            ObjectInfo(
                key=item["Key"],
                size_bytes=int(item.get("Size", 0)),
                last_modified=item.get("LastModified"),
                etag=_strip_etag(item.get("ETag")),
                storage_class=item.get("StorageClass") or "STANDARD",
            )
            for item in response.get("Contents", [])
        ]
        is_truncated = bool(response.get("IsTruncated", False))

        logger.debug(
            "Listed objects",
            extra={"bucket": bucket, "prefix": prefix, "count": len(objects)},
        )
        return ObjectPage(
            objects=objects,
            is_truncated=is_truncated,
            next_continuation_token=response.get("NextContinuationToken") if is_truncated else None,
            key_count=int(response.get("KeyCount", len(objects))),
        )

    async def iter_object_pages(
        self,
        bucket: str,
        prefix: str = "",
        page_size: int = MAX_PAGE_SIZE,
    ) -> AsyncIterator[ObjectPage]:
        """Lazily iterate every page of a listing.

        The next page is only requested when the consumer asks for it, so
        stopping iteration stops network calls.

        Yields:
            ObjectPage for each page, in order
        """
        token: str | None = None
        while True:
            page = await self.list_objects(
                bucket,
                prefix=prefix,
                page_size=page_size,
                continuation_token=token,
            )
            yield page
            if not page.is_truncated or not page.next_continuation_token:
                return
            token = page.next_continuation_token

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> UploadResult:
        """Store an object, replacing any existing one with the same key.

        Returns:
            UploadResult with the new fingerprint and size
        """
        ensure_valid_object_key(key)
        client = self._client()

        kwargs: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": data,
            "Metadata": metadata or {},
        }
        if content_type:
            kwargs["ContentType"] = content_type

        with _provider_errors("put_object", bucket=bucket, key=key):
            response = await client.put_object(**kwargs)

        result = UploadResult(
            key=key,
            bucket=bucket,
            etag=_strip_etag(response.get("ETag")),
            size_bytes=len(data),
            checksum_sha256=hashlib.sha256(data).hexdigest(),
            version_id=response.get("VersionId"),
        )
        logger.info(
            "Object uploaded",
            extra={"bucket": bucket, "key": key, "size_bytes": result.size_bytes},
        )
        return result

    async def get_object(self, bucket: str, key: str) -> ObjectContent:
        """Open an object for streaming download.

        Raises:
            NotFoundError: If the object or bucket does not exist
        """
        client = self._client()
        with _provider_errors("get_object", bucket=bucket, key=key):
            response = await client.get_object(Bucket=bucket, Key=key)

        return ObjectContent(
            stream=self._stream_body(response["Body"], bucket, key),
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength"),
            etag=_strip_etag(response.get("ETag")),
            last_modified=response.get("LastModified"),
            metadata=dict(response.get("Metadata") or {}),
        )

    async def _stream_body(self, body: Any, bucket: str, key: str) -> AsyncIterator[bytes]:
        try:
            while True:
                with _provider_errors("get_object", bucket=bucket, key=key):
                    chunk = await body.read(self.settings.download_chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            body.close()

    async def head_object(self, bucket: str, key: str) -> ObjectInfo:
        """Fetch object metadata.

        Raises:
            NotFoundError: If the object or bucket does not exist
        """
        client = self._client()
        with _provider_errors("head_object", bucket=bucket, key=key):
            response = await client.head_object(Bucket=bucket, Key=key)

        return ObjectInfo(
            key=key,
            size_bytes=int(response.get("ContentLength", 0)),
            last_modified=response.get("LastModified"),
            etag=_strip_etag(response.get("ETag")),
            content_type=response.get("ContentType"),
            storage_class=response.get("StorageClass") or "STANDARD",
            metadata=dict(response.get("Metadata") or {}),
        )

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object.

        S3 reports success for keys that do not exist; NotFoundError is only
        raised when the provider itself reports the key or bucket missing.
        """
        client = self._client()
        with _provider_errors("delete_object", bucket=bucket, key=key):
            await client.delete_object(Bucket=bucket, Key=key)
        logger.info("Object deleted", extra={"bucket": bucket, "key": key})

    async def presign(self, bucket: str, key: str, mode: PresignMode) -> PresignedUrl:
        """Generate a presigned URL valid for one hour.

        Raises:
            UnavailableError: If signing fails
        """
        client = self._client()
        try:
            url = await client.generate_presigned_url(
                _PRESIGN_METHODS[mode],
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=PRESIGNED_URL_EXPIRY_SECONDS,
            )
        except Exception as e:
            logger.exception(
                "Failed to generate presigned URL",
                extra={"bucket": bucket, "key": key, "mode": mode.value, "error": str(e)},
            )
            raise UnavailableError(
                f"Failed to generate presigned URL for {key}: {e}",
                metadata={"operation": "presign", "bucket": bucket, "key": key},
            ) from e

        storage_presigned_urls_generated.labels(mode=mode.value).inc()
        logger.info(
            "Generated presigned URL",
            extra={"bucket": bucket, "key": key, "mode": mode.value},
        )
        return PresignedUrl(url=cast("str", url), bucket=bucket, key=key, mode=mode)

    # ========================================================================
    # Access points
    # ========================================================================

    async def list_access_points(self, bucket: str, account_id: str) -> list[AccessPoint]:
        """List access points attached to a bucket.

        Best effort: any failure is logged and yields an empty list.
        """
        client = self._control_client()
        access_points: list[AccessPoint] = []
        kwargs: dict[str, Any] = {"AccountId": account_id, "Bucket": bucket}
        try:
            while True:
                response = await client.list_access_points(**kwargs)
                access_points.extend(
                    AccessPoint(
                        name=item["Name"],
                        bucket=item.get("Bucket", bucket),
                        account_id=item.get("BucketAccountId", account_id),
                        network_origin=item.get("NetworkOrigin"),
                    )
                    for item in response.get("AccessPointList", [])
                )
                next_token = response.get("NextToken")
                if not next_token:
                    break
                kwargs["NextToken"] = next_token
        except Exception as e:
            logger.warning(
                "Could not list access points",
                extra={"bucket": bucket, "error": str(e)},
            )
            return []

        logger.info(
            "Listed access points",
            extra={"bucket": bucket, "count": len(access_points)},
        )
        return access_points

    async def delete_access_point(self, name: str, account_id: str) -> None:
        """Delete one access point.

        Raises:
            UnavailableError: On any provider failure
        """
        client = self._control_client()
        try:
            await client.delete_access_point(AccountId=account_id, Name=name)
        except Exception as e:
            logger.exception(
                "Failed to delete access point",
                extra={"access_point": name, "error": str(e)},
            )
            raise UnavailableError(
                f"Failed to delete access point {name}: {e}",
                metadata={"operation": "delete_access_point", "access_point": name},
            ) from e
        logger.info("Access point deleted", extra={"access_point": name})

    async def __aenter__(self) -> S3Gateway:
        await self.startup()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.shutdown()
