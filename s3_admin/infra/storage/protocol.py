"""Storage gateway protocol and value types.

Defines the interface the deletion workflow and the service layer depend on,
plus the immutable records exchanged across it. ``S3Gateway`` is the
production implementation; tests use an in-memory one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from datetime import datetime

# Presigned URLs are valid for one hour; not configurable
PRESIGNED_URL_EXPIRY_SECONDS = 3600

# Largest page the provider returns for a single listing call
MAX_PAGE_SIZE = 1000

REGION_UNKNOWN = "unknown"


@dataclass(frozen=True)
class BucketInfo:
    """Bucket as reported by a listing, enriched with region and presence.

    ``object_count`` is approximate: enrichment issues a single-key listing,
    so it is 0 or 1 and only ``has_objects`` is meaningful.
    """

    name: str
    creation_date: datetime | None = None
    region: str = REGION_UNKNOWN
    object_count: int = 0
    has_objects: bool = False


@dataclass(frozen=True)
class BucketDetails:
    """Exact object count and total size of a single bucket."""

    name: str
    object_count: int
    total_size_bytes: int
    has_objects: bool


@dataclass(frozen=True)
class CreatedBucket:
    """Result of creating a bucket."""

    name: str
    region: str


@dataclass(frozen=True)
class ObjectInfo:
    """Object metadata from a listing or a HEAD request."""

    key: str
    size_bytes: int
    last_modified: datetime | None = None
    etag: str | None = None
    content_type: str | None = None
    storage_class: str = "STANDARD"
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ObjectPage:
    """One page of an object listing."""

    objects: list[ObjectInfo]
    is_truncated: bool = False
    next_continuation_token: str | None = None
    key_count: int = 0


@dataclass(frozen=True)
class ObjectContent:
    """Downloaded object: a byte stream plus its HTTP-relevant metadata.

    The stream must be consumed (or closed) by the caller; it releases the
    underlying connection when exhausted.
    """

    stream: AsyncIterator[bytes]
    content_type: str | None = None
    content_length: int | None = None
    etag: str | None = None
    last_modified: datetime | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UploadResult:
    """Result of storing an object."""

    key: str
    bucket: str
    etag: str | None
    size_bytes: int
    checksum_sha256: str | None = None
    version_id: str | None = None


@dataclass(frozen=True)
class AccessPoint:
    """Named access point attached to a bucket."""

    name: str
    bucket: str
    account_id: str | None = None
    network_origin: str | None = None


class PresignMode(StrEnum):
    """Which operation a presigned URL grants."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class PresignedUrl:
    """Time-limited URL granting read or write access to one object."""

    url: str
    bucket: str
    key: str
    mode: PresignMode
    expires_in: int = PRESIGNED_URL_EXPIRY_SECONDS


@runtime_checkable
class StorageGateway(Protocol):
    """Operations against an S3-compatible provider.

    Every method raises a ``StorageError`` subclass on failure, except
    ``list_access_points`` which degrades to an empty list.
    """

    async def health_check(self) -> bool:
        """Whether the provider is reachable with the configured credentials."""
        ...

    # ========================================================================
    # Buckets
    # ========================================================================

    async def list_buckets(self) -> list[BucketInfo]:
        """List buckets, each enriched independently with region and presence."""
        ...

    async def create_bucket(self, name: str, region: str) -> CreatedBucket:
        """Create a bucket in ``region``."""
        ...

    async def has_objects(self, bucket: str) -> bool:
        """Whether the bucket contains at least one object."""
        ...

    async def delete_bucket_raw(self, name: str, *, check_empty: bool = True) -> None:
        """Delete an empty bucket without touching its access points.

        ``check_empty=False`` skips the emptiness listing when the caller
        has just performed it.
        """
        ...

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
        """Fetch one page of objects."""
        ...

    def iter_object_pages(
        self,
        bucket: str,
        prefix: str = "",
        page_size: int = MAX_PAGE_SIZE,
    ) -> AsyncIterator[ObjectPage]:
        """Lazily iterate every page of a listing."""
        ...

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> UploadResult:
        """Store an object, replacing any existing one under the same key."""
        ...

    async def get_object(self, bucket: str, key: str) -> ObjectContent:
        """Open an object for streaming download."""
        ...

    async def head_object(self, bucket: str, key: str) -> ObjectInfo:
        """Fetch object metadata without its content."""
        ...

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object."""
        ...

    async def presign(self, bucket: str, key: str, mode: PresignMode) -> PresignedUrl:
        """Generate a presigned URL valid for one hour."""
        ...

    # ========================================================================
    # Access points
    # ========================================================================

    async def list_access_points(self, bucket: str, account_id: str) -> list[AccessPoint]:
        """List access points attached to a bucket; ``[]`` on any failure."""
        ...

    async def delete_access_point(self, name: str, account_id: str) -> None:
        """Delete one access point."""
        ...
