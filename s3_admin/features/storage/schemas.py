"""Pydantic schemas for the storage administration API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Bucket Schemas
# ============================================================================


class BucketCreate(BaseModel):
    """Request schema for creating a bucket."""

    name: str = Field(
        ...,
        description="Bucket name (3-63 lowercase letters, digits, dots and hyphens)",
        examples=["my-bucket", "acme-uploads"],
    )
    region: str | None = Field(
        None,
        description="Region to create the bucket in (uses default if not specified)",
        examples=["us-west-2", "eu-central-1"],
    )


class BucketResponse(BaseModel):
    """Response schema for a bucket in a listing."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "name": "acme-uploads",
                    "creation_date": "2024-01-15T10:30:00Z",
                    "region": "us-west-2",
                    "object_count": 1,
                    "has_objects": True,
                }
            ]
        },
    )

    name: str = Field(..., description="Bucket name")
    creation_date: datetime | None = Field(None, description="When bucket was created")
    region: str = Field(..., description='Bucket region, "unknown" if it could not be read')
    object_count: int = Field(0, description="Approximate object count (0 or 1)")
    has_objects: bool = Field(False, description="Whether the bucket holds any object")


class BucketListResponse(BaseModel):
    """Response schema for listing buckets."""

    buckets: list[BucketResponse] = Field(..., description="List of buckets")
    total: int = Field(..., description="Total number of buckets")


class BucketCreatedResponse(BaseModel):
    """Response schema for a created bucket."""

    name: str
    region: str
    message: str = "Bucket created successfully"


class BucketDetailsResponse(BaseModel):
    """Exact statistics of one bucket."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    object_count: int = Field(..., description="Number of objects")
    total_size_bytes: int = Field(..., description="Sum of object sizes in bytes")
    has_objects: bool


class BucketDeleteResponse(BaseModel):
    """Response schema for a successful bucket deletion."""

    success: bool = True
    bucket: str
    message: str
    access_points_removed: int = Field(0, description="Access points deleted first")


# ============================================================================
# Object Schemas
# ============================================================================


class ObjectResponse(BaseModel):
    """Object entry of a listing."""

    model_config = ConfigDict(from_attributes=True)

    key: str = Field(..., description="Object key")
    size_bytes: int = Field(..., description="Size in bytes")
    last_modified: datetime | None = None
    etag: str | None = None
    storage_class: str = "STANDARD"


class ObjectListResponse(BaseModel):
    """One page of objects."""

    objects: list[ObjectResponse]
    prefix: str = ""
    is_truncated: bool = False
    next_continuation_token: str | None = Field(
        None,
        description="Pass as continuation_token to fetch the next page",
    )
    key_count: int = 0


class ObjectMetadataResponse(BaseModel):
    """Object metadata from a HEAD request."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    size_bytes: int
    content_type: str | None = None
    last_modified: datetime | None = None
    etag: str | None = None
    storage_class: str = "STANDARD"
    metadata: dict[str, str] = Field(default_factory=dict)


class ObjectUploadResponse(BaseModel):
    """Response schema for an uploaded object."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    bucket: str
    etag: str | None = None
    size_bytes: int
    checksum_sha256: str | None = None
    version_id: str | None = None


class ObjectDeleteResponse(BaseModel):
    """Response schema for a deleted object."""

    success: bool = True
    key: str
    message: str = "Object deleted successfully"


class BatchDeleteRequest(BaseModel):
    """Keys to delete in one request."""

    keys: list[str] = Field(..., min_length=1, max_length=1000)


class BatchDeleteFailureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    kind: str
    message: str


class BatchDeleteResponse(BaseModel):
    """Per-key outcome of a batch delete."""

    deleted: list[str]
    failed: list[BatchDeleteFailureResponse]
    total_deleted: int
    total_failed: int


# ============================================================================
# Presigned URL Schemas
# ============================================================================


class PresignedUrlResponse(BaseModel):
    """Time-limited URL for direct browser access."""

    model_config = ConfigDict(from_attributes=True)

    url: str
    bucket: str
    key: str
    mode: str = Field(..., description='"read" (GET) or "write" (PUT)')
    expires_in: int = Field(..., description="Validity in seconds")
