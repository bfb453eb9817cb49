"""Storage administration API endpoints.

Failures are raised as ``StorageError`` subclasses and rendered as problem
details by the global exception handler: InvalidName 400, NotFound 404,
AlreadyExists / NotEmpty / HasDependents 409, ConfigMissing 500 and
Unavailable 503. A HasDependents body also lists ``access_points``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from s3_admin.core.exceptions import BadRequestException
from s3_admin.infra.storage.protocol import MAX_PAGE_SIZE

from .dependencies import StorageServiceDep
from .schemas import (
    BatchDeleteFailureResponse,
    BatchDeleteRequest,
    BatchDeleteResponse,
    BucketCreate,
    BucketCreatedResponse,
    BucketDeleteResponse,
    BucketDetailsResponse,
    BucketListResponse,
    BucketResponse,
    ObjectDeleteResponse,
    ObjectListResponse,
    ObjectMetadataResponse,
    ObjectResponse,
    ObjectUploadResponse,
    PresignedUrlResponse,
)

router = APIRouter(tags=["storage"])


def _content_disposition(key: str) -> str:
    """Attachment header safe for non-Latin-1 key names (RFC 6266)."""
    filename = key.split("/")[-1]
    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("\\", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


# ============================================================================
# Bucket Management Endpoints
# ============================================================================


@router.get(
    "/buckets",
    response_model=BucketListResponse,
    summary="List all buckets",
    description="List every bucket with its region and whether it holds objects.",
)
async def list_buckets(storage: StorageServiceDep) -> BucketListResponse:
    buckets = await storage.list_buckets()
    return BucketListResponse(
        buckets=[BucketResponse.model_validate(bucket) for bucket in buckets],
        total=len(buckets),
    )


@router.post(
    "/buckets",
    response_model=BucketCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a bucket",
    description="Create a new bucket in the given region (default region if omitted).",
)
async def create_bucket(request: BucketCreate, storage: StorageServiceDep) -> BucketCreatedResponse:
    created = await storage.create_bucket(request.name, region=request.region)
    return BucketCreatedResponse(name=created.name, region=created.region)


@router.get(
    "/buckets/{bucket_name}",
    response_model=BucketDetailsResponse,
    summary="Get bucket details",
    description="Exact object count and total size, computed by walking the whole listing.",
)
async def get_bucket(bucket_name: str, storage: StorageServiceDep) -> BucketDetailsResponse:
    details = await storage.get_bucket_details(bucket_name)
    return BucketDetailsResponse.model_validate(details)


@router.delete(
    "/buckets/{bucket_name}",
    response_model=BucketDeleteResponse,
    summary="Delete a bucket",
    description=(
        "Delete an empty bucket. Responds 409 with the blocking access point "
        "names if access points are attached; they are never deleted here."
    ),
)
async def delete_bucket(bucket_name: str, storage: StorageServiceDep) -> BucketDeleteResponse:
    outcome = await storage.delete_bucket(bucket_name)
    return BucketDeleteResponse(bucket=bucket_name, message=outcome.message)


@router.delete(
    "/buckets/{bucket_name}/force",
    response_model=BucketDeleteResponse,
    summary="Delete a bucket and its access points",
    description=(
        "Delete every access point attached to an empty bucket, then the bucket. "
        "Requires STORAGE_ACCOUNT_ID. Stops at the first access point that fails."
    ),
)
async def force_delete_bucket(
    bucket_name: str,
    storage: StorageServiceDep,
) -> BucketDeleteResponse:
    outcome = await storage.force_delete_bucket(bucket_name)
    return BucketDeleteResponse(
        bucket=bucket_name,
        message=outcome.message,
        access_points_removed=outcome.removed_access_points,
    )


# ============================================================================
# Object Endpoints (literal routes must precede {key:path} routes)
# ============================================================================


@router.get(
    "/buckets/{bucket_name}/files",
    response_model=ObjectListResponse,
    summary="List objects",
    description="List one page of objects. Follow next_continuation_token for more.",
)
async def list_objects(
    bucket_name: str,
    storage: StorageServiceDep,
    prefix: Annotated[str, Query(description="Key prefix filter")] = "",
    max_keys: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Maximum objects to return")
    ] = MAX_PAGE_SIZE,
    continuation_token: Annotated[
        str | None, Query(description="Token from the previous page")
    ] = None,
) -> ObjectListResponse:
    page = await storage.list_objects(
        bucket_name,
        prefix=prefix,
        page_size=max_keys,
        continuation_token=continuation_token,
    )
    return ObjectListResponse(
        objects=[ObjectResponse.model_validate(obj) for obj in page.objects],
        prefix=prefix,
        is_truncated=page.is_truncated,
        next_continuation_token=page.next_continuation_token,
        key_count=page.key_count,
    )



def _ensure_upload_size(size: int, max_bytes: int, max_mb: int) -> None:
    if size > max_bytes:
        raise BadRequestException(
            f"File exceeds maximum size of {max_mb} MB",
            type="file-too-large",
            extra={"size_bytes": size, "max_size_bytes": max_bytes},
        )


@router.post(
    "/buckets/{bucket_name}/files",
    response_model=ObjectUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an object",
    description="Upload a file. The key defaults to the file name.",
)
async def upload_object(
    bucket_name: str,
    storage: StorageServiceDep,
    file: Annotated[UploadFile, File(description="File to upload")],
    key: Annotated[str | None, Form(description="Object key (defaults to file name)")] = None,
) -> ObjectUploadResponse:
    settings = storage.settings
    object_key = key or file.filename or ""

    if not settings.is_content_type_allowed(file.content_type):
        raise BadRequestException(
            f"Content type {file.content_type or 'unknown'} is not allowed",
            type="content-type-not-allowed",
            extra={"content_type": file.content_type},
        )

    # Spooled multipart parts know their size before being read
    if file.size is not None:
        _ensure_upload_size(file.size, settings.max_file_size_bytes, settings.max_file_size_mb)
    data = await file.read()
    _ensure_upload_size(len(data), settings.max_file_size_bytes, settings.max_file_size_mb)

    result = await storage.upload_object(
        bucket_name,
        object_key,
        data,
        content_type=file.content_type,
        metadata={
            "original-name": file.filename or object_key,
            "uploaded-at": datetime.now(UTC).isoformat(),
        },
    )
    return ObjectUploadResponse.model_validate(result)


@router.post(
    "/buckets/{bucket_name}/files/batch-delete",
    response_model=BatchDeleteResponse,
    summary="Delete several objects",
    description="Delete each key independently; failures are reported per key.",
)
async def batch_delete_objects(
    bucket_name: str,
    request: BatchDeleteRequest,
    storage: StorageServiceDep,
) -> BatchDeleteResponse:
    result = await storage.delete_objects(bucket_name, request.keys)
    return BatchDeleteResponse(
        deleted=result.deleted,
        failed=[BatchDeleteFailureResponse.model_validate(f) for f in result.failed],
        total_deleted=len(result.deleted),
        total_failed=len(result.failed),
    )


@router.get(
    "/buckets/{bucket_name}/download-url",
    response_model=PresignedUrlResponse,
    summary="Generate a presigned download URL",
    description="GET URL valid for one hour.",
)
async def get_download_url(
    bucket_name: str,
    key: Annotated[str, Query(min_length=1, description="Object key")],
    storage: StorageServiceDep,
) -> PresignedUrlResponse:
    presigned = await storage.generate_download_url(bucket_name, key)
    return PresignedUrlResponse.model_validate(presigned)


@router.get(
    "/buckets/{bucket_name}/upload-url",
    response_model=PresignedUrlResponse,
    summary="Generate a presigned upload URL",
    description="PUT URL valid for one hour.",
)
async def get_upload_url(
    bucket_name: str,
    key: Annotated[str, Query(min_length=1, description="Object key")],
    storage: StorageServiceDep,
) -> PresignedUrlResponse:
    presigned = await storage.generate_upload_url(bucket_name, key)
    return PresignedUrlResponse.model_validate(presigned)


@router.get(
    "/buckets/{bucket_name}/files/{key:path}/metadata",
    response_model=ObjectMetadataResponse,
    summary="Get object metadata",
)
async def get_object_metadata(
    bucket_name: str,
    key: str,
    storage: StorageServiceDep,
) -> ObjectMetadataResponse:
    info = await storage.get_object_metadata(bucket_name, key)
    return ObjectMetadataResponse.model_validate(info)


@router.get(
    "/buckets/{bucket_name}/files/{key:path}",
    response_class=StreamingResponse,
    summary="Download an object",
    description="Stream the object content as an attachment.",
)
async def download_object(
    bucket_name: str,
    key: str,
    storage: StorageServiceDep,
) -> StreamingResponse:
    content = await storage.download_object(bucket_name, key)

    headers = {"Content-Disposition": _content_disposition(key)}
    if content.content_length is not None:
        headers["Content-Length"] = str(content.content_length)
    if content.etag:
        headers["ETag"] = f'"{content.etag}"'

    return StreamingResponse(
        content.stream,
        media_type=content.content_type or "application/octet-stream",
        headers=headers,
    )


@router.delete(
    "/buckets/{bucket_name}/files/{key:path}",
    response_model=ObjectDeleteResponse,
    summary="Delete an object",
)
async def delete_object(
    bucket_name: str,
    key: str,
    storage: StorageServiceDep,
) -> ObjectDeleteResponse:
    await storage.delete_object(bucket_name, key)
    return ObjectDeleteResponse(key=key)
