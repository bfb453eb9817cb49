"""S3 bucket and object administration.

This package provides:
- Bucket name and object key validation
- An aioboto3 gateway to S3 and S3 Control behind the StorageGateway protocol
- A closed error taxonomy with a single provider-error classifier
- The plain and forced bucket deletion workflows
- StorageService with singleton pattern and full observability

Quick Start:
    from s3_admin.infra.storage import get_storage_service

    service = get_storage_service()
    await service.startup()
    outcome = await service.delete_bucket("demo")
"""

from __future__ import annotations

from .aggregation import bucket_totals, count_objects, total_bytes
from .dependents import AccessPointResolver, ClearResult
from .exceptions import (
    AlreadyExistsError,
    ConfigMissingError,
    ErrorKind,
    HasDependentsError,
    InvalidNameError,
    NotEmptyError,
    NotFoundError,
    StorageError,
    UnavailableError,
    classify_provider_error,
)
from .gateway import S3Gateway
from .orchestrator import BucketDeletionOrchestrator, DeletionOutcome, DeletionState
from .protocol import (
    AccessPoint,
    BucketDetails,
    BucketInfo,
    CreatedBucket,
    ObjectContent,
    ObjectInfo,
    ObjectPage,
    PresignedUrl,
    PresignMode,
    StorageGateway,
    UploadResult,
)
from .service import (
    BatchDeleteFailure,
    BatchDeleteResult,
    StorageService,
    get_storage_service,
    reset_storage_service,
)
from .validation import (
    NameRule,
    NameVerdict,
    ensure_valid_bucket_name,
    ensure_valid_object_key,
    validate_bucket_name,
    validate_object_key,
)

__all__ = [
    "AccessPoint",
    "AccessPointResolver",
    "AlreadyExistsError",
    "BatchDeleteFailure",
    "BatchDeleteResult",
    "BucketDeletionOrchestrator",
    "BucketDetails",
    "BucketInfo",
    "ClearResult",
    "ConfigMissingError",
    "CreatedBucket",
    "DeletionOutcome",
    "DeletionState",
    "ErrorKind",
    "HasDependentsError",
    "InvalidNameError",
    "NameRule",
    "NameVerdict",
    "NotEmptyError",
    "NotFoundError",
    "ObjectContent",
    "ObjectInfo",
    "ObjectPage",
    "PresignMode",
    "PresignedUrl",
    "S3Gateway",
    "StorageError",
    "StorageGateway",
    "StorageService",
    "UnavailableError",
    "UploadResult",
    "bucket_totals",
    "classify_provider_error",
    "count_objects",
    "ensure_valid_bucket_name",
    "ensure_valid_object_key",
    "get_storage_service",
    "reset_storage_service",
    "total_bytes",
    "validate_bucket_name",
    "validate_object_key",
]
