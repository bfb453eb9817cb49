"""Storage metrics for Prometheus monitoring.

Tracks operation counts and latency, object sizes moved through the
service, presigned URL generation, bucket deletion outcomes and access point
removals. All metrics are registered with the shared REGISTRY so they are
exposed via the /metrics endpoint.

Usage:
    from s3_admin.infra.storage.metrics import record_operation_success

    record_operation_success("upload", duration_seconds=1.5, size_bytes=1048576)
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

from s3_admin.infra.metrics.prometheus import REGISTRY

# Storage operations are network bound; 10ms to 30s
STORAGE_LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

# 1KB to 100MB, the default upload limit
STORAGE_SIZE_BUCKETS = (1024, 10240, 102400, 1048576, 10485760, 52428800, 104857600)

storage_operations_total = Counter(
    "storage_operations_total",
    "Total storage operations",
    ["operation", "status"],
    registry=REGISTRY,
)

storage_operation_duration_seconds = Histogram(
    "storage_operation_duration_seconds",
    "Storage operation duration in seconds",
    ["operation"],
    buckets=STORAGE_LATENCY_BUCKETS,
    registry=REGISTRY,
)

storage_file_size_bytes = Histogram(
    "storage_file_size_bytes",
    "Size of objects uploaded/downloaded in bytes",
    ["operation"],
    buckets=STORAGE_SIZE_BUCKETS,
    registry=REGISTRY,
)

storage_operations_active = Gauge(
    "storage_operations_active",
    "Number of storage operations in flight",
    registry=REGISTRY,
)

storage_errors_total = Counter(
    "storage_errors_total",
    "Storage operation errors by kind",
    ["operation", "error_kind"],
    registry=REGISTRY,
)

storage_presigned_urls_generated = Counter(
    "storage_presigned_urls_generated",
    "Total presigned URLs generated",
    ["mode"],  # read/write
    registry=REGISTRY,
)

bucket_deletions_total = Counter(
    "storage_bucket_deletions_total",
    "Bucket deletion workflow outcomes",
    ["workflow", "outcome"],  # workflow: plain/forced, outcome: done or error kind
    registry=REGISTRY,
)

access_points_deleted_total = Counter(
    "storage_access_points_deleted_total",
    "Access points removed by forced bucket deletion",
    registry=REGISTRY,
)


def record_operation_success(
    operation: str,
    duration_seconds: float,
    size_bytes: int | None = None,
) -> None:
    """Record a successful storage operation.

    Args:
        operation: The operation type (e.g., 'upload', 'download', 'delete_bucket')
        duration_seconds: Operation duration in seconds
        size_bytes: Optional object size in bytes for upload/download operations
    """
    storage_operations_total.labels(operation=operation, status="success").inc()
    storage_operation_duration_seconds.labels(operation=operation).observe(duration_seconds)
    if size_bytes is not None:
        storage_file_size_bytes.labels(operation=operation).observe(size_bytes)


def record_operation_error(
    operation: str,
    error_kind: str,
    duration_seconds: float,
) -> None:
    """Record a failed storage operation.

    Args:
        operation: The operation type
        error_kind: ErrorKind value, or the exception class name for unexpected errors
        duration_seconds: Operation duration in seconds before failure
    """
    storage_operations_total.labels(operation=operation, status="error").inc()
    storage_operation_duration_seconds.labels(operation=operation).observe(duration_seconds)
    storage_errors_total.labels(operation=operation, error_kind=error_kind).inc()


def record_bucket_deletion(workflow: str, outcome: str, access_points_removed: int = 0) -> None:
    """Record the terminal outcome of a bucket deletion workflow.

    Args:
        workflow: "plain" or "forced"
        outcome: "done" or the ErrorKind value that stopped the workflow
        access_points_removed: Access points deleted along the way
    """
    bucket_deletions_total.labels(workflow=workflow, outcome=outcome).inc()
    if access_points_removed:
        access_points_deleted_total.inc(access_points_removed)
