"""Storage operation instrumentation with OpenTelemetry and Prometheus metrics.

Every StorageService operation runs inside :func:`track_storage_operation`,
which opens a span, tracks the in-flight gauge and records success or error
metrics when the block exits.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry.trace import Status, StatusCode

from s3_admin.infra.tracing.opentelemetry import get_tracer

from . import metrics
from .exceptions import StorageError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

_tracer = get_tracer("storage")


@asynccontextmanager
async def track_storage_operation(
    operation: str,
    key: str | None = None,
    bucket: str | None = None,
    size_bytes: int | None = None,
    content_type: str | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """Track a storage operation with an OpenTelemetry span and Prometheus metrics.

    The yielded dict can be updated by the caller; its entries are recorded
    as ``storage.result.*`` span attributes and ``result_size`` overrides the
    size observed in the size histogram.

    Args:
        operation: Operation name (upload, download, delete_bucket, list, ...)
        key: Object key
        bucket: Bucket name
        size_bytes: Object size in bytes (for uploads)
        content_type: MIME content type

    Yields:
        A context dictionary for result attributes

    Example:
        async with track_storage_operation("upload", key=key, bucket=bucket) as ctx:
            result = await gateway.put_object(bucket, key, data)
            ctx["result_size"] = result.size_bytes
    """
    start_time = time.perf_counter()
    context: dict[str, Any] = {}

    span_attributes: dict[str, Any] = {"storage.operation": operation}
    if key:
        span_attributes["storage.key"] = key
    if bucket:
        span_attributes["storage.bucket"] = bucket
    if size_bytes is not None:
        span_attributes["storage.size_bytes"] = size_bytes
    if content_type:
        span_attributes["storage.content_type"] = content_type

    metrics.storage_operations_active.inc()

    with _tracer.start_as_current_span(
        f"storage.{operation}",
        attributes=span_attributes,
    ) as span:
        try:
            yield context

            for k, v in context.items():
                span.set_attribute(f"storage.result.{k}", str(v))

            metrics.record_operation_success(
                operation=operation,
                duration_seconds=time.perf_counter() - start_time,
                size_bytes=context.get("result_size", size_bytes),
            )
            span.set_status(Status(StatusCode.OK))

        except Exception as e:
            error_kind = e.kind.value if isinstance(e, StorageError) else type(e).__name__
            metrics.record_operation_error(
                operation=operation,
                error_kind=error_kind,
                duration_seconds=time.perf_counter() - start_time,
            )
            span.set_attribute("storage.error_kind", error_kind)
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise

        finally:
            metrics.storage_operations_active.dec()
