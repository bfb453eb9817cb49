"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    HTTP Request Metrics:
        - http_requests_total - Request count by method, endpoint, status
        - http_request_duration_seconds - Request latency histogram
        - errors_total - Problem responses by error type

    Storage Metrics:
        - storage_operations_total / storage_operation_duration_seconds
        - storage_errors_total - Failures by operation and error kind
        - storage_bucket_deletions_total - Deletion workflow outcomes
        - storage_access_points_deleted_total - Access points removed by forced deletes
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from s3_admin.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in text exposition format."""
    data = generate_latest(REGISTRY)
    return Response(
        content=data,
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
