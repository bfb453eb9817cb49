"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    Provides a standardized way to carry machine-readable details
    of errors in HTTP responses.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Example:
        return JSONResponse(
            status_code=409,
            content=ProblemDetails(
                type="not-empty",
                title="Conflict",
                status=409,
                detail="Cannot delete bucket that contains objects",
                instance="/api/buckets/demo",
            ).model_dump(exclude_none=True),
        )
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(
        min_length=1, max_length=200, description="Short, human-readable summary of the problem"
    )
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        max_length=2000,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "has-dependents",
                "title": "Conflict",
                "status": 409,
                "detail": "Bucket has 2 access point(s) attached: ap1, ap2. "
                "These must be deleted before the bucket can be removed.",
                "instance": "/api/buckets/demo2",
            }
        },
        str_strip_whitespace=True,
    )


class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str = Field(description="Dotted path of the offending field")
    message: str = Field(description="Validation message")
    type: str = Field(description="Validation error type")
    value: Any | None = Field(default=None, description="Rejected input value")


class ValidationProblemDetails(ProblemDetails):
    """Problem details carrying per-field validation errors."""

    errors: list[FieldError] = Field(default_factory=list, description="Field errors")
