"""Tests for the application exception base classes."""

from s3_admin.core.exceptions import AppException, BadRequestException


def test_app_exception_defaults() -> None:
    """AppException fills the title from the status code."""
    exc = AppException(status_code=404, detail="missing")

    assert exc.title == "Not Found"
    assert exc.type == "about:blank"
    assert exc.extra == {}
    assert str(exc) == "missing"


def test_app_exception_unknown_status_title() -> None:
    """Unknown status codes fall back to a generic title."""
    assert AppException(status_code=418, detail="teapot").title == "Error"


def test_bad_request_exception() -> None:
    """BadRequestException is a 400 carrying its type and extra context."""
    exc = BadRequestException(
        "File exceeds maximum size of 100 MB",
        type="file-too-large",
        extra={"size_bytes": 1},
    )

    assert exc.status_code == 400
    assert exc.title == "Bad Request"
    assert exc.type == "file-too-large"
    assert exc.extra == {"size_bytes": 1}
