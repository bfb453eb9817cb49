"""Storage error taxonomy for S3 administration.

Every failure surfaced by the storage layer belongs to one of a closed set
of kinds (:class:`ErrorKind`). Each kind has a dedicated exception class
deriving from :class:`StorageError`, which itself is an ``AppException`` so
the global exception handler renders it as RFC 7807 problem details.

Provider errors are translated in exactly one place,
:func:`classify_provider_error`.

Example:
    ```python
    from botocore.exceptions import ClientError

    from s3_admin.infra.storage.exceptions import classify_provider_error

    try:
        await client.delete_bucket(Bucket=name)
    except ClientError as e:
        raise classify_provider_error(e, operation="delete_bucket", bucket=name) from e
    ```
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from s3_admin.core.exceptions import AppException


class ErrorKind(StrEnum):
    """Closed set of storage failure kinds."""

    INVALID_NAME = "invalid_name"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NOT_EMPTY = "not_empty"
    HAS_DEPENDENTS = "has_dependents"
    CONFIG_MISSING = "config_missing"
    UNAVAILABLE = "unavailable"


# Substring the provider uses when a bucket delete is refused because access
# points are still attached. Case-insensitive match on the error message.
ACCESS_POINTS_ATTACHED_MARKER = "access points attached"

_ALREADY_EXISTS_MESSAGES = {
    "BucketAlreadyExists": "Bucket name already exists",
    "BucketAlreadyOwnedByYou": "Bucket already owned by you",
}
_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "404"})
_NOT_EMPTY_CODES = frozenset({"BucketNotEmpty"})
_INVALID_NAME_CODES = frozenset({"InvalidBucketName", "KeyTooLongError"})


class StorageError(AppException):
    """Base exception for all storage-related errors.

    Attributes:
        kind: The failure kind.
        message: Human-readable error message (same as ``detail``).
        status_code: HTTP status code for the error.
        extra: Additional context (operation, bucket, provider error code).
    """

    kind: ErrorKind = ErrorKind.UNAVAILABLE
    default_status_code: int = 503

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize storage error.

        Args:
            message: Human-readable error message.
            metadata: Additional error context.
            status_code: Override of the kind's default HTTP status code.
        """
        self.message = message
        extra = {"kind": self.kind.value, **(metadata or {})}
        super().__init__(
            status_code=status_code or self.default_status_code,
            detail=message,
            type=self.kind.value.replace("_", "-"),
            extra=extra,
        )


class InvalidNameError(StorageError):
    """A bucket name or object key failed validation.

    Raised before any provider call is made.

    Example:
        ```python
        raise InvalidNameError(
            "Bucket name must be between 3 and 63 characters",
            metadata={"name": "ab", "rule": "too_short"},
        )
        ```
    """

    kind = ErrorKind.INVALID_NAME
    default_status_code = 400


class NotFoundError(StorageError):
    """The bucket or object does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_status_code = 404


class AlreadyExistsError(StorageError):
    """A bucket with that name already exists (owned by us or someone else)."""

    kind = ErrorKind.ALREADY_EXISTS
    default_status_code = 409


class NotEmptyError(StorageError):
    """The bucket still contains objects and cannot be deleted."""

    kind = ErrorKind.NOT_EMPTY
    default_status_code = 409

    def __init__(
        self,
        message: str = "Cannot delete bucket that contains objects",
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Initialize not-empty error.

        Args:
            message: Human-readable error message.
            metadata: Additional error context.
        """
        super().__init__(message, metadata=metadata)


class HasDependentsError(StorageError):
    """The bucket has access points attached that block its deletion.

    The names of the blocking access points travel in ``access_points`` and
    in the problem details body so a client can offer a forced delete.

    Example:
        ```python
        raise HasDependentsError(
            "Bucket has 2 access point(s) attached: ap1, ap2. ...",
            access_points=["ap1", "ap2"],
        )
        ```
    """

    kind = ErrorKind.HAS_DEPENDENTS
    default_status_code = 409

    def __init__(
        self,
        message: str,
        access_points: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Initialize has-dependents error.

        Args:
            message: Human-readable error message.
            access_points: Names of the attached access points, when known.
            metadata: Additional error context.
        """
        self.access_points = list(access_points or [])
        super().__init__(
            message,
            metadata={**(metadata or {}), "access_points": self.access_points},
        )


class ConfigMissingError(StorageError):
    """Required configuration (e.g. the account ID) is not set."""

    kind = ErrorKind.CONFIG_MISSING
    default_status_code = 500


class UnavailableError(StorageError):
    """Provider failure that fits no other kind: network, auth, throttling, timeouts."""

    kind = ErrorKind.UNAVAILABLE
    default_status_code = 503


def error_for_kind(
    kind: ErrorKind,
    message: str,
    metadata: dict[str, Any] | None = None,
) -> StorageError:
    """Build the exception class matching ``kind``.

    Args:
        kind: Failure kind.
        message: Human-readable error message.
        metadata: Additional error context.

    Returns:
        The matching StorageError subclass instance.
    """
    if kind is ErrorKind.HAS_DEPENDENTS:
        access_points = list((metadata or {}).get("access_points", []))
        rest = {k: v for k, v in (metadata or {}).items() if k != "access_points"}
        return HasDependentsError(message, access_points=access_points, metadata=rest)
    return _ERROR_CLASSES[kind](message, metadata=metadata)


_ERROR_CLASSES: dict[ErrorKind, type[StorageError]] = {
    ErrorKind.INVALID_NAME: InvalidNameError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.ALREADY_EXISTS: AlreadyExistsError,
    ErrorKind.NOT_EMPTY: NotEmptyError,
    ErrorKind.CONFIG_MISSING: ConfigMissingError,
    ErrorKind.UNAVAILABLE: UnavailableError,
}


def provider_error_code(error: Exception) -> str:
    """Extract the provider error code from a botocore error, or ``""``."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return ""


def classify_provider_error(
    error: Exception,
    operation: str,
    bucket: str | None = None,
    key: str | None = None,
) -> StorageError:
    """Translate a provider failure into the storage error taxonomy.

    Args:
        error: The exception raised by aioboto3/botocore.
        operation: Name of the storage operation that failed.
        bucket: Bucket involved, if any.
        key: Object key involved, if any.

    Returns:
        StorageError subclass instance for the failure kind.

    Mappings:
        - BucketAlreadyExists, BucketAlreadyOwnedByYou -> AlreadyExistsError
        - NoSuchKey, NoSuchBucket, NotFound, 404 -> NotFoundError
        - BucketNotEmpty -> NotEmptyError
        - InvalidBucketName, KeyTooLongError -> InvalidNameError
        - message mentions attached access points -> HasDependentsError
        - anything else, including transport errors -> UnavailableError
    """
    metadata: dict[str, Any] = {"operation": operation}
    if bucket:
        metadata["bucket"] = bucket
    if key:
        metadata["key"] = key

    if isinstance(error, ClientError):
        error_info = error.response.get("Error", {})
        code = str(error_info.get("Code", ""))
        provider_message = str(error_info.get("Message", "")) or str(error)
        metadata["provider_error_code"] = code
        request_id = error.response.get("ResponseMetadata", {}).get("RequestId")
        if request_id:
            metadata["request_id"] = request_id

        if code in _ALREADY_EXISTS_MESSAGES:
            return AlreadyExistsError(_ALREADY_EXISTS_MESSAGES[code], metadata=metadata)
        if code in _NOT_FOUND_CODES:
            target = f"Object {key}" if key else f"Bucket {bucket}" if bucket else "Resource"
            return NotFoundError(f"{target} not found", metadata=metadata)
        if code in _NOT_EMPTY_CODES:
            return NotEmptyError(metadata=metadata)
        if code in _INVALID_NAME_CODES:
            return InvalidNameError(provider_message, metadata=metadata)
        if ACCESS_POINTS_ATTACHED_MARKER in provider_message.lower():
            return HasDependentsError(provider_message, metadata=metadata)
        return UnavailableError(
            f"{operation.replace('_', ' ').capitalize()} failed: {provider_message}",
            metadata=metadata,
        )

    if isinstance(error, BotoCoreError):
        metadata["provider_error_code"] = type(error).__name__
        return UnavailableError(
            f"{operation.replace('_', ' ').capitalize()} failed: {error}",
            metadata=metadata,
        )

    return UnavailableError(
        f"{operation.replace('_', ' ').capitalize()} failed: {error}",
        metadata=metadata,
    )
