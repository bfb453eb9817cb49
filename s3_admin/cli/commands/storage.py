"""Storage administration commands for S3-compatible object storage.

This module provides CLI commands for:
- Configuration and connectivity information
- Bucket listing, creation, inspection and deletion (plain or forced)
- Object listing, upload, download, metadata, deletion and presigned URLs
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
import mimetypes
from pathlib import Path
import sys
from typing import TYPE_CHECKING, NoReturn

import click

from s3_admin.cli.utils import coro, error, format_bytes, info, section, success, warning
from s3_admin.core.settings import get_storage_settings
from s3_admin.infra.storage.exceptions import HasDependentsError, StorageError
from s3_admin.infra.storage.service import StorageService

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


def _build_service() -> StorageService:
    return StorageService(get_storage_settings())


@asynccontextmanager
async def _storage_session() -> AsyncIterator[StorageService]:
    """Open a storage service for the duration of one command."""
    service = _build_service()
    try:
        await service.startup()
    except StorageError as e:
        error(f"Could not connect to storage: {e.message}")
        sys.exit(1)

    if not service.is_ready:
        error("Storage is not configured. Run 's3-admin storage info' for details.")
        sys.exit(1)

    try:
        yield service
    finally:
        await service.shutdown()


def _fail(action: str, e: StorageError) -> NoReturn:
    error(f"{action}: {e.message}")
    if isinstance(e, HasDependentsError) and e.access_points:
        click.echo("\nAttached access points:")
        for name in e.access_points:
            click.echo(f"  - {name}")
        info("Re-run with --force to delete them together with the bucket")
    sys.exit(1)


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip() if value else "-"


@click.group(name="storage")
def storage() -> None:
    """Bucket and object administration.

    Connection settings come from STORAGE_* environment variables or
    conf.d/storage.yaml.
    """


@storage.command(name="info")
def info_cmd() -> None:
    """Show storage configuration."""
    settings = get_storage_settings()

    section("Storage Configuration")

    click.echo(f"\nEnabled: {settings.enabled}")
    if settings.endpoint:
        click.echo(f"Endpoint: {settings.endpoint}")
        click.echo("Type: S3-compatible (MinIO/LocalStack)")
    else:
        click.echo("Endpoint: AWS S3 (default)")
        click.echo("Type: AWS S3")
    click.echo(f"Region: {settings.region}")
    click.echo(f"Use SSL: {settings.use_ssl}")
    click.echo(f"Retries: {settings.max_retries} ({settings.retry_mode})")

    click.echo(
        f"\nMax File Size: {settings.max_file_size_mb} MB "
        f"({format_bytes(settings.max_file_size_bytes)})"
    )
    click.echo(f"Allowed Content Types: {', '.join(settings.allowed_content_types)}")

    if settings.access_key and settings.secret_key:
        success("Credentials: Configured")
    else:
        warning("Credentials: Not set, using the default AWS credential chain")

    if settings.has_account_id:
        success("Account ID: Configured (access point management enabled)")
    else:
        warning("Account ID: Not set (forced bucket deletion unavailable)")
        info("Set STORAGE_ACCOUNT_ID to manage access points")


# ============================================================================
# Buckets
# ============================================================================


@storage.command(name="buckets")
@coro
async def list_buckets() -> None:
    """List all buckets."""
    async with _storage_session() as service:
        try:
            buckets = await service.list_buckets()
        except StorageError as e:
            _fail("Failed to list buckets", e)

    if not buckets:
        warning("No buckets found")
        return

    section(f"Buckets ({len(buckets)})")
    click.echo(f"\n{'Name':<40} {'Region':<16} {'Objects':<8} {'Created':<25}")
    click.echo("-" * 92)
    for bucket in buckets:
        has_objects = "yes" if bucket.has_objects else "no"
        click.echo(
            f"{bucket.name:<40} {bucket.region:<16} {has_objects:<8} "
            f"{_format_time(bucket.creation_date):<25}"
        )


@storage.command(name="create-bucket")
@click.argument("name")
@click.option("--region", default=None, help="Region (defaults to STORAGE_REGION)")
@coro
async def create_bucket(name: str, region: str | None) -> None:
    """Create a bucket.

    Examples:
        s3-admin storage create-bucket reports
        s3-admin storage create-bucket reports --region eu-west-1
    """
    async with _storage_session() as service:
        try:
            created = await service.create_bucket(name, region=region)
        except StorageError as e:
            _fail("Failed to create bucket", e)

    success(f"Bucket {created.name} created in {created.region}")


@storage.command(name="bucket-info")
@click.argument("name")
@coro
async def bucket_info(name: str) -> None:
    """Show object count and total size of a bucket."""
    async with _storage_session() as service:
        try:
            details = await service.get_bucket_details(name)
        except StorageError as e:
            _fail("Failed to get bucket details", e)

    section(f"Bucket {details.name}")
    click.echo(f"\nObjects: {details.object_count}")
    click.echo(f"Total Size: {format_bytes(details.total_size_bytes)} ({details.total_size_bytes} bytes)")


@storage.command(name="delete-bucket")
@click.argument("name")
@click.option(
    "--force",
    is_flag=True,
    help="Delete attached access points first (requires STORAGE_ACCOUNT_ID)",
)
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@coro
async def delete_bucket(name: str, force: bool, yes: bool) -> None:
    """Delete an empty bucket.

    Without --force the bucket is only deleted when no access points are
    attached; otherwise their names are listed and nothing is deleted.

    Examples:
        s3-admin storage delete-bucket old-reports
        s3-admin storage delete-bucket old-reports --force --yes
    """
    if force and not yes:
        click.confirm(
            f"Delete bucket {name} and every access point attached to it?",
            abort=True,
        )

    async with _storage_session() as service:
        try:
            if force:
                outcome = await service.force_delete_bucket(name)
            else:
                outcome = await service.delete_bucket(name)
        except StorageError as e:
            _fail(f"Failed to delete bucket {name}", e)

    success(outcome.message)


@storage.command(name="size")
@click.argument("bucket")
@click.option("--prefix", default="", help="Only count keys under this prefix")
@coro
async def bucket_size(bucket: str, prefix: str) -> None:
    """Show the total size of a bucket's objects (0 if it cannot be computed)."""
    async with _storage_session() as service:
        size = await service.bucket_size(bucket, prefix=prefix)

    click.echo(f"{format_bytes(size)} ({size} bytes)")


# ============================================================================
# Objects
# ============================================================================


@storage.command(name="ls")
@click.argument("bucket")
@click.argument("prefix", default="")
@click.option("--limit", type=click.IntRange(1, 1000), default=100, help="Page size (default: 100)")
@click.option("--all", "all_pages", is_flag=True, help="Follow continuation tokens to the end")
@coro
async def list_objects(bucket: str, prefix: str, limit: int, all_pages: bool) -> None:
    """List objects in a bucket.

    Examples:
        s3-admin storage ls reports
        s3-admin storage ls reports 2024/ --all
    """
    objects = []
    truncated = False
    async with _storage_session() as service:
        token: str | None = None
        try:
            while True:
                page = await service.list_objects(
                    bucket,
                    prefix=prefix,
                    page_size=limit,
                    continuation_token=token,
                )
                objects.extend(page.objects)
                truncated = page.is_truncated
                if not all_pages or not page.is_truncated:
                    break
                token = page.next_continuation_token
        except StorageError as e:
            _fail("Failed to list objects", e)

    if not objects:
        warning(f"No objects found with prefix: '{prefix}'")
        return

    click.echo(f"\n{'Key':<50} {'Size':<12} {'Last Modified':<25}")
    click.echo("-" * 90)
    total_size = 0
    for obj in objects:
        display_key = obj.key if len(obj.key) <= 48 else "..." + obj.key[-45:]
        click.echo(
            f"{display_key:<50} {format_bytes(obj.size_bytes):<12} "
            f"{_format_time(obj.last_modified):<25}"
        )
        total_size += obj.size_bytes
    click.echo("-" * 90)
    click.echo(f"Total: {len(objects)} objects, {format_bytes(total_size)}")
    if truncated:
        info("More objects available, use --all to list everything")


@storage.command(name="upload")
@click.argument("bucket")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--key", default=None, help="Object key (defaults to the file name)")
@click.option("--content-type", default=None, help="MIME type (guessed from the file name)")
@coro
async def upload(bucket: str, file: Path, key: str | None, content_type: str | None) -> None:
    """Upload a local file.

    Examples:
        s3-admin storage upload reports ./q1.pdf
        s3-admin storage upload reports ./q1.pdf --key 2024/q1.pdf
    """
    settings = get_storage_settings()
    object_key = key or file.name
    content_type = content_type or mimetypes.guess_type(file.name)[0]

    if not settings.is_content_type_allowed(content_type):
        error(f"Content type {content_type or 'unknown'} is not allowed")
        sys.exit(1)

    size = file.stat().st_size
    if size > settings.max_file_size_bytes:
        error(f"File exceeds maximum size of {settings.max_file_size_mb} MB")
        sys.exit(1)

    async with _storage_session() as service:
        try:
            result = await service.upload_object(
                bucket,
                object_key,
                file.read_bytes(),
                content_type=content_type,
                metadata={
                    "original-name": file.name,
                    "uploaded-at": datetime.now(UTC).isoformat(),
                },
            )
        except StorageError as e:
            _fail("Upload failed", e)

    success(f"Uploaded {object_key} ({format_bytes(result.size_bytes)})")
    click.echo(f"ETag: {result.etag}")
    click.echo(f"SHA-256: {result.checksum_sha256}")


@storage.command(name="download")
@click.argument("bucket")
@click.argument("key")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Destination file (defaults to the last key segment)",
)
@coro
async def download(bucket: str, key: str, output: Path | None) -> None:
    """Download an object to a local file."""
    destination = output or Path(key.rsplit("/", 1)[-1])

    written = 0
    async with _storage_session() as service:
        try:
            content = await service.download_object(bucket, key)
            with destination.open("wb") as fh:
                async for chunk in content.stream:
                    fh.write(chunk)
                    written += len(chunk)
        except StorageError as e:
            _fail("Download failed", e)

    success(f"Downloaded {key} to {destination} ({format_bytes(written)})")


@storage.command(name="stat")
@click.argument("bucket")
@click.argument("key")
@coro
async def stat(bucket: str, key: str) -> None:
    """Show object metadata."""
    async with _storage_session() as service:
        try:
            meta = await service.get_object_metadata(bucket, key)
        except StorageError as e:
            _fail("Failed to get object metadata", e)

    section(meta.key)
    click.echo(f"\nSize: {format_bytes(meta.size_bytes)} ({meta.size_bytes} bytes)")
    click.echo(f"Content Type: {meta.content_type or '-'}")
    click.echo(f"Last Modified: {_format_time(meta.last_modified)}")
    click.echo(f"ETag: {meta.etag or '-'}")
    click.echo(f"Storage Class: {meta.storage_class}")
    for name, value in meta.metadata.items():
        click.echo(f"  {name}: {value}")


@storage.command(name="rm")
@click.argument("bucket")
@click.argument("keys", nargs=-1, required=True)
@coro
async def remove(bucket: str, keys: tuple[str, ...]) -> None:
    """Delete one or more objects.

    Every key is attempted even if some fail.

    Examples:
        s3-admin storage rm reports 2024/q1.pdf 2024/q2.pdf
    """
    async with _storage_session() as service:
        result = await service.delete_objects(bucket, list(keys))

    for key in result.deleted:
        success(f"Deleted {key}")
    for failure in result.failed:
        error(f"Failed to delete {failure.key}: {failure.message}")
    if result.failed:
        sys.exit(1)


@storage.command(name="presign")
@click.argument("bucket")
@click.argument("key")
@click.option("--write", is_flag=True, help="Generate an upload (PUT) URL instead of a download URL")
@coro
async def presign(bucket: str, key: str, write: bool) -> None:
    """Print a presigned URL valid for one hour."""
    async with _storage_session() as service:
        try:
            if write:
                presigned = await service.generate_upload_url(bucket, key)
            else:
                presigned = await service.generate_download_url(bucket, key)
        except StorageError as e:
            _fail("Failed to generate presigned URL", e)

    click.echo(presigned.url)
    info(f"Valid for {presigned.expires_in} seconds")
